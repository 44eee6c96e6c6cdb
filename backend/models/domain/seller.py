"""
Seller domain models: seller role node, subscription plans and payouts
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from utils.datetime_utils import neo4j_datetime_to_python
from utils.id_generator import generate_id


@dataclass
class Seller:
    """
    Seller role node reached from a user by IS_A.

    ID format: se_xxxxxxxx
    """
    id: str
    verified: bool = False
    front_identity_card: Optional[str] = None
    back_identity_card: Optional[str] = None

    # Owning user, when the query returned it
    user_id: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            self.id = generate_id('seller')

    @classmethod
    def from_neo4j(cls, props: dict, user_id: Optional[str] = None) -> 'Seller':
        return cls(
            id=props['id'],
            verified=bool(props.get('verified', False)),
            front_identity_card=props.get('frontIdentityCard'),
            back_identity_card=props.get('backIdentityCard'),
            user_id=user_id,
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'userId': self.user_id,
            'verified': self.verified,
            'frontIdentityCard': self.front_identity_card,
            'backIdentityCard': self.back_identity_card,
        }


@dataclass
class Plan:
    """
    Monthly subscription plan offered by a seller.

    The id is the Stripe price id, so the checkout session can reference
    the plan directly.
    """
    id: str
    name: str
    price: float

    @classmethod
    def from_neo4j(cls, props: dict) -> 'Plan':
        return cls(
            id=props['id'],
            name=props.get('name', ''),
            price=float(props.get('price') or 0),
        )

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'price': self.price}


@dataclass
class PayoutAccount:
    """Bank account a seller withdraws to (ID format: pa_xxxxxxxx)"""
    id: str
    bank_country: str
    city: str
    bank_name: str
    account_number: str
    swift: str
    status: str = "pending"

    def __post_init__(self):
        if not self.id:
            self.id = generate_id('payout')

    @classmethod
    def from_neo4j(cls, props: dict) -> 'PayoutAccount':
        return cls(
            id=props['id'],
            bank_country=props.get('bankCountry', ''),
            city=props.get('city', ''),
            bank_name=props.get('bankName', ''),
            account_number=props.get('accountNumber', ''),
            swift=props.get('swift', ''),
            status=props.get('status', 'pending'),
        )

    def to_neo4j(self) -> dict:
        return {
            'id': self.id,
            'bankCountry': self.bank_country,
            'city': self.city,
            'bankName': self.bank_name,
            'accountNumber': self.account_number,
            'swift': self.swift,
            'status': self.status,
        }

    def to_dict(self) -> dict:
        return self.to_neo4j()


@dataclass
class WithdrawalRequest:
    """Pending withdrawal to a payout account (ID format: wd_xxxxxxxx)"""
    id: str
    status: str = "pending"
    payout_account_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id:
            self.id = generate_id('withdrawal')

    @classmethod
    def from_neo4j(cls, props: dict, payout_account_id: Optional[str] = None) -> 'WithdrawalRequest':
        return cls(
            id=props['id'],
            status=props.get('status', 'pending'),
            payout_account_id=payout_account_id,
            created_at=neo4j_datetime_to_python(props.get('createdAt')),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'status': self.status,
            'payoutAccountId': self.payout_account_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
