"""
Wallet domain model
"""
from dataclasses import dataclass
from typing import Optional

from utils.id_generator import generate_id

# Share of each sale kept by the platform
PAYMENT_COMMISSION_PERCENT = 20
SUBSCRIPTION_COMMISSION_PERCENT = 30


def net_of_commission(amount: float, percent: float) -> float:
    """Amount credited to the seller after the platform commission"""
    return amount - amount * percent / 100


@dataclass
class Wallet:
    """
    Seller earnings balance (ID format: wa_xxxxxxxx)

    One wallet per seller, created together with the seller at signup.
    """
    id: str
    amount: float = 0.0
    seller_id: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            self.id = generate_id('wallet')

    @classmethod
    def from_neo4j(cls, props: dict, seller_id: Optional[str] = None) -> 'Wallet':
        return cls(
            id=props['id'],
            amount=float(props.get('amount') or 0),
            seller_id=seller_id,
        )

    def to_dict(self) -> dict:
        return {'id': self.id, 'amount': self.amount, 'sellerId': self.seller_id}
