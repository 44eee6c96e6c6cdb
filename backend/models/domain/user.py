"""
User domain model
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from utils.datetime_utils import neo4j_datetime_to_python


class UserRole(str, Enum):
    """Role node a user points to with IS_A"""
    SELLER = "Seller"
    BUYER = "Buyer"


@dataclass
class User:
    """
    User domain model - storage-agnostic representation

    Storage: Neo4j (user node)

    Note: the id is the Stripe customer id created at signup, not a
    generated short ID. The password field holds the bcrypt hash and is
    never serialized by to_dict() unless asked for.
    """
    id: str
    email: str
    name: str
    user_name: str

    password: Optional[str] = None
    avatar: Optional[str] = None
    phone: Optional[str] = None

    # Account state
    confirmed: bool = False
    verified: bool = False
    desactivated: bool = False

    # Subscription counters (kept in sync by subscribe/cancel)
    followers: int = 0
    followings: int = 0

    created_at: Optional[datetime] = None

    @classmethod
    def from_neo4j(cls, props: dict) -> 'User':
        """Build from user node properties"""
        return cls(
            id=props['id'],
            email=props.get('email', ''),
            name=props.get('name', ''),
            user_name=props.get('userName', ''),
            password=props.get('password'),
            avatar=props.get('avatar'),
            phone=props.get('phone'),
            confirmed=bool(props.get('confirmed', False)),
            verified=bool(props.get('verified', False)),
            desactivated=bool(props.get('desactivated', False)),
            followers=int(props.get('followers') or 0),
            followings=int(props.get('followings') or 0),
            created_at=neo4j_datetime_to_python(props.get('createdAt')),
        )

    @property
    def is_active(self) -> bool:
        return not self.desactivated

    def to_dict(self, include_password: bool = False) -> dict:
        data = {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'userName': self.user_name,
            'avatar': self.avatar,
            'phone': self.phone,
            'confirmed': self.confirmed,
            'verified': self.verified,
            'desactivated': self.desactivated,
            'followers': self.followers,
            'followings': self.followings,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if include_password:
            data['password'] = self.password
        return data
