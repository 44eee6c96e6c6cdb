"""
Subscription domain model
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from utils.datetime_utils import neo4j_datetime_to_python


@dataclass
class Subscription:
    """
    SUBSCRIBED_TO edge from a user to a seller's user node.

    The id is the Stripe subscription id delivered by the webhook, so
    cancelling at Stripe and in the graph use the same key. At most one
    active edge exists per (user, seller) pair.
    """
    id: str
    user_id: str
    seller_id: str
    plan_id: Optional[str] = None
    plan_name: Optional[str] = None
    plan_price: float = 0.0
    active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_neo4j(cls, props: dict, user_id: str, seller_id: str) -> 'Subscription':
        """Build from relationship properties plus both endpoint ids"""
        return cls(
            id=props['id'],
            user_id=user_id,
            seller_id=seller_id,
            plan_id=props.get('planId'),
            plan_name=props.get('planName'),
            plan_price=float(props.get('planPrice') or 0),
            active=bool(props.get('active', True)),
            created_at=neo4j_datetime_to_python(props.get('createdAt')),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'userId': self.user_id,
            'sellerId': self.seller_id,
            'planId': self.plan_id,
            'planName': self.plan_name,
            'planPrice': self.plan_price,
            'active': self.active,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
