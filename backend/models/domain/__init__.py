"""
Domain Models - Storage-agnostic data structures

These models represent the marketplace entities independent of storage.
Services operate on these models, not raw Neo4j records.

Architecture:
- Domain models are pure Python objects (dataclasses)
- Neo4j details are abstracted via repositories (from_neo4j builders)
- Business logic operates on these models; to_dict() gives the JSON shape
"""

from .user import User, UserRole
from .seller import Seller, Plan, PayoutAccount, WithdrawalRequest
from .post import Post, Collection, Picture, Category
from .subscription import Subscription
from .wallet import (
    Wallet,
    PAYMENT_COMMISSION_PERCENT,
    SUBSCRIPTION_COMMISSION_PERCENT,
    net_of_commission,
)
from .notification import Notification

__all__ = [
    # Accounts
    'User',
    'UserRole',
    'Seller',
    'Plan',
    'PayoutAccount',
    'WithdrawalRequest',

    # Albums
    'Post',
    'Collection',
    'Picture',
    'Category',

    # Money
    'Subscription',
    'Wallet',
    'PAYMENT_COMMISSION_PERCENT',
    'SUBSCRIPTION_COMMISSION_PERCENT',
    'net_of_commission',

    'Notification',
]
