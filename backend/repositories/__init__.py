"""
Repositories - Neo4j data access layer

Repositories abstract the graph from services. Services work with domain
models and never see Cypher or driver records.
"""
from .base_repository import BaseRepository, to_native, to_number
from .user_repository import UserRepository
from .seller_repository import SellerRepository
from .post_repository import PostRepository
from .subscription_repository import SubscriptionRepository
from .wallet_repository import WalletRepository
from .notification_repository import NotificationRepository

__all__ = [
    'BaseRepository',
    'to_native',
    'to_number',
    'UserRepository',
    'SellerRepository',
    'PostRepository',
    'SubscriptionRepository',
    'WalletRepository',
    'NotificationRepository',
]
