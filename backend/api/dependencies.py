"""
FastAPI dependency providers

Gateways are process-wide singletons; repositories and services are cheap
and built per request on top of the shared Neo4j service. Tests replace any
of these through app.dependency_overrides.
"""
from functools import lru_cache

from fastapi import Depends

from config.database import get_neo4j_service
from config.settings import Settings, get_settings
from repositories.notification_repository import NotificationRepository
from repositories.post_repository import PostRepository
from repositories.seller_repository import SellerRepository
from repositories.subscription_repository import SubscriptionRepository
from repositories.user_repository import UserRepository
from repositories.wallet_repository import WalletRepository
from services.admin_service import AdminService
from services.auth_service import AuthService
from services.image_generator import ImageGenerator
from services.mailer import Mailer
from services.media_storage import MediaStorage
from services.neo4j_service import Neo4jService
from services.notification_service import NotificationService
from services.post_service import PostService
from services.push_service import PushService
from services.seller_service import SellerService
from services.stripe_gateway import StripeGateway
from services.tokens import TokenService
from services.users_service import UsersService
from services.wallet_service import WalletService
from services.webhook_service import WebhookService


def get_neo4j() -> Neo4jService:
    return get_neo4j_service()


# =============================================================================
# GATEWAYS
# =============================================================================

@lru_cache()
def get_token_service() -> TokenService:
    return TokenService(get_settings())


@lru_cache()
def get_stripe_gateway() -> StripeGateway:
    return StripeGateway(get_settings())


@lru_cache()
def get_mailer() -> Mailer:
    return Mailer(get_settings())


@lru_cache()
def get_push_service() -> PushService:
    return PushService(get_settings())


@lru_cache()
def get_media_storage() -> MediaStorage:
    return MediaStorage(get_settings())


@lru_cache()
def get_image_generator() -> ImageGenerator:
    return ImageGenerator(get_settings())


# =============================================================================
# REPOSITORIES
# =============================================================================

def get_user_repository(neo4j: Neo4jService = Depends(get_neo4j)) -> UserRepository:
    return UserRepository(neo4j)


def get_seller_repository(neo4j: Neo4jService = Depends(get_neo4j)) -> SellerRepository:
    return SellerRepository(neo4j)


def get_post_repository(neo4j: Neo4jService = Depends(get_neo4j)) -> PostRepository:
    return PostRepository(neo4j)


def get_subscription_repository(neo4j: Neo4jService = Depends(get_neo4j)) -> SubscriptionRepository:
    return SubscriptionRepository(neo4j)


def get_wallet_repository(neo4j: Neo4jService = Depends(get_neo4j)) -> WalletRepository:
    return WalletRepository(neo4j)


def get_notification_repository(neo4j: Neo4jService = Depends(get_neo4j)) -> NotificationRepository:
    return NotificationRepository(neo4j)


# =============================================================================
# SERVICES
# =============================================================================

def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    sellers: SellerRepository = Depends(get_seller_repository),
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
    mailer: Mailer = Depends(get_mailer),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(users, sellers, stripe_gateway, mailer, tokens)


def get_notification_service(
    users: UserRepository = Depends(get_user_repository),
    notifications: NotificationRepository = Depends(get_notification_repository),
    push: PushService = Depends(get_push_service),
) -> NotificationService:
    return NotificationService(users, notifications, push)


def get_wallet_service(
    wallets: WalletRepository = Depends(get_wallet_repository),
) -> WalletService:
    return WalletService(wallets)


def get_users_service(
    users: UserRepository = Depends(get_user_repository),
    sellers: SellerRepository = Depends(get_seller_repository),
    posts: PostRepository = Depends(get_post_repository),
    subscriptions: SubscriptionRepository = Depends(get_subscription_repository),
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
    mailer: Mailer = Depends(get_mailer),
    tokens: TokenService = Depends(get_token_service),
    storage: MediaStorage = Depends(get_media_storage),
    images: ImageGenerator = Depends(get_image_generator),
    settings: Settings = Depends(get_settings),
) -> UsersService:
    return UsersService(
        users, sellers, posts, subscriptions, stripe_gateway,
        mailer, tokens, storage, images, settings.secret_key,
    )


def get_post_service(
    posts: PostRepository = Depends(get_post_repository),
    users: UserRepository = Depends(get_user_repository),
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
    storage: MediaStorage = Depends(get_media_storage),
    notifications: NotificationService = Depends(get_notification_service),
) -> PostService:
    return PostService(posts, users, stripe_gateway, storage, notifications)


def get_seller_service(
    sellers: SellerRepository = Depends(get_seller_repository),
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
    storage: MediaStorage = Depends(get_media_storage),
) -> SellerService:
    return SellerService(sellers, stripe_gateway, storage)


def get_admin_service(
    sellers: SellerRepository = Depends(get_seller_repository),
) -> AdminService:
    return AdminService(sellers)


def get_webhook_service(
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
    users_service: UsersService = Depends(get_users_service),
    wallet_service: WalletService = Depends(get_wallet_service),
    notification_service: NotificationService = Depends(get_notification_service),
    push: PushService = Depends(get_push_service),
) -> WebhookService:
    return WebhookService(stripe_gateway, users_service, wallet_service, notification_service, push)
