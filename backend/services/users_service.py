"""
Users service - profiles, OTP login, checkout and subscriptions

Checkout sessions carry everything the webhook needs in their metadata:

    albums:         sellersIds = "sellerId:S.postId:P.amount:A,..."
    subscriptions:  sellerId, subscriptionPlanId/Title/Price
    sent pictures:  comingFrom = "sentPicturePayment", chatRoomId, messageId, ...

All seller ids here are the seller's user id.
"""
import logging
from typing import Dict, List, Optional

from fastapi import UploadFile
from jose import JWTError

from middleware.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    wrap_unexpected,
)
from models.api.user import ContactRequest, SubscribeData, UnlockSentPictureRequest, UpdateUserData
from models.domain.subscription import Subscription
from models.domain.user import UserRole
from repositories.post_repository import PostRepository
from repositories.seller_repository import SellerRepository
from repositories.subscription_repository import SubscriptionRepository
from repositories.user_repository import UserRepository
from services.image_generator import ImageGenerator
from services.mailer import Mailer
from services.media_storage import MediaStorage
from services.stripe_gateway import StripeGateway
from services.tokens import EMAIL, TokenService
from utils.otp import OtpError, check_otp, generate_otp, sign_otp
from utils.password import hash_password

logger = logging.getLogger(__name__)

SENT_PICTURE_PAYMENT = "sentPicturePayment"


def format_amount(amount: float) -> str:
    """Exact to the cent with trailing zeros dropped, so 10.0 is "10" """
    return f"{amount:.2f}".rstrip("0").rstrip(".")


def format_seller_entry(seller_id: str, post_id: str, amount: float) -> str:
    """One sellersIds entry: sellerId:S.postId:P.amount:A"""
    return f"sellerId:{seller_id}.postId:{post_id}.amount:{format_amount(amount)}"


class UsersService:
    """Operations a signed-in (or signing-in) user performs on their account"""

    def __init__(
        self,
        user_repo: UserRepository,
        seller_repo: SellerRepository,
        post_repo: PostRepository,
        subscription_repo: SubscriptionRepository,
        stripe_gateway: StripeGateway,
        mailer: Mailer,
        tokens: TokenService,
        storage: MediaStorage,
        image_generator: ImageGenerator,
        secret_key: str,
    ):
        self.users = user_repo
        self.sellers = seller_repo
        self.posts = post_repo
        self.subscriptions = subscription_repo
        self.stripe = stripe_gateway
        self.mailer = mailer
        self.tokens = tokens
        self.storage = storage
        self.images = image_generator
        self.secret_key = secret_key

    # =========================================================================
    # PROFILE
    # =========================================================================

    async def find_user_by_id(self, user_id: str) -> Dict:
        with wrap_unexpected("find user", user_id=user_id):
            return (await self.users.find_by_id_or_fail(user_id)).to_dict()

    async def update_user(self, user_id: str, data: UpdateUserData) -> Dict:
        """Omitted name / userName keep their current value"""
        with wrap_unexpected("update user", user_id=user_id):
            await self.users.find_by_id_or_fail(user_id)
            updated = await self.users.update(user_id, {'name': data.name, 'userName': data.userName})
            return updated.to_dict()

    async def change_password(self, email: str, new_password: str, requester_id: Optional[str] = None) -> Dict:
        """
        Set a new password for the account with this e-mail.

        Raises:
            NotFoundError: no such account
            ForbiddenError: requester is a different user
        """
        with wrap_unexpected("change password", email=email):
            user = await self.users.find_by_email(email)
            if not user:
                raise NotFoundError("User not found")
            if requester_id and user.id != requester_id:
                raise ForbiddenError("You are not authorized to change this password")

            updated = await self.users.update(user.id, {'password': hash_password(new_password)})
            return updated.to_dict()

    async def email_confirming(self, token: str) -> bool:
        """
        Confirm the account named by an e-mail token.

        Raises:
            BadRequestError: bad token or account already confirmed
        """
        try:
            payload = self.tokens.verify(token, EMAIL)
        except JWTError:
            raise BadRequestError("Invalid or expired confirmation token")

        with wrap_unexpected("confirm email"):
            user = await self.users.find_by_email(payload.get("email", ""))
            if not user:
                raise NotFoundError("User not found")
            if user.confirmed:
                raise BadRequestError("This account is already confirmed")

            confirmed = await self.users.confirm_email(user.id)
            logger.info(f"📬 Email confirmed for {user.id}")
            return confirmed.confirmed

    async def desactivate_user(self, user_id: str) -> None:
        with wrap_unexpected("deactivate user", user_id=user_id):
            await self.users.find_by_id_or_fail(user_id)
            await self.users.soft_delete(user_id)
            logger.info(f"🚫 User {user_id} deactivated")

    async def sign_out(self, user_id: str) -> bool:
        with wrap_unexpected("sign out", user_id=user_id):
            await self.users.clear_device_tokens(user_id)
            return True

    # =========================================================================
    # MEDIA / CONTACT
    # =========================================================================

    async def generate_ai_pictures(self, color: str, category: str) -> List[str]:
        with wrap_unexpected("generate AI pictures", color=color, category=category):
            return await self.images.generate(color, category)

    async def upload_avatar(self, file: UploadFile, user_id: str) -> str:
        with wrap_unexpected("upload avatar", user_id=user_id):
            await self.users.find_by_id_or_fail(user_id)
            location = await self.storage.save(file, "avatars", f"avatar{user_id}")
            await self.users.set_avatar(user_id, location)
            return location

    async def upload_device_token(self, user_id: str, token: str) -> None:
        with wrap_unexpected("upload device token", user_id=user_id):
            await self.users.add_device_token(user_id, token)

    async def contact(self, form: ContactRequest) -> None:
        with wrap_unexpected("send contact form email"):
            await self.mailer.send_contact_email(form.model_dump())
            logger.info(f"📨 Contact form forwarded for {form.email}")

    # =========================================================================
    # OTP LOGIN
    # =========================================================================

    async def generate_otp(self, email: str) -> str:
        """Mail a fresh code and return the signed "<hmac>.<expires>" value"""
        with wrap_unexpected("generate and send OTP", email=email):
            otp = generate_otp()
            signed, _ = sign_otp(email, otp, self.secret_key)
            await self.mailer.send_otp_email(email, otp)
            logger.info(f"🔢 OTP sent to {email}")
            return signed

    async def verify_otp(self, email: str, otp: str, signed: str) -> Dict:
        """
        Exchange a valid code for an access token.

        Returns:
            {message: 'success', tokenData, data, role}

        Raises:
            BadRequestError: expired or invalid code
            NotFoundError: no account for the e-mail
        """
        try:
            check_otp(email, otp, signed, self.secret_key)
        except OtpError as e:
            raise BadRequestError(str(e))

        with wrap_unexpected("verify OTP", email=email):
            user = await self.users.find_by_email(email)
            if not user:
                raise NotFoundError("User not found")
            role = await self.users.get_user_role(user.id)
            return {
                "message": "success",
                "tokenData": self.tokens.create_access_token(user.id),
                "data": user.to_dict(),
                "role": role.value if role else None,
            }

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    async def buy_posts(self, user_id: str, post_ids: List[str]) -> Dict:
        """
        Checkout session for the albums the user does not own yet.

        Returns:
            {url, sessionId, postIds} where postIds are the albums charged

        Raises:
            ConflictError: every album was already bought
            NotFoundError: an album has no Stripe price
        """
        with wrap_unexpected("create checkout session", user_id=user_id):
            line_items = []
            entries = []
            charged = []
            for post_id in dict.fromkeys(post_ids):
                if await self.posts.check_user_purchased(user_id, post_id):
                    continue

                price = await self.stripe.first_price(post_id)
                if not price:
                    raise NotFoundError(f"No price found for post {post_id}")
                product = await self.stripe.retrieve_product(post_id)
                seller_id = (product.get("metadata") or {}).get("sellerId")

                line_items.append({"price": price["id"], "quantity": 1})
                entries.append(format_seller_entry(seller_id, post_id, (price["unit_amount"] or 0) / 100))
                charged.append(post_id)

            if not line_items:
                raise ConflictError("All posts selected have already been bought by this user")

            session = await self.stripe.create_checkout_session(
                "payment",
                user_id,
                line_items,
                metadata={"sellersIds": ",".join(entries)},
            )
            return {"url": session["url"], "sessionId": session["id"], "postIds": charged}

    async def subscribe(self, user_id: str, data: SubscribeData) -> Dict:
        """
        Subscription-mode checkout for one of a seller's plans.

        Raises:
            NotFoundError: sellerId is not a seller
            ConflictError: already subscribed to this seller
        """
        with wrap_unexpected("create subscription", user_id=user_id, seller_id=data.sellerId):
            if not await self.sellers.is_seller(data.sellerId):
                raise NotFoundError(f"Seller with user ID {data.sellerId} not found")
            if await self.subscriptions.check_active(user_id, data.sellerId):
                raise ConflictError("Already subscribed to this seller")

            session = await self.stripe.create_checkout_session(
                "subscription",
                user_id,
                [{"price": data.subscriptionPlanId, "quantity": 1}],
                metadata={
                    "sellerId": data.sellerId,
                    "subscriptionPlanId": data.subscriptionPlanId,
                    "subscriptionPlanTitle": data.subscriptionPlanTitle,
                    "subscriptionPlanPrice": format_amount(data.subscriptionPlanPrice),
                },
            )
            return {"url": session["url"], "sessionId": session["id"]}

    async def unlock_sent_picture(self, user_id: str, data: UnlockSentPictureRequest) -> Dict:
        """Payment-mode checkout for a picture a seller sent in chat"""
        with wrap_unexpected("unlock sent picture", user_id=user_id, picture_id=data.pictureId):
            price = await self.stripe.first_price(data.pictureId)
            if not price:
                raise NotFoundError(f"No price found for picture {data.pictureId}")

            seller_id = data.sellerId
            if not seller_id:
                product = await self.stripe.retrieve_product(data.pictureId)
                seller_id = (product.get("metadata") or {}).get("sellerId")

            session = await self.stripe.create_checkout_session(
                "payment",
                user_id,
                [{"price": price["id"], "quantity": 1}],
                metadata={
                    "sellerId": seller_id or "",
                    "messageId": data.messageId,
                    "pictureId": data.pictureId,
                    "amount": format_amount(data.tipAmount),
                    "chatRoomId": data.chatRoomId,
                    "comingFrom": SENT_PICTURE_PAYMENT,
                },
            )
            return {"url": session["url"], "sessionId": session["id"]}

    # =========================================================================
    # PURCHASES
    # =========================================================================

    async def buy_post(self, post_id: str, user_id: str) -> None:
        with wrap_unexpected("buy post", post_id=post_id, user_id=user_id):
            await self.posts.record_purchase(user_id, post_id)

    async def check_for_sale(self, user_id: str, post_id: str) -> bool:
        with wrap_unexpected("check for sale", user_id=user_id, post_id=post_id):
            return await self.posts.check_user_purchased(user_id, post_id)

    async def has_access_to_post(self, user_id: str, post_id: str, plan: str) -> Dict:
        """Bought outright, or subscribed to the album's seller with that plan"""
        purchased = await self.check_for_sale(user_id, post_id)
        if not purchased:
            purchased = await self.check_for_subscription_by_post(user_id, post_id, plan)
        return {"postId": post_id, "hasPurchased": purchased}

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    async def create_subscription_in_db(
        self,
        subscription_id: str,
        user_id: str,
        seller_id: str,
        title: str,
        price: float,
        plan_id: Optional[str] = None,
    ) -> Subscription:
        """
        Store a paid subscription and bump the follow counters.

        Raises:
            ConflictError: an active subscription already exists
        """
        with wrap_unexpected("create subscription", user_id=user_id, seller_id=seller_id):
            if await self.subscriptions.check_active(user_id, seller_id):
                raise ConflictError("Already subscribed")

            subscription, created = await self.subscriptions.create(Subscription(
                id=subscription_id,
                user_id=user_id,
                seller_id=seller_id,
                plan_id=plan_id,
                plan_name=title,
                plan_price=float(price),
            ))
            if not created:
                raise ConflictError("Already subscribed")

            await self.users.adjust_follow_counters(user_id, seller_id, 1)
            logger.info(f"⭐ {user_id} subscribed to {seller_id} ({title})")
            return subscription

    async def cancel_subscription(self, user_id: str, seller_user_id: str) -> Dict:
        """
        Remove the subscription edge and cancel it at Stripe.

        Raises:
            NotFoundError: no active subscription to this seller
        """
        with wrap_unexpected("cancel subscription", user_id=user_id, seller_id=seller_user_id):
            subscription = await self.subscriptions.find_between(user_id, seller_user_id)
            if not subscription or not subscription.active:
                raise NotFoundError("No active subscription found")

            await self.subscriptions.delete(user_id, seller_user_id)
            await self.users.adjust_follow_counters(user_id, seller_user_id, -1)
            await self.stripe.cancel_subscription(subscription.id)

            logger.info(f"✂️ {user_id} cancelled subscription {subscription.id}")
            return {"message": "subscription was canceled successfully"}

    async def check_for_subscription(self, user_id: str, seller_id: str) -> bool:
        with wrap_unexpected("check for subscription", user_id=user_id, seller_id=seller_id):
            return await self.subscriptions.check_active(user_id, seller_id)

    async def check_for_subscription_by_post(self, user_id: str, post_id: str, plan: str) -> bool:
        with wrap_unexpected("check for subscription", user_id=user_id, post_id=post_id):
            return await self.subscriptions.check_by_post_and_plan(user_id, post_id, plan)

    async def get_all_subscriptions_for_user(self, user_id: str) -> List[Dict]:
        with wrap_unexpected("retrieve subscriptions", user_id=user_id):
            return [
                {
                    "sellerId": s.seller_id,
                    "subscriptionId": s.id,
                    "planName": s.plan_name,
                    "planPrice": s.plan_price,
                }
                for s in await self.subscriptions.get_user_subscriptions(user_id)
                if s.active
            ]

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    async def get_seller_plans(self, user_id: str) -> List[Dict]:
        with wrap_unexpected("get seller plans", user_id=user_id):
            return [p.to_dict() for p in await self.sellers.get_plans(user_id)]

    async def get_sellers_by_post_id(self, post_id: str) -> List[Dict]:
        with wrap_unexpected("get sellers", post_id=post_id):
            seller_id = await self.posts.get_seller_id(post_id)
            if not seller_id:
                return []
            seller = await self.users.find_by_id(seller_id)
            return [seller.to_dict()] if seller else []

    async def get_followed_sellers(self, user_id: str, role: str) -> List[Dict]:
        """
        Buyers get the sellers they follow; sellers get their subscribers.

        Raises:
            BadRequestError: role is neither Buyer nor Seller
        """
        try:
            user_role = UserRole(role)
        except ValueError:
            raise BadRequestError(f"Invalid role: {role}")

        with wrap_unexpected("get followed sellers", user_id=user_id, role=role):
            if user_role == UserRole.BUYER:
                users = await self.users.get_followed_sellers(user_id)
            else:
                users = await self.users.get_subscribers(user_id)
            return [u.to_dict() for u in users]
