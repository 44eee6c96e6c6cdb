"""
Stripe webhook processing

Event routing:
    checkout.session.completed / charge.succeeded -> by session mode:
        payment + comingFrom=sentPicturePayment -> unlock chat message, credit 20%
        payment                                 -> record each album purchase, credit 20%, notify
        subscription                            -> subscription edge, credit 30%, notify
    payment_method.attached                     -> logged only

Purchase, wallet credit and notification are separate writes; a failure in
between leaves the earlier ones in place and Stripe's retry re-enters with
the purchase check skipping what was already recorded.
"""
import logging
from typing import Any, Callable, Dict, List, Tuple

from middleware.errors import ConflictError
from services.notification_service import NotificationService
from services.push_service import PushService
from services.stripe_gateway import StripeGateway
from services.users_service import SENT_PICTURE_PAYMENT, UsersService
from services.wallet_service import WalletService

logger = logging.getLogger(__name__)

ALBUM_SOLD_TITLE = "Album Sold"
ALBUM_SOLD_BODY = "Congratulations, a customer just bought an album."
SUBSCRIPTION_TITLE = "Subscription"


def parse_sellers_ids(value: str) -> List[Tuple[str, str, float]]:
    """
    Parse checkout metadata "sellerId:S.postId:P.amount:A,..."

    Returns:
        [(seller_id, post_id, amount), ...]; entries without a post id are dropped
    """
    purchases = []
    for record in (value or "").split(","):
        if not record.strip():
            continue
        fields = {"sellerId": "", "postId": "", "amount": "0"}
        # amount may itself contain a dot, so split on the key markers
        for key in ("amount", "postId", "sellerId"):
            marker = f"{key}:"
            index = record.rfind(marker)
            if index == -1:
                continue
            fields[key] = record[index + len(marker):]
            record = record[:index].rstrip(".")
        if not fields["postId"]:
            continue
        try:
            amount = float(fields["amount"] or 0)
        except ValueError:
            amount = 0.0
        purchases.append((fields["sellerId"], fields["postId"], amount))
    return purchases


class WebhookService:
    """Verifies Stripe events and routes them to handlers by type"""

    def __init__(
        self,
        stripe_gateway: StripeGateway,
        users_service: UsersService,
        wallet_service: WalletService,
        notification_service: NotificationService,
        push: PushService,
    ):
        self.stripe = stripe_gateway
        self.users = users_service
        self.wallets = wallet_service
        self.notifications = notification_service
        self.push = push

        self.event_handlers: Dict[str, Callable] = {
            "checkout.session.completed": self.handle_checkout_session,
            "charge.succeeded": self.handle_checkout_session,
            "payment_method.attached": self.handle_payment_method_attached,
        }
        self.mode_handlers: Dict[str, Callable] = {
            "payment": self.handle_payment,
            "subscription": self.handle_subscription,
        }

    def construct_event(self, payload: bytes, sig_header: str) -> Dict:
        """Raises stripe.SignatureVerificationError / ValueError on a bad event"""
        return self.stripe.construct_event(payload, sig_header)

    async def process_event(self, event: Any) -> Dict:
        event_type = event["type"]
        logger.info(f"📨 Processing Stripe event {event_type} ({event.get('id')})")

        handler = self.event_handlers.get(event_type)
        if handler is None:
            logger.warning(f"⚠️ Unhandled Stripe event type {event_type}")
            return {"received": True}

        await handler(event["data"]["object"])
        return {"received": True}

    # =========================================================================
    # EVENT HANDLERS
    # =========================================================================

    async def handle_checkout_session(self, session: Any) -> None:
        mode = session.get("mode")
        handler = self.mode_handlers.get(mode)
        if handler is None:
            logger.warning(f"⚠️ Unknown checkout session mode: {mode}")
            return
        await handler(session)

    async def handle_payment_method_attached(self, payment_method: Any) -> None:
        logger.info(f"💳 Payment method attached: {payment_method.get('id')}")

    async def handle_payment(self, session: Any) -> None:
        metadata = session.get("metadata") or {}
        if SENT_PICTURE_PAYMENT in (metadata.get("comingFrom") or ""):
            await self.handle_sent_picture_payment(session)
        else:
            await self.handle_album_purchase(session)

    async def handle_sent_picture_payment(self, session: Any) -> None:
        metadata = session.get("metadata") or {}
        seller_id = metadata.get("sellerId")
        amount = float(metadata.get("amount") or 0)

        await self.push.mark_message_bought(metadata["chatRoomId"], metadata["messageId"])
        await self.wallets.update_balance_for_payment(seller_id, amount)
        logger.info(f"🔓 Sent picture payment processed for seller {seller_id} ({amount})")

    async def handle_album_purchase(self, session: Any) -> None:
        metadata = session.get("metadata") or {}
        customer = session.get("customer")

        for seller_id, post_id, amount in parse_sellers_ids(metadata.get("sellersIds", "")):
            if await self.users.check_for_sale(customer, post_id):
                logger.warning(f"⚠️ Post {post_id} already bought by {customer}, skipping")
                continue

            await self.users.buy_post(post_id, customer)
            await self.wallets.update_balance_for_payment(seller_id, amount)
            await self.notifications.push_seller_notifications(seller_id, ALBUM_SOLD_TITLE, ALBUM_SOLD_BODY)
            logger.info(f"🛒 Post {post_id} sold by {seller_id} for {amount}")

    async def handle_subscription(self, session: Any) -> None:
        metadata = session.get("metadata") or {}
        seller_id = metadata.get("sellerId")
        title = metadata.get("subscriptionPlanTitle") or ""
        price = float(metadata.get("subscriptionPlanPrice") or 0)

        try:
            await self.users.create_subscription_in_db(
                session.get("subscription"),
                session.get("customer"),
                seller_id,
                title,
                price,
                plan_id=metadata.get("subscriptionPlanId"),
            )
        except ConflictError:
            logger.warning(f"⚠️ Subscription {session.get('subscription')} already recorded, skipping")
            return

        await self.wallets.update_balance_for_subscription(seller_id, price)
        await self.notifications.push_seller_notifications(
            seller_id,
            SUBSCRIPTION_TITLE,
            f"Congratulations, a customer just subscribed to the plan {title}",
        )
        logger.info(f"⭐ Subscription to {seller_id} processed ({title}, {price})")
