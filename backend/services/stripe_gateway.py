"""
Stripe gateway - the subset of the Stripe API the marketplace uses

- Customers:  one per user; the customer id is the user id
- Products:   one per album (product id = post id) and per plan / sent picture
- Prices:     EUR, unit_amount in cents; plan prices recur monthly
- Checkout:   payment mode (albums, sent pictures) and subscription mode
- Webhooks:   signature verification via stripe.Webhook.construct_event

The stripe SDK is blocking, so every call runs in the threadpool.
"""
import logging
from typing import Any, Dict, List, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from config.settings import Settings

logger = logging.getLogger(__name__)

CURRENCY = "eur"


def to_cents(amount: float) -> int:
    return int(round(float(amount) * 100))


class StripeGateway:
    """Thin async wrapper around the stripe SDK"""

    def __init__(self, settings: Settings):
        self.api_key = settings.stripe_test_key
        self.webhook_secret = settings.stripe_webhook_secret
        self.success_url = settings.stripe_success_url

    async def _call(self, func, *args, **kwargs) -> Any:
        kwargs.setdefault("api_key", self.api_key)
        try:
            return await run_in_threadpool(func, *args, **kwargs)
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe call {getattr(func, '__qualname__', func)} failed: {e}")
            raise

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    async def create_customer(self, email: str, name: str) -> str:
        """Create a customer and return its id"""
        customer = await self._call(stripe.Customer.create, email=email, name=name)
        return customer["id"]

    # =========================================================================
    # PRODUCTS AND PRICES
    # =========================================================================

    async def create_product(
        self,
        name: str,
        product_id: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        default_price: Optional[float] = None,
    ) -> Dict:
        """
        Create a product, optionally with a one-off EUR default price.

        Args:
            name: Product name
            product_id: Explicit product id (albums use the post id)
            metadata: Stored on the product (e.g. sellerId)
            default_price: Price in euros
        """
        params: Dict[str, Any] = {"name": name}
        if product_id:
            params["id"] = product_id
        if metadata:
            params["metadata"] = metadata
        if default_price is not None:
            params["default_price_data"] = {
                "currency": CURRENCY,
                "unit_amount": to_cents(default_price),
            }
        return await self._call(stripe.Product.create, **params)

    async def retrieve_product(self, product_id: str) -> Dict:
        return await self._call(stripe.Product.retrieve, product_id)

    async def rename_product(self, product_id: str, name: str) -> Dict:
        return await self._call(stripe.Product.modify, product_id, name=name)

    async def create_price(self, product_id: str, amount: float, recurring: bool = False) -> str:
        """
        Create a EUR price for a product.

        Args:
            amount: Price in euros
            recurring: monthly subscription price when True

        Returns:
            Price id
        """
        params: Dict[str, Any] = {
            "product": product_id,
            "currency": CURRENCY,
            "unit_amount": to_cents(amount),
        }
        if recurring:
            params["recurring"] = {"interval": "month"}
        price = await self._call(stripe.Price.create, **params)
        return price["id"]

    async def retrieve_price(self, price_id: str) -> Dict:
        return await self._call(stripe.Price.retrieve, price_id)

    async def deactivate_price(self, price_id: str) -> None:
        await self._call(stripe.Price.modify, price_id, active=False)

    async def first_price(self, product_id: str) -> Optional[Dict]:
        """First active price of a product, or None"""
        prices = await self._call(stripe.Price.list, product=product_id, active=True, limit=1)
        data = prices["data"]
        return data[0] if data else None

    # =========================================================================
    # CHECKOUT AND SUBSCRIPTIONS
    # =========================================================================

    async def create_checkout_session(
        self,
        mode: str,
        customer: str,
        line_items: List[Dict],
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict:
        """
        Create a hosted Checkout session.

        Args:
            mode: 'payment' or 'subscription'
            customer: Stripe customer id (= user id)
            line_items: [{'price': <price id>, 'quantity': n}, ...]
            metadata: echoed back on checkout.session.completed

        Returns:
            Session object (has 'id' and 'url')
        """
        session = await self._call(
            stripe.checkout.Session.create,
            success_url=self.success_url,
            mode=mode,
            customer=customer,
            line_items=line_items,
            metadata=metadata or {},
        )
        logger.info(f"💳 Created {mode} checkout session {session['id']} for {customer}")
        return session

    async def cancel_subscription(self, subscription_id: str) -> Dict:
        return await self._call(stripe.Subscription.cancel, subscription_id)

    # =========================================================================
    # WEBHOOKS
    # =========================================================================

    def construct_event(self, payload: bytes, sig_header: str) -> Dict:
        """
        Verify the signature and parse a webhook event.

        Raises:
            stripe.SignatureVerificationError: bad signature
            ValueError: payload is not valid JSON
        """
        return stripe.Webhook.construct_event(payload, sig_header, self.webhook_secret)
