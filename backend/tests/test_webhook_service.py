"""
Test: Stripe Webhook Processing
===============================

Key behaviors tested:
- sellersIds metadata parsing, including decimal amounts
- Album purchase: record, credit 80%, notify; already bought albums skipped
- Subscription: edge, credit 70%, notify; redelivery skipped
- Sent picture payment unlocks the chat message
- charge.succeeded behaves like checkout.session.completed
- Unknown events are acknowledged without side effects
"""

from unittest.mock import AsyncMock

import pytest

from middleware.errors import ConflictError, InternalServerError
from services.users_service import SENT_PICTURE_PAYMENT
from services.wallet_service import WalletService
from services.webhook_service import WebhookService, parse_sellers_ids


def event(event_type, obj):
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


@pytest.fixture
def wallet_repo():
    repo = AsyncMock()
    repo.add_to_balance.side_effect = lambda user_id, amount: amount
    return repo


@pytest.fixture
def users_service():
    service = AsyncMock()
    service.check_for_sale.return_value = False
    return service


@pytest.fixture
def notifications():
    return AsyncMock()


@pytest.fixture
def webhooks(stripe_gateway, users_service, wallet_repo, notifications, push):
    return WebhookService(stripe_gateway, users_service, WalletService(wallet_repo), notifications, push)


class TestParseSellersIds:

    def test_single_entry(self):
        assert parse_sellers_ids("sellerId:cus_s.postId:po_1.amount:10") == [("cus_s", "po_1", 10.0)]

    def test_decimal_amounts_and_many_entries(self):
        value = "sellerId:cus_a.postId:po_1.amount:12.5,sellerId:cus_b.postId:po_2.amount:7.99"

        assert parse_sellers_ids(value) == [("cus_a", "po_1", 12.5), ("cus_b", "po_2", 7.99)]

    def test_empty_and_malformed(self):
        assert parse_sellers_ids("") == []
        assert parse_sellers_ids(None) == []
        assert parse_sellers_ids("sellerId:cus_a.amount:3") == []
        assert parse_sellers_ids("sellerId:cus_a.postId:po_1.amount:abc") == [("cus_a", "po_1", 0.0)]


class TestAlbumPurchase:

    def _session(self, sellers_ids):
        return {
            "mode": "payment",
            "customer": "cus_buyer",
            "metadata": {"sellersIds": sellers_ids},
        }

    async def test_records_credits_and_notifies(self, webhooks, users_service, wallet_repo, notifications):
        result = await webhooks.process_event(event(
            "checkout.session.completed",
            self._session("sellerId:cus_seller.postId:po_1.amount:10"),
        ))

        assert result == {"received": True}
        users_service.buy_post.assert_awaited_once_with("po_1", "cus_buyer")
        wallet_repo.add_to_balance.assert_awaited_once_with("cus_seller", 8.0)
        notifications.push_seller_notifications.assert_awaited_once_with(
            "cus_seller", "Album Sold", "Congratulations, a customer just bought an album."
        )

    async def test_already_bought_is_skipped(self, webhooks, users_service, wallet_repo, notifications):
        users_service.check_for_sale.side_effect = lambda user_id, post_id: post_id == "po_1"

        await webhooks.process_event(event(
            "checkout.session.completed",
            self._session("sellerId:cus_a.postId:po_1.amount:10,sellerId:cus_b.postId:po_2.amount:20"),
        ))

        users_service.buy_post.assert_awaited_once_with("po_2", "cus_buyer")
        wallet_repo.add_to_balance.assert_awaited_once_with("cus_b", 16.0)
        assert notifications.push_seller_notifications.await_count == 1

    async def test_charge_succeeded_routes_like_checkout(self, webhooks, users_service):
        await webhooks.process_event(event(
            "charge.succeeded",
            self._session("sellerId:cus_seller.postId:po_9.amount:5"),
        ))

        users_service.buy_post.assert_awaited_once_with("po_9", "cus_buyer")


class TestSubscription:

    def _session(self):
        return {
            "mode": "subscription",
            "customer": "cus_buyer",
            "subscription": "sub_1",
            "metadata": {
                "sellerId": "cus_seller",
                "subscriptionPlanId": "price_gold",
                "subscriptionPlanTitle": "Gold",
                "subscriptionPlanPrice": "10",
            },
        }

    async def test_creates_credits_and_notifies(self, webhooks, users_service, wallet_repo, notifications):
        await webhooks.process_event(event("checkout.session.completed", self._session()))

        users_service.create_subscription_in_db.assert_awaited_once_with(
            "sub_1", "cus_buyer", "cus_seller", "Gold", 10.0, plan_id="price_gold"
        )
        wallet_repo.add_to_balance.assert_awaited_once_with("cus_seller", 7.0)
        notifications.push_seller_notifications.assert_awaited_once_with(
            "cus_seller", "Subscription", "Congratulations, a customer just subscribed to the plan Gold"
        )

    async def test_redelivery_is_skipped(self, webhooks, users_service, wallet_repo, notifications):
        users_service.create_subscription_in_db.side_effect = ConflictError("Already subscribed")

        result = await webhooks.process_event(event("checkout.session.completed", self._session()))

        assert result == {"received": True}
        wallet_repo.add_to_balance.assert_not_awaited()
        notifications.push_seller_notifications.assert_not_awaited()


class TestSentPicture:

    async def test_marks_message_and_credits(self, webhooks, push, wallet_repo, users_service):
        await webhooks.process_event(event("checkout.session.completed", {
            "mode": "payment",
            "customer": "cus_buyer",
            "metadata": {
                "comingFrom": SENT_PICTURE_PAYMENT,
                "sellerId": "cus_seller",
                "amount": "5",
                "chatRoomId": "room1",
                "messageId": "msg1",
            },
        }))

        push.mark_message_bought.assert_awaited_once_with("room1", "msg1")
        wallet_repo.add_to_balance.assert_awaited_once_with("cus_seller", 4.0)
        users_service.buy_post.assert_not_awaited()


class TestOtherEvents:

    async def test_unknown_event_type(self, webhooks, users_service, wallet_repo):
        result = await webhooks.process_event(event("invoice.paid", {"id": "in_1"}))

        assert result == {"received": True}
        users_service.buy_post.assert_not_awaited()
        wallet_repo.add_to_balance.assert_not_awaited()

    async def test_payment_method_attached_is_logged_only(self, webhooks, wallet_repo):
        result = await webhooks.process_event(event("payment_method.attached", {"id": "pm_1"}))

        assert result == {"received": True}
        wallet_repo.add_to_balance.assert_not_awaited()

    async def test_unknown_mode(self, webhooks, users_service):
        await webhooks.process_event(event("checkout.session.completed", {"mode": "setup"}))

        users_service.buy_post.assert_not_awaited()
        users_service.create_subscription_in_db.assert_not_awaited()

    async def test_wallet_failure_propagates(self, webhooks, wallet_repo):
        wallet_repo.add_to_balance.side_effect = RuntimeError("neo4j down")

        with pytest.raises(InternalServerError, match="neo4j down"):
            await webhooks.process_event(event("checkout.session.completed", {
                "mode": "payment",
                "customer": "cus_buyer",
                "metadata": {"sellersIds": "sellerId:cus_s.postId:po_1.amount:10"},
            }))
