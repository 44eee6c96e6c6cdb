"""
Test: Users Service
===================

Key behaviors tested:
- Album checkout skips owned albums and encodes sellersIds metadata
- Subscribing twice to the same seller is a conflict
- Subscription storage bumps follow counters once, even for concurrent creates; cancel reverses it
- Checkout amounts keep every cent
- OTP login round trip and its failure modes
- Role switch for the followed-sellers listing
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import make_user
from middleware.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from models.api.user import SubscribeData, UnlockSentPictureRequest
from models.domain.subscription import Subscription
from models.domain.user import UserRole
from services.users_service import SENT_PICTURE_PAYMENT, UsersService, format_seller_entry
from services.webhook_service import parse_sellers_ids

SECRET = "otp-secret-key-that-is-long-enough-000"


@pytest.fixture
def repos():
    users, sellers, posts, subscriptions = AsyncMock(), AsyncMock(), AsyncMock(), AsyncMock()
    posts.check_user_purchased.return_value = False
    subscriptions.check_active.return_value = False
    sellers.is_seller.return_value = True
    return users, sellers, posts, subscriptions


@pytest.fixture
def service(repos, stripe_gateway, mailer, tokens):
    users, sellers, posts, subscriptions = repos
    return UsersService(
        users, sellers, posts, subscriptions, stripe_gateway,
        mailer, tokens, AsyncMock(), AsyncMock(), SECRET,
    )


def test_format_seller_entry():
    assert format_seller_entry("cus_s", "po_1", 12.5) == "sellerId:cus_s.postId:po_1.amount:12.5"
    assert format_seller_entry("cus_s", "po_1", 10.0) == "sellerId:cus_s.postId:po_1.amount:10"


def test_seller_entry_keeps_large_amounts_exact():
    entry = format_seller_entry("cus_s", "po_abcdefgh", 12345.67)

    assert entry == "sellerId:cus_s.postId:po_abcdefgh.amount:12345.67"
    assert parse_sellers_ids(entry) == [("cus_s", "po_abcdefgh", 12345.67)]


class TestBuyPosts:

    async def test_all_already_bought(self, service, repos, stripe_gateway):
        _, _, posts, _ = repos
        posts.check_user_purchased.return_value = True

        with pytest.raises(ConflictError, match="All posts selected have already been bought by this user"):
            await service.buy_posts("cus_buyer", ["po_1", "po_2"])
        stripe_gateway.create_checkout_session.assert_not_awaited()

    async def test_skips_owned_and_encodes_metadata(self, service, repos, stripe_gateway):
        _, _, posts, _ = repos
        posts.check_user_purchased.side_effect = lambda user_id, post_id: post_id == "po_owned"
        stripe_gateway.first_price.return_value = {"id": "price_a", "unit_amount": 1250}
        stripe_gateway.retrieve_product.return_value = {"metadata": {"sellerId": "cus_seller"}}

        result = await service.buy_posts("cus_buyer", ["po_owned", "po_new", "po_new"])

        assert result == {"url": "https://checkout.test/cs_test_1", "sessionId": "cs_test_1", "postIds": ["po_new"]}
        mode, customer, line_items = stripe_gateway.create_checkout_session.await_args.args
        assert (mode, customer) == ("payment", "cus_buyer")
        assert line_items == [{"price": "price_a", "quantity": 1}]
        metadata = stripe_gateway.create_checkout_session.await_args.kwargs["metadata"]
        assert metadata == {"sellersIds": "sellerId:cus_seller.postId:po_new.amount:12.5"}

    async def test_album_without_price(self, service, stripe_gateway):
        stripe_gateway.first_price.return_value = None

        with pytest.raises(NotFoundError):
            await service.buy_posts("cus_buyer", ["po_1"])


class TestSubscribe:

    def _data(self):
        return SubscribeData(
            sellerId="cus_seller",
            subscriptionPlanId="price_gold",
            subscriptionPlanTitle="Gold",
            subscriptionPlanPrice=9.99,
        )

    async def test_duplicate_subscription(self, service, repos, stripe_gateway):
        _, _, _, subscriptions = repos
        subscriptions.check_active.return_value = True

        with pytest.raises(ConflictError, match="Already subscribed to this seller"):
            await service.subscribe("cus_buyer", self._data())
        stripe_gateway.create_checkout_session.assert_not_awaited()

    async def test_unknown_seller(self, service, repos):
        _, sellers, _, _ = repos
        sellers.is_seller.return_value = False

        with pytest.raises(NotFoundError):
            await service.subscribe("cus_buyer", self._data())

    async def test_checkout_metadata(self, service, stripe_gateway):
        result = await service.subscribe("cus_buyer", self._data())

        assert result["sessionId"] == "cs_test_1"
        args = stripe_gateway.create_checkout_session.await_args
        assert args.args[0] == "subscription"
        assert args.args[2] == [{"price": "price_gold", "quantity": 1}]
        assert args.kwargs["metadata"]["subscriptionPlanPrice"] == "9.99"
        assert args.kwargs["metadata"]["sellerId"] == "cus_seller"

    async def test_large_plan_price_is_exact(self, service, stripe_gateway):
        data = self._data()
        data.subscriptionPlanPrice = 12345.67

        await service.subscribe("cus_buyer", data)

        assert stripe_gateway.create_checkout_session.await_args.kwargs["metadata"]["subscriptionPlanPrice"] == "12345.67"


class TestSentPicture:

    async def test_unlock_metadata(self, service, stripe_gateway):
        stripe_gateway.first_price.return_value = {"id": "price_pic", "unit_amount": 500}
        stripe_gateway.retrieve_product.return_value = {"metadata": {"sellerId": "cus_seller"}}

        await service.unlock_sent_picture("cus_buyer", UnlockSentPictureRequest(
            pictureId="pi_abcdefgh", messageId="m1", tipAmount=5, chatRoomId="room1",
        ))

        metadata = stripe_gateway.create_checkout_session.await_args.kwargs["metadata"]
        assert metadata["comingFrom"] == SENT_PICTURE_PAYMENT
        assert metadata["sellerId"] == "cus_seller"
        assert metadata["chatRoomId"] == "room1"
        assert metadata["amount"] == "5"


class TestSubscriptionStorage:

    async def test_create_bumps_counters(self, service, repos):
        users, _, _, subscriptions = repos
        subscriptions.create.side_effect = lambda sub: (sub, True)

        stored = await service.create_subscription_in_db("sub_1", "cus_buyer", "cus_seller", "Gold", 9.99, plan_id="price_gold")

        assert stored.plan_id == "price_gold"
        users.adjust_follow_counters.assert_awaited_once_with("cus_buyer", "cus_seller", 1)

    async def test_create_twice_conflicts(self, service, repos):
        users, _, _, subscriptions = repos
        subscriptions.create.side_effect = lambda sub: (sub, False)

        with pytest.raises(ConflictError):
            await service.create_subscription_in_db("sub_1", "cus_buyer", "cus_seller", "Gold", 9.99)
        users.adjust_follow_counters.assert_not_awaited()

    async def test_concurrent_creates_store_one(self, service, repos):
        users, _, _, subscriptions = repos
        outcomes = iter([True, False])
        subscriptions.create.side_effect = lambda sub: (sub, next(outcomes))

        results = await asyncio.gather(
            service.create_subscription_in_db("sub_1", "cus_buyer", "cus_seller", "Gold", 9.99),
            service.create_subscription_in_db("sub_2", "cus_buyer", "cus_seller", "Gold", 9.99),
            return_exceptions=True,
        )

        assert len([r for r in results if isinstance(r, Subscription)]) == 1
        assert len([r for r in results if isinstance(r, ConflictError)]) == 1
        users.adjust_follow_counters.assert_awaited_once_with("cus_buyer", "cus_seller", 1)

    async def test_cancel_without_subscription(self, service, repos):
        _, _, _, subscriptions = repos
        subscriptions.find_between.return_value = None

        with pytest.raises(NotFoundError, match="No active subscription found"):
            await service.cancel_subscription("cus_buyer", "cus_seller")

    async def test_cancel(self, service, repos, stripe_gateway):
        users, _, _, subscriptions = repos
        subscriptions.find_between.return_value = Subscription(id="sub_1", user_id="cus_buyer", seller_id="cus_seller")

        result = await service.cancel_subscription("cus_buyer", "cus_seller")

        assert result == {"message": "subscription was canceled successfully"}
        subscriptions.delete.assert_awaited_once_with("cus_buyer", "cus_seller")
        users.adjust_follow_counters.assert_awaited_once_with("cus_buyer", "cus_seller", -1)
        stripe_gateway.cancel_subscription.assert_awaited_once_with("sub_1")

    async def test_only_active_subscriptions_listed(self, service, repos):
        _, _, _, subscriptions = repos
        subscriptions.get_user_subscriptions.return_value = [
            Subscription(id="sub_1", user_id="cus_buyer", seller_id="cus_a", plan_name="Gold", plan_price=9.99),
            Subscription(id="sub_2", user_id="cus_buyer", seller_id="cus_b", active=False),
        ]

        result = await service.get_all_subscriptions_for_user("cus_buyer")

        assert result == [{"sellerId": "cus_a", "subscriptionId": "sub_1", "planName": "Gold", "planPrice": 9.99}]

    async def test_access_through_subscription(self, service, repos):
        _, _, posts, subscriptions = repos
        subscriptions.check_by_post_and_plan.return_value = True

        result = await service.has_access_to_post("cus_buyer", "po_1", "Gold")

        assert result == {"postId": "po_1", "hasPurchased": True}
        posts.check_user_purchased.assert_awaited_once_with("cus_buyer", "po_1")


class TestOtp:

    async def test_round_trip(self, service, repos, mailer, tokens):
        users, _, _, _ = repos
        users.find_by_email.return_value = make_user("cus_1")
        users.get_user_role.return_value = UserRole.BUYER

        signed = await service.generate_otp("cus_1@example.com")
        otp = mailer.send_otp_email.await_args.args[1]

        result = await service.verify_otp("cus_1@example.com", otp, signed)

        assert result["message"] == "success"
        assert result["role"] == "Buyer"
        assert tokens.verify(result["tokenData"]["token"])["id"] == "cus_1"

    async def test_wrong_code(self, service, mailer):
        signed = await service.generate_otp("cus_1@example.com")
        otp = mailer.send_otp_email.await_args.args[1]
        wrong = "0000" if otp != "0000" else "1111"

        with pytest.raises(BadRequestError, match="Invalid OTP"):
            await service.verify_otp("cus_1@example.com", wrong, signed)


class TestAccount:

    async def test_change_password_for_other_user(self, service, repos):
        users, _, _, _ = repos
        users.find_by_email.return_value = make_user("cus_other")

        with pytest.raises(ForbiddenError):
            await service.change_password("cus_other@example.com", "new-password", requester_id="cus_1")
        users.update.assert_not_awaited()

    async def test_confirm_with_bad_token(self, service):
        with pytest.raises(BadRequestError, match="Invalid or expired confirmation token"):
            await service.email_confirming("not-a-jwt")

    async def test_confirm_twice(self, service, repos, tokens):
        users, _, _, _ = repos
        users.find_by_email.return_value = make_user("cus_1", confirmed=True)
        token = tokens.create_email_token("cus_1@example.com")["token"]

        with pytest.raises(BadRequestError, match="already confirmed"):
            await service.email_confirming(token)

    async def test_followed_sellers_by_role(self, service, repos):
        users, _, _, _ = repos
        users.get_followed_sellers.return_value = [make_user("cus_seller")]
        users.get_subscribers.return_value = [make_user("cus_fan")]

        buyers_view = await service.get_followed_sellers("cus_1", "Buyer")
        sellers_view = await service.get_followed_sellers("cus_1", "Seller")

        assert [u["id"] for u in buyers_view] == ["cus_seller"]
        assert [u["id"] for u in sellers_view] == ["cus_fan"]

    async def test_followed_sellers_invalid_role(self, service):
        with pytest.raises(BadRequestError):
            await service.get_followed_sellers("cus_1", "Admin")
