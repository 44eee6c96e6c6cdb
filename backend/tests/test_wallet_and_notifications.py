"""
Test: Wallet and Notification Services
======================================

Key behaviors tested:
- Commission maths (20% payments, 30% subscriptions)
- Manual adjustments never leave a negative balance
- Notifications are listed with relative times and pushed per device
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from middleware.errors import BadRequestError, InternalServerError, NotFoundError
from models.domain.notification import Notification
from models.domain.wallet import (
    PAYMENT_COMMISSION_PERCENT,
    SUBSCRIPTION_COMMISSION_PERCENT,
    net_of_commission,
)
from services.notification_service import NotificationService
from services.wallet_service import WalletService


@pytest.mark.parametrize("amount,percent,expected", [
    (100, PAYMENT_COMMISSION_PERCENT, 80),
    (100, SUBSCRIPTION_COMMISSION_PERCENT, 70),
    (9.99, SUBSCRIPTION_COMMISSION_PERCENT, 6.993),
    (0, PAYMENT_COMMISSION_PERCENT, 0),
])
def test_net_of_commission(amount, percent, expected):
    assert net_of_commission(amount, percent) == pytest.approx(expected)


class TestWalletService:

    @pytest.fixture
    def wallets(self):
        repo = AsyncMock()
        repo.get_balance.return_value = 50.0
        repo.add_to_balance.side_effect = lambda user_id, amount: 50.0 + amount
        repo.subtract_from_balance.side_effect = lambda user_id, amount: 50.0 - amount
        return repo

    async def test_get_balance(self, wallets):
        assert await WalletService(wallets).get_balance("cus_seller") == {"balance": 50.0, "sellerId": "cus_seller"}

    async def test_get_balance_without_wallet(self, wallets):
        wallets.get_balance.return_value = None

        with pytest.raises(NotFoundError, match="Wallet not found for this user"):
            await WalletService(wallets).get_balance("cus_buyer")

    async def test_credit(self, wallets):
        result = await WalletService(wallets).update_balance("cus_seller", 25)

        assert result == {"message": "Balance updated successfully", "newBalance": 75.0}

    async def test_debit(self, wallets):
        result = await WalletService(wallets).update_balance("cus_seller", -20)

        wallets.subtract_from_balance.assert_awaited_once_with("cus_seller", 20)
        assert result["newBalance"] == 30.0

    async def test_debit_below_zero(self, wallets):
        with pytest.raises(BadRequestError, match="Insufficient balance"):
            await WalletService(wallets).update_balance("cus_seller", -80)
        wallets.subtract_from_balance.assert_not_awaited()

    async def test_payment_credit_keeps_commission(self, wallets):
        new_balance = await WalletService(wallets).update_balance_for_payment("cus_seller", 10)

        wallets.add_to_balance.assert_awaited_once_with("cus_seller", 8.0)
        assert new_balance == 58.0

    async def test_subscription_credit_keeps_commission(self, wallets):
        await WalletService(wallets).update_balance_for_subscription("cus_seller", 10)

        wallets.add_to_balance.assert_awaited_once_with("cus_seller", 7.0)

    async def test_credit_without_wallet(self, wallets):
        wallets.add_to_balance.side_effect = None
        wallets.add_to_balance.return_value = None

        with pytest.raises(NotFoundError, match="Seller wallet not found"):
            await WalletService(wallets).update_balance_for_payment("cus_buyer", 10)

    async def test_repository_failure_is_wrapped(self, wallets):
        wallets.get_balance.side_effect = RuntimeError("timeout")

        with pytest.raises(InternalServerError, match="Failed to retrieve wallet balance: timeout"):
            await WalletService(wallets).get_balance("cus_seller")


class TestNotificationService:

    @pytest.fixture
    def users(self):
        repo = AsyncMock()
        repo.get_device_tokens.return_value = ["token-a", "token-b"]
        return repo

    @pytest.fixture
    def notifications(self):
        return AsyncMock()

    async def test_list_renders_relative_time(self, users, notifications, push):
        five_minutes_ago = datetime.now(timezone.utc) - timedelta(minutes=5, seconds=10)
        notifications.get_user_notifications.return_value = [
            Notification(id="no_abcdefgh", title="Album Sold", body="...", time=int(five_minutes_ago.timestamp() * 1000)),
        ]

        result = await NotificationService(users, notifications, push).get_notifications("cus_seller")

        assert result[0]["title"] == "Album Sold"
        assert result[0]["time"] == "5 minutes"

    async def test_chat_message_pushes_every_device(self, users, notifications, push):
        push.send.return_value = "msg-id"

        result = await NotificationService(users, notifications, push).send_chat_message_notification(
            "cus_buyer", "alice", "/public/files/avatars/a.png"
        )

        assert result == {"message": "notification sent successfully"}
        assert push.send.await_count == 2
        push.send.assert_any_await("token-a", "Message", "alice just sent you a message", "/public/files/avatars/a.png")
        notifications.create.assert_not_awaited()

    async def test_no_device_tokens(self, users, notifications, push):
        users.get_device_tokens.return_value = []

        sent = await NotificationService(users, notifications, push).push_message_notification("cus_1", "t", "b")

        assert sent == 0
        push.send.assert_not_awaited()

    async def test_seller_notification_is_stored_and_pushed(self, users, notifications, push):
        await NotificationService(users, notifications, push).push_seller_notifications(
            "cus_seller", "Album Sold", "Congratulations, a customer just bought an album."
        )

        notifications.create.assert_awaited_once_with(
            "cus_seller", "Album Sold", "Congratulations, a customer just bought an album."
        )
        assert push.send.await_count == 2
