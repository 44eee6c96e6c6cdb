"""
Wallet service - seller balances and commissions

Sales credit the seller's wallet net of the platform commission:
- album / sent picture payments: 20%
- subscriptions: 30%
Manual adjustments (PUT /wallet/{sellerId}) apply no commission.
"""
import logging
from typing import Dict

from middleware.errors import BadRequestError, NotFoundError, wrap_unexpected
from models.domain.wallet import (
    PAYMENT_COMMISSION_PERCENT,
    SUBSCRIPTION_COMMISSION_PERCENT,
    net_of_commission,
)
from repositories.wallet_repository import WalletRepository

logger = logging.getLogger(__name__)


class WalletService:
    """Balance reads and credits for seller wallets (keyed by the seller's user id)"""

    def __init__(self, wallet_repo: WalletRepository):
        self.wallets = wallet_repo

    async def get_balance(self, user_id: str) -> Dict:
        with wrap_unexpected("retrieve wallet balance", user_id=user_id):
            balance = await self.wallets.get_balance(user_id)
            if balance is None:
                raise NotFoundError("Wallet not found for this user")
            return {"balance": balance, "sellerId": user_id}

    async def update_balance(self, seller_id: str, amount: float) -> Dict:
        """
        Manual adjustment: positive credits, negative debits.

        Raises:
            NotFoundError: seller has no wallet
            BadRequestError: balance would go negative
        """
        with wrap_unexpected("update wallet balance", seller_id=seller_id):
            current = await self.wallets.get_balance(seller_id)
            if current is None:
                raise NotFoundError("Seller wallet not found")

            if current + amount < 0:
                raise BadRequestError(
                    f"Insufficient balance: current {current}, requested change {amount}"
                )

            if amount >= 0:
                new_balance = await self.wallets.add_to_balance(seller_id, amount)
            else:
                new_balance = await self.wallets.subtract_from_balance(seller_id, -amount)
            return {"message": "Balance updated successfully", "newBalance": new_balance}

    async def _credit(self, seller_id: str, amount: float, commission: float, action: str) -> float:
        credited = net_of_commission(float(amount), commission)
        with wrap_unexpected(action, seller_id=seller_id, amount=amount):
            new_balance = await self.wallets.add_to_balance(seller_id, credited)
            if new_balance is None:
                raise NotFoundError("Seller wallet not found")
        logger.info(f"💰 Credited {credited:.2f} to wallet of {seller_id} (gross {amount}, {commission}% commission)")
        return new_balance

    async def update_balance_for_payment(self, seller_id: str, amount: float) -> float:
        """Credit an album or sent-picture sale; returns the new balance"""
        return await self._credit(
            seller_id, amount, PAYMENT_COMMISSION_PERCENT, "update wallet balance for payment"
        )

    async def update_balance_for_subscription(self, seller_id: str, amount: float) -> float:
        """Credit a subscription payment; returns the new balance"""
        return await self._credit(
            seller_id, amount, SUBSCRIPTION_COMMISSION_PERCENT, "update wallet balance for subscription"
        )
