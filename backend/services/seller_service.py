"""
Seller service - subscription plans, payouts and seller uploads

A plan's id is its current Stripe price id. Changing a plan's price means
creating a new Stripe price, deactivating the old one and re-keying the
plan node.
"""
import logging
from typing import Dict, List

from fastapi import UploadFile

from middleware.errors import NotFoundError, wrap_unexpected
from models.api.seller import PayoutAccountRequest, PlanUpdate, SubscriptionPlanInput
from models.domain.post import Picture
from models.domain.seller import PayoutAccount, Plan
from repositories.seller_repository import IDENTITY_CARD_SIDES, SellerRepository
from services.media_storage import MediaStorage
from services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)

SENT_PICTURE_PRODUCT_NAME = "Private sent photo"


class SellerService:
    """Everything a seller manages about their shop"""

    def __init__(
        self,
        seller_repo: SellerRepository,
        stripe_gateway: StripeGateway,
        storage: MediaStorage,
    ):
        self.sellers = seller_repo
        self.stripe = stripe_gateway
        self.storage = storage

    # =========================================================================
    # PLANS
    # =========================================================================

    async def create_subscribe_plan(self, user_id: str, title: str, price: float) -> Plan:
        """Stripe product + monthly price, then the plan node keyed by the price id"""
        product = await self.stripe.create_product(title, metadata={"sellerId": user_id})
        price_id = await self.stripe.create_price(product["id"], price, recurring=True)
        return await self.sellers.create_plan(user_id, Plan(id=price_id, name=title, price=price))

    async def create_subscribe_plans(self, user_id: str, plans: List[SubscriptionPlanInput]) -> List[Dict]:
        with wrap_unexpected("create subscription plans", user_id=user_id):
            await self.sellers.find_by_user_id_or_fail(user_id)
            created = []
            for plan in plans:
                created.append(await self.create_subscribe_plan(
                    user_id, plan.subscriptionPlanTitle, plan.subscriptionPlanPrice
                ))
            logger.info(f"📋 Created {len(created)} plans for seller {user_id}")
            return [p.to_dict() for p in created]

    async def get_subscription_plans(self, user_id: str) -> List[Dict]:
        with wrap_unexpected("retrieve subscription plans", user_id=user_id):
            return [p.to_dict() for p in await self.sellers.get_plans(user_id)]

    async def change_plans(self, plans: List[PlanUpdate]) -> Dict:
        """
        Rename / re-price plans.

        For each plan: rename the Stripe product, create a new monthly price,
        deactivate the old price, then move the plan node to the new id.

        Raises:
            NotFoundError: a plan id has no plan node
        """
        with wrap_unexpected("update plans"):
            for plan in plans:
                old_price = await self.stripe.retrieve_price(plan.id)
                product_id = str(old_price["product"])

                await self.stripe.rename_product(product_id, plan.name)
                new_price_id = await self.stripe.create_price(product_id, plan.price, recurring=True)
                await self.stripe.deactivate_price(plan.id)

                updated = await self.sellers.update_plan(plan.id, new_price_id, plan.name, plan.price)
                if updated is None:
                    raise NotFoundError(f"Plan with ID {plan.id} not found")
                logger.info(f"📋 Plan {plan.id} is now {new_price_id}")

            return {"message": "plans were updated successfully"}

    # =========================================================================
    # PAYOUTS
    # =========================================================================

    async def get_payout_accounts(self, user_id: str) -> List[Dict]:
        with wrap_unexpected("retrieve payout accounts", user_id=user_id):
            return [a.to_dict() for a in await self.sellers.get_payout_accounts(user_id)]

    async def add_payout_account(self, user_id: str, data: PayoutAccountRequest) -> Dict:
        with wrap_unexpected("add payout account", user_id=user_id):
            account = PayoutAccount(
                id='',
                bank_country=data.bankCountry,
                city=data.city,
                bank_name=data.bankName,
                account_number=data.accountNumber,
                swift=data.swift,
            )
            created = await self.sellers.add_payout_account(user_id, account)
            logger.info(f"🏦 Added payout account {created.id} for seller {user_id}")
            return created.to_dict()

    async def delete_payout_account(self, user_id: str, payout_account_id: str) -> None:
        with wrap_unexpected("delete payout account", user_id=user_id, payout_account_id=payout_account_id):
            if not await self.sellers.delete_payout_account(user_id, payout_account_id):
                raise NotFoundError("Payout account not found")

    async def request_withdraw(self, user_id: str, payout_account_id: str) -> Dict:
        with wrap_unexpected("request withdrawal", user_id=user_id, payout_account_id=payout_account_id):
            request = await self.sellers.create_withdrawal_request(user_id, payout_account_id)
            if request is None:
                raise NotFoundError("Seller or payout account not found")
            logger.info(f"💸 Withdrawal {request.id} requested by seller {user_id}")
            return request.to_dict()

    # =========================================================================
    # FOLLOWERS
    # =========================================================================

    async def get_all_sellers(self) -> List[Dict]:
        with wrap_unexpected("retrieve sellers"):
            return [u.to_dict() for u in await self.sellers.get_all()]

    async def get_followers_count(self, user_id: str) -> int:
        with wrap_unexpected("retrieve followers count", user_id=user_id):
            return await self.sellers.get_followers_count(user_id)

    # =========================================================================
    # UPLOADS
    # =========================================================================

    async def upload_identity_card(self, files: Dict[str, UploadFile], user_id: str) -> Dict:
        """
        Store the identity card sides that were sent.

        Args:
            files: {'frontSide': file, 'backSide': file}; either may be missing

        Returns:
            {side: public path} for the stored sides
        """
        with wrap_unexpected("upload identity card", user_id=user_id):
            await self.sellers.find_by_user_id_or_fail(user_id)

            stored = {}
            for side in IDENTITY_CARD_SIDES:
                file = files.get(side)
                if file is None:
                    continue
                location = await self.storage.save(file, "identity_cards", f"{user_id}-{side}")
                await self.sellers.save_identity_card_side(user_id, side, location)
                stored[side] = location
            return stored

    async def upload_sent_picture(
        self,
        file: UploadFile,
        user_id: str,
        tip_amount: float,
        receiver_id: str,
    ) -> Dict:
        """
        Store a chat picture locked behind a tip.

        The Stripe product id is the picture id so checkout can find its price.

        Returns:
            {pictureId, path}
        """
        with wrap_unexpected("upload sent picture", user_id=user_id, receiver_id=receiver_id):
            picture = Picture(id='', url='', tip_amount=float(tip_amount))
            picture.url = await self.storage.save(file, "sent", picture.id)
            created = await self.sellers.create_sent_picture(user_id, receiver_id, picture)

            await self.stripe.create_product(
                SENT_PICTURE_PRODUCT_NAME,
                product_id=created.id,
                metadata={"pictureId": created.id, "sellerId": user_id},
                default_price=created.tip_amount,
            )
            return {"pictureId": created.id, "path": created.url}
