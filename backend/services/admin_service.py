"""
Admin service - seller identity verification
"""
import logging
from typing import Dict, List

from middleware.errors import NotFoundError, wrap_unexpected
from repositories.seller_repository import SellerRepository

logger = logging.getLogger(__name__)


class AdminService:

    def __init__(self, seller_repo: SellerRepository):
        self.sellers = seller_repo

    async def get_unverified_sellers(self) -> List[Dict]:
        with wrap_unexpected("get unverified sellers"):
            return await self.sellers.get_unverified()

    async def get_seller_identity_card(self, user_id: str) -> Dict:
        with wrap_unexpected("get seller identity card", user_id=user_id):
            identity_card = await self.sellers.get_identity_card(user_id)
            if identity_card is None:
                raise NotFoundError("Seller not found")
            return identity_card

    async def verify_seller(self, user_id: str) -> Dict:
        """Mark the seller (and its user) verified so it may sell albums"""
        with wrap_unexpected("verify seller", user_id=user_id):
            if not await self.sellers.update_verification_status(user_id, True):
                raise NotFoundError("Seller not found")
            logger.info(f"✅ Seller {user_id} verified")
            return {"message": "Seller verified successfully", "userId": user_id, "verified": True}
