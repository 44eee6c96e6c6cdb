"""
Wallet Repository - Neo4j storage for seller balances

Storage: Neo4j
- (user)-[:IS_A]->(seller)-[:HAS_A]->(wallet {id, amount})

Balance operations take the seller's user id and return the new balance,
or None when the seller has no wallet. Increments happen inside the query
so concurrent credits never overwrite each other.
"""
import logging
from typing import Optional

from middleware.errors import NotFoundError
from models.domain.wallet import Wallet
from repositories.base_repository import BaseRepository
from utils.id_generator import generate_id

logger = logging.getLogger(__name__)


class WalletRepository(BaseRepository):
    """Repository for Wallet domain model"""

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def find_by_seller_id(self, seller_id: str) -> Optional[Wallet]:
        """
        Retrieve wallet by seller role node id.

        Args:
            seller_id: Seller ID (se_xxxxxxxx)
        """
        records = await self.execute_read("""
            MATCH (:seller {id: $sellerId})-[:HAS_A]->(wallet:wallet)
            RETURN wallet
        """, {'sellerId': seller_id})

        props = self.get_node(records, 'wallet')
        return Wallet.from_neo4j(props, seller_id=seller_id) if props else None

    async def find_by_seller_id_or_fail(self, seller_id: str) -> Wallet:
        wallet = await self.find_by_seller_id(seller_id)
        if not wallet:
            raise NotFoundError(f"Wallet for seller {seller_id} not found")
        return wallet

    async def find_by_user_id(self, user_id: str) -> Optional[Wallet]:
        """Retrieve wallet by the seller's user id"""
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:IS_A]->(:seller)-[:HAS_A]->(wallet:wallet)
            RETURN wallet
        """, {'userId': user_id})

        props = self.get_node(records, 'wallet')
        return Wallet.from_neo4j(props, seller_id=user_id) if props else None

    async def get_balance(self, user_id: str) -> Optional[float]:
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:IS_A]->(:seller)-[:HAS_A]->(wallet:wallet)
            RETURN wallet.amount AS amount
        """, {'userId': user_id})

        if not records:
            return None
        return float(self.to_number(self.get_value(records, 'amount')))

    async def has_sufficient_balance(self, user_id: str, amount: float) -> bool:
        balance = await self.get_balance(user_id)
        return balance is not None and balance >= amount

    # =========================================================================
    # CREATE OPERATION
    # =========================================================================

    async def create(self, seller_id: str) -> Wallet:
        """
        Create the seller's wallet if it does not exist yet.

        Args:
            seller_id: Seller ID (se_xxxxxxxx)
        """
        records = await self.execute_write("""
            MATCH (seller:seller {id: $sellerId})
            MERGE (seller)-[:HAS_A]->(wallet:wallet)
            ON CREATE SET wallet.id = $walletId, wallet.amount = 0.0
            RETURN wallet
        """, {'sellerId': seller_id, 'walletId': generate_id('wallet')})

        props = self.get_node(records, 'wallet')
        if not props:
            raise NotFoundError(f"Seller {seller_id} not found")
        return Wallet.from_neo4j(props, seller_id=seller_id)

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    async def set_balance(self, user_id: str, amount: float) -> Optional[float]:
        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[:IS_A]->(:seller)-[:HAS_A]->(wallet:wallet)
            SET wallet.amount = toFloat($amount)
            RETURN wallet.amount AS amount
        """, {'userId': user_id, 'amount': amount})

        if not records:
            return None
        return float(self.to_number(self.get_value(records, 'amount')))

    async def add_to_balance(self, user_id: str, amount: float) -> Optional[float]:
        """Credit the wallet; returns the new balance"""
        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[:IS_A]->(:seller)-[:HAS_A]->(wallet:wallet)
            SET wallet.amount = coalesce(wallet.amount, 0.0) + toFloat($amount)
            RETURN wallet.amount AS amount
        """, {'userId': user_id, 'amount': amount})

        if not records:
            return None
        return float(self.to_number(self.get_value(records, 'amount')))

    async def subtract_from_balance(self, user_id: str, amount: float) -> Optional[float]:
        """
        Debit the wallet only if it covers the amount.

        Returns:
            New balance, the unchanged balance if it was insufficient,
            or None if there is no wallet
        """
        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[:IS_A]->(:seller)-[:HAS_A]->(wallet:wallet)
            SET wallet.amount = CASE
                WHEN coalesce(wallet.amount, 0.0) >= toFloat($amount)
                THEN wallet.amount - toFloat($amount)
                ELSE wallet.amount
            END
            RETURN wallet.amount AS amount
        """, {'userId': user_id, 'amount': amount})

        if not records:
            return None
        return float(self.to_number(self.get_value(records, 'amount')))
