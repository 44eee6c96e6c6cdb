"""
Seller Repository - Neo4j storage for sellers, plans and payouts

Storage: Neo4j
- (user)-[:IS_A]->(seller {id, verified, frontIdentityCard, backIdentityCard})
- (seller)-[:HAS_A]->(plan {id: <stripe price id>, name, price})
- (seller)-[:GETS_PAID]->(payoutAccount)
- (seller)-[:REQUESTED_WITHDRAW]->(withdrawalRequest)-[:BY]->(payoutAccount)
- (seller)-[:SENT]->(picture {tipAmount, isPaid})-[:TO]->(user)

Methods take the seller's user id unless the name says otherwise.
"""
import logging
from typing import Dict, List, Optional

from middleware.errors import NotFoundError
from models.domain.post import Picture
from models.domain.seller import PayoutAccount, Plan, Seller, WithdrawalRequest
from models.domain.user import User
from repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)

IDENTITY_CARD_SIDES = {
    'frontSide': 'frontIdentityCard',
    'backSide': 'backIdentityCard',
}


class SellerRepository(BaseRepository):
    """Repository for the seller role node and everything hanging off it"""

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def find_by_user_id(self, user_id: str) -> Optional[Seller]:
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:IS_A]->(seller:seller)
            RETURN seller
        """, {'userId': user_id})

        props = self.get_node(records, 'seller')
        return Seller.from_neo4j(props, user_id=user_id) if props else None

    async def find_by_user_id_or_fail(self, user_id: str) -> Seller:
        seller = await self.find_by_user_id(user_id)
        if not seller:
            raise NotFoundError(f"Seller with user ID {user_id} not found")
        return seller

    async def find_by_seller_id(self, seller_id: str) -> Optional[Seller]:
        """Look up by the seller role node id (se_xxxxxxxx)"""
        records = await self.execute_read("""
            MATCH (user:user)-[:IS_A]->(seller:seller {id: $sellerId})
            RETURN seller, user.id AS userId
        """, {'sellerId': seller_id})

        props = self.get_node(records, 'seller')
        if not props:
            return None
        return Seller.from_neo4j(props, user_id=self.get_value(records, 'userId'))

    async def is_seller(self, user_id: str) -> bool:
        records = await self.execute_read("""
            RETURN EXISTS { MATCH (:user {id: $userId})-[:IS_A]->(:seller) } AS isSeller
        """, {'userId': user_id})
        return bool(self.get_value(records, 'isSeller'))

    async def get_identity_card(self, user_id: str) -> Optional[Dict]:
        """
        Stored identity card locations.

        Returns:
            {'frontSide': ..., 'backSide': ...} or None if not a seller
        """
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:IS_A]->(seller:seller)
            RETURN seller.frontIdentityCard AS frontSide, seller.backIdentityCard AS backSide
        """, {'userId': user_id})

        if not records:
            return None
        return self.get_records(records)[0]

    async def get_unverified(self) -> List[Dict]:
        """Sellers waiting for identity verification, newest first"""
        records = await self.execute_read("""
            MATCH (user:user)-[:IS_A]->(seller:seller)
            WHERE NOT coalesce(seller.verified, false)
            RETURN user, seller
            ORDER BY user.createdAt DESC
        """)

        sellers = []
        for row in self.get_records(records):
            data = User.from_neo4j(row['user']).to_dict()
            data['seller'] = Seller.from_neo4j(row['seller'], user_id=data['id']).to_dict()
            sellers.append(data)
        return sellers

    async def get_all(self) -> List[User]:
        """Every active seller user, most followed first"""
        records = await self.execute_read("""
            MATCH (user:user)-[:IS_A]->(:seller)
            WHERE NOT coalesce(user.desactivated, false)
            RETURN user
            ORDER BY user.followers DESC
        """)
        return [User.from_neo4j(props) for props in self.get_nodes(records, 'user')]

    async def get_followers_count(self, user_id: str) -> int:
        """Active subscribers of the seller"""
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:IS_A]->(seller:seller)
            OPTIONAL MATCH (:user)-[sub:SUBSCRIBED_TO]->(seller)
            WHERE coalesce(sub.active, true)
            RETURN count(sub) AS followers
        """, {'userId': user_id})
        return int(self.to_number(self.get_value(records, 'followers')))

    async def get_plans(self, user_id: str) -> List[Plan]:
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:IS_A]->(:seller)-[:HAS_A]->(plan:plan)
            RETURN plan
            ORDER BY plan.price
        """, {'userId': user_id})
        return [Plan.from_neo4j(props) for props in self.get_nodes(records, 'plan')]

    async def get_payout_accounts(self, user_id: str) -> List[PayoutAccount]:
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:IS_A]->(:seller)-[:GETS_PAID]->(account:payoutAccount)
            RETURN account
        """, {'userId': user_id})
        return [PayoutAccount.from_neo4j(props) for props in self.get_nodes(records, 'account')]

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    async def create_plan(self, user_id: str, plan: Plan) -> Plan:
        """
        Attach a plan to a seller.

        Args:
            user_id: Seller's user id
            plan: Plan whose id is the Stripe price id

        Raises:
            NotFoundError: user is not a seller
        """
        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[:IS_A]->(seller:seller)
            MERGE (seller)-[:HAS_A]->(plan:plan {id: $id})
            SET plan.name = $name, plan.price = $price
            RETURN plan
        """, {'userId': user_id, **plan.to_dict()})

        props = self.get_node(records, 'plan')
        if not props:
            raise NotFoundError(f"Seller with user ID {user_id} not found")
        return Plan.from_neo4j(props)

    async def add_payout_account(self, user_id: str, account: PayoutAccount) -> PayoutAccount:
        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[:IS_A]->(seller:seller)
            CREATE (seller)-[:GETS_PAID]->(account:payoutAccount)
            SET account = $props
            RETURN account
        """, {'userId': user_id, 'props': account.to_neo4j()})

        props = self.get_node(records, 'account')
        if not props:
            raise NotFoundError(f"Seller with user ID {user_id} not found")
        return PayoutAccount.from_neo4j(props)

    async def create_withdrawal_request(
        self,
        user_id: str,
        payout_account_id: str,
        request: Optional[WithdrawalRequest] = None,
    ) -> Optional[WithdrawalRequest]:
        """
        Record a pending withdrawal to one of the seller's payout accounts.

        Returns:
            Created request, or None when seller or account is missing
        """
        request = request or WithdrawalRequest(id='')
        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[:IS_A]->(seller:seller)-[:GETS_PAID]->(account:payoutAccount {id: $accountId})
            CREATE (seller)-[:REQUESTED_WITHDRAW]->(request:withdrawalRequest {
                id: $id,
                status: $status,
                createdAt: datetime().epochMillis
            })-[:BY]->(account)
            RETURN request
        """, {
            'userId': user_id,
            'accountId': payout_account_id,
            'id': request.id,
            'status': request.status,
        })

        props = self.get_node(records, 'request')
        if not props:
            return None
        return WithdrawalRequest.from_neo4j(props, payout_account_id=payout_account_id)

    async def create_sent_picture(self, user_id: str, receiver_id: str, picture: Picture) -> Picture:
        """
        Store a picture a seller sends in chat, locked until paid.

        Raises:
            NotFoundError: sender is not a seller or receiver is unknown
        """
        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[:IS_A]->(seller:seller), (receiver:user {id: $receiverId})
            CREATE (seller)-[:SENT]->(picture:picture {
                id: $id,
                url: $url,
                tipAmount: $tipAmount,
                isPaid: false,
                createdAt: datetime().epochMillis
            })-[:TO]->(receiver)
            RETURN picture
        """, {
            'userId': user_id,
            'receiverId': receiver_id,
            'id': picture.id,
            'url': picture.url,
            'tipAmount': picture.tip_amount,
        })

        props = self.get_node(records, 'picture')
        if not props:
            raise NotFoundError("Seller or receiver not found")
        return Picture.from_neo4j(props)

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    async def update_verification_status(self, user_id: str, verified: bool) -> bool:
        """Returns False when the user is not a seller"""
        records = await self.execute_write("""
            MATCH (user:user {id: $userId})-[:IS_A]->(seller:seller)
            SET seller.verified = $verified, user.verified = $verified
            RETURN seller
        """, {'userId': user_id, 'verified': verified})
        return bool(records)

    async def save_identity_card_side(self, user_id: str, side: str, location: str) -> None:
        """
        Store where one identity card side was uploaded.

        Args:
            side: 'frontSide' or 'backSide'
            location: public path of the stored file
        """
        if side not in IDENTITY_CARD_SIDES:
            raise ValueError(f"Invalid identity card side: {side}")

        # Property name comes from the fixed mapping above, never from input
        await self.execute_write(f"""
            MATCH (:user {{id: $userId}})-[:IS_A]->(seller:seller)
            SET seller.{IDENTITY_CARD_SIDES[side]} = $location
        """, {'userId': user_id, 'location': location})

    async def update_plan(self, old_id: str, new_id: str, name: str, price: float) -> Optional[Plan]:
        """
        Re-key a plan to a new Stripe price and rename it.

        Returns:
            Updated plan, or None if old_id does not exist
        """
        records = await self.execute_write("""
            MATCH (plan:plan {id: $oldId})
            SET plan.id = $newId, plan.name = $name, plan.price = $price
            RETURN plan
        """, {'oldId': old_id, 'newId': new_id, 'name': name, 'price': price})

        props = self.get_node(records, 'plan')
        return Plan.from_neo4j(props) if props else None

    # =========================================================================
    # DELETE OPERATION
    # =========================================================================

    async def delete_payout_account(self, user_id: str, payout_account_id: str) -> int:
        """
        Delete one of the seller's payout accounts.

        Returns:
            Number of deleted accounts (0 or 1)
        """
        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[:IS_A]->(:seller)-[:GETS_PAID]->(account:payoutAccount {id: $accountId})
            DETACH DELETE account
            RETURN count(*) AS deleted
        """, {'userId': user_id, 'accountId': payout_account_id})
        return int(self.to_number(self.get_value(records, 'deleted')))
