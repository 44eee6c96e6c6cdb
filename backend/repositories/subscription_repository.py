"""
Subscription Repository - Neo4j storage for subscriptions

Storage: Neo4j
- (user)-[:SUBSCRIBED_TO {id, planId, planName, planPrice, createdAt, active}]->(seller)

The edge id is the Stripe subscription id. Seller arguments are the seller's
user id; queries hop through (sellerUser)-[:IS_A]->(seller).
"""
import logging
from typing import List, Optional, Tuple

from middleware.errors import NotFoundError
from models.domain.subscription import Subscription
from repositories.base_repository import BaseRepository
from utils.datetime_utils import now_millis

logger = logging.getLogger(__name__)

# Return clause giving the edge plus both endpoint user ids
_RETURN_SUBSCRIPTION = """
    RETURN sub, user.id AS userId, sellerUser.id AS sellerId
"""


class SubscriptionRepository(BaseRepository):
    """Repository for Subscription domain model"""

    def _to_subscriptions(self, records) -> List[Subscription]:
        return [
            Subscription.from_neo4j(row['sub'], user_id=row['userId'], seller_id=row['sellerId'])
            for row in self.get_records(records)
        ]

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def find_by_id(self, subscription_id: str) -> Optional[Subscription]:
        """
        Retrieve subscription by its Stripe subscription id.

        Returns:
            Subscription or None
        """
        records = await self.execute_read("""
            MATCH (user:user)-[sub:SUBSCRIBED_TO {id: $subscriptionId}]->(:seller)<-[:IS_A]-(sellerUser:user)
        """ + _RETURN_SUBSCRIPTION, {'subscriptionId': subscription_id})

        subscriptions = self._to_subscriptions(records)
        return subscriptions[0] if subscriptions else None

    async def find_by_id_or_fail(self, subscription_id: str) -> Subscription:
        subscription = await self.find_by_id(subscription_id)
        if not subscription:
            raise NotFoundError(f"Subscription with ID {subscription_id} not found")
        return subscription

    async def find_between(self, user_id: str, seller_id: str) -> Optional[Subscription]:
        records = await self.execute_read("""
            MATCH (user:user {id: $userId})-[sub:SUBSCRIBED_TO]->(:seller)<-[:IS_A]-(sellerUser:user {id: $sellerId})
        """ + _RETURN_SUBSCRIPTION, {'userId': user_id, 'sellerId': seller_id})

        subscriptions = self._to_subscriptions(records)
        return subscriptions[0] if subscriptions else None

    async def check_active(self, user_id: str, seller_id: str) -> bool:
        records = await self.execute_read("""
            RETURN EXISTS {
                MATCH (:user {id: $userId})-[sub:SUBSCRIBED_TO]->(:seller)<-[:IS_A]-(:user {id: $sellerId})
                WHERE coalesce(sub.active, true)
            } AS active
        """, {'userId': user_id, 'sellerId': seller_id})
        return bool(self.get_value(records, 'active'))

    async def check_by_post_and_plan(self, user_id: str, post_id: str, plan: str) -> bool:
        """Whether the user holds an active subscription named plan to the post's seller"""
        records = await self.execute_read("""
            RETURN EXISTS {
                MATCH (:user {id: $userId})-[sub:SUBSCRIBED_TO {planName: $plan}]->(:seller)-[:HAS_A]->(:post {id: $postId})
                WHERE coalesce(sub.active, true)
            } AS subscribed
        """, {'userId': user_id, 'postId': post_id, 'plan': plan})
        return bool(self.get_value(records, 'subscribed'))

    async def get_user_subscriptions(self, user_id: str) -> List[Subscription]:
        records = await self.execute_read("""
            MATCH (user:user {id: $userId})-[sub:SUBSCRIBED_TO]->(:seller)<-[:IS_A]-(sellerUser:user)
        """ + _RETURN_SUBSCRIPTION + """
            ORDER BY sub.createdAt DESC
        """, {'userId': user_id})
        return self._to_subscriptions(records)

    async def get_seller_subscribers(self, seller_id: str) -> List[Subscription]:
        records = await self.execute_read("""
            MATCH (user:user)-[sub:SUBSCRIBED_TO]->(:seller)<-[:IS_A]-(sellerUser:user {id: $sellerId})
        """ + _RETURN_SUBSCRIPTION + """
            ORDER BY sub.createdAt DESC
        """, {'sellerId': seller_id})
        return self._to_subscriptions(records)

    async def get_active_subscribers_count(self, seller_id: str) -> int:
        records = await self.execute_read("""
            MATCH (:user)-[sub:SUBSCRIBED_TO]->(:seller)<-[:IS_A]-(:user {id: $sellerId})
            WHERE coalesce(sub.active, true)
            RETURN count(sub) AS total
        """, {'sellerId': seller_id})
        return int(self.to_number(self.get_value(records, 'total')))

    # =========================================================================
    # CREATE OPERATION
    # =========================================================================

    async def create(self, subscription: Subscription) -> Tuple[Subscription, bool]:
        """
        Create the subscription edge for a (user, seller) pair.

        MERGE makes the pair unique even when two webhook deliveries race
        past the service's existence check. An inactive edge is reactivated
        with the new subscription data.

        Returns:
            (subscription as stored, created) where created is False when an
            active subscription already existed

        Raises:
            NotFoundError: user or seller missing
        """
        props = {
            'id': subscription.id,
            'planId': subscription.plan_id,
            'planName': subscription.plan_name,
            'planPrice': subscription.plan_price,
            'createdAt': now_millis(),
            'active': True,
        }

        records = await self.execute_write("""
            MATCH (user:user {id: $userId}), (sellerUser:user {id: $sellerId})-[:IS_A]->(seller:seller)
            MERGE (user)-[sub:SUBSCRIBED_TO]->(seller)
            ON CREATE SET sub += $props
            ON MATCH SET sub += CASE WHEN coalesce(sub.active, true) THEN {} ELSE $props END
            RETURN sub, user.id AS userId, sellerUser.id AS sellerId,
                   sub.createdAt = $props.createdAt AS created
        """, {
            'userId': subscription.user_id,
            'sellerId': subscription.seller_id,
            'props': props,
        })

        if not records:
            raise NotFoundError("User or seller not found")

        row = self.get_records(records)[0]
        stored = Subscription.from_neo4j(row['sub'], user_id=row['userId'], seller_id=row['sellerId'])
        return stored, bool(row['created'])

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    async def cancel(self, subscription_id: str) -> None:
        """Mark inactive, keeping the edge for history"""
        await self.execute_write("""
            MATCH ()-[sub:SUBSCRIBED_TO {id: $subscriptionId}]->()
            SET sub.active = false, sub.cancelledAt = datetime().epochMillis
        """, {'subscriptionId': subscription_id})

    async def reactivate(self, subscription_id: str) -> None:
        await self.execute_write("""
            MATCH ()-[sub:SUBSCRIBED_TO {id: $subscriptionId}]->()
            SET sub.active = true
            REMOVE sub.cancelledAt
        """, {'subscriptionId': subscription_id})

    # =========================================================================
    # DELETE OPERATION
    # =========================================================================

    async def delete(self, user_id: str, seller_id: str) -> int:
        """
        Remove the edge between user and seller.

        Returns:
            Number of deleted edges
        """
        records = await self.execute_write("""
            MATCH (:user {id: $userId})-[sub:SUBSCRIBED_TO]->(:seller)<-[:IS_A]-(:user {id: $sellerId})
            DELETE sub
            RETURN count(*) AS deleted
        """, {'userId': user_id, 'sellerId': seller_id})
        return int(self.to_number(self.get_value(records, 'deleted')))
