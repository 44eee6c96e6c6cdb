"""
Notification Repository - Neo4j storage for in-app notifications

Storage: Neo4j
- (user)-[:HAS_NOTIFICATION]->(notification {id, title, body, time, read})

time is epoch milliseconds.
"""
import logging
from typing import List, Optional

from middleware.errors import NotFoundError
from models.domain.notification import Notification
from repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository):
    """Repository for Notification domain model"""

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def find_by_id(self, notification_id: str) -> Optional[Notification]:
        records = await self.execute_read("""
            MATCH (notification:notification {id: $notificationId})
            RETURN notification
        """, {'notificationId': notification_id})

        props = self.get_node(records, 'notification')
        return Notification.from_neo4j(props) if props else None

    async def find_by_id_or_fail(self, notification_id: str) -> Notification:
        notification = await self.find_by_id(notification_id)
        if not notification:
            raise NotFoundError(f"Notification with ID {notification_id} not found")
        return notification

    async def get_user_notifications(self, user_id: str) -> List[Notification]:
        """All notifications of a user, newest first"""
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:HAS_NOTIFICATION]->(notification:notification)
            RETURN notification
            ORDER BY notification.time DESC
        """, {'userId': user_id})
        return [Notification.from_neo4j(props) for props in self.get_nodes(records, 'notification')]

    async def get_unread_notifications(self, user_id: str) -> List[Notification]:
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:HAS_NOTIFICATION]->(notification:notification {read: false})
            RETURN notification
            ORDER BY notification.time DESC
        """, {'userId': user_id})
        return [Notification.from_neo4j(props) for props in self.get_nodes(records, 'notification')]

    async def get_unread_count(self, user_id: str) -> int:
        records = await self.execute_read("""
            MATCH (:user {id: $userId})-[:HAS_NOTIFICATION]->(notification:notification {read: false})
            RETURN count(notification) AS unread
        """, {'userId': user_id})
        return int(self.to_number(self.get_value(records, 'unread')))

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    async def create(self, user_id: str, title: str, body: str) -> Notification:
        """
        Store a notification for a user.

        Raises:
            NotFoundError: no such user
        """
        notification = Notification(id='', title=title, body=body)

        records = await self.execute_write("""
            MATCH (user:user {id: $userId})
            CREATE (user)-[:HAS_NOTIFICATION]->(notification:notification)
            SET notification = $props
            RETURN notification
        """, {'userId': user_id, 'props': notification.to_neo4j()})

        props = self.get_node(records, 'notification')
        if not props:
            raise NotFoundError(f"User with ID {user_id} not found")
        return Notification.from_neo4j(props)

    async def create_for_seller(self, seller_id: str, title: str, body: str) -> Notification:
        """Store a notification for the user behind a seller role node (se_xxxxxxxx)"""
        notification = Notification(id='', title=title, body=body)

        records = await self.execute_write("""
            MATCH (user:user)-[:IS_A]->(:seller {id: $sellerId})
            CREATE (user)-[:HAS_NOTIFICATION]->(notification:notification)
            SET notification = $props
            RETURN notification
        """, {'sellerId': seller_id, 'props': notification.to_neo4j()})

        props = self.get_node(records, 'notification')
        if not props:
            raise NotFoundError(f"Seller {seller_id} not found")
        return Notification.from_neo4j(props)

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    async def mark_as_read(self, notification_id: str) -> None:
        await self.execute_write("""
            MATCH (notification:notification {id: $notificationId})
            SET notification.read = true
        """, {'notificationId': notification_id})

    async def mark_all_as_read(self, user_id: str) -> None:
        await self.execute_write("""
            MATCH (:user {id: $userId})-[:HAS_NOTIFICATION]->(notification:notification {read: false})
            SET notification.read = true
        """, {'userId': user_id})

    # =========================================================================
    # DELETE OPERATIONS
    # =========================================================================

    async def delete(self, notification_id: str) -> None:
        await self.execute_write("""
            MATCH (notification:notification {id: $notificationId})
            DETACH DELETE notification
        """, {'notificationId': notification_id})

    async def delete_all_for_user(self, user_id: str) -> None:
        await self.execute_write("""
            MATCH (:user {id: $userId})-[:HAS_NOTIFICATION]->(notification:notification)
            DETACH DELETE notification
        """, {'userId': user_id})

    async def delete_read_notifications(self, user_id: str) -> None:
        await self.execute_write("""
            MATCH (:user {id: $userId})-[:HAS_NOTIFICATION]->(notification:notification {read: true})
            DETACH DELETE notification
        """, {'userId': user_id})
