"""
Notification service - stored notifications and FCM pushes

Push failures never fail the calling operation: they are logged and the
caller carries on. Stored notifications are what GET /notifications shows.
"""
import logging
from typing import Dict, List, Optional

from middleware.errors import wrap_unexpected
from repositories.notification_repository import NotificationRepository
from repositories.user_repository import UserRepository
from services.push_service import PushService
from utils.datetime_utils import format_relative_time

logger = logging.getLogger(__name__)

MESSAGE_TITLE = "Message"


class NotificationService:
    """Reads notifications and pushes new ones to devices"""

    def __init__(
        self,
        user_repo: UserRepository,
        notification_repo: NotificationRepository,
        push: PushService,
    ):
        self.users = user_repo
        self.notifications = notification_repo
        self.push = push

    async def get_notifications(self, user_id: str) -> List[Dict]:
        """Newest first, with time rendered as "N minutes" etc."""
        with wrap_unexpected("get notifications", user_id=user_id):
            notifications = await self.notifications.get_user_notifications(user_id)
            result = []
            for notification in notifications:
                data = notification.to_dict()
                data["time"] = format_relative_time(notification.time)
                result.append(data)
            return result

    async def _push_to_user(self, user_id: str, title: str, body: str, image: Optional[str] = None) -> int:
        """Push to every device of the user; returns how many pushes succeeded"""
        tokens = await self.users.get_device_tokens(user_id)
        if not tokens:
            logger.info(f"📵 No device token for user {user_id}, skipping push '{title}'")
            return 0

        sent = 0
        for token in tokens:
            if await self.push.send(token, title, body, image):
                sent += 1
        return sent

    async def push_message_notification(
        self,
        user_id: str,
        title: str,
        body: str,
        avatar: Optional[str] = None,
    ) -> int:
        """Push only (not stored); the avatar becomes the notification image"""
        with wrap_unexpected("push message notification", user_id=user_id):
            return await self._push_to_user(user_id, title, body, avatar)

    async def send_chat_message_notification(self, user_id: str, user_name: str, avatar: Optional[str]) -> Dict:
        """POST /notifications/{id}: tell a user someone messaged them"""
        body = f"{user_name} just sent you a message"
        await self.push_message_notification(user_id, MESSAGE_TITLE, body, avatar)
        return {"message": "notification sent successfully"}

    async def push_seller_notifications(self, seller_id: str, title: str, body: str) -> None:
        """
        Store a notification for the seller's user and push it.

        Args:
            seller_id: Seller's user id
        """
        with wrap_unexpected("push seller notification", seller_id=seller_id):
            await self.notifications.create(seller_id, title, body)
            await self._push_to_user(seller_id, title, body)
