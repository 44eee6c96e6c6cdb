"""
Notifications API router
"""
from fastapi import APIRouter, Depends

from api.dependencies import get_notification_service
from middleware.auth import get_current_user
from models.api.wallet import MessageNotificationRequest
from services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"], dependencies=[Depends(get_current_user)])


@router.get("/{id}")
async def get_notifications(id: str, notifications: NotificationService = Depends(get_notification_service)):
    return await notifications.get_notifications(id)


@router.post("/{id}")
async def send_message_notification(
    id: str,
    body: MessageNotificationRequest,
    notifications: NotificationService = Depends(get_notification_service),
):
    """Push "<userName> just sent you a message" to every device of user `id`"""
    return await notifications.send_chat_message_notification(id, body.userName, body.avatar)
