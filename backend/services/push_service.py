"""
Firebase gateway: FCM push messages and chat message updates in Firestore

The firebase app is initialized on first use from FIREBASE_CREDENTIALS
(service-account JSON path) or application default credentials.
"""
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore, messaging
from starlette.concurrency import run_in_threadpool

from config.settings import Settings

logger = logging.getLogger(__name__)

APP_NAME = "feetflight"


class PushService:
    """Wraps firebase-admin messaging and Firestore"""

    def __init__(self, settings: Settings):
        self.project_id = settings.firebase_project_id
        self.credentials_path = settings.firebase_credentials
        self._app: Optional[firebase_admin.App] = None

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(APP_NAME)
            except ValueError:
                cred = (
                    credentials.Certificate(self.credentials_path)
                    if self.credentials_path
                    else credentials.ApplicationDefault()
                )
                options = {"projectId": self.project_id} if self.project_id else None
                self._app = firebase_admin.initialize_app(cred, options, name=APP_NAME)
                logger.info(f"🔥 Initialized Firebase app for project {self.project_id}")
        return self._app

    async def send(self, token: str, title: str, body: str, image: Optional[str] = None) -> Optional[str]:
        """
        Push one notification to a device.

        Returns:
            FCM message id, or None when sending failed (failure is logged)
        """
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body, image=image or None),
            token=token,
        )
        try:
            return await run_in_threadpool(messaging.send, message, app=self._get_app())
        except Exception as e:
            logger.warning(f"⚠️ Push to device failed: {e}")
            return None

    async def mark_message_bought(self, chat_room_id: str, message_id: str) -> None:
        """Flag a paid picture message in chat_room/{chatRoomId}/messages/{messageId}"""
        def _update():
            client = firestore.client(app=self._get_app())
            (client.collection("chat_room").document(chat_room_id)
                   .collection("messages").document(message_id)
                   .update({"isBought": True}))

        await run_in_threadpool(_update)
        logger.info(f"🔓 Unlocked message {message_id} in chat room {chat_room_id}")
