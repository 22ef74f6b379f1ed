"""
Push notification dispatcher.
Delivers notifications to users' devices through the Expo push API.
"""
import logging
import re
from typing import Optional

import requests
from sqlalchemy.orm import Session

from studybuddy.config import Config
from studybuddy.models import Task
from studybuddy.repositories.user_repository import UserRepository
from studybuddy.exceptions import NotificationDeliveryException
from studybuddy.constants import (
    TASK_REMINDER_SOUND, TASK_REMINDER_CHANNEL, NOTIFICATION_TYPE_TASK_REMINDER
)

logger = logging.getLogger("studybuddy.notifications")

_EXPO_TOKEN_RE = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[.+\]$")


def is_expo_push_token(token: Optional[str]) -> bool:
    """Check that a token looks like an Expo push token"""
    return bool(token) and bool(_EXPO_TOKEN_RE.match(token))


class NotificationService:
    """Sends push notifications to a user's registered device"""

    def __init__(self, db: Session, config: Optional[Config] = None):
        self.db = db
        self.config = config or Config()
        self.user_repo = UserRepository()

    def _headers(self) -> dict:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.config.expo_access_token:
            headers["Authorization"] = f"Bearer {self.config.expo_access_token}"
        return headers

    def send(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[dict] = None,
        sound: str = "default",
        channel_id: Optional[str] = None
    ) -> Optional[dict]:
        """
        Send a push notification to one user.

        Args:
            user_id: Recipient
            title: Notification title
            body: Notification body
            data: Extra payload for the app
            sound: Sound file name or "default"
            channel_id: Android channel, omitted when None

        Returns:
            Expo push ticket, or None when the user has no usable push token

        Raises:
            NotificationDeliveryException: If Expo rejected or could not be reached
        """
        user = self.user_repo.get_by_id(self.db, user_id)
        if not user:
            logger.warning(f"User not found: {user_id}")
            return None

        if not is_expo_push_token(user.expo_push_token):
            logger.info(f"No valid push token for user: {user_id}")
            return None

        message = {
            "to": user.expo_push_token,
            "sound": sound,
            "title": title,
            "body": body,
            "data": data or {},
        }
        if channel_id and channel_id != "default":
            message["channelId"] = channel_id

        try:
            response = requests.post(
                self.config.expo_push_url,
                json=[message],
                headers=self._headers(),
                timeout=self.config.push_timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise NotificationDeliveryException(user_id, str(e))
        except ValueError as e:
            raise NotificationDeliveryException(user_id, f"invalid response: {e}")

        tickets = payload.get("data") or []
        if isinstance(tickets, dict):
            tickets = [tickets]
        if not tickets:
            raise NotificationDeliveryException(user_id, f"no ticket returned: {payload}")

        ticket = tickets[0]
        if ticket.get("status") == "error":
            raise NotificationDeliveryException(user_id, ticket.get("message", "unknown error"))

        logger.info(f"Push sent to user {user_id}: {title}")
        return ticket

    def send_task_reminder(self, task: Task) -> Optional[dict]:
        """Send the reminder notification for a task to its owner"""
        task_type = (task.type or "task").upper()
        return self.send(
            task.user_id,
            f"Reminder: {task_type}",
            task.description,
            data={
                "taskId": task.id,
                "type": NOTIFICATION_TYPE_TASK_REMINDER,
                "className": task.class_name,
            },
            sound=TASK_REMINDER_SOUND,
            channel_id=TASK_REMINDER_CHANNEL,
        )
