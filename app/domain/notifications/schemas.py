"""Notification domain schemas"""

from datetime import datetime

from pydantic import BaseModel

from ...models import Notification, NotificationType


class NotificationResponse(BaseModel):
    id: str
    userId: str
    message: str
    type: NotificationType
    read: bool
    timestamp: datetime

    @classmethod
    def from_model(cls, note: Notification) -> "NotificationResponse":
        return cls(
            id=note.id,
            userId=note.user_id,
            message=note.message,
            type=note.type,
            read=note.read,
            timestamp=note.timestamp,
        )


class NotificationUpdate(BaseModel):
    read: bool


class MarkAllReadResponse(BaseModel):
    updated: int
