"""Notification fan-out and read-state operations"""

import logging

from sqlalchemy.orm import Session

from ...database import atomic
from ...errors import ForbiddenError, NotFoundError
from ...models import Notification, NotificationType, User

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    user_id: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
) -> Notification:
    """
    Queue a notification inside the caller's transaction.

    Never commits: the notification is written together with the state change
    that produced it, or not at all.
    """
    note = Notification(user_id=user_id, message=message, type=type, read=False)
    db.add(note)
    logger.debug(f"🔔 Queued {type.value} notification for user {user_id}")
    return note


class NotificationService:
    """Service layer for reading and acknowledging notifications"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user: User, unread_only: bool = False) -> list[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user.id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(Notification.timestamp.desc()).all()

    def set_read(self, notification_id: str, user: User, read: bool = True) -> Notification:
        note = self.db.query(Notification).filter(Notification.id == notification_id).first()
        if not note:
            raise NotFoundError("Notification not found")
        if note.user_id != user.id:
            raise ForbiddenError("You can only update your own notifications")

        with atomic(self.db):
            note.read = read
        self.db.refresh(note)
        return note

    def mark_all_read(self, user: User) -> int:
        with atomic(self.db):
            updated = (
                self.db.query(Notification)
                .filter(Notification.user_id == user.id, Notification.read.is_(False))
                .update({Notification.read: True}, synchronize_session=False)
            )
        logger.info(f"✅ Marked {updated} notification(s) read for user {user.id}")
        return updated
