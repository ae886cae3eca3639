"""Notification router - list and acknowledge the current user's notifications"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import MarkAllReadResponse, NotificationResponse, NotificationUpdate
from .service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db)


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread: bool = Query(False, description="Only unread notifications"),
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Get the current user's notifications, newest first"""
    return [NotificationResponse.from_model(n) for n in service.list_for_user(current_user, unread)]


@router.patch("/{notification_id}", response_model=NotificationResponse)
async def update_notification(
    notification_id: str,
    data: NotificationUpdate,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Mark a single notification read or unread"""
    return NotificationResponse.from_model(service.set_read(notification_id, current_user, data.read))


@router.post("/mark-read", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Mark all of the current user's notifications as read"""
    return MarkAllReadResponse(updated=service.mark_all_read(current_user))
