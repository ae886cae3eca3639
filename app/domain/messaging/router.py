"""Messaging router - chat, read receipts, reports and moderation endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_user
from ...database import get_db
from ...models import ReportStatus, User
from ...realtime import (
    MESSAGE_CREATED,
    MESSAGE_DELETED,
    MESSAGE_READ,
    MESSAGE_UPDATED,
    JobChannelManager,
    get_channel_manager,
)
from ...services.file_storage import R2FileStorage, get_file_storage
from .schemas import (
    MessageCreate,
    MessageReportCreate,
    MessageReportResponse,
    MessageReportUpdate,
    MessageResponse,
    MessageUpdate,
    ReadReceiptResponse,
)
from .service import MessagingService, serialize_message, serialize_report

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Messaging"])
admin_router = APIRouter(prefix="/admin", tags=["Moderation"])


def get_messaging_service(db: Session = Depends(get_db)) -> MessagingService:
    """Dependency injection for MessagingService"""
    return MessagingService(db)


async def _push_read(channel: JobChannelManager, job_id: str, user_id: str, message_ids: list[str]):
    if message_ids:
        await channel.broadcast(
            job_id, MESSAGE_READ, {"jobId": job_id, "userId": user_id, "messageIds": message_ids}
        )


# ============================================================================
# CONVERSATION
# ============================================================================


@router.get("/jobs/{job_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    job_id: str,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
    storage: R2FileStorage = Depends(get_file_storage),
):
    """Get the conversation for a job, attachments with fresh signed URLs"""
    messages = service.list_messages(job_id, current_user)
    return [serialize_message(m, storage) for m in messages]


@router.post("/jobs/{job_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    job_id: str,
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
    storage: R2FileStorage = Depends(get_file_storage),
    channel: JobChannelManager = Depends(get_channel_manager),
):
    """Send a message to the other participant and push it live"""
    message = service.send_message(job_id, data, current_user)
    response = serialize_message(message, storage)
    await channel.broadcast(job_id, MESSAGE_CREATED, response.model_dump(mode="json"))
    return response


@router.post("/jobs/{job_id}/messages/read-all", response_model=ReadReceiptResponse)
async def mark_all_messages_read(
    job_id: str,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
    channel: JobChannelManager = Depends(get_channel_manager),
):
    """Mark every message addressed to me on this job as read"""
    message_ids = service.mark_all_read(job_id, current_user)
    await _push_read(channel, job_id, current_user.id, message_ids)
    return ReadReceiptResponse(jobId=job_id, messageIds=message_ids, count=len(message_ids))


@router.patch("/messages/{message_id}", response_model=MessageResponse)
async def edit_message(
    message_id: str,
    data: MessageUpdate,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
    storage: R2FileStorage = Depends(get_file_storage),
    channel: JobChannelManager = Depends(get_channel_manager),
):
    """Edit one of my messages"""
    message = service.edit_message(message_id, data.content, current_user)
    response = serialize_message(message, storage)
    await channel.broadcast(message.job_id, MESSAGE_UPDATED, response.model_dump(mode="json"))
    return response


@router.delete("/messages/{message_id}", response_model=MessageResponse)
async def delete_message(
    message_id: str,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
    storage: R2FileStorage = Depends(get_file_storage),
    channel: JobChannelManager = Depends(get_channel_manager),
):
    """Soft delete one of my messages"""
    message = service.delete_message(message_id, current_user)
    response = serialize_message(message, storage)
    await channel.broadcast(
        message.job_id,
        MESSAGE_DELETED,
        {
            "id": message.id,
            "jobId": message.job_id,
            "deletedAt": message.deleted_at.isoformat(),
            "deletedBy": message.deleted_by,
        },
    )
    return response


@router.post("/messages/{message_id}/read", response_model=ReadReceiptResponse)
async def mark_message_read(
    message_id: str,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
    channel: JobChannelManager = Depends(get_channel_manager),
):
    """Mark a single message as read"""
    message, message_ids = service.mark_read(message_id, current_user)
    await _push_read(channel, message.job_id, current_user.id, message_ids)
    return ReadReceiptResponse(jobId=message.job_id, messageIds=message_ids, count=len(message_ids))


@router.post("/messages/{message_id}/report", response_model=MessageReportResponse, status_code=201)
async def report_message(
    message_id: str,
    data: MessageReportCreate,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Report a message to the moderators"""
    return serialize_report(service.report_message(message_id, data.reason, current_user))


# ============================================================================
# MODERATION
# ============================================================================


@admin_router.get("/message-reports", response_model=list[MessageReportResponse])
async def list_message_reports(
    status: Optional[ReportStatus] = Query(None),
    admin: User = Depends(get_current_admin),
    service: MessagingService = Depends(get_messaging_service),
):
    """List message reports, newest first"""
    return [serialize_report(r) for r in service.list_reports(status)]


@admin_router.patch("/message-reports/{report_id}", response_model=MessageReportResponse)
async def update_message_report(
    report_id: str,
    data: MessageReportUpdate,
    admin: User = Depends(get_current_admin),
    service: MessagingService = Depends(get_messaging_service),
):
    """Move a report to REVIEWED or RESOLVED"""
    return serialize_report(service.update_report(report_id, data, admin))


@admin_router.post("/messages/{message_id}/redact", response_model=MessageResponse)
async def redact_message(
    message_id: str,
    admin: User = Depends(get_current_admin),
    service: MessagingService = Depends(get_messaging_service),
    storage: R2FileStorage = Depends(get_file_storage),
    channel: JobChannelManager = Depends(get_channel_manager),
):
    """Replace a message's content with the moderation marker"""
    message = service.redact_message(message_id, admin)
    response = serialize_message(message, storage)
    await channel.broadcast(message.job_id, MESSAGE_UPDATED, response.model_dump(mode="json"))
    return response


__all__ = ["router", "admin_router"]
