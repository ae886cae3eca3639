"""Messaging service - Gated per-job chat between a client and the accepted maid"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...config import MAX_MESSAGE_LENGTH
from ...database import atomic
from ...errors import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    NotReadyError,
    ValidationError,
)
from ...models import (
    ApplicationStatus,
    Job,
    JobStatus,
    Message,
    MessageReport,
    ReportStatus,
    User,
    UserRole,
)
from ...services.file_storage import R2FileStorage
from ..applications.repository import ApplicationRepository
from ..jobs.repository import JobRepository
from .attachments import resolve_attachments, validate_attachments
from .repository import MessageRepository
from .schemas import MessageCreate, MessageReportResponse, MessageReportUpdate, MessageResponse

logger = logging.getLogger(__name__)

REDACTION_MARKER = "[This message was removed by a moderator]"


@dataclass
class MessagingParticipants:
    job: Job
    client_id: str
    maid_id: Optional[str]

    def includes(self, user_id: str) -> bool:
        return user_id in (self.client_id, self.maid_id)

    def counterpart_of(self, user_id: str) -> str:
        return self.maid_id if user_id == self.client_id else self.client_id


def get_messaging_participants(
    db: Session, job_id: str, user: Optional[User] = None, allow_admin: bool = True
) -> MessagingParticipants:
    """
    The messaging gate.

    Chat on a job opens once it is IN_PROGRESS with an assigned maid whose
    application is ACCEPTED. Checks run in order: job exists (NotFound),
    messaging is open (NotReady), caller is the client or the maid (Forbidden).
    Admins skip the last two checks when `allow_admin` is set.
    """
    job = JobRepository.get_job(db, job_id)
    if not job:
        raise NotFoundError("Job not found")

    participants = MessagingParticipants(job=job, client_id=job.client_id, maid_id=job.assigned_maid_id)
    if allow_admin and user is not None and user.role == UserRole.ADMIN:
        return participants

    if not job.assigned_maid_id or job.status != JobStatus.IN_PROGRESS:
        raise NotReadyError()
    application = ApplicationRepository.get_for_job_and_maid(db, job.id, job.assigned_maid_id)
    if not application or application.status != ApplicationStatus.ACCEPTED:
        raise NotReadyError()

    if user is not None and not participants.includes(user.id):
        raise ForbiddenError("You are not a participant in this conversation")

    return participants


def _clean_content(content: Optional[str]) -> str:
    content = (content or "").strip()
    if len(content) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message is too long (maximum {MAX_MESSAGE_LENGTH} characters)")
    return content


def serialize_message(message: Message, storage: R2FileStorage) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        jobId=message.job_id,
        senderId=message.sender_id,
        receiverId=message.receiver_id,
        content=message.content or "",
        attachments=resolve_attachments(message.attachments, storage),
        createdAt=message.created_at,
        editedAt=message.edited_at,
        deletedAt=message.deleted_at,
        deletedBy=message.deleted_by,
        redactedAt=message.redacted_at,
        isDeleted=message.deleted_at is not None,
        isRedacted=message.redacted_at is not None,
        readBy=[r.user_id for r in message.reads],
    )


def serialize_report(report: MessageReport) -> MessageReportResponse:
    message = report.message
    return MessageReportResponse(
        id=report.id,
        messageId=report.message_id,
        jobId=message.job_id if message else None,
        reporterId=report.reporter_id,
        reason=report.reason,
        status=report.status,
        resolutionNote=report.resolution_note,
        reviewedBy=report.reviewed_by,
        reviewedAt=report.reviewed_at,
        createdAt=report.created_at,
        messageContent=message.content if message else None,
    )


class MessagingService:
    """Service layer for chat messages, read receipts and moderation"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MessageRepository()

    def _get_message(self, message_id: str, for_update: bool = False) -> Message:
        if for_update:
            message = self.repo.get_message_for_update(self.db, message_id)
        else:
            message = self.repo.get_message(self.db, message_id)
        if not message:
            raise NotFoundError("Message not found")
        return message

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    def list_messages(self, job_id: str, user: User) -> list[Message]:
        get_messaging_participants(self.db, job_id, user)
        return self.repo.list_messages(self.db, job_id)

    def send_message(self, job_id: str, data: MessageCreate, user: User) -> Message:
        """Validate and store a message from one participant to the other"""
        participants = get_messaging_participants(self.db, job_id, user, allow_admin=False)

        receiver_id = data.receiverId or participants.counterpart_of(user.id)
        if receiver_id == user.id:
            raise ValidationError("You cannot send a message to yourself")
        if not participants.includes(receiver_id):
            raise ForbiddenError("The receiver is not a participant in this conversation")

        content = _clean_content(data.content)
        if not content and not data.attachments:
            raise ValidationError("A message needs content or at least one attachment")
        attachments = validate_attachments(self.db, user, data.attachments)

        message = Message(
            job_id=job_id,
            sender_id=user.id,
            receiver_id=receiver_id,
            content=content,
            attachments=attachments,
        )
        with atomic(self.db):
            self.db.add(message)

        self.db.refresh(message)
        logger.info(
            f"💬 Message {message.id} on job {job_id} from {user.id} to {receiver_id} "
            f"({len(attachments)} attachment(s))"
        )
        return message

    def edit_message(self, message_id: str, content: str, user: User) -> Message:
        """Replace the content of a message; sender or admin only"""
        with atomic(self.db):
            message = self._get_message(message_id, for_update=True)
            if user.role != UserRole.ADMIN:
                if message.sender_id != user.id:
                    raise ForbiddenError("You can only edit your own messages")
                get_messaging_participants(self.db, message.job_id, user)
            if message.deleted_at is not None:
                raise InvalidStateError("Deleted messages cannot be edited")
            if message.redacted_at is not None:
                raise InvalidStateError("Moderated messages cannot be edited")

            content = _clean_content(content)
            if not content and not message.attachments:
                raise ValidationError("Message content cannot be empty")

            message.content = content
            message.edited_at = datetime.utcnow()

        self.db.refresh(message)
        logger.info(f"✏️ Message {message.id} edited by {user.id}")
        return message

    def delete_message(self, message_id: str, user: User) -> Message:
        """Soft delete: content and attachments are cleared, the row stays"""
        with atomic(self.db):
            message = self._get_message(message_id, for_update=True)
            if user.role != UserRole.ADMIN:
                if message.sender_id != user.id:
                    raise ForbiddenError("You can only delete your own messages")
                get_messaging_participants(self.db, message.job_id, user)
            if message.deleted_at is not None:
                raise InvalidStateError("Message has already been deleted")

            message.content = ""
            message.attachments = []
            message.deleted_at = datetime.utcnow()
            message.deleted_by = user.id

        self.db.refresh(message)
        logger.info(f"🗑️ Message {message.id} deleted by {user.id}")
        return message

    def redact_message(self, message_id: str, admin: User) -> Message:
        """Moderation: replace the content with a fixed marker regardless of sender"""
        if admin.role != UserRole.ADMIN:
            raise ForbiddenError("Administrator access required")

        with atomic(self.db):
            message = self._get_message(message_id, for_update=True)
            if message.redacted_at is not None:
                logger.info(f"ℹ️ Message {message.id} already redacted")
                return message

            message.content = REDACTION_MARKER
            message.attachments = []
            message.redacted_at = datetime.utcnow()
            message.redacted_by = admin.id

        self.db.refresh(message)
        logger.info(f"🛡️ Message {message.id} redacted by admin {admin.id}")
        return message

    # ------------------------------------------------------------------
    # Read receipts
    # ------------------------------------------------------------------

    def mark_read(self, message_id: str, user: User) -> tuple[Message, list[str]]:
        """Record a receipt for one message addressed to the user"""
        message = self._get_message(message_id)
        get_messaging_participants(self.db, message.job_id, user, allow_admin=False)
        if message.receiver_id != user.id:
            return message, []

        with atomic(self.db):
            # Serializes receipts per job so concurrent calls cannot double insert
            JobRepository.get_job_for_update(self.db, message.job_id)
            if self.repo.has_receipt(self.db, message.id, user.id):
                newly_read = []
            else:
                self.repo.add_receipts(self.db, [message.id], user.id)
                newly_read = [message.id]

        return message, newly_read

    def mark_all_read(self, job_id: str, user: User) -> list[str]:
        """Mark every message on a job addressed to the user as read; idempotent"""
        get_messaging_participants(self.db, job_id, user, allow_admin=False)

        with atomic(self.db):
            JobRepository.get_job_for_update(self.db, job_id)
            unread = self.repo.get_unread_message_ids(self.db, job_id, user.id)
            self.repo.add_receipts(self.db, unread, user.id)

        if unread:
            logger.info(f"👁️ User {user.id} read {len(unread)} message(s) on job {job_id}")
        return unread

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def report_message(self, message_id: str, reason: str, user: User) -> MessageReport:
        message = self._get_message(message_id)
        get_messaging_participants(self.db, message.job_id, user, allow_admin=False)

        reason = reason.strip()
        if not reason:
            raise ValidationError("A reason is required")
        if message.sender_id == user.id:
            raise ValidationError("You cannot report your own message")
        if self.repo.get_open_report(self.db, message.id, user.id):
            raise InvalidStateError("You have already reported this message")

        report = MessageReport(message_id=message.id, reporter_id=user.id, reason=reason)
        with atomic(self.db):
            self.db.add(report)

        self.db.refresh(report)
        logger.warning(f"🚩 Message {message.id} reported by {user.id} (report {report.id})")
        return report

    def list_reports(self, status: Optional[ReportStatus] = None) -> list[MessageReport]:
        return self.repo.list_reports(self.db, status)

    def update_report(self, report_id: str, data: MessageReportUpdate, admin: User) -> MessageReport:
        """Triage a report; redacting the message is a separate action"""
        report = self.repo.get_report(self.db, report_id)
        if not report:
            raise NotFoundError("Report not found")

        with atomic(self.db):
            report.status = data.status
            if data.resolutionNote is not None:
                report.resolution_note = data.resolutionNote
            if data.status == ReportStatus.OPEN:
                report.reviewed_by = None
                report.reviewed_at = None
            else:
                report.reviewed_by = admin.id
                report.reviewed_at = datetime.utcnow()

        self.db.refresh(report)
        logger.info(f"🛡️ Report {report.id} set to {report.status.value} by admin {admin.id}")
        return report
