"""Messaging repository - Database operations for messages, read receipts and reports"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ...models import Message, MessageRead, MessageReport, ReportStatus, UserFile


class MessageRepository:
    """Repository for messaging database operations"""

    @staticmethod
    def get_message(db: Session, message_id: str) -> Optional[Message]:
        return db.query(Message).filter(Message.id == message_id).first()

    @staticmethod
    def get_message_for_update(db: Session, message_id: str) -> Optional[Message]:
        return (
            db.query(Message)
            .filter(Message.id == message_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def list_messages(db: Session, job_id: str) -> list[Message]:
        """Messages of a job in conversation order"""
        return (
            db.query(Message)
            .options(selectinload(Message.reads))
            .filter(Message.job_id == job_id)
            .order_by(Message.created_at, Message.id)
            .all()
        )

    @staticmethod
    def get_files(db: Session, file_ids: list[str]) -> dict[str, UserFile]:
        if not file_ids:
            return {}
        files = db.query(UserFile).filter(UserFile.id.in_(file_ids)).all()
        return {f.id: f for f in files}

    @staticmethod
    def get_unread_message_ids(db: Session, job_id: str, user_id: str) -> list[str]:
        """Ids of messages addressed to the user on a job that have no receipt yet"""
        already_read = select(MessageRead.message_id).where(MessageRead.user_id == user_id)
        rows = (
            db.query(Message.id)
            .filter(
                Message.job_id == job_id,
                Message.receiver_id == user_id,
                Message.id.notin_(already_read),
            )
            .order_by(Message.created_at, Message.id)
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def has_receipt(db: Session, message_id: str, user_id: str) -> bool:
        return (
            db.query(MessageRead.id)
            .filter(MessageRead.message_id == message_id, MessageRead.user_id == user_id)
            .first()
            is not None
        )

    @staticmethod
    def add_receipts(db: Session, message_ids: list[str], user_id: str) -> None:
        for message_id in message_ids:
            db.add(MessageRead(message_id=message_id, user_id=user_id))

    @staticmethod
    def get_report(db: Session, report_id: str) -> Optional[MessageReport]:
        return db.query(MessageReport).filter(MessageReport.id == report_id).first()

    @staticmethod
    def get_open_report(db: Session, message_id: str, reporter_id: str) -> Optional[MessageReport]:
        return (
            db.query(MessageReport)
            .filter(
                MessageReport.message_id == message_id,
                MessageReport.reporter_id == reporter_id,
                MessageReport.status == ReportStatus.OPEN,
            )
            .first()
        )

    @staticmethod
    def list_reports(db: Session, status: Optional[ReportStatus] = None) -> list[MessageReport]:
        query = db.query(MessageReport).options(selectinload(MessageReport.message))
        if status is not None:
            query = query.filter(MessageReport.status == status)
        return query.order_by(MessageReport.created_at.desc(), MessageReport.id).all()
