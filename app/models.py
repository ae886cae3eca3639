import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a unique string identifier for a row"""
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    CLIENT = "CLIENT"
    MAID = "MAID"
    ADMIN = "ADMIN"


class JobStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentType(str, enum.Enum):
    FIXED = "FIXED"
    HOURLY = "HOURLY"


class ApplicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class NotificationType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ReportStatus(str, enum.Enum):
    OPEN = "OPEN"
    REVIEWED = "REVIEWED"
    RESOLVED = "RESOLVED"


def _enum_column(enum_cls):
    # Stored as plain strings so the schema stays portable (no native PG enum types)
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(_enum_column(UserRole), nullable=False)
    avatar = Column(String(500), nullable=True)
    rating = Column(Float, default=0.0, nullable=False)  # Running average of received reviews
    rating_count = Column(Integer, default=0, nullable=False)
    bio = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    is_suspended = Column(Boolean, default=False, nullable=False)

    # Personal details
    first_name = Column(String(100), nullable=True)
    middle_name = Column(String(100), nullable=True)
    surname = Column(String(100), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address = Column(Text, nullable=True)
    place_of_birth = Column(String(255), nullable=True)
    nationality = Column(String(100), nullable=True)
    residency_status = Column(String(100), nullable=True)
    languages = Column(String(255), nullable=True)
    education_level = Column(String(100), nullable=True)
    marital_status = Column(String(50), nullable=True)
    school = Column(String(255), nullable=True)

    # Maid specific
    cv_file_id = Column(String(36), nullable=True)  # user_files.id, resolved to a signed URL on read

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    experience_answers = relationship(
        "ExperienceAnswer",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="ExperienceAnswer.created_at",
    )
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")


class ExperienceAnswer(Base):
    __tablename__ = "experience_answers"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(50), nullable=False)
    question = Column(Text, nullable=False)
    answers = Column(JSON, default=list, nullable=False)  # list[str]; one entry unless multi-select
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="experience_answers")


class Job(Base):
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=generate_id)
    client_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Location: `location` is the public area string, the rest is private
    location = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    place_id = Column(String(255), nullable=True)

    area_size = Column(Integer, nullable=True)  # square meters
    price = Column(Float, nullable=True)
    currency = Column(String(10), default="R", nullable=False)
    payment_type = Column(_enum_column(PaymentType), nullable=False, default=PaymentType.FIXED)
    rooms = Column(SmallInteger, nullable=True)
    bathrooms = Column(SmallInteger, nullable=True)
    images = Column(JSON, default=list, nullable=False)

    # Scheduling
    date = Column(Date, nullable=True)  # Primary date, used for sorting
    work_dates = Column(JSON, default=list, nullable=False)  # ISO date strings
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)
    duration = Column(Float, nullable=True)  # hours

    status = Column(_enum_column(JobStatus), default=JobStatus.OPEN, nullable=False, index=True)
    assigned_maid_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("User", foreign_keys=[client_id])
    assigned_maid = relationship("User", foreign_keys=[assigned_maid_id])
    history = relationship(
        "JobHistory",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="JobHistory.timestamp",
    )


class JobHistory(Base):
    """Append-only log of job status changes"""

    __tablename__ = "job_history"

    id = Column(String(36), primary_key=True, default=generate_id)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(_enum_column(JobStatus), nullable=False)
    note = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    job = relationship("Job", back_populates="history")


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("job_id", "maid_id", name="uq_applications_job_maid"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    maid_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        _enum_column(ApplicationStatus), default=ApplicationStatus.PENDING, nullable=False
    )
    message = Column(Text, nullable=True)
    applied_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    job = relationship("Job")
    maid = relationship("User")


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    receiver_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, default="", nullable=False)
    # [{fileId, key, fileName, mimeType, size}] - durable references only, never URLs
    attachments = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Edit / soft delete / moderation
    edited_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    redacted_at = Column(DateTime, nullable=True)
    redacted_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    reads = relationship("MessageRead", back_populates="message", cascade="all, delete-orphan")


class MessageRead(Base):
    """Read receipt, one row per (message, reader)"""

    __tablename__ = "message_reads"
    __table_args__ = (UniqueConstraint("message_id", "user_id", name="uq_message_reads_message_user"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    message_id = Column(
        String(36), ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    read_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    message = relationship("Message", back_populates="reads")


class MessageReport(Base):
    __tablename__ = "message_reports"

    id = Column(String(36), primary_key=True, default=generate_id)
    message_id = Column(String(36), ForeignKey("messages.id", ondelete="CASCADE"), nullable=False)
    reporter_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(_enum_column(ReportStatus), default=ReportStatus.OPEN, nullable=False, index=True)
    resolution_note = Column(Text, nullable=True)
    reviewed_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    message = relationship("Message")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    type = Column(_enum_column(NotificationType), default=NotificationType.INFO, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="notifications")


class UserFile(Base):
    __tablename__ = "user_files"

    id = Column(String(36), primary_key=True, default=generate_id)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    key = Column(String(500), nullable=False, unique=True)  # R2 object key, not a URL
    file_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("job_id", "reviewer_id", name="uq_reviews_job_reviewer"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    reviewer_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    reviewee_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(SmallInteger, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
