"""Messaging domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models import ReportStatus


class MessageCreate(BaseModel):
    """Schema for sending a message; content, attachments or both"""

    receiverId: Optional[str] = None
    content: str = ""
    attachments: list[str] = []  # user file ids owned by the sender


class MessageUpdate(BaseModel):
    content: str


class AttachmentResponse(BaseModel):
    fileId: str
    fileName: str
    mimeType: str
    size: int
    url: Optional[str] = None  # short-lived, generated per response


class MessageResponse(BaseModel):
    id: str
    jobId: str
    senderId: str
    receiverId: str
    content: str
    attachments: list[AttachmentResponse]
    createdAt: datetime
    editedAt: Optional[datetime] = None
    deletedAt: Optional[datetime] = None
    deletedBy: Optional[str] = None
    redactedAt: Optional[datetime] = None
    isDeleted: bool = False
    isRedacted: bool = False
    readBy: list[str] = []


class ReadReceiptResponse(BaseModel):
    jobId: str
    messageIds: list[str]
    count: int


class MessageReportCreate(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class MessageReportUpdate(BaseModel):
    status: ReportStatus
    resolutionNote: Optional[str] = Field(None, max_length=2000)


class MessageReportResponse(BaseModel):
    id: str
    messageId: str
    jobId: Optional[str] = None
    reporterId: str
    reason: str
    status: ReportStatus
    resolutionNote: Optional[str] = None
    reviewedBy: Optional[str] = None
    reviewedAt: Optional[datetime] = None
    createdAt: datetime
    messageContent: Optional[str] = None
