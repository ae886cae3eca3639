"""Application domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Application, ApplicationStatus


class ApplicationCreate(BaseModel):
    """Schema for applying to a job"""

    jobId: str
    message: Optional[str] = Field(None, max_length=2000)

    @field_validator("message")
    @classmethod
    def strip_message(cls, v):
        if v is not None:
            v = v.strip() or None
        return v


class ApplicationStatusUpdate(BaseModel):
    """Schema for a client decision on an application"""

    status: ApplicationStatus

    @field_validator("status")
    @classmethod
    def validate_decision(cls, v):
        if v == ApplicationStatus.PENDING:
            raise ValueError("Status must be ACCEPTED or REJECTED")
        return v


class ApplicationResponse(BaseModel):
    id: str
    jobId: str
    jobTitle: Optional[str] = None
    maidId: str
    maidName: Optional[str] = None
    maidAvatar: Optional[str] = None
    maidRating: Optional[float] = None
    status: ApplicationStatus
    message: Optional[str]
    appliedAt: datetime
    updatedAt: Optional[datetime]

    @classmethod
    def from_model(cls, application: Application) -> "ApplicationResponse":
        maid = application.maid
        return cls(
            id=application.id,
            jobId=application.job_id,
            jobTitle=application.job.title if application.job else None,
            maidId=application.maid_id,
            maidName=maid.name if maid else None,
            maidAvatar=maid.avatar if maid else None,
            maidRating=maid.rating if maid else None,
            status=application.status,
            message=application.message,
            appliedAt=application.applied_at,
            updatedAt=application.updated_at,
        )
