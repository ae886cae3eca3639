"""Job domain schemas - Pydantic models for validation"""

from datetime import date as DateType
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...models import JobHistory, JobStatus, PaymentType
from ...shared.validators import validate_time_of_day, validate_work_dates


class JobCreate(BaseModel):
    """Schema for posting a new job"""

    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    placeId: Optional[str] = None
    areaSize: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    currency: str = Field("R", max_length=10)
    paymentType: PaymentType = PaymentType.FIXED
    rooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    images: list[str] = []
    date: Optional[DateType] = None
    workDates: list[str] = []
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    duration: Optional[float] = Field(None, gt=0)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_times(cls, v):
        return validate_time_of_day(v)

    @field_validator("workDates")
    @classmethod
    def validate_dates(cls, v):
        return validate_work_dates(v)

    @model_validator(mode="after")
    def require_schedule(self):
        if not self.workDates and self.date is None:
            raise ValueError("At least one work date is required")
        return self


class JobUpdate(BaseModel):
    """Schema for editing an OPEN job; omitted fields are left unchanged"""

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    placeId: Optional[str] = None
    areaSize: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, max_length=10)
    paymentType: Optional[PaymentType] = None
    rooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    images: Optional[list[str]] = None
    date: Optional[DateType] = None
    workDates: Optional[list[str]] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    duration: Optional[float] = Field(None, gt=0)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Title cannot be empty")
        return v

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_times(cls, v):
        return validate_time_of_day(v)

    @field_validator("workDates")
    @classmethod
    def validate_dates(cls, v):
        if v is None:
            return v
        return validate_work_dates(v)


class JobHistoryEntry(BaseModel):
    status: JobStatus
    note: Optional[str]
    timestamp: datetime

    @classmethod
    def from_model(cls, entry: JobHistory) -> "JobHistoryEntry":
        return cls(status=entry.status, note=entry.note, timestamp=entry.timestamp)


class JobResponse(BaseModel):
    """Schema for job response; private location fields are null unless visible"""

    id: str
    clientId: str
    title: str
    description: Optional[str]
    location: Optional[str]
    address: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    placeId: Optional[str]
    areaSize: Optional[int]
    price: Optional[float]
    currency: str
    paymentType: PaymentType
    rooms: Optional[int]
    bathrooms: Optional[int]
    images: list[str]
    date: Optional[DateType]
    workDates: list[str]
    startTime: Optional[str]
    endTime: Optional[str]
    duration: Optional[float]
    status: JobStatus
    assignedMaidId: Optional[str]
    createdAt: Optional[datetime]
    updatedAt: Optional[datetime]
    history: Optional[list[JobHistoryEntry]] = None
