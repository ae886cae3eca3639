"""User domain schemas - profiles, experience answers and reviews"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import UserRole


class ExperienceAnswerIn(BaseModel):
    questionId: str
    answers: list[str]


class ExperienceAnswerOut(BaseModel):
    questionId: str
    question: str
    answers: list[str]


class ProfileUpdate(BaseModel):
    """Schema for editing the current user's profile; omitted fields are left unchanged"""

    firstName: Optional[str] = Field(None, max_length=100)
    middleName: Optional[str] = Field(None, max_length=100)
    surname: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, max_length=255)
    dateOfBirth: Optional[date] = None
    address: Optional[str] = None
    placeOfBirth: Optional[str] = Field(None, max_length=255)
    nationality: Optional[str] = Field(None, max_length=100)
    residencyStatus: Optional[str] = Field(None, max_length=100)
    languages: Optional[str] = Field(None, max_length=255)
    educationLevel: Optional[str] = Field(None, max_length=100)
    maritalStatus: Optional[str] = Field(None, max_length=50)
    school: Optional[str] = Field(None, max_length=255)
    cvFileId: Optional[str] = None
    experienceAnswers: Optional[list[ExperienceAnswerIn]] = None

    @field_validator("dateOfBirth")
    @classmethod
    def validate_date_of_birth(cls, v):
        if v and v >= date.today():
            raise ValueError("Date of birth must be in the past")
        return v


class UserResponse(BaseModel):
    """Profile as seen by other users; personal fields are only filled for the owner and admins"""

    id: str
    name: str
    role: UserRole
    avatar: Optional[str] = None
    rating: float
    ratingCount: int
    bio: Optional[str] = None
    location: Optional[str] = None
    firstName: Optional[str] = None
    middleName: Optional[str] = None
    surname: Optional[str] = None
    languages: Optional[str] = None
    educationLevel: Optional[str] = None
    school: Optional[str] = None
    experienceAnswers: list[ExperienceAnswerOut] = []
    cvFileId: Optional[str] = None
    cvUrl: Optional[str] = None
    createdAt: Optional[datetime] = None

    # Owner / admin only
    email: Optional[str] = None
    isSuspended: Optional[bool] = None
    dateOfBirth: Optional[date] = None
    address: Optional[str] = None
    placeOfBirth: Optional[str] = None
    nationality: Optional[str] = None
    residencyStatus: Optional[str] = None
    maritalStatus: Optional[str] = None


class SuspensionUpdate(BaseModel):
    suspended: bool


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    id: str
    jobId: str
    reviewerId: str
    revieweeId: str
    rating: int
    comment: Optional[str]
    createdAt: datetime
