"""AI writing helpers for job posts and applications"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..errors import NotFoundError
from ..models import Job, User
from ..rate_limiter import create_rate_limiter
from ..services.text_generation import GeminiTextGenerator, get_text_generator

router = APIRouter(prefix="/ai", tags=["AI"])

rate_limit_generation = create_rate_limiter(limit=30, window_seconds=3600, key_prefix="ai_generation")


class JobDescriptionRequest(BaseModel):
    rooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    areaSize: Optional[int] = Field(None, ge=0)
    location: Optional[str] = Field(None, max_length=255)
    requirements: Optional[str] = Field(None, max_length=2000)


class ApplicationMessageRequest(BaseModel):
    jobId: str


class CandidateMatchRequest(BaseModel):
    jobDescription: str = Field(..., max_length=5000)
    candidateBio: str = Field(..., max_length=5000)


class GeneratedText(BaseModel):
    text: str


@router.post("/job-description", response_model=GeneratedText)
async def generate_job_description(
    data: JobDescriptionRequest,
    current_user: User = Depends(get_current_user),
    generator: GeminiTextGenerator = Depends(get_text_generator),
    _: None = Depends(rate_limit_generation),
):
    """Draft a job description from the job's basic details"""
    text = await generator.job_description(
        data.rooms, data.bathrooms, data.areaSize, data.location, data.requirements
    )
    return GeneratedText(text=text)


@router.post("/application-message", response_model=GeneratedText)
async def generate_application_message(
    data: ApplicationMessageRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    generator: GeminiTextGenerator = Depends(get_text_generator),
    _: None = Depends(rate_limit_generation),
):
    """Draft an application message for the current maid"""
    job = db.query(Job).filter(Job.id == data.jobId).first()
    if not job:
        raise NotFoundError("Job not found")
    text = await generator.application_message(
        job.title, job.description, current_user.name, current_user.bio
    )
    return GeneratedText(text=text)


@router.post("/candidate-match", response_model=GeneratedText)
async def analyze_candidate_match(
    data: CandidateMatchRequest,
    current_user: User = Depends(get_current_user),
    generator: GeminiTextGenerator = Depends(get_text_generator),
    _: None = Depends(rate_limit_generation),
):
    """One-sentence fit assessment between a job and a candidate"""
    return GeneratedText(text=await generator.candidate_match(data.jobDescription, data.candidateBio))
