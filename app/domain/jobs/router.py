"""Job router - FastAPI endpoints for the job lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...errors import WEBSOCKET_CLOSE_CODES, NotReadyError
from ...models import JobStatus, User
from ...realtime import JobChannelManager, get_channel_manager
from .schemas import JobCreate, JobResponse, JobUpdate
from .service import JobService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def get_job_service(db: Session = Depends(get_db)) -> JobService:
    """Dependency injection for JobService"""
    return JobService(db)


async def _close_live_channel(channel: JobChannelManager, job_id: str):
    # Messaging closes once the job leaves IN_PROGRESS; subscribers get the not-ready close code
    await channel.close_room(
        job_id, WEBSOCKET_CLOSE_CODES[NotReadyError.code], "Messaging is closed for this job"
    )


@router.get("", response_model=list[JobResponse])
async def list_jobs(
    status: Optional[JobStatus] = Query(None),
    mine: bool = Query(False, description="Client: jobs I posted. Maid: jobs I applied to or work on"),
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """List jobs with viewer-aware location redaction"""
    jobs = service.list_jobs(current_user, status=status, mine=mine)
    return service.to_responses(jobs, current_user)


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    data: JobCreate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Post a new job"""
    job = service.create_job(data, current_user)
    return service.to_response(job, current_user)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Get a job with its status history"""
    job = service.get_job(job_id)
    return service.to_response(job, current_user, include_history=True)


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    data: JobUpdate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Edit a job (OPEN jobs only)"""
    job = service.update_job(job_id, data, current_user)
    return service.to_response(job, current_user)


@router.post("/{job_id}/complete", response_model=JobResponse)
async def complete_job(
    job_id: str,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
    channel: JobChannelManager = Depends(get_channel_manager),
):
    """Mark a job in progress as completed"""
    job = service.complete_job(job_id, current_user)
    await _close_live_channel(channel, job.id)
    return service.to_response(job, current_user, include_history=True)


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    job_id: str,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
    channel: JobChannelManager = Depends(get_channel_manager),
):
    """Cancel a job that has not been completed"""
    job = service.cancel_job(job_id, current_user)
    await _close_live_channel(channel, job.id)
    return service.to_response(job, current_user, include_history=True)


@router.delete("/{job_id}", status_code=204)
async def delete_job(
    job_id: str,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Delete an open job"""
    service.delete_job(job_id, current_user)
    return Response(status_code=204)


__all__ = ["router"]
