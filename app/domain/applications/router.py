"""Application router - FastAPI endpoints for applying and reviewing applications"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import ApplicationCreate, ApplicationResponse, ApplicationStatusUpdate
from .service import ApplicationService

router = APIRouter(prefix="/applications", tags=["Applications"])


def get_application_service(db: Session = Depends(get_db)) -> ApplicationService:
    """Dependency injection for ApplicationService"""
    return ApplicationService(db)


@router.post("", response_model=ApplicationResponse, status_code=201)
async def apply_to_job(
    data: ApplicationCreate,
    response: Response,
    current_user: User = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    """Apply to a job; re-applying updates the pending application's message"""
    application, created = service.apply(data, current_user)
    if not created:
        response.status_code = 200
    return ApplicationResponse.from_model(application)


@router.get("", response_model=list[ApplicationResponse])
async def list_applications(
    jobId: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    """List applications visible to the current user"""
    return [
        ApplicationResponse.from_model(a) for a in service.list_applications(current_user, jobId)
    ]


@router.patch("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    """Accept or reject an application. Accepting rejects every other pending one"""
    application = service.update_status(application_id, data.status, current_user)
    return ApplicationResponse.from_model(application)


__all__ = ["router"]
