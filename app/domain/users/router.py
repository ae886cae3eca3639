"""User router - profiles, suspension and reviews"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_user
from ...database import get_db
from ...models import Review, User, UserRole
from ...services.file_storage import R2FileStorage, get_file_storage
from .questions import MAID_EXPERIENCE_QUESTIONS
from .schemas import ProfileUpdate, ReviewCreate, ReviewResponse, SuspensionUpdate, UserResponse
from .service import ReviewService, UserService

router = APIRouter(prefix="/users", tags=["Users"])
reviews_router = APIRouter(tags=["Reviews"])
admin_router = APIRouter(prefix="/admin", tags=["Moderation"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


def _review_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=review.id,
        jobId=review.job_id,
        reviewerId=review.reviewer_id,
        revieweeId=review.reviewee_id,
        rating=review.rating,
        comment=review.comment,
        createdAt=review.created_at,
    )


# ============================================================================
# PROFILES
# ============================================================================


@router.get("", response_model=list[UserResponse])
async def list_users(
    role: Optional[UserRole] = Query(None),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    storage: R2FileStorage = Depends(get_file_storage),
):
    """List user profiles, optionally by role"""
    return [service.to_response(u, current_user, storage) for u in service.list_users(role)]


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    storage: R2FileStorage = Depends(get_file_storage),
):
    """Get the current user's full profile"""
    return service.to_response(current_user, current_user, storage)


@router.put("/me", response_model=UserResponse)
async def update_me(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    storage: R2FileStorage = Depends(get_file_storage),
):
    """Edit the current user's profile and experience answers"""
    user = service.update_profile(current_user, data)
    return service.to_response(user, current_user, storage)


@router.get("/experience-questions")
async def get_experience_questions():
    """The maid experience questionnaire"""
    return MAID_EXPERIENCE_QUESTIONS


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    storage: R2FileStorage = Depends(get_file_storage),
):
    """Get a user's profile"""
    return service.to_response(service.get_user(user_id), current_user, storage)


@router.get("/{user_id}/reviews", response_model=list[ReviewResponse])
async def list_user_reviews(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Reviews a user has received, newest first"""
    return [_review_response(r) for r in service.list_reviews(user_id)]


# ============================================================================
# REVIEWS
# ============================================================================


@reviews_router.post("/jobs/{job_id}/reviews", response_model=ReviewResponse, status_code=201)
async def create_review(
    job_id: str,
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Rate the other party of a completed job"""
    return _review_response(service.create_review(job_id, data, current_user))


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.patch("/users/{user_id}/suspension", response_model=UserResponse)
async def set_user_suspension(
    user_id: str,
    data: SuspensionUpdate,
    admin: User = Depends(get_current_admin),
    service: UserService = Depends(get_user_service),
    storage: R2FileStorage = Depends(get_file_storage),
):
    """Suspend or reinstate a user account"""
    user = service.set_suspension(user_id, data.suspended, admin)
    return service.to_response(user, admin, storage)


__all__ = ["router", "reviews_router", "admin_router"]
