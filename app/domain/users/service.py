"""User service - Profiles, experience answers, suspension and ratings"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...database import atomic
from ...errors import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from ...models import JobStatus, NotificationType, Review, User, UserRole
from ...services.file_storage import R2FileStorage
from ..jobs.repository import JobRepository
from ..notifications.service import notify
from .questions import QUESTIONS_BY_ID, validate_experience_answers
from .repository import UserRepository
from .schemas import ExperienceAnswerOut, ProfileUpdate, ReviewCreate, UserResponse

logger = logging.getLogger(__name__)

# ProfileUpdate field -> User column
PROFILE_FIELDS = {
    "firstName": "first_name",
    "middleName": "middle_name",
    "surname": "surname",
    "avatar": "avatar",
    "bio": "bio",
    "location": "location",
    "dateOfBirth": "date_of_birth",
    "address": "address",
    "placeOfBirth": "place_of_birth",
    "nationality": "nationality",
    "residencyStatus": "residency_status",
    "languages": "languages",
    "educationLevel": "education_level",
    "maritalStatus": "marital_status",
    "school": "school",
}


class UserService:
    """Service layer for user profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def list_users(self, role: Optional[UserRole] = None) -> list[User]:
        return self.repo.list_users(self.db, role)

    def get_user(self, user_id: str) -> User:
        user = self.repo.get_user(self.db, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        """Edit the current user's profile"""
        answers = None
        if data.experienceAnswers is not None:
            if data.experienceAnswers and user.role != UserRole.MAID:
                raise ValidationError("Only maids can answer experience questions")
            answers = validate_experience_answers([a.model_dump() for a in data.experienceAnswers])

        if data.cvFileId:
            cv_file = self.repo.get_file(self.db, data.cvFileId)
            if not cv_file or cv_file.owner_id != user.id:
                raise ValidationError("CV file not found")
            if cv_file.mime_type != "application/pdf":
                raise ValidationError("CV must be a PDF file")

        with atomic(self.db):
            for field, column in PROFILE_FIELDS.items():
                value = getattr(data, field)
                if value is not None:
                    setattr(user, column, value)

            if data.firstName is not None or data.surname is not None:
                display_name = " ".join(p for p in (user.first_name, user.surname) if p)
                if display_name:
                    user.name = display_name

            if data.cvFileId is not None:
                user.cv_file_id = data.cvFileId or None

            if answers is not None:
                self.repo.replace_experience_answers(self.db, user, answers)

        self.db.refresh(user)
        logger.info(f"✏️ Profile updated for user {user.id}")
        return user

    def set_suspension(self, user_id: str, suspended: bool, admin: User) -> User:
        user = self.get_user(user_id)
        if user.id == admin.id:
            raise ValidationError("You cannot suspend your own account")
        if user.role == UserRole.ADMIN:
            raise ForbiddenError("Administrator accounts cannot be suspended")

        with atomic(self.db):
            user.is_suspended = suspended
            if suspended:
                notify(self.db, user.id, "Your account has been suspended", NotificationType.WARNING)

        self.db.refresh(user)
        logger.warning(f"🛡️ User {user.id} suspended={suspended} by admin {admin.id}")
        return user

    def to_response(self, user: User, viewer: User, storage: R2FileStorage) -> UserResponse:
        """Serialize a profile; personal details only for the owner and admins"""
        show_private = viewer.id == user.id or viewer.role == UserRole.ADMIN

        cv_url = None
        if user.cv_file_id:
            cv_file = self.repo.get_file(self.db, user.cv_file_id)
            if cv_file:
                cv_url = storage.generate_presigned_url(cv_file.key, cv_file.mime_type)

        catalog_order = list(QUESTIONS_BY_ID)
        answers = sorted(
            user.experience_answers,
            key=lambda a: catalog_order.index(a.question_id) if a.question_id in QUESTIONS_BY_ID else len(catalog_order),
        )

        response = UserResponse(
            id=user.id,
            name=user.name,
            role=user.role,
            avatar=user.avatar,
            rating=user.rating or 0.0,
            ratingCount=user.rating_count or 0,
            bio=user.bio,
            location=user.location,
            firstName=user.first_name,
            middleName=user.middle_name,
            surname=user.surname,
            languages=user.languages,
            educationLevel=user.education_level,
            school=user.school,
            experienceAnswers=[
                ExperienceAnswerOut(questionId=a.question_id, question=a.question, answers=a.answers or [])
                for a in answers
            ],
            cvFileId=user.cv_file_id,
            cvUrl=cv_url,
            createdAt=user.created_at,
        )
        if show_private:
            response.email = user.email
            response.isSuspended = user.is_suspended
            response.dateOfBirth = user.date_of_birth
            response.address = user.address
            response.placeOfBirth = user.place_of_birth
            response.nationality = user.nationality
            response.residencyStatus = user.residency_status
            response.maritalStatus = user.marital_status
        return response


class ReviewService:
    """Service layer for ratings left after a completed job"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def create_review(self, job_id: str, data: ReviewCreate, reviewer: User) -> Review:
        """Review the other party of a completed job and update their running average"""
        with atomic(self.db):
            # The job lock serializes reviews of the same job; lock order is job, then reviewee
            job = JobRepository.get_job_for_update(self.db, job_id)
            if not job:
                raise NotFoundError("Job not found")
            if job.status != JobStatus.COMPLETED:
                raise InvalidStateError("Reviews can only be left on completed jobs")
            if not job.assigned_maid_id:
                raise InvalidStateError("This job has no assigned maid to review")

            if reviewer.id == job.client_id:
                reviewee_id = job.assigned_maid_id
            elif reviewer.id == job.assigned_maid_id:
                reviewee_id = job.client_id
            else:
                raise ForbiddenError("Only the client and the assigned maid can review this job")

            if self.repo.get_review(self.db, job.id, reviewer.id):
                raise InvalidStateError("You have already reviewed this job")

            reviewee = self.repo.get_user_for_update(self.db, reviewee_id)
            if not reviewee:
                raise NotFoundError("User not found")

            count = reviewee.rating_count or 0
            reviewee.rating = ((reviewee.rating or 0.0) * count + data.rating) / (count + 1)
            reviewee.rating_count = count + 1

            review = Review(
                job_id=job.id,
                reviewer_id=reviewer.id,
                reviewee_id=reviewee_id,
                rating=data.rating,
                comment=data.comment,
            )
            self.db.add(review)
            try:
                self.db.flush()
            except IntegrityError as e:
                logger.warning(f"⚠️ Duplicate review on job {job.id} by {reviewer.id}")
                raise InvalidStateError("You have already reviewed this job") from e
            notify(
                self.db,
                reviewee_id,
                f"{reviewer.name} left you a {data.rating}-star review for '{job.title}'",
                NotificationType.INFO,
            )

        self.db.refresh(review)
        logger.info(
            f"⭐ Review {review.id} on job {job.id}: {reviewer.id} → {reviewee_id} ({data.rating})"
        )
        return review

    def list_reviews(self, user_id: str) -> list[Review]:
        if not self.repo.get_user(self.db, user_id):
            raise NotFoundError("User not found")
        return self.repo.list_reviews_for(self.db, user_id)
