"""Job service - Business logic for the job lifecycle"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...database import atomic
from ...errors import ForbiddenError, InvalidStateError, LockedError, NotFoundError
from ...models import ApplicationStatus, Job, JobStatus, NotificationType, User, UserRole
from ...services.status_automation import complete_overdue_jobs
from ..notifications.service import notify
from .repository import JobRepository
from .schemas import JobCreate, JobHistoryEntry, JobResponse, JobUpdate
from .visibility import private_location_visibility

logger = logging.getLogger(__name__)

# JobUpdate field -> Job column
UPDATABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "location": "location",
    "address": "address",
    "latitude": "latitude",
    "longitude": "longitude",
    "placeId": "place_id",
    "areaSize": "area_size",
    "price": "price",
    "currency": "currency",
    "paymentType": "payment_type",
    "rooms": "rooms",
    "bathrooms": "bathrooms",
    "images": "images",
    "date": "date",
    "workDates": "work_dates",
    "startTime": "start_time",
    "endTime": "end_time",
    "duration": "duration",
}


def _is_owner_or_admin(job: Job, user: User) -> bool:
    return user.role == UserRole.ADMIN or job.client_id == user.id


class JobService:
    """Service layer for job business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = JobRepository()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_jobs(
        self, viewer: User, status: Optional[JobStatus] = None, mine: bool = False
    ) -> list[Job]:
        """List jobs after completing any overdue ones"""
        complete_overdue_jobs(self.db)

        client_id = maid_id = None
        if mine:
            if viewer.role == UserRole.CLIENT:
                client_id = viewer.id
            elif viewer.role == UserRole.MAID:
                maid_id = viewer.id

        return self.repo.list_jobs(self.db, status=status, client_id=client_id, maid_id=maid_id)

    def get_job(self, job_id: str) -> Job:
        """Get a single job after completing any overdue ones"""
        complete_overdue_jobs(self.db)

        job = self.repo.get_job(self.db, job_id)
        if not job:
            raise NotFoundError("Job not found")
        return job

    def to_responses(
        self, jobs: list[Job], viewer: User, include_history: bool = False
    ) -> list[JobResponse]:
        """Serialize jobs for a viewer, nulling private location fields they may not see"""
        visible = private_location_visibility(self.db, viewer, jobs)
        return [self._serialize(job, visible[job.id], include_history) for job in jobs]

    def to_response(self, job: Job, viewer: User, include_history: bool = False) -> JobResponse:
        return self.to_responses([job], viewer, include_history)[0]

    @staticmethod
    def _serialize(job: Job, show_private: bool, include_history: bool) -> JobResponse:
        return JobResponse(
            id=job.id,
            clientId=job.client_id,
            title=job.title,
            description=job.description,
            location=job.location,
            address=job.address if show_private else None,
            latitude=job.latitude if show_private else None,
            longitude=job.longitude if show_private else None,
            placeId=job.place_id if show_private else None,
            areaSize=job.area_size,
            price=job.price,
            currency=job.currency,
            paymentType=job.payment_type,
            rooms=job.rooms,
            bathrooms=job.bathrooms,
            images=job.images or [],
            date=job.date,
            workDates=job.work_dates or [],
            startTime=job.start_time,
            endTime=job.end_time,
            duration=job.duration,
            status=job.status,
            assignedMaidId=job.assigned_maid_id,
            createdAt=job.created_at,
            updatedAt=job.updated_at,
            history=[JobHistoryEntry.from_model(h) for h in job.history] if include_history else None,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def create_job(self, data: JobCreate, user: User) -> Job:
        """Post a new OPEN job"""
        if user.role not in (UserRole.CLIENT, UserRole.ADMIN):
            raise ForbiddenError("Only clients can post jobs")

        logger.info(f"📥 Creating job for client {user.id}: {data.title}")

        job = Job(
            client_id=user.id,
            title=data.title,
            description=data.description,
            location=data.location,
            address=data.address,
            latitude=data.latitude,
            longitude=data.longitude,
            place_id=data.placeId,
            area_size=data.areaSize,
            price=data.price,
            currency=data.currency,
            payment_type=data.paymentType,
            rooms=data.rooms,
            bathrooms=data.bathrooms,
            images=data.images,
            date=data.date or _earliest_work_date(data.workDates),
            work_dates=data.workDates,
            start_time=data.startTime,
            end_time=data.endTime,
            duration=data.duration,
            status=JobStatus.OPEN,
        )

        with atomic(self.db):
            self.db.add(job)
            self.db.flush()
            self.repo.add_history(self.db, job, JobStatus.OPEN, "Job posted")
            notify(
                self.db,
                user.id,
                f"Your job '{job.title}' has been posted",
                NotificationType.SUCCESS,
            )

        self.db.refresh(job)
        logger.info(f"✅ Job {job.id} posted")
        return job

    def update_job(self, job_id: str, data: JobUpdate, user: User) -> Job:
        """Edit a job; only allowed while it is OPEN"""
        with atomic(self.db):
            job = self.repo.get_job_for_update(self.db, job_id)
            if not job:
                raise NotFoundError("Job not found")
            if not _is_owner_or_admin(job, user):
                raise ForbiddenError("You can only edit your own jobs")
            if job.status != JobStatus.OPEN:
                logger.warning(f"🔒 Edit refused for job {job.id} in status {job.status.value}")
                raise LockedError(
                    f"Job cannot be edited once it is {job.status.value.lower().replace('_', ' ')}"
                )

            updates = {}
            for field, column in UPDATABLE_FIELDS.items():
                value = getattr(data, field)
                if value is not None:
                    updates[column] = value
            if data.workDates and data.date is None:
                updates["date"] = _earliest_work_date(data.workDates)

            for column, value in updates.items():
                setattr(job, column, value)

        self.db.refresh(job)
        logger.info(f"✏️ Job {job.id} updated: {sorted(updates)}")
        return job

    def complete_job(self, job_id: str, user: User) -> Job:
        """Mark an IN_PROGRESS job as completed; repeating the call is a no-op"""
        with atomic(self.db):
            job = self.repo.get_job_for_update(self.db, job_id)
            if not job:
                raise NotFoundError("Job not found")
            if job.client_id != user.id:
                raise ForbiddenError("Only the client who posted this job can complete it")
            if job.status == JobStatus.COMPLETED:
                logger.info(f"ℹ️ Job {job.id} already completed")
                return job
            if job.status != JobStatus.IN_PROGRESS:
                raise InvalidStateError("Only jobs in progress can be completed")

            job.status = JobStatus.COMPLETED
            self.repo.add_history(self.db, job, JobStatus.COMPLETED, "Job marked as completed by client")
            if job.assigned_maid_id:
                notify(
                    self.db,
                    job.assigned_maid_id,
                    f"Job '{job.title}' has been marked as completed",
                    NotificationType.SUCCESS,
                )

        self.db.refresh(job)
        logger.info(f"✅ Job {job.id} transitioned: in_progress → completed")
        return job

    def cancel_job(self, job_id: str, user: User) -> Job:
        """Cancel an OPEN or IN_PROGRESS job and reject its pending applications"""
        with atomic(self.db):
            job = self.repo.get_job_for_update(self.db, job_id)
            if not job:
                raise NotFoundError("Job not found")
            if not _is_owner_or_admin(job, user):
                raise ForbiddenError("You can only cancel your own jobs")
            if job.status == JobStatus.CANCELLED:
                logger.info(f"ℹ️ Job {job.id} already cancelled")
                return job
            if job.status == JobStatus.COMPLETED:
                raise InvalidStateError("Completed jobs cannot be cancelled")

            previous = job.status
            job.status = JobStatus.CANCELLED
            self.repo.add_history(self.db, job, JobStatus.CANCELLED, "Job cancelled")

            pending = self.repo.get_pending_applications_for_update(self.db, job.id)
            for application in pending:
                application.status = ApplicationStatus.REJECTED
                notify(
                    self.db,
                    application.maid_id,
                    f"Job '{job.title}' was cancelled by the client",
                    NotificationType.ERROR,
                )

            if job.assigned_maid_id:
                notify(
                    self.db,
                    job.assigned_maid_id,
                    f"Job '{job.title}' you were assigned to has been cancelled",
                    NotificationType.WARNING,
                )

        self.db.refresh(job)
        logger.info(
            f"🛑 Job {job.id} transitioned: {previous.value.lower()} → cancelled "
            f"({len(pending)} pending application(s) rejected)"
        )
        return job

    def delete_job(self, job_id: str, user: User) -> None:
        """Remove an OPEN job together with its applications and history"""
        with atomic(self.db):
            job = self.repo.get_job_for_update(self.db, job_id)
            if not job:
                raise NotFoundError("Job not found")
            if not _is_owner_or_admin(job, user):
                raise ForbiddenError("You can only delete your own jobs")
            if job.status != JobStatus.OPEN:
                raise LockedError("Only open jobs can be deleted; cancel the job instead")

            pending = self.repo.get_pending_applications_for_update(self.db, job.id)
            for application in pending:
                notify(
                    self.db,
                    application.maid_id,
                    f"Job '{job.title}' is no longer available",
                    NotificationType.WARNING,
                )
            removed = self.repo.delete_job(self.db, job)

        logger.info(f"🗑️ Job {job_id} deleted ({removed} application(s) removed)")


def _earliest_work_date(work_dates: list[str]) -> Optional[date]:
    return date.fromisoformat(work_dates[0]) if work_dates else None
