"""Application service - Apply, accept and reject, including the accept cascade"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...database import atomic
from ...errors import ForbiddenError, InvalidStateError, NotFoundError
from ...models import Application, ApplicationStatus, Job, JobStatus, NotificationType, User, UserRole
from ..jobs.repository import JobRepository
from ..notifications.service import notify
from .repository import ApplicationRepository
from .schemas import ApplicationCreate

logger = logging.getLogger(__name__)


class ApplicationService:
    """Service layer for the application lifecycle"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ApplicationRepository()
        self.jobs = JobRepository()

    def list_applications(self, user: User, job_id: Optional[str] = None) -> list[Application]:
        """Maids see their own applications, clients see applications on their jobs"""
        if user.role == UserRole.MAID:
            return self.repo.list_applications(self.db, maid_id=user.id, job_id=job_id)
        if user.role == UserRole.CLIENT:
            return self.repo.list_applications(self.db, client_id=user.id, job_id=job_id)
        return self.repo.list_applications(self.db, job_id=job_id)

    def apply(self, data: ApplicationCreate, user: User) -> tuple[Application, bool]:
        """
        Apply to an OPEN job.

        Re-applying to the same job updates the message of the existing PENDING
        application instead of creating a second one.

        Returns:
            Tuple of (application, created)
        """
        if user.role != UserRole.MAID:
            raise ForbiddenError("Only maids can apply to jobs")

        with atomic(self.db):
            job = self.jobs.get_job_for_update(self.db, data.jobId)
            if not job:
                raise NotFoundError("Job not found")
            if job.status != JobStatus.OPEN:
                raise InvalidStateError("This job is no longer accepting applications")

            existing = self.repo.get_for_job_and_maid(self.db, job.id, user.id, for_update=True)
            if existing:
                if existing.status != ApplicationStatus.PENDING:
                    raise InvalidStateError(
                        f"Your application was already {existing.status.value.lower()}"
                    )
                existing.message = data.message
                application, created = existing, False
            else:
                application = self.repo.create_application(self.db, job.id, user.id, data.message)
                notify(
                    self.db,
                    job.client_id,
                    f"New application from {user.name} for {job.title}",
                    NotificationType.INFO,
                )
                created = True

        self.db.refresh(application)
        if created:
            logger.info(f"📥 Maid {user.id} applied to job {job.id} (application {application.id})")
        else:
            logger.info(f"✏️ Maid {user.id} updated application {application.id}")
        return application, created

    def update_status(
        self, application_id: str, status: ApplicationStatus, user: User
    ) -> Application:
        """Accept or reject an application as the job's client (or an admin)"""
        # Unlocked lookup only to find the job; locks are taken job first, then application
        target = self.repo.get_application(self.db, application_id)
        if not target:
            raise NotFoundError("Application not found")
        job_id = target.job_id

        with atomic(self.db):
            job = self.jobs.get_job_for_update(self.db, job_id)
            if not job:
                raise NotFoundError("Job not found")
            application = self.repo.get_application_for_update(self.db, application_id)
            if not application:
                raise NotFoundError("Application not found")
            if user.role != UserRole.ADMIN and job.client_id != user.id:
                raise ForbiddenError("Only the client who posted this job can review its applications")

            if status == ApplicationStatus.ACCEPTED:
                self._accept(job, application)
            elif status == ApplicationStatus.REJECTED:
                self._reject(job, application)
            else:
                raise InvalidStateError("Applications can only be accepted or rejected")

        self.db.refresh(application)
        return application

    def _accept(self, job: Job, application: Application) -> None:
        """The accept flow; runs inside the caller's transaction with job and application locked"""
        if application.status == ApplicationStatus.ACCEPTED:
            if job.assigned_maid_id == application.maid_id:
                logger.info(f"ℹ️ Application {application.id} already accepted, nothing to do")
                return
            raise InvalidStateError("Application is accepted but not assigned to this job")
        if application.status == ApplicationStatus.REJECTED:
            raise InvalidStateError("A rejected application cannot be accepted")
        if job.status != JobStatus.OPEN:
            raise InvalidStateError("This job already has an accepted maid or is closed")

        maid = application.maid
        maid_name = maid.name if maid else "the maid"

        application.status = ApplicationStatus.ACCEPTED
        job.assigned_maid_id = application.maid_id
        job.status = JobStatus.IN_PROGRESS
        self.jobs.add_history(
            self.db, job, JobStatus.IN_PROGRESS, f"Application accepted; job assigned to {maid_name}"
        )
        notify(
            self.db,
            application.maid_id,
            f"Your application for '{job.title}' has been accepted",
            NotificationType.SUCCESS,
        )

        others = self.jobs.get_pending_applications_for_update(
            self.db, job.id, exclude_id=application.id
        )
        for other in others:
            other.status = ApplicationStatus.REJECTED
            notify(
                self.db,
                other.maid_id,
                f"Your application for '{job.title}' was not selected",
                NotificationType.ERROR,
            )

        notify(
            self.db,
            job.client_id,
            f"You accepted {maid_name} for '{job.title}'. The job is now in progress",
            NotificationType.INFO,
        )
        logger.info(
            f"✅ Application {application.id} accepted; job {job.id} → in_progress, "
            f"{len(others)} other application(s) auto-rejected"
        )

    def _reject(self, job: Job, application: Application) -> None:
        if application.status == ApplicationStatus.REJECTED:
            logger.info(f"ℹ️ Application {application.id} already rejected, nothing to do")
            return
        if application.status != ApplicationStatus.PENDING:
            raise InvalidStateError("Only pending applications can be rejected")

        application.status = ApplicationStatus.REJECTED
        notify(
            self.db,
            application.maid_id,
            f"Your application for '{job.title}' was rejected",
            NotificationType.ERROR,
        )
        logger.info(f"🚫 Application {application.id} rejected")
