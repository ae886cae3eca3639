"""Job repository - Database operations for jobs and their history"""

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ...models import Application, ApplicationStatus, Job, JobHistory, JobStatus


class JobRepository:
    """Repository for job database operations"""

    @staticmethod
    def get_job(db: Session, job_id: str) -> Optional[Job]:
        """Get a job by ID"""
        return db.query(Job).filter(Job.id == job_id).first()

    @staticmethod
    def get_job_for_update(db: Session, job_id: str) -> Optional[Job]:
        """Get a job by ID holding a row lock until the transaction ends"""
        return (
            db.query(Job)
            .filter(Job.id == job_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def list_jobs(
        db: Session,
        status: Optional[JobStatus] = None,
        client_id: Optional[str] = None,
        maid_id: Optional[str] = None,
    ) -> list[Job]:
        """List jobs, newest first, optionally scoped to a client or to a maid's jobs"""
        query = db.query(Job)

        if status is not None:
            query = query.filter(Job.status == status)
        if client_id:
            query = query.filter(Job.client_id == client_id)
        if maid_id:
            applied = select(Application.job_id).where(Application.maid_id == maid_id)
            query = query.filter(or_(Job.assigned_maid_id == maid_id, Job.id.in_(applied)))

        return query.order_by(Job.created_at.desc(), Job.id).all()

    @staticmethod
    def add_history(db: Session, job: Job, status: JobStatus, note: str) -> JobHistory:
        """Append a history entry; entries are never updated afterwards"""
        entry = JobHistory(job_id=job.id, status=status, note=note)
        db.add(entry)
        return entry

    @staticmethod
    def delete_job(db: Session, job: Job) -> int:
        """Delete a job and its applications; history goes with the job. Returns applications removed"""
        removed = (
            db.query(Application)
            .filter(Application.job_id == job.id)
            .delete(synchronize_session=False)
        )
        db.delete(job)
        return removed

    @staticmethod
    def get_in_progress_jobs(db: Session) -> list[Job]:
        """Unlocked read of every IN_PROGRESS job, for screening"""
        return db.query(Job).filter(Job.status == JobStatus.IN_PROGRESS).all()

    @staticmethod
    def get_pending_applications_for_update(
        db: Session, job_id: str, exclude_id: Optional[str] = None
    ) -> list[Application]:
        """Lock every still-PENDING application on a job"""
        query = db.query(Application).filter(
            Application.job_id == job_id, Application.status == ApplicationStatus.PENDING
        )
        if exclude_id:
            query = query.filter(Application.id != exclude_id)
        return query.with_for_update().populate_existing().all()
