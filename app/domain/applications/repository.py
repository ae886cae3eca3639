"""Application repository - Database operations for maid applications"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Application, Job


class ApplicationRepository:
    """Repository for application database operations"""

    @staticmethod
    def get_application(db: Session, application_id: str) -> Optional[Application]:
        return db.query(Application).filter(Application.id == application_id).first()

    @staticmethod
    def get_application_for_update(db: Session, application_id: str) -> Optional[Application]:
        """Get an application holding a row lock until the transaction ends"""
        return (
            db.query(Application)
            .filter(Application.id == application_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def get_for_job_and_maid(
        db: Session, job_id: str, maid_id: str, for_update: bool = False
    ) -> Optional[Application]:
        query = db.query(Application).filter(
            Application.job_id == job_id, Application.maid_id == maid_id
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    @staticmethod
    def list_applications(
        db: Session,
        maid_id: Optional[str] = None,
        client_id: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> list[Application]:
        """List applications, newest first, scoped to a maid or to a client's jobs"""
        query = db.query(Application)

        if maid_id:
            query = query.filter(Application.maid_id == maid_id)
        if client_id:
            query = query.join(Job, Job.id == Application.job_id).filter(Job.client_id == client_id)
        if job_id:
            query = query.filter(Application.job_id == job_id)

        return query.order_by(Application.applied_at.desc(), Application.id).all()

    @staticmethod
    def create_application(db: Session, job_id: str, maid_id: str, message: Optional[str]) -> Application:
        """Create a PENDING application; flushed, not committed"""
        application = Application(job_id=job_id, maid_id=maid_id, message=message)
        db.add(application)
        db.flush()
        return application
