"""
Automated status transitions for jobs
Handles in_progress → completed once a job's last scheduled work date has passed
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..database import atomic
from ..domain.jobs.repository import JobRepository
from ..models import Job, JobStatus

logger = logging.getLogger(__name__)

AUTO_COMPLETE_NOTE = "Automatically completed after the scheduled work date passed"


def last_scheduled_date(job: Job) -> Optional[date]:
    """Latest entry of `work_dates`, falling back to the single `date` field"""
    parsed = []
    for value in job.work_dates or []:
        try:
            parsed.append(date.fromisoformat(value))
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Job {job.id} has an unparseable work date: {value!r}")
    if parsed:
        return max(parsed)
    return job.date


def is_overdue(job: Job, today: date) -> bool:
    last_date = last_scheduled_date(job)
    return last_date is not None and last_date < today


def utc_today() -> date:
    """The sweep's notion of today; work dates are compared against the UTC calendar"""
    return datetime.utcnow().date()


def complete_overdue_jobs(db: Session, today: Optional[date] = None) -> dict:
    """
    Move every overdue IN_PROGRESS job to COMPLETED

    Runs before job reads. IN_PROGRESS jobs are screened without locks; only
    the overdue candidates are then locked and re-checked, each in its own
    transaction, so a concurrent sweep or an explicit completion turns the
    second writer into a no-op instead of a duplicate history entry.

    Returns:
        dict: Summary of status changes made
    """
    today = today or utc_today()
    in_progress = JobRepository.get_in_progress_jobs(db)
    candidates = [job.id for job in in_progress if is_overdue(job, today)]
    summary = {"checked": len(in_progress), "completed": 0}

    for job_id in candidates:
        with atomic(db):
            job = JobRepository.get_job_for_update(db, job_id)
            if not job or job.status != JobStatus.IN_PROGRESS or not is_overdue(job, today):
                continue

            job.status = JobStatus.COMPLETED
            JobRepository.add_history(db, job, JobStatus.COMPLETED, AUTO_COMPLETE_NOTE)
            summary["completed"] += 1
            logger.info(f"✅ Job {job.id} transitioned: in_progress → completed (overdue)")

    if summary["completed"]:
        logger.info(f"📊 Job status automation summary: {summary}")
    else:
        logger.debug("ℹ️ No overdue jobs to complete")

    return summary
