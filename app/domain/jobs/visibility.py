"""
Viewer-aware visibility rules for jobs.

The public `location` string is always visible. The full address, coordinates
and place id are only visible to admins, the owning client, the assigned maid,
or a maid whose application on the job has been accepted.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Application, ApplicationStatus, Job, User, UserRole

PRIVATE_LOCATION_FIELDS = ("address", "latitude", "longitude", "place_id")


def can_view_private_location(
    job: Job, viewer: Optional[User], has_accepted_application: bool = False
) -> bool:
    if viewer is None:
        return False
    if viewer.role == UserRole.ADMIN:
        return True
    if job.client_id == viewer.id:
        return True
    if viewer.role == UserRole.MAID:
        return job.assigned_maid_id == viewer.id or has_accepted_application
    return False


def accepted_job_ids(db: Session, viewer: User, job_ids: list[str]) -> set[str]:
    """Ids among `job_ids` on which the viewer holds an ACCEPTED application"""
    if viewer.role != UserRole.MAID or not job_ids:
        return set()
    rows = (
        db.query(Application.job_id)
        .filter(
            Application.maid_id == viewer.id,
            Application.status == ApplicationStatus.ACCEPTED,
            Application.job_id.in_(job_ids),
        )
        .all()
    )
    return {row[0] for row in rows}


def private_location_visibility(db: Session, viewer: User, jobs: list[Job]) -> dict[str, bool]:
    """Resolve the visibility decision for a batch of jobs with a single lookup"""
    accepted = accepted_job_ids(db, viewer, [job.id for job in jobs])
    return {
        job.id: can_view_private_location(job, viewer, job.id in accepted) for job in jobs
    }
