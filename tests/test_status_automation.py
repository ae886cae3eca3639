"""Overdue sweep: IN_PROGRESS jobs past their last work date complete themselves"""

from datetime import date, timedelta

import pytest

from app.domain.jobs.repository import JobRepository
from app.models import Job, JobHistory, JobStatus, User, UserRole
from app.services.status_automation import (
    AUTO_COMPLETE_NOTE,
    complete_overdue_jobs,
    is_overdue,
    last_scheduled_date,
    utc_today,
)

TODAY = date(2030, 6, 15)


def _auto_entries(db, job_id: str) -> int:
    return (
        db.query(JobHistory)
        .filter(JobHistory.job_id == job_id, JobHistory.note == AUTO_COMPLETE_NOTE)
        .count()
    )


@pytest.fixture
def people(db):
    owner = User(name="Owner", email="owner@example.com", password_hash="x", role=UserRole.CLIENT)
    worker = User(name="Worker", email="worker@example.com", password_hash="x", role=UserRole.MAID)
    db.add_all([owner, worker])
    db.commit()
    return owner, worker


def _job(db, people, status=JobStatus.IN_PROGRESS, work_dates=None, single_date=None) -> Job:
    owner, worker = people
    job = Job(
        client_id=owner.id,
        title="Weekly clean",
        status=status,
        assigned_maid_id=worker.id if status != JobStatus.OPEN else None,
        work_dates=work_dates or [],
        date=single_date,
    )
    db.add(job)
    db.commit()
    return job


class TestLastScheduledDate:
    def test_latest_work_date_wins(self):
        job = Job(id="j", work_dates=["2030-06-10", "2030-06-20", "2030-06-12"], date=date(2030, 6, 1))
        assert last_scheduled_date(job) == date(2030, 6, 20)

    def test_falls_back_to_single_date(self):
        job = Job(id="j", work_dates=[], date=date(2030, 6, 1))
        assert last_scheduled_date(job) == date(2030, 6, 1)

    def test_unparseable_entries_are_skipped(self):
        job = Job(id="j", work_dates=["soon", "2030-06-10"], date=None)
        assert last_scheduled_date(job) == date(2030, 6, 10)

    def test_today_is_not_overdue(self):
        assert is_overdue(Job(id="j", work_dates=[TODAY.isoformat()]), TODAY) is False
        assert is_overdue(Job(id="j", work_dates=[], date=None), TODAY) is False


def test_yesterday_job_completes_with_exactly_one_history_entry(db, people):
    job = _job(db, people, work_dates=[(TODAY - timedelta(days=3)).isoformat(), (TODAY - timedelta(days=1)).isoformat()])

    summary = complete_overdue_jobs(db, today=TODAY)
    assert summary == {"checked": 1, "completed": 1}

    db.expire_all()
    assert db.get(Job, job.id).status == JobStatus.COMPLETED
    assert _auto_entries(db, job.id) == 1

    # Second run finds nothing left to do
    assert complete_overdue_jobs(db, today=TODAY) == {"checked": 0, "completed": 0}
    assert _auto_entries(db, job.id) == 1


def test_sweep_leaves_future_open_and_cancelled_jobs_alone(db, people):
    future = _job(db, people, work_dates=[(TODAY + timedelta(days=1)).isoformat()])
    still_open = _job(db, people, status=JobStatus.OPEN, single_date=TODAY - timedelta(days=5))
    cancelled = _job(db, people, status=JobStatus.CANCELLED, single_date=TODAY - timedelta(days=5))
    # A multi-day job whose last day is still ahead is not overdue yet
    spanning = _job(
        db, people, work_dates=[(TODAY - timedelta(days=2)).isoformat(), (TODAY + timedelta(days=2)).isoformat()]
    )

    summary = complete_overdue_jobs(db, today=TODAY)
    assert summary == {"checked": 2, "completed": 0}

    db.expire_all()
    assert db.get(Job, future.id).status == JobStatus.IN_PROGRESS
    assert db.get(Job, still_open.id).status == JobStatus.OPEN
    assert db.get(Job, cancelled.id).status == JobStatus.CANCELLED
    assert db.get(Job, spanning.id).status == JobStatus.IN_PROGRESS


def test_only_overdue_jobs_are_locked(db, people, monkeypatch):
    for offset in range(1, 6):
        _job(db, people, work_dates=[(TODAY + timedelta(days=offset)).isoformat()])
    overdue = _job(db, people, work_dates=[(TODAY - timedelta(days=1)).isoformat()])

    locked = []
    real_lock = JobRepository.get_job_for_update

    def spy(session, job_id):
        locked.append(job_id)
        return real_lock(session, job_id)

    monkeypatch.setattr(JobRepository, "get_job_for_update", staticmethod(spy))

    summary = complete_overdue_jobs(db, today=TODAY)
    assert summary == {"checked": 6, "completed": 1}
    assert locked == [overdue.id]

    # Nothing overdue left, so nothing is locked
    locked.clear()
    complete_overdue_jobs(db, today=TODAY)
    assert locked == []


def test_single_date_jobs_are_swept(db, people):
    job = _job(db, people, single_date=TODAY - timedelta(days=1))
    complete_overdue_jobs(db, today=TODAY)
    db.expire_all()
    assert db.get(Job, job.id).status == JobStatus.COMPLETED


def test_job_reads_run_the_sweep(client, client_account, maid, hire, db):
    job, _ = hire(client_account, maid)

    stored = db.get(Job, job["id"])
    stored.work_dates = [(utc_today() - timedelta(days=1)).isoformat()]
    db.commit()

    detail = client.get(f"/jobs/{job['id']}", headers=client_account.headers).json()
    assert detail["status"] == "COMPLETED"
    assert [h["note"] for h in detail["history"]].count(AUTO_COMPLETE_NOTE) == 1

    client.get("/jobs", headers=maid.headers)
    detail = client.get(f"/jobs/{job['id']}", headers=client_account.headers).json()
    assert [h["note"] for h in detail["history"]].count(AUTO_COMPLETE_NOTE) == 1
