"""Viewer-aware redaction of a job's private location fields"""

import pytest

from app.domain.jobs.visibility import can_view_private_location
from app.models import Job, JobStatus, User, UserRole


def _user(user_id: str, role: UserRole) -> User:
    return User(id=user_id, name=user_id, email=f"{user_id}@example.com", password_hash="x", role=role)


@pytest.fixture
def job() -> Job:
    return Job(id="job-1", client_id="client-1", title="Clean", status=JobStatus.OPEN)


def test_admin_and_owner_always_see_private_location(job):
    assert can_view_private_location(job, _user("admin-1", UserRole.ADMIN)) is True
    assert can_view_private_location(job, _user("client-1", UserRole.CLIENT)) is True


def test_other_client_never_sees_private_location(job):
    assert can_view_private_location(job, _user("client-2", UserRole.CLIENT)) is False
    assert can_view_private_location(job, _user("client-2", UserRole.CLIENT), True) is False


def test_maid_needs_assignment_or_accepted_application(job):
    maid = _user("maid-1", UserRole.MAID)
    assert can_view_private_location(job, maid) is False
    assert can_view_private_location(job, maid, has_accepted_application=True) is True

    job.assigned_maid_id = "maid-1"
    assert can_view_private_location(job, maid) is True


def test_anonymous_viewer_sees_nothing_private(job):
    assert can_view_private_location(job, None) is False


def test_pending_maid_gets_nulls_until_accepted(client, client_account, maid, maid2, post_job, apply):
    job = post_job(client_account)
    application = apply(maid, job["id"])
    apply(maid2, job["id"])

    seen = client.get(f"/jobs/{job['id']}", headers=maid.headers).json()
    assert seen["location"] == "Sea Point, Cape Town"
    assert seen["address"] is None
    assert seen["latitude"] is None
    assert seen["longitude"] is None
    assert seen["placeId"] is None

    response = client.patch(
        f"/applications/{application['id']}/status",
        json={"status": "ACCEPTED"},
        headers=client_account.headers,
    )
    assert response.status_code == 200

    seen = client.get(f"/jobs/{job['id']}", headers=maid.headers).json()
    assert seen["address"] == "12 Beach Road, Sea Point, Cape Town"
    assert seen["latitude"] == pytest.approx(-33.9155)
    assert seen["placeId"] == "place-sea-point"

    # The rejected maid still only sees the public area
    other = client.get(f"/jobs/{job['id']}", headers=maid2.headers).json()
    assert other["address"] is None


def test_redaction_applies_to_list_and_create_responses(client, client_account, maid, post_job):
    created = post_job(client_account)
    assert created["address"] == "12 Beach Road, Sea Point, Cape Town"

    listed = client.get("/jobs", headers=maid.headers).json()
    assert [j["id"] for j in listed] == [created["id"]]
    assert listed[0]["address"] is None
    assert listed[0]["longitude"] is None


def test_owner_sees_private_fields_after_update(client, client_account, post_job):
    job = post_job(client_account)
    response = client.put(
        f"/jobs/{job['id']}", json={"address": "14 Beach Road"}, headers=client_account.headers
    )
    assert response.status_code == 200
    assert response.json()["address"] == "14 Beach Road"
