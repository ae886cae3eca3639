"""
Test configuration and fixtures.

Provides:
- A fresh in-memory SQLite database per test, shared by the app and the test
- Fake collaborators (file storage, text generation, places)
- Registered client and maid accounts plus an admin, each with an access token
- Helpers to post a job, apply to it and hire a maid
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-maidserv-tests")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import User, UserRole
from app.routes.ai import rate_limit_generation
from app.routes.auth import rate_limit_login, rate_limit_register
from app.routes.places import rate_limit_autocomplete
from app.security_utils import create_access_token, hash_password_bcrypt
from app.services.file_storage import get_file_storage
from app.services.places import get_places_client
from app.services.text_generation import GeminiTextGenerator, get_text_generator

TEST_PASSWORD = "CleanHouse123!"


# =============================================================================
# Fake collaborators
# =============================================================================


class FakeFileStorage:
    """Records uploads and signs predictable URLs"""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_signing = False

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        self.objects[key] = (body, content_type)

    def generate_presigned_url(self, key: str, mime_type: Optional[str] = None, expiration: int = 900) -> str:
        if self.fail_signing:
            raise RuntimeError("signing unavailable")
        return f"https://files.test/{key}?expires={expiration}"


class FakePlacesClient:
    def __init__(self):
        self.predictions = [
            {"description": "Sea Point, Cape Town, South Africa", "placeId": "place-sea-point"},
            {"description": "Sandton, Johannesburg, South Africa", "placeId": "place-sandton"},
        ]
        self.error: Optional[Exception] = None
        self.calls: list[tuple[str, Optional[str]]] = []

    async def autocomplete(self, text: str, session_token: Optional[str] = None) -> list[dict]:
        self.calls.append((text, session_token))
        if self.error:
            raise self.error
        if len(text.strip()) < 3:
            return []
        return self.predictions


async def no_rate_limit():
    return None


# =============================================================================
# Database
# =============================================================================


@pytest.fixture(scope="function")
def session_factory() -> Generator[sessionmaker, None, None]:
    """One in-memory database per test; StaticPool keeps it on a single connection"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    """Session for arranging and asserting directly against the database"""
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# App client
# =============================================================================


@pytest.fixture
def storage() -> FakeFileStorage:
    return FakeFileStorage()


@pytest.fixture
def places() -> FakePlacesClient:
    return FakePlacesClient()


@pytest.fixture
def client(session_factory, storage, places) -> Generator[TestClient, None, None]:
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage
    app.dependency_overrides[get_places_client] = lambda: places
    app.dependency_overrides[get_text_generator] = lambda: GeminiTextGenerator(api_key=None)
    for limiter in (rate_limit_register, rate_limit_login, rate_limit_generation, rate_limit_autocomplete):
        app.dependency_overrides[limiter] = no_rate_limit

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Accounts
# =============================================================================


@dataclass
class Account:
    id: str
    name: str
    email: str
    role: str
    token: str
    headers: dict = field(default_factory=dict)


def _register(client: TestClient, name: str, email: str, role: str) -> Account:
    response = client.post(
        "/auth/register",
        json={"name": name, "email": email, "password": TEST_PASSWORD, "role": role},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    token = data["accessToken"]
    return Account(
        id=data["user"]["id"],
        name=name,
        email=email,
        role=role,
        token=token,
        headers={"Authorization": f"Bearer {token}"},
    )


@pytest.fixture
def register(client):
    """Register an extra account: register("Name", "email", "MAID")"""

    def _make(name: str, email: str, role: str = "MAID") -> Account:
        return _register(client, name, email, role)

    return _make


@pytest.fixture
def client_account(client) -> Account:
    return _register(client, "Thandi Client", "thandi@example.com", "CLIENT")


@pytest.fixture
def maid(client) -> Account:
    return _register(client, "Lerato Maid", "lerato@example.com", "MAID")


@pytest.fixture
def maid2(client) -> Account:
    return _register(client, "Nomsa Maid", "nomsa@example.com", "MAID")


@pytest.fixture
def admin(client, db) -> Account:
    """Admins cannot self-register, so the row is inserted directly"""
    user = User(
        name="Site Admin",
        email="admin@maidserv.test",
        password_hash=hash_password_bcrypt(TEST_PASSWORD),
        role=UserRole.ADMIN,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    token = create_access_token(user.id, UserRole.ADMIN.value)
    return Account(
        id=user.id,
        name=user.name,
        email=user.email,
        role=UserRole.ADMIN.value,
        token=token,
        headers={"Authorization": f"Bearer {token}"},
    )


# =============================================================================
# Workflow helpers
# =============================================================================


def future_date(days: int = 7) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


@pytest.fixture
def post_job(client):
    def _post(account: Account, **overrides) -> dict:
        payload = {
            "title": "Deep clean 2-bed apartment",
            "description": "Kitchen, two bedrooms and a bathroom",
            "location": "Sea Point, Cape Town",
            "address": "12 Beach Road, Sea Point, Cape Town",
            "latitude": -33.9155,
            "longitude": 18.3877,
            "placeId": "place-sea-point",
            "price": 450,
            "paymentType": "FIXED",
            "rooms": 2,
            "bathrooms": 1,
            "workDates": [future_date(7), future_date(8)],
            "startTime": "08:00",
            "endTime": "14:00",
        }
        payload.update(overrides)
        response = client.post("/jobs", json=payload, headers=account.headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _post


@pytest.fixture
def apply(client):
    def _apply(account: Account, job_id: str, message: Optional[str] = "Available Monday") -> dict:
        response = client.post(
            "/applications", json={"jobId": job_id, "message": message}, headers=account.headers
        )
        assert response.status_code in (200, 201), response.text
        return response.json()

    return _apply


@pytest.fixture
def hire(client, post_job, apply):
    """Post a job as `owner`, have `worker` apply, accept. Returns (job, application)"""

    def _hire(owner: Account, worker: Account, **job_overrides) -> tuple[dict, dict]:
        job = post_job(owner, **job_overrides)
        application = apply(worker, job["id"])
        response = client.patch(
            f"/applications/{application['id']}/status",
            json={"status": "ACCEPTED"},
            headers=owner.headers,
        )
        assert response.status_code == 200, response.text
        return client.get(f"/jobs/{job['id']}", headers=owner.headers).json(), response.json()

    return _hire
