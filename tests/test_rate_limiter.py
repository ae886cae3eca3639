"""Rate limiting windows and fail-closed behaviour"""

import pytest
import redis

from app import rate_limiter
from app.main import app
from app.routes.auth import rate_limit_login


class FakeRedis:
    def __init__(self):
        self.store: dict[str, tuple[int, int]] = {}

    def get(self, key):
        return self.store.get(key, (None, 0))[0]

    def ttl(self, key):
        return self.store.get(key, (None, -2))[1]

    def set(self, key, value, ex=None):
        self.store[key] = (value, ex)


@pytest.fixture(autouse=True)
def fresh_windows(monkeypatch):
    monkeypatch.setattr(rate_limiter, "_windows", {})


def test_requests_over_the_limit_are_refused():
    fake = FakeRedis()
    results = [rate_limiter.check_rate_limit("login:1.2.3.4", 2, 60, fake)[0] for _ in range(3)]
    assert results == [True, True, False]


def test_window_resumes_from_redis():
    fake = FakeRedis()
    fake.set("login:5.6.7.8", 5, ex=30)

    allowed, count, ttl = rate_limiter.check_rate_limit("login:5.6.7.8", 5, 60, fake)
    assert allowed is False
    assert count == 5
    assert 0 < ttl <= 30


def test_keys_are_independent():
    fake = FakeRedis()
    assert rate_limiter.check_rate_limit("login:a", 1, 60, fake)[0] is True
    assert rate_limiter.check_rate_limit("login:b", 1, 60, fake)[0] is True
    assert rate_limiter.check_rate_limit("login:a", 1, 60, fake)[0] is False


def test_unreachable_redis_fails_closed(client, monkeypatch):
    def unreachable():
        raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(rate_limiter, "get_redis_client", unreachable)
    app.dependency_overrides.pop(rate_limit_login)

    response = client.post("/auth/login", json={"email": "thandi@example.com", "password": "whatever"})
    assert response.status_code == 503


def test_limit_exceeded_answers_429(client, monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: fake)
    app.dependency_overrides.pop(rate_limit_login)

    statuses = [
        client.post("/auth/login", json={"email": "nobody@example.com", "password": "wrong"}).status_code
        for _ in range(21)
    ]
    assert statuses[:20] == [401] * 20
    assert statuses[20] == 429
