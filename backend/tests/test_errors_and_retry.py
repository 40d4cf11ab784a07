import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from edusync import database, services
from edusync.config import settings
from edusync.database import retry_delay, retry_on_transient
from edusync.main import app

client = TestClient(app)


def _boom(*_args, **_kwargs):
    raise RuntimeError("connection string leaked: sa:hunter2")


def test_unexpected_error_is_generic_500_outside_dev(monkeypatch, make_user):
    _, headers = make_user()
    monkeypatch.setattr(services.CourseService, "list", _boom)
    monkeypatch.setattr(settings, "ENV", "production")
    r = client.get("/api/courses", headers=headers)
    assert r.status_code == 500
    assert "hunter2" not in r.text
    assert r.json() == {"message": "An error occurred while processing your request. Please try again later."}
    assert "X-Request-ID" in r.headers


def test_unexpected_error_includes_detail_in_dev(monkeypatch, make_user):
    _, headers = make_user()
    monkeypatch.setattr(services.CourseService, "list", _boom)
    r = client.get("/api/courses", headers=headers)
    assert r.status_code == 500
    assert r.json()["type"] == "RuntimeError"


def test_request_id_is_echoed():
    r = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"


class _FakeSession:
    def __init__(self):
        self.rollbacks = 0

    def rollback(self):
        self.rollbacks += 1


class _Flaky:
    def __init__(self, failures, message="database is locked"):
        self.session = _FakeSession()
        self.failures = failures
        self.message = message
        self.calls = 0

    @retry_on_transient
    def work(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise OperationalError("UPDATE courses", {}, Exception(self.message))
        return "done"


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(database.time, "sleep", recorded.append)
    monkeypatch.setattr(settings, "DB_RETRY_BASE_DELAY", 0.5)
    monkeypatch.setattr(settings, "DB_MAX_RETRY_DELAY", 30.0)
    monkeypatch.setattr(settings, "DB_MAX_RETRIES", 5)
    return recorded


def test_transient_failures_are_retried(sleeps):
    flaky = _Flaky(failures=2)
    assert flaky.work() == "done"
    assert flaky.calls == 3
    assert flaky.session.rollbacks == 2
    assert sleeps == [0.5, 1.0]


def test_retries_give_up_after_the_limit(sleeps, monkeypatch):
    monkeypatch.setattr(settings, "DB_MAX_RETRIES", 2)
    flaky = _Flaky(failures=10)
    with pytest.raises(OperationalError):
        flaky.work()
    assert flaky.calls == 3
    assert len(sleeps) == 2


def test_non_transient_errors_are_not_retried(sleeps):
    flaky = _Flaky(failures=1, message="no such table: courses")
    with pytest.raises(OperationalError):
        flaky.work()
    assert flaky.calls == 1
    assert sleeps == []


def test_retry_delay_is_capped(sleeps):
    assert retry_delay(0) == 0.5
    assert retry_delay(3) == 4.0
    assert retry_delay(10) == 30.0


def test_serve_runs_the_app_under_uvicorn(monkeypatch):
    import uvicorn

    from edusync import main

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.delenv("HOST", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    main.serve()
    assert calls == [("edusync.main:app", {"host": "127.0.0.1", "port": 9001, "log_level": "info"})]
