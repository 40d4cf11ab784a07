import time
from datetime import timedelta

from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from edusync.config import settings
from edusync.main import app
from edusync.models import Role
from edusync.policy import ADMIN, AUTHENTICATED, PUBLIC, ROLE_POLICY, STAFF
from edusync.security import TokenService, token_service

client = TestClient(app)

COURSE = {"title": "Algebra I", "description": "Intro"}


def test_missing_token_is_401():
    r = client.get("/api/courses")
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"
    assert "Token-Expired" not in r.headers


def test_garbage_token_is_401():
    r = client.get("/api/courses", headers={"Authorization": "Bearer not.a.token"})
    assert r.status_code == 401
    assert r.json() == {"message": "Invalid token"}


def test_token_signed_with_another_secret_is_401(make_user):
    user, _ = make_user()
    forged = TokenService(
        secret="attacker-secret-attacker-secret-attacker",
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
        lifetime=timedelta(hours=1),
    ).issue(user)
    r = client.get("/api/courses", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401


def test_expired_token_is_401_with_expiry_header(make_user):
    user, _ = make_user()
    stale = token_service.issue(user, now=time.time() - token_service.lifetime_seconds - 5)
    r = client.get("/api/courses", headers={"Authorization": f"Bearer {stale}"})
    assert r.status_code == 401
    assert r.headers["Token-Expired"] == "true"


def test_authenticated_only_endpoint_accepts_any_role(make_user):
    for role in Role:
        _, headers = make_user(role=role)
        assert client.get("/api/courses", headers=headers).status_code == 200


def test_wrong_role_is_403_allowed_role_succeeds(make_user):
    _, student = make_user(role=Role.STUDENT)
    _, instructor = make_user(role=Role.INSTRUCTOR)
    denied = client.post("/api/courses", json=COURSE, headers=student)
    assert denied.status_code == 403
    assert denied.json()["message"]
    assert client.post("/api/courses", json=COURSE, headers=instructor).status_code == 201


def test_admin_only_endpoint(make_user):
    target, _ = make_user()
    _, instructor = make_user(role=Role.INSTRUCTOR)
    _, admin = make_user(role=Role.ADMIN)
    assert client.delete(f"/api/users/{target.user_id}", headers=instructor).status_code == 403
    assert client.delete(f"/api/users/{target.user_id}", headers=admin).status_code == 204


def test_authentication_is_checked_before_body_validation():
    r = client.post("/api/courses", json={"title": ""})
    assert r.status_code == 401


def test_public_endpoints_ignore_bad_tokens():
    bogus = {"Authorization": "Bearer garbage"}
    r = client.post(
        "/api/auth/register",
        json={"name": "Ana", "email": "ana@example.com", "password": "p1", "role": "Student"},
        headers=bogus,
    )
    assert r.status_code == 200
    assert client.get("/health", headers=bogus).status_code == 200


def test_every_api_route_is_declared_in_the_policy():
    missing = []
    for route in app.routes:
        if isinstance(route, APIRoute) and route.path.startswith("/api"):
            for method in route.methods:
                if not ROLE_POLICY.is_declared(method, route.path):
                    missing.append((method, route.path))
    assert missing == []


def test_requirements():
    assert PUBLIC.permits(None)
    assert AUTHENTICATED.permits(Role.STUDENT)
    assert STAFF.permits(Role.INSTRUCTOR) and STAFF.permits(Role.ADMIN)
    assert not STAFF.permits(Role.STUDENT)
    assert ADMIN.permits(Role.ADMIN) and not ADMIN.permits(Role.INSTRUCTOR)
    assert ROLE_POLICY.requirement_for("get", "/health") is PUBLIC
