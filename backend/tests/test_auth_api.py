import jwt
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from edusync import models, services
from edusync.database import engine
from edusync.main import app
from edusync.models import Role
from edusync.security import PasswordVerification, token_service, verify_password

client = TestClient(app)


def _register(**overrides):
    payload = {"name": "Ana", "email": "A@x.com", "password": "p1", "role": "Student"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def _login(email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_register_duplicate_login_scenario():
    r = _register()
    assert r.status_code == 200
    body = r.json()
    assert body["role"] == "Student"
    assert body["email"] == "a@x.com"
    assert body["name"] == "Ana"
    assert "password" not in body and "passwordHash" not in body

    dup = _register(email="a@x.com")
    assert dup.status_code == 400
    assert dup.json() == {"message": "Email already exists", "field": "email"}

    ok = _login("A@x.com", "p1")
    assert ok.status_code == 200
    token = ok.json()["token"]
    assert jwt.decode(token, options={"verify_signature": False})["role"] == "Student"
    assert ok.json()["user"] == {"id": body["userId"], "name": "Ana", "email": "a@x.com", "role": "Student"}

    bad = _login("A@x.com", "wrong")
    assert bad.status_code == 401


def test_stored_hash_verifies_only_original_password():
    first = _register(email="one@example.com", password="s3cret").json()
    second = _register(email="two@example.com", password="s3cret").json()
    assert first["userId"] != second["userId"]
    with Session(engine) as session:
        user = session.exec(select(models.User).where(models.User.email == "one@example.com")).one()
        other = session.exec(select(models.User).where(models.User.email == "two@example.com")).one()
    assert user.password_hash != "s3cret"
    assert user.password_hash != other.password_hash
    assert verify_password(user.password_hash, "s3cret") is PasswordVerification.SUCCESS
    assert verify_password(user.password_hash, "s3cret ") is PasswordVerification.FAILED


def test_duplicate_email_in_any_case_is_rejected():
    assert _register(email="Bob@Example.com", role="Instructor").status_code == 200
    dup = _register(email="  bOB@example.COM ", role="Student", password="different", name="Another Bob")
    assert dup.status_code == 400
    assert dup.json()["field"] == "email"


def test_missing_fields_are_reported_together():
    r = client.post("/api/auth/register", json={"email": "   "})
    assert r.status_code == 400
    errors = r.json()["errors"]
    assert set(errors) == {"name", "email", "password", "role"}


def test_empty_field_check_precedes_duplicate_check():
    _register()
    r = _register(name="")
    assert r.status_code == 400
    assert "name" in r.json()["errors"]


def test_duplicate_check_precedes_role_check():
    _register()
    r = _register(role="Wizard")
    assert r.json().get("field") == "email"


def test_invalid_or_admin_role_is_rejected():
    for role in ("Wizard", "Admin", "admin"):
        r = _register(email=f"{role.lower()}@example.com", role=role)
        assert r.status_code == 400
        assert "role" in r.json()["errors"]


def test_overlong_fields_are_field_errors():
    r = _register(name="n" * 501, email=("e" * 490) + "@example.com", password="x" * 5000)
    assert r.status_code == 400
    errors = r.json()["errors"]
    assert errors["name"] == ["The name field must be at most 500 characters."]
    assert errors["password"] == ["The password field must be at most 4096 characters."]
    assert "email" in errors
    assert _register(password="x" * 4096).status_code == 200


def test_malformed_email_is_a_field_error():
    r = _register(email="not-an-email")
    assert r.status_code == 400
    assert "email" in r.json()["errors"]


def test_role_is_matched_case_insensitively_and_stored_canonically():
    r = _register(email="teach@example.com", role="iNsTrUcToR", name="  Teacher  ")
    assert r.status_code == 200
    assert r.json()["role"] == "Instructor"
    assert r.json()["name"] == "Teacher"
    token = _login("teach@example.com", "p1").json()["token"]
    assert token_service.validate(token).role is Role.INSTRUCTOR


def test_wrong_password_and_unknown_email_look_identical():
    _register()
    wrong_password = _login("a@x.com", "nope")
    unknown_email = _login("nobody@x.com", "p1")
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"message": "Invalid email or password"}


def test_login_requires_both_fields():
    r = client.post("/api/auth/login", json={"email": "a@x.com"})
    assert r.status_code == 400
    assert "password" in r.json()["errors"]


def test_admin_is_provisioned_outside_registration():
    with Session(engine) as session:
        admin = services.AuthService(session, token_service).create_admin("Root", "Root@Example.com", "adminpw")
        assert admin.role == "Admin"
        assert admin.email == "root@example.com"
    r = _login("root@example.com", "adminpw")
    assert r.status_code == 200
    headers = {"Authorization": f"Bearer {r.json()['token']}"}
    assert client.get("/api/users", headers=headers).status_code == 200
