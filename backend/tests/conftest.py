import os
import uuid

# Configure before the application is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "dev"
os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use-outside-tests-0123456789")

import pytest
from sqlmodel import SQLModel, Session

from edusync import models
from edusync.database import engine
from edusync.models import Role
from edusync.security import hash_password, token_service


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test empty tables."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def make_user():
    """Insert a user directly and return it with ready-made auth headers."""
    def _make(role: Role = Role.STUDENT, email: str = None, name: str = "Test User", password: str = "pass123"):
        with Session(engine) as session:
            user = models.User(
                name=name,
                email=email or f"{uuid.uuid4().hex[:10]}@example.com",
                password_hash=hash_password(password),
                role=role.value,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
        headers = {"Authorization": f"Bearer {token_service.issue(user)}"}
        return user, headers
    return _make
