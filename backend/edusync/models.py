"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Identifiers are UUIDs generated by the application before insert, and
text columns are bounded at 500 characters.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import SQLModel, Field, Relationship

TEXT_MAX = 500


class Role(str, enum.Enum):
    """The closed set of roles a user can hold."""
    STUDENT = "Student"
    INSTRUCTOR = "Instructor"
    ADMIN = "Admin"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Case-insensitive lookup by name; returns `None` for unknown values."""
        if not isinstance(value, str) or not value:
            return None
        wanted = value.strip().lower()
        for role in cls:
            if role.value.lower() == wanted:
                return role
        return None


# Admin accounts are provisioned out of band (scripts/create_admin.py).
SELF_REGISTRABLE_ROLES = (Role.STUDENT, Role.INSTRUCTOR)


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `email`: unique, stored trimmed and lowercased
    - `password_hash`: salted hash string (never store or return plaintext)
    - `role`: the `Role` value, e.g. ``"Student"``
    """
    __tablename__ = "users"

    user_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=TEXT_MAX)
    email: str = Field(max_length=TEXT_MAX, index=True, unique=True, nullable=False)
    password_hash: str = Field(max_length=TEXT_MAX)
    role: str = Field(max_length=TEXT_MAX)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Course(SQLModel, table=True):
    """A course, optionally owned by an instructor."""
    __tablename__ = "courses"

    course_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(max_length=TEXT_MAX)
    description: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    instructor_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.user_id", index=True)
    media_url: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    instructor: Optional[User] = Relationship()
    # "all": never null out children on delete, let the foreign key refuse it
    assessments: List["Assessment"] = Relationship(back_populates="course", sa_relationship_kwargs={"passive_deletes": "all"})


class Assessment(SQLModel, table=True):
    """An assessment belonging to a course."""
    __tablename__ = "assessments"

    assessment_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    course_id: Optional[uuid.UUID] = Field(default=None, foreign_key="courses.course_id", index=True)
    title: str = Field(max_length=TEXT_MAX)
    questions: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    max_score: int = 0
    course: Optional[Course] = Relationship(back_populates="assessments")


class Result(SQLModel, table=True):
    """A user's scored attempt at an assessment."""
    __tablename__ = "results"

    result_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    assessment_id: Optional[uuid.UUID] = Field(default=None, foreign_key="assessments.assessment_id", index=True)
    user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.user_id", index=True)
    score: int = 0
    attempt_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
