"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
courses, assessments, results). Repositories return SQLModel objects
and perform commits/refreshes where appropriate. Reads issued before a
write share that write's transaction, which lets services check a
referenced row and insert against it atomically.
"""

import uuid
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from . import models
from .errors import ConflictError, DuplicateEmailError


class _Repository:
    """Shared CRUD plumbing; subclasses set `model` and `key`."""
    model = None
    key = None
    conflict_message = "The change conflicts with related records."

    def __init__(self, session: Session):
        self.session = session

    @property
    def _key_column(self):
        return getattr(self.model, self.key)

    def get(self, key: uuid.UUID):
        """Fetch a row by primary key, or `None`."""
        return self.session.get(self.model, key)

    def list(self) -> List:
        return self.session.exec(select(self.model)).all()

    def exists(self, key: uuid.UUID, lock: bool = False) -> bool:
        """Return True if a row with primary key `key` exists.

        With `lock`, the row is held with a shared lock until the
        surrounding transaction ends, so it cannot be deleted between
        the check and a dependent write. Dialects without row locks
        (SQLite) ignore the clause.
        """
        stmt = select(self._key_column).where(self._key_column == key)
        if lock:
            stmt = stmt.with_for_update(read=True)
        return self.session.exec(stmt).first() is not None

    def create(self, obj):
        """Persist a new row and return the managed instance."""
        self.session.add(obj)
        self._commit()
        self.session.refresh(obj)
        return obj

    def update(self, obj):
        self.session.add(obj)
        self._commit()
        self.session.refresh(obj)
        return obj

    def delete(self, obj) -> None:
        self.session.delete(obj)
        self._commit()

    def _commit(self) -> None:
        # the store's own constraints are the last line of defence
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError(self.conflict_message) from exc


class UserRepository(_Repository):
    """CRUD operations for `User` objects."""
    model = models.User
    key = "user_id"
    conflict_message = "User is still referenced by courses or results."

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by email (case-insensitive) or `None` if not found."""
        stmt = select(models.User).where(func.lower(models.User.email) == email.strip().lower())
        return self.session.exec(stmt).first()

    def email_taken(self, email: str, exclude: Optional[uuid.UUID] = None) -> bool:
        stmt = select(models.User.user_id).where(func.lower(models.User.email) == email.strip().lower())
        if exclude is not None:
            stmt = stmt.where(models.User.user_id != exclude)
        return self.session.exec(stmt).first() is not None

    def create(self, user: models.User) -> models.User:
        try:
            return super().create(user)
        except ConflictError as exc:
            # only the unique email index can reject a new user
            raise DuplicateEmailError() from exc

    def update(self, user: models.User) -> models.User:
        try:
            return super().update(user)
        except ConflictError as exc:
            raise ConflictError("Email already exists.", field="email") from exc

    def teaches_courses(self, user_id: uuid.UUID) -> bool:
        stmt = select(models.Course.course_id).where(models.Course.instructor_id == user_id).limit(1)
        return self.session.exec(stmt).first() is not None

    def has_results(self, user_id: uuid.UUID) -> bool:
        stmt = select(models.Result.result_id).where(models.Result.user_id == user_id).limit(1)
        return self.session.exec(stmt).first() is not None


class CourseRepository(_Repository):
    """CRUD operations for `Course` objects."""
    model = models.Course
    key = "course_id"
    conflict_message = "Course references a missing instructor or still has assessments."

    def has_assessments(self, course_id: uuid.UUID) -> bool:
        stmt = select(models.Assessment.assessment_id).where(models.Assessment.course_id == course_id).limit(1)
        return self.session.exec(stmt).first() is not None


class AssessmentRepository(_Repository):
    """CRUD operations for `Assessment` objects."""
    model = models.Assessment
    key = "assessment_id"
    conflict_message = "Assessment references a missing course or still has results."

    def has_results(self, assessment_id: uuid.UUID) -> bool:
        stmt = select(models.Result.result_id).where(models.Result.assessment_id == assessment_id).limit(1)
        return self.session.exec(stmt).first() is not None


class ResultRepository(_Repository):
    """CRUD operations for `Result` objects."""
    model = models.Result
    key = "result_id"
    conflict_message = "Result references a missing assessment or user."
