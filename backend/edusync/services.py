"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories
and the security primitives. Services are intentionally thin: they
validate input, run existence checks, and persist aggregates via
repositories. Each public method is one unit of work and is retried as
a whole on transient store failures.

Foreign keys are checked explicitly before every insert/update so the
caller gets a clean 409 naming the missing parent. The check runs in
the same transaction as the write it guards.
"""

import json
import logging
import re
import uuid
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session

from . import models, repositories, schemas
from .database import retry_on_transient
from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DuplicateEmailError,
    NotFoundError,
    ValidationError,
)
from .models import Role, SELF_REGISTRABLE_ROLES, TEXT_MAX
from .security import (
    PASSWORD_MAX,
    PasswordVerification,
    TokenClaims,
    TokenService,
    dummy_verify,
    hash_password,
    verify_password,
)

logger = logging.getLogger("edusync.services")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
INVALID_CREDENTIALS = "Invalid email or password"


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _trim(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _require_title(title: str) -> str:
    if _blank(title):
        raise ValidationError({"title": ["The title field is required."]})
    return title.strip()


class AuthService:
    """Registration and login."""
    FIELD_LIMITS = {"password": PASSWORD_MAX}

    def __init__(self, session: Session, tokens: TokenService):
        self.session = session
        self.tokens = tokens
        self.user_repo = repositories.UserRepository(session)

    @retry_on_transient
    def register(self, name: Optional[str], email: Optional[str], password: Optional[str],
                 role: Optional[str]) -> models.User:
        """Create a new self-registered user.

        Checks run in a fixed order so error precedence is stable:
        empty fields, then duplicate email, then role. Returns the
        persisted `User`.
        """
        self._require_fields(name=name, email=email, password=password, role=role)
        if self.user_repo.email_taken(email):
            logger.info("registration_rejected %s", json.dumps({"reason": "duplicate_email"}))
            raise DuplicateEmailError()
        parsed = Role.parse(role)
        if parsed not in SELF_REGISTRABLE_ROLES:
            raise ValidationError(
                {"role": ["Invalid role. Must be 'Student' or 'Instructor'."]},
                message="Invalid role",
            )
        return self._create_user(name, email, password, parsed)

    @retry_on_transient
    def create_admin(self, name: str, email: str, password: str) -> models.User:
        """Provision an Admin account; admins cannot self-register."""
        self._require_fields(name=name, email=email, password=password)
        if self.user_repo.email_taken(email):
            raise DuplicateEmailError()
        return self._create_user(name, email, password, Role.ADMIN)

    @retry_on_transient
    def login(self, email: Optional[str], password: Optional[str]) -> Tuple[str, models.User]:
        """Verify credentials and return ``(token, user)``.

        Unknown email and wrong password raise the same
        `AuthenticationError`; a dummy verification keeps their timing
        alike as well.
        """
        user = self.user_repo.get_by_email(email) if not _blank(email) else None
        if user is None:
            dummy_verify()
            raise AuthenticationError(INVALID_CREDENTIALS)
        if verify_password(user.password_hash, password or "") is not PasswordVerification.SUCCESS:
            raise AuthenticationError(INVALID_CREDENTIALS)
        token = self.tokens.issue(user)
        logger.info("login_succeeded %s", json.dumps({"user_id": str(user.user_id), "role": user.role}))
        return token, user

    def _require_fields(self, **fields: Optional[str]) -> None:
        errors: Dict[str, List[str]] = {}
        for field, value in fields.items():
            limit = self.FIELD_LIMITS.get(field, TEXT_MAX)
            if _blank(value):
                errors.setdefault(field, []).append(f"The {field} field is required.")
            elif len(value) > limit:
                errors.setdefault(field, []).append(f"The {field} field must be at most {limit} characters.")
        email = fields.get("email")
        if not _blank(email) and not EMAIL_RE.match(email.strip()):
            errors.setdefault("email", []).append("The email field is not a valid e-mail address.")
        if errors:
            logger.info("registration_rejected %s", json.dumps({"reason": "validation", "fields": sorted(errors)}))
            raise ValidationError(errors)

    def _create_user(self, name: str, email: str, password: str, role: Role) -> models.User:
        user = models.User(
            user_id=uuid.uuid4(),
            name=name.strip(),
            email=normalize_email(email),
            password_hash=hash_password(password),
            role=role.value,
        )
        created = self.user_repo.create(user)
        logger.info("user_registered %s", json.dumps({"user_id": str(created.user_id), "role": created.role}))
        return created


class CourseService:
    """Course CRUD with instructor and assessment integrity checks."""
    def __init__(self, session: Session):
        self.session = session
        self.courses = repositories.CourseRepository(session)
        self.users = repositories.UserRepository(session)

    @retry_on_transient
    def list(self) -> List[models.Course]:
        return self.courses.list()

    @retry_on_transient
    def get(self, course_id: uuid.UUID) -> models.Course:
        return self._get_or_404(course_id)

    @retry_on_transient
    def create(self, data: schemas.CourseIn) -> models.Course:
        self._check_instructor(data.instructor_id)
        course = models.Course(
            course_id=uuid.uuid4(),
            title=_require_title(data.title),
            description=_trim(data.description),
            instructor_id=data.instructor_id,
            media_url=_trim(data.media_url),
        )
        created = self.courses.create(course)
        logger.info("course_created %s", json.dumps({"course_id": str(created.course_id)}))
        return created

    @retry_on_transient
    def update(self, course_id: uuid.UUID, data: schemas.CourseIn) -> models.Course:
        course = self._get_or_404(course_id)
        self._check_instructor(data.instructor_id)
        course.title = _require_title(data.title)
        course.description = _trim(data.description)
        course.instructor_id = data.instructor_id
        course.media_url = _trim(data.media_url)
        return self.courses.update(course)

    @retry_on_transient
    def delete(self, course_id: uuid.UUID) -> None:
        course = self._get_or_404(course_id)
        if self.courses.has_assessments(course_id):
            raise ConflictError("Cannot delete course with associated assessments.")
        self.courses.delete(course)

    def _get_or_404(self, course_id: uuid.UUID) -> models.Course:
        course = self.courses.get(course_id)
        if course is None:
            raise NotFoundError("Course not found.")
        return course

    def _check_instructor(self, instructor_id: Optional[uuid.UUID]) -> None:
        if instructor_id is not None and not self.users.exists(instructor_id, lock=True):
            logger.warning("instructor_missing %s", json.dumps({"instructor_id": str(instructor_id)}))
            raise ConflictError("Instructor with given ID does not exist.", field="instructorId")


class AssessmentService:
    """Assessment CRUD with course and result integrity checks."""
    def __init__(self, session: Session):
        self.session = session
        self.assessments = repositories.AssessmentRepository(session)
        self.courses = repositories.CourseRepository(session)

    @retry_on_transient
    def list(self) -> List[models.Assessment]:
        return self.assessments.list()

    @retry_on_transient
    def get(self, assessment_id: uuid.UUID) -> models.Assessment:
        return self._get_or_404(assessment_id)

    @retry_on_transient
    def create(self, data: schemas.AssessmentIn) -> models.Assessment:
        self._check_course(data.course_id)
        assessment = models.Assessment(
            assessment_id=uuid.uuid4(),
            course_id=data.course_id,
            title=_require_title(data.title),
            questions=data.questions,
            max_score=data.max_score,
        )
        return self.assessments.create(assessment)

    @retry_on_transient
    def update(self, assessment_id: uuid.UUID, data: schemas.AssessmentIn) -> models.Assessment:
        assessment = self._get_or_404(assessment_id)
        self._check_course(data.course_id)
        assessment.course_id = data.course_id
        assessment.title = _require_title(data.title)
        assessment.questions = data.questions
        assessment.max_score = data.max_score
        return self.assessments.update(assessment)

    @retry_on_transient
    def delete(self, assessment_id: uuid.UUID) -> None:
        assessment = self._get_or_404(assessment_id)
        if self.assessments.has_results(assessment_id):
            raise ConflictError("Cannot delete assessment with recorded results.")
        self.assessments.delete(assessment)

    def _get_or_404(self, assessment_id: uuid.UUID) -> models.Assessment:
        assessment = self.assessments.get(assessment_id)
        if assessment is None:
            raise NotFoundError("Assessment not found.")
        return assessment

    def _check_course(self, course_id: Optional[uuid.UUID]) -> None:
        if course_id is not None and not self.courses.exists(course_id, lock=True):
            raise ConflictError("Course with given ID does not exist.", field="courseId")


class ResultService:
    """Result CRUD; results reference an assessment and a user."""
    def __init__(self, session: Session):
        self.session = session
        self.results = repositories.ResultRepository(session)
        self.assessments = repositories.AssessmentRepository(session)
        self.users = repositories.UserRepository(session)

    @retry_on_transient
    def list(self) -> List[models.Result]:
        return self.results.list()

    @retry_on_transient
    def get(self, result_id: uuid.UUID) -> models.Result:
        return self._get_or_404(result_id)

    @retry_on_transient
    def create(self, data: schemas.ResultIn) -> models.Result:
        self._check_references(data)
        result = models.Result(
            result_id=uuid.uuid4(),
            assessment_id=data.assessment_id,
            user_id=data.user_id,
            score=data.score,
            attempt_date=data.attempt_date,
        )
        return self.results.create(result)

    @retry_on_transient
    def update(self, result_id: uuid.UUID, data: schemas.ResultIn) -> models.Result:
        result = self._get_or_404(result_id)
        self._check_references(data)
        result.assessment_id = data.assessment_id
        result.user_id = data.user_id
        result.score = data.score
        result.attempt_date = data.attempt_date
        return self.results.update(result)

    @retry_on_transient
    def delete(self, result_id: uuid.UUID) -> None:
        self.results.delete(self._get_or_404(result_id))

    def _get_or_404(self, result_id: uuid.UUID) -> models.Result:
        result = self.results.get(result_id)
        if result is None:
            raise NotFoundError("Result not found.")
        return result

    def _check_references(self, data: schemas.ResultIn) -> None:
        if data.assessment_id is not None and not self.assessments.exists(data.assessment_id, lock=True):
            raise ConflictError("Assessment with given ID does not exist.", field="assessmentId")
        if data.user_id is not None and not self.users.exists(data.user_id, lock=True):
            raise ConflictError("User with given ID does not exist.", field="userId")


class UserService:
    """Read, update and delete user accounts (creation goes through `AuthService`)."""
    def __init__(self, session: Session):
        self.session = session
        self.users = repositories.UserRepository(session)

    @retry_on_transient
    def list(self) -> List[models.User]:
        return self.users.list()

    @retry_on_transient
    def get(self, user_id: uuid.UUID) -> models.User:
        return self._get_or_404(user_id)

    @retry_on_transient
    def update(self, user_id: uuid.UUID, data: schemas.UserUpdateIn, principal: TokenClaims) -> models.User:
        """Apply a partial update on behalf of `principal`.

        Users may edit their own name and email; only an Admin may edit
        other accounts or change anyone's role.
        """
        is_admin = principal.role is Role.ADMIN
        if not is_admin and principal.user_id != user_id:
            raise AuthorizationError("You can only update your own account.")
        user = self._get_or_404(user_id)
        errors: Dict[str, List[str]] = {}
        if data.name is not None and _blank(data.name):
            errors["name"] = ["The name field is required."]
        if data.email is not None and not EMAIL_RE.match(data.email.strip()):
            errors["email"] = ["The email field is not a valid e-mail address."]
        new_role = None
        if data.role is not None:
            new_role = Role.parse(data.role)
            if new_role is None:
                errors["role"] = ["Invalid role. Must be 'Student', 'Instructor' or 'Admin'."]
        if errors:
            raise ValidationError(errors)
        if new_role is not None and new_role.value != user.role and not is_admin:
            raise AuthorizationError("Only administrators can change roles.")
        if data.email is not None:
            email = normalize_email(data.email)
            if self.users.email_taken(email, exclude=user_id):
                raise ConflictError("Email already exists.", field="email")
            user.email = email
        if data.name is not None:
            user.name = data.name.strip()
        if new_role is not None:
            user.role = new_role.value
        return self.users.update(user)

    @retry_on_transient
    def delete(self, user_id: uuid.UUID) -> None:
        user = self._get_or_404(user_id)
        if self.users.teaches_courses(user_id) or self.users.has_results(user_id):
            raise ConflictError("Cannot delete user with associated courses or results.")
        self.users.delete(user)

    def _get_or_404(self, user_id: uuid.UUID) -> models.User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user
