"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable. JSON field names are
camelCase (``courseId``, ``instructorId``); snake_case names are
accepted on input as well.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import TEXT_MAX


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RegisterIn(ApiModel):
    """Registration payload.

    Every field is optional at the schema level so that the auth service
    can report all empty fields together, in its own order of checks.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class RegisterOut(ApiModel):
    message: str = "User registered successfully"
    user_id: uuid.UUID
    email: str
    name: str
    role: str


class LoginIn(ApiModel):
    email: str
    password: str


class UserOut(ApiModel):
    id: uuid.UUID = Field(validation_alias="user_id")
    name: str
    email: str
    role: str


class LoginOut(ApiModel):
    token: str
    user: UserOut


class UserUpdateIn(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=TEXT_MAX)
    email: Optional[str] = Field(default=None, min_length=3, max_length=TEXT_MAX)
    role: Optional[str] = None


class CourseIn(ApiModel):
    title: str = Field(min_length=1, max_length=TEXT_MAX)
    description: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    instructor_id: Optional[uuid.UUID] = None
    media_url: Optional[str] = Field(default=None, max_length=TEXT_MAX)


class CourseOut(ApiModel):
    course_id: uuid.UUID
    title: str
    description: Optional[str] = None
    instructor_id: Optional[uuid.UUID] = None
    media_url: Optional[str] = None


class AssessmentSummary(ApiModel):
    assessment_id: uuid.UUID
    title: str
    max_score: int


class InstructorOut(ApiModel):
    user_id: uuid.UUID
    full_name: str = Field(validation_alias=AliasChoices("name", "fullName"), serialization_alias="fullName")
    email: str


class CourseDetailOut(CourseOut):
    assessments: List[AssessmentSummary] = []
    instructor: Optional[InstructorOut] = None


class AssessmentIn(ApiModel):
    course_id: Optional[uuid.UUID] = None
    title: str = Field(min_length=1, max_length=TEXT_MAX)
    questions: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    max_score: int = Field(ge=0)


class AssessmentOut(ApiModel):
    assessment_id: uuid.UUID
    course_id: Optional[uuid.UUID] = None
    title: str
    questions: Optional[str] = None
    max_score: int


class ResultIn(ApiModel):
    assessment_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    score: int = Field(ge=0)
    attempt_date: datetime

    @field_validator("attempt_date")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Timestamps sent without an offset are taken to be UTC; all are stored in UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class ResultOut(ApiModel):
    result_id: uuid.UUID
    assessment_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    score: int
    attempt_date: datetime
