"""Course endpoints."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..schemas import CourseDetailOut, CourseIn, CourseOut

router = APIRouter(prefix="/api/courses", tags=["Courses"])


@router.get("", response_model=List[CourseOut])
def list_courses(db: Session = Depends(get_session)):
    return [CourseOut.model_validate(c) for c in services.CourseService(db).list()]


@router.get("/{course_id}", response_model=CourseDetailOut)
def get_course(course_id: uuid.UUID, db: Session = Depends(get_session)):
    """Return a course with its assessment summaries and instructor."""
    return CourseDetailOut.model_validate(services.CourseService(db).get(course_id))


@router.post("", response_model=CourseOut, status_code=201)
def create_course(payload: CourseIn, response: Response, db: Session = Depends(get_session)):
    """Create a course; a given `instructorId` must reference an existing user (else 409)."""
    course = services.CourseService(db).create(payload)
    response.headers["Location"] = f"{router.prefix}/{course.course_id}"
    return CourseOut.model_validate(course)


@router.put("/{course_id}", status_code=204, response_class=Response)
def update_course(course_id: uuid.UUID, payload: CourseIn, db: Session = Depends(get_session)):
    services.CourseService(db).update(course_id, payload)
    return Response(status_code=204)


@router.delete("/{course_id}", status_code=204, response_class=Response)
def delete_course(course_id: uuid.UUID, db: Session = Depends(get_session)):
    """Delete a course; refused with 409 while assessments still reference it."""
    services.CourseService(db).delete(course_id)
    return Response(status_code=204)
