"""Assessment endpoints."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..schemas import AssessmentIn, AssessmentOut

router = APIRouter(prefix="/api/assessments", tags=["Assessments"])


@router.get("", response_model=List[AssessmentOut])
def list_assessments(db: Session = Depends(get_session)):
    return [AssessmentOut.model_validate(a) for a in services.AssessmentService(db).list()]


@router.get("/{assessment_id}", response_model=AssessmentOut)
def get_assessment(assessment_id: uuid.UUID, db: Session = Depends(get_session)):
    return AssessmentOut.model_validate(services.AssessmentService(db).get(assessment_id))


@router.post("", response_model=AssessmentOut, status_code=201)
def create_assessment(payload: AssessmentIn, response: Response, db: Session = Depends(get_session)):
    """Create an assessment; a given `courseId` must reference an existing course (else 409)."""
    assessment = services.AssessmentService(db).create(payload)
    response.headers["Location"] = f"{router.prefix}/{assessment.assessment_id}"
    return AssessmentOut.model_validate(assessment)


@router.put("/{assessment_id}", status_code=204, response_class=Response)
def update_assessment(assessment_id: uuid.UUID, payload: AssessmentIn, db: Session = Depends(get_session)):
    services.AssessmentService(db).update(assessment_id, payload)
    return Response(status_code=204)


@router.delete("/{assessment_id}", status_code=204, response_class=Response)
def delete_assessment(assessment_id: uuid.UUID, db: Session = Depends(get_session)):
    services.AssessmentService(db).delete(assessment_id)
    return Response(status_code=204)
