"""Assessment result endpoints."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..schemas import ResultIn, ResultOut

router = APIRouter(prefix="/api/results", tags=["Results"])


@router.get("", response_model=List[ResultOut])
def list_results(db: Session = Depends(get_session)):
    return [ResultOut.model_validate(r) for r in services.ResultService(db).list()]


@router.get("/{result_id}", response_model=ResultOut)
def get_result(result_id: uuid.UUID, db: Session = Depends(get_session)):
    return ResultOut.model_validate(services.ResultService(db).get(result_id))


@router.post("", response_model=ResultOut, status_code=201)
def create_result(payload: ResultIn, response: Response, db: Session = Depends(get_session)):
    """Record an attempt.

    `assessmentId` and `userId`, when given, must reference existing
    rows; otherwise the request fails with 409 and nothing is stored.
    """
    result = services.ResultService(db).create(payload)
    response.headers["Location"] = f"{router.prefix}/{result.result_id}"
    return ResultOut.model_validate(result)


@router.put("/{result_id}", status_code=204, response_class=Response)
def update_result(result_id: uuid.UUID, payload: ResultIn, db: Session = Depends(get_session)):
    services.ResultService(db).update(result_id, payload)
    return Response(status_code=204)


@router.delete("/{result_id}", status_code=204, response_class=Response)
def delete_result(result_id: uuid.UUID, db: Session = Depends(get_session)):
    services.ResultService(db).delete(result_id)
    return Response(status_code=204)
