"""User account endpoints. Accounts are created through `/api/auth/register`."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from .. import services
from ..auth import get_principal
from ..database import get_session
from ..schemas import UserOut, UserUpdateIn
from ..security import TokenClaims

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=List[UserOut])
def list_users(db: Session = Depends(get_session)):
    return [UserOut.model_validate(u) for u in services.UserService(db).list()]


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: uuid.UUID, db: Session = Depends(get_session)):
    return UserOut.model_validate(services.UserService(db).get(user_id))


@router.put("/{user_id}", status_code=204, response_class=Response)
def update_user(user_id: uuid.UUID, payload: UserUpdateIn, db: Session = Depends(get_session),
                principal: TokenClaims = Depends(get_principal)):
    """Update name, email or role.

    Callers may update their own account; only an Admin may update
    someone else or change a role (403 otherwise).
    """
    services.UserService(db).update(user_id, payload, principal)
    return Response(status_code=204)


@router.delete("/{user_id}", status_code=204, response_class=Response)
def delete_user(user_id: uuid.UUID, db: Session = Depends(get_session)):
    """Delete an account; refused with 409 while courses or results reference it."""
    services.UserService(db).delete(user_id)
    return Response(status_code=204)
