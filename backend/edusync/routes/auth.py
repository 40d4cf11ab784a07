"""Registration and login endpoints (public)."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import services
from ..database import get_session
from ..schemas import LoginIn, LoginOut, RegisterIn, RegisterOut, UserOut
from ..security import TokenService, get_token_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=RegisterOut)
def register(payload: RegisterIn, db: Session = Depends(get_session),
             tokens: TokenService = Depends(get_token_service)):
    """Register a new Student or Instructor.

    Returns the new user's id, email, name and role. Empty fields, an
    invalid role or an email that is already registered (in any letter
    case) yield a 400.
    """
    user = services.AuthService(db, tokens).register(payload.name, payload.email, payload.password, payload.role)
    return RegisterOut(user_id=user.user_id, email=user.email, name=user.name, role=user.role)


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_session),
          tokens: TokenService = Depends(get_token_service)):
    """Authenticate and return a signed access token.

    The token carries the user id (`sub`) and role. Any credential
    mismatch returns the same 401 body.
    """
    token, user = services.AuthService(db, tokens).login(payload.email, payload.password)
    return LoginOut(token=token, user=UserOut.model_validate(user))
