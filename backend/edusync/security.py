"""Password hashing and access-token primitives.

Passwords are hashed with passlib's ``pbkdf2_sha256`` scheme: every
call draws a fresh random salt, so the same plaintext never produces
the same stored value twice and callers must hash-then-verify.

Access tokens are HS256 JWTs carrying the user's id (``sub``) and role.
Their lifetime is a fixed window ``[iat, exp)`` checked with zero clock
skew: a token is rejected at the exact second it expires.
"""

import enum
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

import jwt
from passlib.context import CryptContext

from .config import settings
from .models import Role, User

logger = logging.getLogger("edusync.security")

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
# passlib refuses longer secrets with PasswordSizeError
PASSWORD_MAX = 4096

REQUIRED_CLAIMS = ["sub", "role", "iss", "aud", "iat", "exp"]


class PasswordVerification(enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


def hash_password(plaintext: str) -> str:
    """Return a salted one-way hash of `plaintext`."""
    return PWD_CTX.hash(plaintext)


def verify_password(password_hash: str, plaintext: str) -> PasswordVerification:
    """Check `plaintext` against a stored hash.

    A mismatch is an ordinary `FAILED` result, not an exception. A stored
    value passlib cannot parse is also reported as `FAILED`.
    """
    try:
        ok = PWD_CTX.verify(plaintext, password_hash)
    except (ValueError, TypeError):
        logger.warning("stored password hash could not be parsed")
        return PasswordVerification.FAILED
    return PasswordVerification.SUCCESS if ok else PasswordVerification.FAILED


def dummy_verify() -> None:
    """Spend roughly one verification's worth of time (unknown-user logins)."""
    PWD_CTX.dummy_verify()


class TokenError(Exception):
    """Base exception for token validation failures."""


class InvalidTokenError(TokenError):
    """Bad signature, malformed token, wrong issuer/audience or bad claims."""


class TokenExpiredError(InvalidTokenError):
    """The token's validity window has closed."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    role: Role
    email: Optional[str]
    name: Optional[str]
    issued_at: int
    expires_at: int


class TokenService:
    """Issue and validate signed, time-bound access tokens.

    The service is immutable once built; one instance is shared by the
    whole process (see `get_token_service`). `clock` returns the current
    time in seconds and exists so tests can pin "now".
    """

    def __init__(self, secret: str, issuer: str, audience: str, lifetime: timedelta,
                 algorithm: str = "HS256", clock: Callable[[], float] = time.time):
        if not secret:
            raise ValueError("token signing secret must not be empty")
        if lifetime.total_seconds() < 1:
            raise ValueError("token lifetime must be at least one second")
        self._secret = secret
        self._issuer = issuer
        self._audience = audience
        self._lifetime = int(lifetime.total_seconds())
        self._algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, cfg=settings) -> "TokenService":
        return cls(
            secret=cfg.JWT_SECRET,
            issuer=cfg.JWT_ISSUER,
            audience=cfg.JWT_AUDIENCE,
            lifetime=timedelta(hours=cfg.JWT_EXPIRE_HOURS),
            algorithm=cfg.JWT_ALGORITHM,
        )

    @property
    def lifetime_seconds(self) -> int:
        return self._lifetime

    def _now(self, now: Optional[float]) -> int:
        return int(self._clock() if now is None else now)

    def issue(self, user: User, now: Optional[float] = None) -> str:
        """Return a signed token for `user`, valid from now for the configured lifetime."""
        issued_at = self._now(now)
        payload = {
            "sub": str(user.user_id),
            "role": Role.parse(user.role).value,
            "email": user.email,
            "name": user.name,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str, now: Optional[float] = None) -> TokenClaims:
        """Verify `token` and return its claims.

        Raises `TokenExpiredError` when ``now >= exp`` and
        `InvalidTokenError` for every other failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                # the time window is checked below against our own clock
                options={"require": REQUIRED_CLAIMS, "verify_exp": False, "verify_iat": False, "verify_nbf": False},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

        try:
            issued_at = int(payload["iat"])
            expires_at = int(payload["exp"])
            user_id = uuid.UUID(str(payload["sub"]))
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError("malformed claims") from exc
        role = Role.parse(payload.get("role"))
        if role is None:
            raise InvalidTokenError("unknown role claim")

        current = self._now(now)
        if current >= expires_at:
            raise TokenExpiredError("token expired")
        if current < issued_at:
            raise InvalidTokenError("token not yet valid")
        return TokenClaims(
            user_id=user_id,
            role=role,
            email=payload.get("email"),
            name=payload.get("name"),
            issued_at=issued_at,
            expires_at=expires_at,
        )


token_service = TokenService.from_settings(settings)


def get_token_service() -> TokenService:
    """FastAPI dependency returning the process-wide token service."""
    return token_service
