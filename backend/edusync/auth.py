"""Authorization gate and FastAPI security dependencies.

`authorize` is installed once as an application-wide dependency. For
every request it looks up the matched route in `ROLE_POLICY`, validates
the bearer token when the route is not public, and checks the role
claim against the route's requirement. Handlers read the verified
claims through `get_principal`.

Token validation is a pure signature and clock check; the gate never
queries the database.
"""

import logging
from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthenticationError, AuthorizationError
from .policy import ROLE_POLICY
from .security import InvalidTokenError, TokenClaims, TokenExpiredError, TokenService, get_token_service

logger = logging.getLogger("edusync.auth")

bearer_scheme = HTTPBearer(auto_error=False)


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def authorize(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[TokenClaims]:
    """Permit or reject the current request according to the role policy.

    Raises `AuthenticationError` (401) for a missing, invalid or expired
    token and `AuthorizationError` (403) for a valid token whose role is
    not allowed.
    """
    path = _route_path(request)
    requirement = ROLE_POLICY.requirement_for(request.method, path)
    request.state.principal = None
    if requirement.public:
        return None
    if credentials is None:
        raise AuthenticationError()
    try:
        claims = tokens.validate(credentials.credentials)
    except TokenExpiredError:
        raise AuthenticationError("Token expired", expired=True)
    except InvalidTokenError as exc:
        logger.info("rejected token for %s %s: %s", request.method, path, exc)
        raise AuthenticationError("Invalid token")
    if not requirement.permits(claims.role):
        logger.info("role %s denied for %s %s", claims.role.value, request.method, path)
        raise AuthorizationError()
    request.state.principal = claims
    return claims


def get_principal(request: Request) -> TokenClaims:
    """Return the claims verified by `authorize` for this request."""
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise AuthenticationError()
    return principal
