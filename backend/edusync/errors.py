"""Application error taxonomy.

Services raise these exceptions; the handlers installed by
`edusync.main` turn each of them into a JSON response with the
matching status code. Anything that is not an `AppError` is treated as
an unexpected system error and becomes a generic 500.
"""

from typing import Dict, List, Optional


class AppError(Exception):
    """Base class for errors that map onto a client-facing HTTP status."""
    status_code = 500

    def __init__(self, message: str, field: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.headers = headers

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(AppError):
    """Malformed or missing input, reported per field."""
    status_code = 400

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials. Never says which factor failed."""
    status_code = 401

    def __init__(self, message: str = "Authentication required", expired: bool = False):
        headers = {"WWW-Authenticate": "Bearer"}
        if expired:
            headers["Token-Expired"] = "true"
        super().__init__(message, headers=headers)
        self.expired = expired


class AuthorizationError(AppError):
    """Authenticated caller whose role is not allowed to perform the operation."""
    status_code = 403

    def __init__(self, message: str = "Insufficient role for this operation"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """Referential-integrity or uniqueness violation."""
    status_code = 409


class DuplicateEmailError(ConflictError):
    # registration surfaces duplicates as a bad request
    status_code = 400

    def __init__(self, message: str = "Email already exists"):
        super().__init__(message, field="email")
