"""Domain errors for Church Admin.

Every error carries the HTTP status it maps to and a client-safe detail
message. Routers raise these; the API layer turns them into JSON responses.
"""

from typing import Dict, Optional


class ChurchAdminError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    default_detail: str = "Internal error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"error": self.detail}


class InvalidCredentials(ChurchAdminError):
    """Login failed. Never says whether the email or the password was wrong."""

    status_code = 401
    default_detail = "Incorrect email or password"


class AccountDisabled(ChurchAdminError):
    status_code = 403
    default_detail = "Account is disabled or not yet activated"


class AuthenticationFailed(ChurchAdminError):
    """Token missing, malformed, expired or forged."""

    status_code = 401
    default_detail = "Could not validate credentials"


class AuthorizationDenied(ChurchAdminError):
    """Authenticated, but lacking the required permission or record access."""

    status_code = 403
    default_detail = "Insufficient permissions"

    def __init__(self, detail: Optional[str] = None, required: Optional[str] = None):
        super().__init__(detail)
        self.required = required

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.required:
            data["required"] = self.required
        return data


class ValidationFailed(ChurchAdminError):
    status_code = 400
    default_detail = "Validation failed"

    def __init__(self, errors: Dict[str, str], detail: Optional[str] = None):
        super().__init__(detail)
        self.errors = dict(errors)

    def to_dict(self) -> dict:
        return {"error": self.detail, "errors": self.errors}


class NotFound(ChurchAdminError):
    status_code = 404
    default_detail = "Not found"

    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.entity = entity


class ConflictError(ChurchAdminError):
    """The record changed since it was read."""

    status_code = 409
    default_detail = "Record was modified by another request; reload and retry"
