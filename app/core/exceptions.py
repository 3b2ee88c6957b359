"""
Domain error taxonomy.

Services raise these; the HTTP layer maps each class to a status code
in main.py. Soft classifier failures are not represented here because
they never leave the classifier client.
"""


class CivicPulseError(Exception):
    """Base class for all domain errors."""
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""


class ValidationError(CivicPulseError):
    """Request data is malformed or violates a creation invariant."""
    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidStatusError(ValidationError):
    """Status value is not one of the enumerated report statuses."""
    code = "INVALID_STATUS"


class InvalidBoundingBoxError(ValidationError):
    """Bounding box does not decompose into four finite numbers."""
    code = "INVALID_BBOX"


class AuthorizationError(CivicPulseError):
    """Privileged operation attempted without valid credentials."""
    status_code = 401
    code = "UNAUTHORIZED"


class NotFoundError(CivicPulseError):
    """Operation targets a report id that does not exist."""
    status_code = 404
    code = "NOT_FOUND"


class PersistenceError(CivicPulseError):
    """Storage collaborator failed. Not retried."""
    status_code = 500
    code = "STORAGE_ERROR"
