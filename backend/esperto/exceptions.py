class EspertoError(Exception):
    """Base exception for the comparator API."""

    status_code = 500
    public_message = "Internal server error"
    headers = None


class UnauthorizedError(EspertoError):
    """Raised when a request carries no valid session."""

    status_code = 401
    public_message = "Unauthorized"
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(EspertoError):
    """Raised when an authenticated user lacks the required role."""

    status_code = 403
    public_message = "Forbidden"


class NotFoundError(EspertoError):
    """Raised when an entity is absent or not owned by the caller."""

    status_code = 404
    public_message = "Not found"


class ValidationFailure(EspertoError):
    """Raised for malformed, duplicate or out-of-policy input."""

    status_code = 400
    public_message = "Invalid request"


class RemoteFailure(EspertoError):
    """Raised when a downstream store or provider call fails."""

    pass
