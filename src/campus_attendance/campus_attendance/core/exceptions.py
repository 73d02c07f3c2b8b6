class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass has a stable machine-readable ``kind`` and the HTTP status
    the controllers answer with.
    """

    kind = "DomainError"
    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is malformed or violates domain rules."""

    kind = "ValidationError"
    http_status = 400


class NotFound(DomainError):
    kind = "NotFound"
    http_status = 404


class NotFoundOrForbidden(DomainError):
    """Raised when a session does not exist or the caller does not own it."""

    kind = "NotFoundOrForbidden"
    http_status = 404


class Forbidden(DomainError):
    """Raised when a user lacks the role required for an action."""

    kind = "Forbidden"
    http_status = 403


class InvalidToken(DomainError):
    kind = "InvalidToken"
    http_status = 404


class TokenExpired(DomainError):
    kind = "TokenExpired"
    http_status = 410


class DuplicateAttendance(DomainError):
    kind = "DuplicateAttendance"
    http_status = 400


class GeofenceViolation(DomainError):
    kind = "GeofenceViolation"
    http_status = 400


class StoreUnavailable(DomainError):
    """Raised when the backing store cannot be reached or timed out.

    Callers may retry; the service layer never does.
    """

    kind = "StoreUnavailable"
    http_status = 503
