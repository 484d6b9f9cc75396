class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when there is no authenticated session."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action or does not own the resource."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a schedule, shift or request does not exist."""

    status_code = 404


class InvalidStateError(DomainError):
    """Raised when an operation is illegal for the current status."""


class TooEarlyError(InvalidStateError):
    """Raised when attendance is recorded before the shift has ended."""


class DeadlinePassedError(DomainError):
    """Raised when a request is changed after the schedule's request deadline."""


class ConflictError(DomainError):
    """Raised when a shift would overlap another one, or a duplicate exists."""

    status_code = 409
