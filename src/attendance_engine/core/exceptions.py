class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when an approver acts on a step they are not assigned to."""


class ConfigurationError(DomainError):
    """Raised when a schedule or workflow configuration is unusable."""


class NotFoundError(DomainError):
    """Raised when an employee, step, workflow or request does not exist."""


class InvalidStateError(DomainError):
    """Raised when acting on a non-current step or mutating a terminal request."""


class ConflictError(DomainError):
    """Raised when a concurrent actor already moved the request on."""


class InvalidPunchSequence(DomainError):
    """Raised for punch data a day cannot be classified from."""
