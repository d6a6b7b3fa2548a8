"""
Domain error taxonomy.

Services raise these; the API layer maps each one to its HTTP status via
the status_code attribute.
"""


class DomainError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(DomainError):
    """A referenced student, batch, payment, enrollment or other row is missing."""
    status_code = 404


class ValidationError(DomainError):
    """Missing required field, invalid status value, duplicate phone."""
    status_code = 400


class AuthenticationError(DomainError):
    """Credentials did not match."""
    status_code = 401


class ConflictError(DomainError):
    """Enrollment uniqueness race or a transition out of a terminal payment state."""
    status_code = 409


class StorageError(DomainError):
    """Data store or media store failure; the transaction has been rolled back."""
    status_code = 500
