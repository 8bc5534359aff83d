class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Raised when a referenced employee or record does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when a write would break a uniqueness rule."""

    status_code = 409
