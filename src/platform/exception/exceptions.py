class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ValidationError(DomainError):
    """Malformed input or business-rule violation. Never retried."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or [message]
        super().__init__(message, 400)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    """Requested beds are taken by another hold or booking; caller may retry with a new selection."""

    def __init__(self, message: str, conflicting_beds: list | None = None) -> None:
        self.conflicting_beds = conflicting_beds or []
        super().__init__(message, 409)


class TransientStoreError(CustomBaseError):
    """I/O failure against the booking store or the advisory-lock store."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)
