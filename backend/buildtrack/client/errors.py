"""Errors raised by notification backends."""


class BackendError(Exception):
    """A read or write against the backend failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotAuthenticatedError(BackendError):
    """The operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message, 401)


class PayloadValidationError(BackendError):
    """The backend returned a row that does not have the expected shape."""
