"""Application error taxonomy.

Every error carries the HTTP status it is rendered with; the handlers
registered in ``app.main`` turn them into ``{"detail": message}`` bodies.
Store and upstream failures expose an opaque message only; the cause is
logged where the error is raised.
"""


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str = "Internal server error") -> None:
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    """Missing or malformed input, rejected before touching storage."""

    status_code = 400


class NotFoundError(AppError):
    """A well-formed request referencing an entity that does not exist."""

    status_code = 404

    def __init__(self, resource: str, identifier: int | str) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found")


class AuthMismatchError(AppError):
    """Credentials were well-formed but do not match a stored user."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid username and token combination")


class StoreError(AppError):
    """Connectivity, constraint or driver failure in the database layer."""

    status_code = 500

    def __init__(self) -> None:
        super().__init__("Internal server error")


class ExternalServiceError(AppError):
    """The dialogue service could not be reached or answered with an error."""

    status_code = 500

    def __init__(self, message: str = "Error communicating with the assistant") -> None:
        super().__init__(message)


class SessionNotStartedError(AppError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Session not started. Please call /api/session first.")
