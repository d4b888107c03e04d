"""Error taxonomy shared by every resource operation.

Operations raise these at their boundary; the transport layer renders them as
structured ``{"error": code, "message": message}`` responses.
"""


class ServiceError(Exception):
    """Base class for failures surfaced to the caller."""

    status_code: int = 500
    code: str = "service_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ServiceError):
    """Referenced entity does not exist (or is not visible to the actor)."""

    status_code = 404
    code = "not_found"


class Unauthorized(ServiceError):
    """Actor lacks permission on an existing entity."""

    status_code = 403
    code = "unauthorized"


class InvalidInput(ServiceError):
    """Empty or malformed required field."""

    status_code = 400
    code = "invalid_input"


class Conflict(ServiceError):
    """Uniqueness violation, e.g. duplicate username or email."""

    status_code = 409
    code = "conflict"


class WriteFailed(ServiceError):
    """A store write failed or timed out."""

    status_code = 500
    code = "write_failed"


class ReadFailed(ServiceError):
    """A store read failed or timed out."""

    status_code = 500
    code = "read_failed"


class UpstreamFailed(ServiceError):
    """The external media collaborator failed."""

    status_code = 502
    code = "upstream_failed"


def require_text(value: str | None, field: str) -> str:
    """Return ``value`` trimmed, or raise InvalidInput if nothing is left."""
    if value is None or not value.strip():
        raise InvalidInput(f"{field} can not be empty")
    return value.strip()
