"""Exception taxonomy for the request lifecycle."""

from httpd.domain.http_types import Status


class RequestError(Exception):
    """Base class for failures that end a request with an error page."""

    status = Status.INTERNAL_SERVER_ERROR


class MalformedRequest(RequestError):
    """Raised when the request line or header block cannot be parsed."""

    status = Status.BAD_REQUEST


class NotFound(RequestError):
    """Raised when a URI does not map to an accessible resource."""

    status = Status.NOT_FOUND


class ForbiddenPath(NotFound):
    """Raised when a resolved path escapes the configured root.

    Reported to clients as 404 so the filesystem layout is not revealed.
    """


class UnsupportedResource(RequestError):
    """Raised for filesystem entries that are neither files nor directories."""

    status = Status.BAD_REQUEST


class DispatchFailure(RequestError):
    """Raised when CGI invocation or internal I/O fails."""

    status = Status.INTERNAL_SERVER_ERROR


class ConfigurationError(ValueError):
    """Raised when startup configuration is invalid."""
