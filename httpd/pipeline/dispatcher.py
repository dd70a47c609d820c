"""Request dispatch: resolve, classify, and pick a response strategy."""

import enum
import logging
import os
import stat

from httpd.bootstrap.config import ServerConfig
from httpd.domain.connection_id import ConnectionLoggerAdapter
from httpd.domain.errors import (
    ForbiddenPath,
    NotFound,
    RequestError,
    UnsupportedResource,
)
from httpd.domain.http_types import HttpResponse, Request
from httpd.domain.response_builders import error_response
from httpd.domain.sandbox import resolve_request_path
from httpd.handlers.browse_handler import directory_listing_response
from httpd.handlers.cgi_handler import cgi_response
from httpd.handlers.file_handler import static_file_response

DISPATCH_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("httpd.pipeline.dispatcher"), {}
)


class ResourceKind(enum.Enum):
    """Filesystem kinds the dispatcher distinguishes."""

    DIRECTORY = "directory"
    EXECUTABLE = "executable"
    FILE = "file"
    OTHER = "other"


def classify_path(path: str) -> ResourceKind:
    """Inspect filesystem metadata to choose a response strategy.

    Executability is checked before regular-file status, so an executable
    file is always run as CGI and never served as static content.
    """
    try:
        mode = os.stat(path).st_mode
    except OSError as error:
        raise NotFound(path) from error

    if stat.S_ISDIR(mode):
        return ResourceKind.DIRECTORY
    if os.access(path, os.X_OK):
        return ResourceKind.EXECUTABLE
    if stat.S_ISREG(mode) and os.access(path, os.R_OK):
        return ResourceKind.FILE
    return ResourceKind.OTHER


def _resolve(request: Request, config: ServerConfig) -> str:
    try:
        path = resolve_request_path(config.root, request.uri)
    except ForbiddenPath:
        DISPATCH_LOGGER.warning(
            "Forbidden path access blocked",
            extra={"event": "forbidden_path", "uri": request.uri},
        )
        raise
    except NotFound:
        DISPATCH_LOGGER.info(
            "Requested path not found",
            extra={"event": "path_not_found", "uri": request.uri},
        )
        raise
    return str(path)


def _select_response(request: Request, config: ServerConfig) -> HttpResponse:
    request.path = _resolve(request, config)
    if DISPATCH_LOGGER.logger.isEnabledFor(logging.DEBUG):
        DISPATCH_LOGGER.debug(
            "Request path resolved",
            extra={"event": "request_path", "path": request.path},
        )

    kind = classify_path(request.path)
    if kind is ResourceKind.DIRECTORY:
        return directory_listing_response(request)
    if kind is ResourceKind.EXECUTABLE:
        return cgi_response(request, config)
    if kind is ResourceKind.FILE:
        return static_file_response(request, config)
    DISPATCH_LOGGER.info(
        "Unsupported filesystem entry",
        extra={"event": "unsupported_resource", "path": request.path},
    )
    raise UnsupportedResource(request.path)


def dispatch_request(request: Request, config: ServerConfig) -> HttpResponse:
    """Return the single response for a parsed request.

    Failures in resolution or in any strategy become the error page for
    their status; nothing has been written to the connection at that point.
    """
    try:
        response = _select_response(request, config)
    except RequestError as error:
        response = error_response(error.status)

    DISPATCH_LOGGER.info(
        "Request status",
        extra={
            "event": "request_status",
            "method": request.method,
            "uri": request.uri,
            "status_code": response.status.value,
        },
    )
    return response
