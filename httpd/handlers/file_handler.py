"""Static file serving handler."""

import logging
import os
from typing import BinaryIO, Iterator

from httpd.bootstrap.config import ServerConfig
from httpd.domain.connection_id import ConnectionLoggerAdapter
from httpd.domain.errors import DispatchFailure, NotFound
from httpd.domain.http_types import HttpResponse, Request, Status
from httpd.domain.mime_types import determine_mimetype

FILE_LOGGER = ConnectionLoggerAdapter(logging.getLogger("httpd.handlers.file"), {})

CHUNK_SIZE = 8192


def stream_file(file_handle: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield file contents in fixed-size chunks until end of file."""
    while True:
        chunk = file_handle.read(chunk_size)
        if not chunk:
            break
        if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
            FILE_LOGGER.debug(
                "File chunk sent",
                extra={"event": "file_chunk_sent", "bytes": len(chunk)},
            )
        yield chunk


def static_file_response(request: Request, config: ServerConfig) -> HttpResponse:
    """Stream the regular file at ``request.path`` with its content type."""
    try:
        file_handle = open(request.path, "rb")
    except OSError as error:
        FILE_LOGGER.info(
            "File could not be opened",
            extra={
                "event": "file_open_failed",
                "path": request.path,
                "error_type": type(error).__name__,
            },
        )
        raise NotFound(request.uri) from error

    mimetype = determine_mimetype(
        request.path, config.mime_types_path, config.default_mime_type
    )
    if not mimetype:
        file_handle.close()
        raise DispatchFailure("No content type for file")
    try:
        size = os.fstat(file_handle.fileno()).st_size
    except OSError as error:
        file_handle.close()
        raise DispatchFailure(str(error)) from error

    if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
        FILE_LOGGER.debug(
            "File streaming started",
            extra={
                "event": "file_streaming_started",
                "path": request.path,
                "content_type": mimetype,
                "bytes": size,
            },
        )
    return HttpResponse(
        Status.OK,
        [("Content-Type", mimetype), ("Content-Length", str(size))],
        body_iter=stream_file(file_handle),
        cleanup=file_handle.close,
    )
