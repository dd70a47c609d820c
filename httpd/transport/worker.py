"""Handling unit: one connection's full request/response cycle."""

import logging
import socket
import threading

from httpd.domain.connection_id import (
    ConnectionLoggerAdapter,
    clear_connection_id,
    generate_connection_id,
    set_connection_id,
)
from httpd.domain.errors import MalformedRequest
from httpd.domain.http_types import HttpResponse, Request
from httpd.domain.response_builders import bad_request_response
from httpd.pipeline.dispatcher import dispatch_request
from httpd.pipeline.io import parse_request, send_response
from httpd.transport.context import WorkerContext

WORKER_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("httpd.transport.worker"), {}
)


def open_request(
    client_socket: socket.socket, client_address: tuple
) -> Request:
    """Wrap an accepted socket in a Request that owns its stream."""
    client_socket.setblocking(True)
    return Request(
        connection=client_socket.makefile("rwb"),
        host=str(client_address[0]),
        port=str(client_address[1]),
        client_socket=client_socket,
    )


def _build_response(request: Request, context: WorkerContext) -> HttpResponse:
    try:
        parse_request(request)
    except MalformedRequest as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": f"{request.host}:{request.port}",
                "reason": str(error),
            },
        )
        return bad_request_response()
    return dispatch_request(request, context.config)


def handle_connection(
    client_socket: socket.socket,
    client_address: tuple,
    context: WorkerContext,
) -> None:
    """Parse, dispatch and answer one request, then close the connection.

    Every exit path closes the response resources and the request stream
    exactly once; no exception escapes to the caller.
    """
    set_connection_id(generate_connection_id())
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    request = open_request(client_socket, client_address)
    response = None

    WORKER_LOGGER.debug(
        "Request processing started",
        extra={"event": "request_started", "client": client_addr_str},
    )
    try:
        response = _build_response(request, context)
        send_response(request.connection, response)
        WORKER_LOGGER.debug(
            "Request processing complete",
            extra={
                "event": "request_complete",
                "client": client_addr_str,
                "status_code": response.status.value,
            },
        )
    except (ConnectionError, OSError, ValueError) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={
                "event": "connection_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
    finally:
        try:
            if response is not None:
                response.close()
        finally:
            request.close()
            WORKER_LOGGER.debug(
                "Socket closed",
                extra={"event": "socket_closed", "client": client_addr_str},
            )
            clear_connection_id()


def run_worker(
    client_socket: socket.socket,
    client_address: tuple,
    context: WorkerContext,
) -> None:
    """Thread target: run a handling unit registered with the lifecycle."""
    current_thread = threading.current_thread()
    lifecycle = context.lifecycle
    if lifecycle is not None:
        lifecycle.register_worker(current_thread)
    try:
        handle_connection(client_socket, client_address, context)
    finally:
        if lifecycle is not None:
            lifecycle.cleanup_worker(current_thread)
