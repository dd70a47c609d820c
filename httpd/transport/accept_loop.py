"""Main connection acceptance loop."""

import logging
import socket
import time
from typing import Optional

from httpd.bootstrap.config import ConcurrencyMode, ServerConfig
from httpd.bootstrap.socket_factory import create_server_socket
from httpd.domain.connection_id import ConnectionLoggerAdapter
from httpd.lifecycle.state import ServerLifecycle
from httpd.transport.concurrency import strategy_for
from httpd.transport.context import WorkerContext

ACCEPT_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("httpd.transport.accept"), {}
)

ACCEPT_RETRY_SECONDS = 0.1


def _accept_failed(error: OSError, config: ServerConfig) -> None:
    """Log an accept failure and re-raise it when it must stop the server.

    A survivable failure pauses the loop briefly so a persistent error such as
    descriptor exhaustion does not spin.
    """
    fatal = config.concurrency is ConcurrencyMode.SINGLE
    ACCEPT_LOGGER.log(
        logging.CRITICAL if fatal else logging.ERROR,
        "Socket accept failed",
        extra={
            "event": "accept_error",
            "error_type": type(error).__name__,
            "fatal": fatal,
        },
    )
    if fatal:
        raise error
    time.sleep(ACCEPT_RETRY_SECONDS)


def serve(
    server_socket: socket.socket,
    config: ServerConfig,
    lifecycle: ServerLifecycle,
) -> None:
    """Accept connections until shutdown, handing each to the strategy."""
    context = WorkerContext(config=config, lifecycle=lifecycle)
    handle = strategy_for(config.concurrency)

    while not lifecycle.should_stop():
        try:
            client_socket, client_address = server_socket.accept()
        except socket.timeout:
            continue
        except OSError as error:
            if lifecycle.should_stop():
                break
            _accept_failed(error, config)
            continue

        if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
            ACCEPT_LOGGER.debug(
                "Client connection accepted",
                extra={
                    "event": "client_accepted",
                    "client": f"{client_address[0]}:{client_address[1]}",
                },
            )
        handle(client_socket, client_address, context)


def run_server(
    config: ServerConfig,
    lifecycle: ServerLifecycle,
    server_socket: Optional[socket.socket] = None,
) -> None:
    """Create the listening socket and run the accept loop until shutdown."""
    if server_socket is None:
        server_socket = create_server_socket(config)

    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": config.host,
            "port": config.port,
            "concurrency": config.concurrency.value,
        },
    )

    try:
        serve(server_socket, config, lifecycle)
    finally:
        server_socket.close()
        if lifecycle.active_worker_count():
            ACCEPT_LOGGER.info(
                "Waiting for active connections to complete",
                extra={
                    "event": "shutdown_waiting",
                    "shutdown_grace_seconds": config.shutdown_grace_seconds,
                },
            )
            lifecycle.wait_for_workers(config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})
