"""Concurrency strategies deciding how an accepted connection is handled."""

import logging
import socket
import threading
from typing import Callable

from httpd.bootstrap.config import ConcurrencyMode
from httpd.domain.connection_id import ConnectionLoggerAdapter
from httpd.transport.context import WorkerContext
from httpd.transport.worker import handle_connection, run_worker

CONCURRENCY_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("httpd.transport.concurrency"), {}
)

ConnectionStrategy = Callable[[socket.socket, tuple, WorkerContext], None]


def handle_sequentially(
    client_socket: socket.socket, client_address: tuple, context: WorkerContext
) -> None:
    """Run the whole request cycle on the calling thread before returning."""
    handle_connection(client_socket, client_address, context)


def handle_concurrently(
    client_socket: socket.socket, client_address: tuple, context: WorkerContext
) -> None:
    """Hand the connection to a new worker thread and return immediately.

    The worker is never joined by the caller; it finishes on its own and its
    failures stay inside it. When no thread can be started the connection is
    dropped and the loop keeps accepting.
    """
    thread = threading.Thread(
        target=run_worker,
        args=(client_socket, client_address, context),
        name=f"httpd-worker-{client_address[0]}:{client_address[1]}",
        daemon=True,
    )
    try:
        thread.start()
    except RuntimeError as error:
        CONCURRENCY_LOGGER.error(
            "Worker could not be started",
            extra={
                "event": "worker_start_failed",
                "client": f"{client_address[0]}:{client_address[1]}",
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        client_socket.close()
        return
    if CONCURRENCY_LOGGER.logger.isEnabledFor(logging.DEBUG):
        CONCURRENCY_LOGGER.debug(
            "Worker started",
            extra={
                "event": "worker_started",
                "client": f"{client_address[0]}:{client_address[1]}",
                "worker": thread.name,
            },
        )


STRATEGIES: dict[ConcurrencyMode, ConnectionStrategy] = {
    ConcurrencyMode.SINGLE: handle_sequentially,
    ConcurrencyMode.CONCURRENT: handle_concurrently,
}


def strategy_for(mode: ConcurrencyMode) -> ConnectionStrategy:
    """Return the connection strategy for a concurrency mode."""
    return STRATEGIES[ConcurrencyMode(mode)]
