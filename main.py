"""HTTP/1.0 server for static files, directory listings and CGI scripts."""

import logging
import signal
import sys
from typing import Optional

from httpd.bootstrap.config import build_server_config, parse_cli_args
from httpd.bootstrap.logging_setup import configure_logging
from httpd.bootstrap.socket_factory import create_server_socket
from httpd.domain.connection_id import ConnectionLoggerAdapter
from httpd.domain.errors import ConfigurationError
from httpd.lifecycle.state import ServerLifecycle
from httpd.transport.accept_loop import run_server

SERVER_LOGGER = ConnectionLoggerAdapter(logging.getLogger("httpd.server"), {})


def main(argv: Optional[list[str]] = None) -> int:
    """Parse options, bind the listening socket and serve until shutdown."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(
        args.log_level, args.log_destination, use_json=args.log_format == "json"
    )

    try:
        config = build_server_config(args)
    except ConfigurationError as error:
        SERVER_LOGGER.critical(
            "Invalid configuration",
            extra={"event": "configuration_error", "error": str(error)},
        )
        return 1

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": config.host,
            "port": config.port,
            "root": config.root,
            "mime_types_path": config.mime_types_path,
            "default_mime_type": config.default_mime_type,
            "concurrency": config.concurrency.value,
        },
    )

    try:
        server_socket = create_server_socket(config)
    except OSError as error:
        SERVER_LOGGER.critical(
            "Server socket could not be established",
            extra={
                "event": "socket_setup_failed",
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        return 1

    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "shutdown_signal", "signal": signum},
        )
        lifecycle.begin_shutdown()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    try:
        run_server(config, lifecycle, server_socket)
    except OSError:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
