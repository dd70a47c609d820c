"""Listening socket creation."""

import socket

from httpd.bootstrap.config import ServerConfig

ACCEPT_POLL_SECONDS = 0.5


def create_server_socket(config: ServerConfig) -> socket.socket:
    """Bind and listen on the configured address.

    The accept timeout only lets the loop notice a shutdown request; accepted
    client sockets are blocking.
    """
    server_socket = socket.create_server(
        (config.host, config.port), reuse_port=True, backlog=socket.SOMAXCONN
    )
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket
