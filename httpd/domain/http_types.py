"""Shared HTTP type definitions to avoid circular imports."""

import enum
import socket
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Iterable, Optional

PROTOCOL_VERSION = "HTTP/1.0"


class Status(enum.IntEnum):
    """The closed set of statuses the server can answer with."""

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500

    @property
    def reason(self) -> str:
        return _REASON_PHRASES[self]

    @property
    def status_line(self) -> str:
        return f"{PROTOCOL_VERSION} {self.value} {self.reason}"

    def __str__(self) -> str:
        return f"{self.value} {self.reason}"


_REASON_PHRASES = {
    Status.OK: "OK",
    Status.BAD_REQUEST: "Bad Request",
    Status.NOT_FOUND: "Not Found",
    Status.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


@dataclass
class Request:
    """One accepted connection and the request parsed from it."""

    connection: BinaryIO
    host: str = ""
    port: str = ""
    client_socket: Optional[socket.socket] = None
    method: Optional[str] = None
    uri: Optional[str] = None
    query: Optional[str] = None
    headers: list[tuple[str, str]] = field(default_factory=list)
    path: Optional[str] = None
    closed: bool = False

    def header(self, name: str) -> Optional[str]:
        """Return the last value sent for a header name, ignoring case."""
        wanted = name.lower()
        value = None
        for header_name, header_value in self.headers:
            if header_name.lower() == wanted:
                value = header_value
        return value

    def close(self) -> None:
        """Flush and close the connection stream and socket exactly once."""
        if self.closed:
            return
        self.closed = True
        try:
            self.connection.flush()
        except (OSError, ValueError):
            pass
        if self.client_socket is not None:
            try:
                self.client_socket.shutdown(socket.SHUT_WR)
            except OSError:
                pass
        try:
            self.connection.close()
        except OSError:
            pass
        if self.client_socket is not None:
            self.client_socket.close()


@dataclass
class HttpResponse:
    """A single terminal response decision, written once to the connection."""

    status: Status
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    body_iter: Optional[Iterable[bytes]] = None
    raw: bool = False
    cleanup: Optional[Callable[[], None]] = None

    @property
    def status_line(self) -> str:
        return self.status.status_line

    def close(self) -> None:
        """Release any file or subprocess handle held by the body."""
        cleanup, self.cleanup = self.cleanup, None
        if cleanup is not None:
            cleanup()
