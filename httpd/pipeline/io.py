"""HTTP Input/Output operations."""

import logging
from typing import BinaryIO, Tuple

from httpd.domain.connection_id import ConnectionLoggerAdapter
from httpd.domain.errors import MalformedRequest
from httpd.domain.http_types import HttpResponse, Request

IO_LOGGER = ConnectionLoggerAdapter(logging.getLogger("httpd.io"), {})

MAX_LINE_BYTES = 8192
HEADER_ENCODING = "iso-8859-1"
CRLF = "\r\n"
LINE_TERMINATORS = "\r\n"
LEADING_WHITESPACE = " \t\r\n"


def read_line(stream: BinaryIO) -> str:
    """Read one line of at most ``MAX_LINE_BYTES`` bytes from the stream."""
    return stream.readline(MAX_LINE_BYTES).decode(HEADER_ENCODING)


def parse_request_line(request_line: str) -> Tuple[str, str, str]:
    """Split a request line into method, URI and query string.

    The request target is split on its first ``?``: everything before is the
    URI and everything after, further ``?`` included, is the query.
    """
    tokens = request_line.split()
    if len(tokens) < 2:
        raise MalformedRequest("Invalid request line")
    method, target = tokens[0], tokens[1]
    uri, _, query = target.partition("?")
    return method, uri, query


def parse_header_line(line: str) -> Tuple[str, str]:
    """Split a ``Name: Value`` header line on its first colon."""
    name, colon, value = line.partition(":")
    if not colon:
        raise MalformedRequest("Header line without a colon")
    return name, value.lstrip(LEADING_WHITESPACE).rstrip(LINE_TERMINATORS)


def parse_headers(stream: BinaryIO) -> list[tuple[str, str]]:
    """Read header lines until a blank line or end of stream."""
    headers: list[tuple[str, str]] = []
    while True:
        line = read_line(stream)
        if len(line) <= 2:
            break
        name, value = parse_header_line(line)
        headers.append((name, value))
        if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
            IO_LOGGER.debug(
                "Request header parsed",
                extra={
                    "event": "request_header_parsed",
                    "header": name,
                    "value": value,
                },
            )
    if not headers:
        raise MalformedRequest("No request headers")
    return headers


def parse_request(request: Request) -> Request:
    """Populate ``request`` from its connection stream.

    Raises ``MalformedRequest`` when the stream is empty, the request line
    lacks a method or target, a header line has no colon, or no header was
    sent at all.
    """
    request_line = read_line(request.connection)
    if not request_line:
        raise MalformedRequest("Connection closed before request line")

    request.method, request.uri, request.query = parse_request_line(request_line)
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Request line parsed",
            extra={
                "event": "request_line_parsed",
                "method": request.method,
                "uri": request.uri,
                "query": request.query,
            },
        )

    request.headers = parse_headers(request.connection)
    return request


def _encode_head(response: HttpResponse) -> bytes:
    lines = [response.status_line]
    lines.extend(f"{name}: {value}" for name, value in response.headers)
    return (CRLF.join(lines) + CRLF + CRLF).encode(HEADER_ENCODING)


def send_response(stream: BinaryIO, response: HttpResponse) -> int:
    """Serialize the response to the stream and return the body byte count.

    Raw responses (CGI output) are copied as-is with no status line or
    headers added.
    """
    if not response.raw:
        stream.write(_encode_head(response))
    sent = 0
    if response.body:
        stream.write(response.body)
        sent += len(response.body)
    if response.body_iter is not None:
        for chunk in response.body_iter:
            if not chunk:
                continue
            stream.write(chunk)
            sent += len(chunk)
    stream.flush()
    IO_LOGGER.debug(
        "Sent response",
        extra={"status": response.status.value, "bytes_out": sent, "raw": response.raw},
    )
    return sent
