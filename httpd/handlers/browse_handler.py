"""Directory listing handler."""

import html
import logging
import os
import urllib.parse

from httpd.domain.connection_id import ConnectionLoggerAdapter
from httpd.domain.errors import NotFound
from httpd.domain.http_types import HttpResponse, Request, Status
from httpd.domain.response_builders import html_response

BROWSE_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("httpd.handlers.browse"), {}
)

# os.listdir hands back undecodable bytes as lone surrogates
FILENAME_ERRORS = "surrogateescape"


def scan_directory(path: str) -> list[str]:
    """Return the sorted entries of a directory, ``.`` and ``..`` included."""
    return sorted([os.curdir, os.pardir, *os.listdir(path)])


def entry_href(uri: str, name: str) -> str:
    """Join the request URI and an entry name into a link target."""
    return f"{uri.rstrip('/')}/{urllib.parse.quote(name, errors=FILENAME_ERRORS)}"


def display_name(name: str) -> str:
    """Return ``name`` as printable text, replacing undecodable bytes."""
    raw = name.encode("utf-8", FILENAME_ERRORS)
    return raw.decode("utf-8", "replace")


def directory_listing_response(request: Request) -> HttpResponse:
    """List the directory at ``request.path`` as an HTML list of links."""
    try:
        entries = scan_directory(request.path)
    except OSError as error:
        BROWSE_LOGGER.info(
            "Directory scan failed",
            extra={
                "event": "directory_scan_failed",
                "path": request.path,
                "error_type": type(error).__name__,
            },
        )
        raise NotFound(request.uri) from error

    items = [
        f'<li><a href="{html.escape(entry_href(request.uri, name))}">'
        f"{html.escape(display_name(name))}</a></li>"
        for name in entries
        if name != os.curdir
    ]
    if BROWSE_LOGGER.logger.isEnabledFor(logging.DEBUG):
        BROWSE_LOGGER.debug(
            "Directory listed",
            extra={
                "event": "directory_listed",
                "path": request.path,
                "entries": len(items),
            },
        )
    return html_response(Status.OK, "<ul>\n" + "\n".join(items) + "\n</ul>\n")
