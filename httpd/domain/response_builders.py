"""Pure HTTP response builders."""

import html

from httpd.domain.http_types import HttpResponse, Status

HTML_CONTENT_TYPE = "text/html"


def html_response(status: Status, markup: str) -> HttpResponse:
    """Return a fully buffered text/html response."""
    payload = markup.encode("utf-8", "surrogateescape")
    return HttpResponse(
        status,
        [
            ("Content-Type", HTML_CONTENT_TYPE),
            ("Content-Length", str(len(payload))),
        ],
        payload,
    )


def error_response(status: Status) -> HttpResponse:
    """Produce the HTML error page naming the given status."""
    title = html.escape(str(status))
    markup = (
        f"<html><head><title>{title}</title></head>"
        f"<body><h1>{title}</h1></body></html>\n"
    )
    return html_response(status, markup)


def bad_request_response() -> HttpResponse:
    """Produce a 400 page for requests that could not be parsed."""
    return error_response(Status.BAD_REQUEST)
