"""CGI script execution handler."""

import logging
import os
import subprocess
from typing import Iterator

from httpd.bootstrap.config import ServerConfig
from httpd.domain.connection_id import ConnectionLoggerAdapter
from httpd.domain.errors import DispatchFailure
from httpd.domain.http_types import PROTOCOL_VERSION, HttpResponse, Request, Status

CGI_LOGGER = ConnectionLoggerAdapter(logging.getLogger("httpd.handlers.cgi"), {})

SERVER_SOFTWARE = "httpd/1.0"


def _header_variable(name: str) -> str:
    return "HTTP_" + name.strip().upper().replace("-", "_")


def build_cgi_environment(request: Request, config: ServerConfig) -> dict[str, str]:
    """Build the environment handed to a CGI script for this request.

    Request headers are exported as ``HTTP_*`` variables; the fixed CGI
    variables override them, and operator-supplied extras override both.
    """
    environment = dict(os.environ) if config.cgi_inherit_env else {}

    forwarded: dict[str, list[str]] = {}
    for name, value in request.headers:
        forwarded.setdefault(_header_variable(name), []).append(value)
    environment.update({key: ", ".join(values) for key, values in forwarded.items()})

    environment.update(
        {
            "GATEWAY_INTERFACE": "CGI/1.1",
            "SERVER_PROTOCOL": PROTOCOL_VERSION,
            "SERVER_SOFTWARE": SERVER_SOFTWARE,
            "QUERY_STRING": request.query or "",
            "REQUEST_METHOD": request.method or "",
            "REQUEST_URI": request.uri or "",
            "SCRIPT_NAME": request.uri or "",
            "SCRIPT_FILENAME": request.path or "",
            "DOCUMENT_ROOT": config.root,
            "REMOTE_ADDR": request.host,
            "REMOTE_PORT": request.port,
            "SERVER_PORT": str(config.port),
            "HTTP_HOST": request.header("Host") or config.host,
            "HTTP_USER_AGENT": request.header("User-Agent") or "",
        }
    )
    environment.update(config.cgi_environment)
    return environment


def _copy_output(process: subprocess.Popen) -> Iterator[bytes]:
    """Yield the script's standard output line by line."""
    yield from process.stdout


def _reap(process: subprocess.Popen, script: str) -> None:
    process.stdout.close()
    returncode = process.wait()
    if returncode != 0:
        CGI_LOGGER.warning(
            "CGI script exited with non-zero status",
            extra={"event": "cgi_exit_status", "path": script, "returncode": returncode},
        )


def cgi_response(request: Request, config: ServerConfig) -> HttpResponse:
    """Run the executable at ``request.path`` and relay its output verbatim.

    The script is responsible for its own status line and headers; nothing
    is added or rewritten by the server.
    """
    script = request.path
    try:
        process = subprocess.Popen(  # pylint: disable=consider-using-with
            [script],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            env=build_cgi_environment(request, config),
            cwd=os.path.dirname(script),
        )
    except OSError as error:
        CGI_LOGGER.error(
            "CGI script could not be started",
            extra={
                "event": "cgi_invocation_failed",
                "path": script,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        raise DispatchFailure(str(error)) from error

    CGI_LOGGER.info(
        "CGI script started",
        extra={"event": "cgi_started", "path": script, "pid": process.pid},
    )
    return HttpResponse(
        Status.OK,
        body_iter=_copy_output(process),
        raw=True,
        cleanup=lambda: _reap(process, script),
    )
