"""Server configuration and CLI argument parsing."""

import argparse
import enum
import os
from dataclasses import dataclass, field
from pathlib import Path

from httpd.domain.errors import ConfigurationError


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


class ConcurrencyMode(str, enum.Enum):
    """How the accept loop turns connections into handled requests."""

    SINGLE = "single"
    CONCURRENT = "concurrent"


DEFAULT_ROOT = _env_str("HTTPD_ROOT", "www")
DEFAULT_HOST = _env_str("HTTPD_HOST", "0.0.0.0")
DEFAULT_PORT = _env_int("HTTPD_PORT", 9898)
DEFAULT_MIME_TYPES_PATH = _env_str("HTTPD_MIME_TYPES", "/etc/mime.types")
DEFAULT_MIME_TYPE = _env_str("HTTPD_DEFAULT_MIME_TYPE", "text/plain")
DEFAULT_CONCURRENCY = _env_str("HTTPD_CONCURRENCY", ConcurrencyMode.SINGLE.value)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("HTTPD_SHUTDOWN_GRACE_SECONDS", 5)
DEFAULT_CGI_INHERIT_ENV = _env_bool("HTTPD_CGI_INHERIT_ENV", True)


@dataclass(frozen=True)
class ServerConfig:
    """Immutable settings built once at startup and passed to every component."""

    root: str
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    mime_types_path: str = DEFAULT_MIME_TYPES_PATH
    default_mime_type: str = DEFAULT_MIME_TYPE
    concurrency: ConcurrencyMode = ConcurrencyMode.SINGLE
    shutdown_grace_seconds: int = DEFAULT_SHUTDOWN_GRACE_SECONDS
    cgi_inherit_env: bool = DEFAULT_CGI_INHERIT_ENV
    cgi_environment: dict[str, str] = field(default_factory=dict)


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(
        description="HTTP/1.0 server for static files, directory listings and CGI"
    )
    parser.add_argument(
        "-r", "--root", default=DEFAULT_ROOT, help="Root directory to serve"
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="Address to bind")
    parser.add_argument(
        "-p", "--port", type=int, default=DEFAULT_PORT, help="Port to listen on"
    )
    parser.add_argument(
        "-m",
        "--mime-types",
        dest="mime_types",
        default=DEFAULT_MIME_TYPES_PATH,
        help="Path to the mime.types rules file",
    )
    parser.add_argument(
        "-M",
        "--default-mime-type",
        default=DEFAULT_MIME_TYPE,
        help="Content type used when no rule matches",
    )
    parser.add_argument(
        "-c",
        "--concurrency",
        default=DEFAULT_CONCURRENCY,
        choices=[mode.value for mode in ConcurrencyMode],
        type=str.lower,
        help="single: one connection at a time; concurrent: a worker per connection",
    )
    default_log_level = os.getenv("HTTPD_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("HTTPD_LOG_DESTINATION", "stdout")
    default_log_format = os.getenv("HTTPD_LOG_FORMAT", "json").lower()
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=default_log_format,
        choices=["json", "text"],
        type=str.lower,
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Seconds to let in-flight connections finish on shutdown",
    )
    parser.add_argument(
        "--cgi-env",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Extra environment variable for CGI scripts (repeatable)",
    )
    parser.add_argument(
        "--cgi-inherit-env",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_CGI_INHERIT_ENV,
        help="Pass the server's own environment through to CGI scripts",
    )
    return parser.parse_args(argv)


def parse_cgi_assignments(assignments: list[str]) -> dict[str, str]:
    """Turn ``NAME=VALUE`` strings into a mapping."""
    environment = {}
    for assignment in assignments:
        name, equals, value = assignment.partition("=")
        if not equals or not name:
            raise ConfigurationError(f"Invalid CGI variable: {assignment!r}")
        environment[name] = value
    return environment


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    """Validate parsed arguments and freeze them into a ServerConfig."""
    root = Path(args.root)
    try:
        canonical_root = root.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise ConfigurationError(f"Root directory not found: {args.root}") from exc
    if not canonical_root.is_dir():
        raise ConfigurationError(f"Root is not a directory: {args.root}")

    return ServerConfig(
        root=str(canonical_root),
        port=args.port,
        host=args.host,
        mime_types_path=args.mime_types,
        default_mime_type=args.default_mime_type,
        concurrency=ConcurrencyMode(args.concurrency),
        shutdown_grace_seconds=args.shutdown_grace_seconds,
        cgi_inherit_env=args.cgi_inherit_env,
        cgi_environment=parse_cgi_assignments(args.cgi_env),
    )
