"""Shared fixtures for unit tests."""

import logging
from pathlib import Path

import pytest

from httpd.bootstrap.config import ServerConfig


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Ensure logs propagate to root so caplog can catch them."""
    logger = logging.getLogger("httpd")
    old_propagate = logger.propagate
    old_level = logger.level
    old_handlers = list(logger.handlers)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    yield
    for handler in logger.handlers:
        if handler not in old_handlers:
            handler.close()
    logger.handlers[:] = old_handlers
    logger.setLevel(old_level)
    logger.propagate = old_propagate


@pytest.fixture(name="mime_file")
def fixture_mime_file(tmp_path: Path) -> Path:
    """Write a small mime.types rules file."""
    rules = tmp_path / "mime.types"
    rules.write_text(
        "# comment line\n"
        "\n"
        "text/html\t\thtml htm\n"
        "text/css\t\tcss\n"
        "application/x-tar\ttar\n"
        "application/gzip\tgz\n"
    )
    return rules


@pytest.fixture(name="web_root")
def fixture_web_root(tmp_path: Path) -> Path:
    """Create an empty document root next to the rules file."""
    root = tmp_path / "www"
    root.mkdir()
    return root.resolve()


@pytest.fixture(name="config")
def fixture_config(web_root: Path, mime_file: Path) -> ServerConfig:
    """Server configuration rooted at the temporary document root."""
    return ServerConfig(
        root=str(web_root),
        port=9898,
        host="127.0.0.1",
        mime_types_path=str(mime_file),
        default_mime_type="text/plain",
    )
