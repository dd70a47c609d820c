"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Generator, TypedDict

import pytest

from tests.utils.http import reserve_port, wait_for_port

if TYPE_CHECKING:
    from _pytest.tmpdir import TempPathFactory

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SERVER_ENTRYPOINT = PROJECT_ROOT / "main.py"

MIME_RULES = """\
# test mime rules
text/html\t\t\t\thtml htm
text/css\t\t\t\tcss
image/png\t\t\t\tpng
"""


class ServerProcessInfo(TypedDict):
    """Metadata describing a running server fixture instance."""

    base_url: str
    host: str
    port: int
    root: Path
    process: subprocess.Popen[bytes]
    log_file: Path


def populate_root(root: Path) -> None:
    """Create the document tree served by integration tests."""

    (root / "index.html").write_bytes(b"<h1>hello</h1>\n")
    (root / "notes.txt").write_text("plain notes\n")
    (root / "docs").mkdir()
    (root / "docs" / "guide.css").write_text("body { margin: 0; }\n")
    script = root / "env.cgi"
    script.write_text(
        "#!/bin/sh\n"
        "printf 'HTTP/1.0 200 OK\\r\\n'\n"
        "printf 'Content-Type: text/plain\\r\\n\\r\\n'\n"
        'echo "query=$QUERY_STRING"\n'
        'echo "method=$REQUEST_METHOD"\n'
        'echo "agent=$HTTP_USER_AGENT"\n'
    )
    script.chmod(0o755)
    slow = root / "slow.cgi"
    slow.write_text(
        "#!/bin/sh\n"
        "sleep 2\n"
        "printf 'HTTP/1.0 200 OK\\r\\nContent-Type: text/plain\\r\\n\\r\\nslow\\n'\n"
    )
    slow.chmod(0o755)


def _launch_server(
    host: str,
    port: int,
    root: Path,
    log_file: Path,
    extra_args: list[str] | None = None,
) -> Generator[ServerProcessInfo, None, None]:
    mime_file = log_file.parent / "mime.types"
    mime_file.write_text(MIME_RULES)
    args = [
        sys.executable,
        str(SERVER_ENTRYPOINT),
        "--root",
        str(root),
        "--host",
        host,
        "--port",
        str(port),
        "--mime-types",
        str(mime_file),
        "--log-destination",
        str(log_file),
    ]
    if extra_args:
        args.extend(extra_args)

    with subprocess.Popen(
        args,
        cwd=PROJECT_ROOT,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    ) as process:
        try:
            wait_for_port(host, port)
        except Exception:
            process.terminate()
            stdout, stderr = process.communicate(timeout=5)
            print(f"\nServer stdout:\n{stdout.decode()}")
            print(f"\nServer stderr:\n{stderr.decode()}")
            raise

        yield {
            "base_url": f"http://{host}:{port}",
            "host": host,
            "port": port,
            "root": root,
            "process": process,
            "log_file": log_file,
        }

        process.terminate()
        try:
            process.wait(timeout=10)
        except subprocess.TimeoutExpired:
            process.kill()


def _server_fixture(
    tmp_path_factory: "TempPathFactory", extra_args: list[str] | None = None
) -> Generator[ServerProcessInfo, None, None]:
    host = "127.0.0.1"
    port = reserve_port(host)
    root = tmp_path_factory.mktemp("www")
    populate_root(root)
    log_dir = tmp_path_factory.mktemp("logs")
    yield from _launch_server(host, port, root, log_dir / "server.log", extra_args)


@pytest.fixture(name="server_process")
def _server_process(
    tmp_path_factory: "TempPathFactory",
) -> Generator[ServerProcessInfo, None, None]:
    """Launch the server in single mode in a background process."""

    yield from _server_fixture(tmp_path_factory)


@pytest.fixture(name="concurrent_server_process")
def _concurrent_server_process(
    tmp_path_factory: "TempPathFactory",
) -> Generator[ServerProcessInfo, None, None]:
    """Launch the server with one worker per connection."""

    yield from _server_fixture(tmp_path_factory, ["--concurrency", "concurrent"])


@pytest.fixture()
def base_url(server_process: ServerProcessInfo) -> str:
    """Expose the running server base URL to integration tests."""

    return server_process["base_url"]
