"""Filesystem sandbox utilities for safe path resolution."""

import urllib.parse
from pathlib import Path

from httpd.domain.errors import ForbiddenPath, NotFound


def resolve_request_path(root: str, uri: str) -> Path:
    """Map a request URI to a canonical path inside the root directory.

    The URI is percent-decoded, appended to ``root`` and canonicalized against
    the real filesystem, so ``.``, ``..`` and symlinks are all resolved before
    the containment check. A path that does not exist raises ``NotFound``; a
    path that resolves outside the root raises ``ForbiddenPath``.
    """
    decoded = urllib.parse.unquote(uri)
    if "\x00" in decoded:
        raise NotFound(uri)

    root_path = Path(root).resolve()
    try:
        target = Path(f"{root_path}{decoded}").resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise NotFound(uri) from exc

    if not (target == root_path or root_path in target.parents):
        raise ForbiddenPath(uri)
    return target
