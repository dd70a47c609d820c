"""Context object shared by the accept loop and its handling units."""

from dataclasses import dataclass
from typing import Optional

from httpd.bootstrap.config import ServerConfig
from httpd.lifecycle.state import ServerLifecycle


@dataclass(frozen=True)
class WorkerContext:
    """Read-only dependencies every handling unit receives."""

    config: ServerConfig
    lifecycle: Optional[ServerLifecycle] = None
