"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the static file server.

=============================================================================
WHERE VALUES COME FROM
=============================================================================

    ServerConfig(...)            Code (tests, embedding)
    ServerConfig.from_env()      STATICSERVE_* environment variables
    python -m staticserve ...    CLI flags (see __main__.py)

All three produce the same dataclass. Once the server starts, the config
is only read, never written: nothing else is shared between connections.

=============================================================================
THE FILES
=============================================================================

    web_root/                    ◄── web_root (served)
    ├── index.html               ◄── index_file: served for "/" and for
    ├── css/site.css                 any directory
    └── ...

    staticserve/status/404.html  ◄── page_404: OUTSIDE the web root, so a
                                     client can never request it directly

=============================================================================
"""

import os
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .http.mime_types import MIME_TYPES


# The bundled not-found page lives next to the package, not in the web root
DEFAULT_PAGE_404 = str(Path(__file__).resolve().parent / "status" / "404.html")


@dataclass
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port, backlog, buffer_size, timeout, accept_delay

    FILES
    - web_root, index_file, page_404, chunk_size, mime_types, cache_max_age

    BEHAVIOR
    - single_not_found

    LOGGING
    - log_level, log_format, stream_gap

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind. All interfaces by default."""

    port: int = 9001
    """Port to listen on. 0 lets the OS pick one (tests)."""

    backlog: int = socket.SOMAXCONN
    """Listen queue length."""

    buffer_size: int = 8192
    """
    Size of the single read done per connection.
    The request line must fit in this many bytes or the client gets 400.
    """

    timeout: Optional[float] = None
    """
    Read/write deadline for client sockets, in seconds.
    None = no deadline: a client that never sends data holds the server.
    """

    accept_delay: float = 1 / 1028
    """Pause before each accept(). Paces the loop; 0 disables it."""

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    web_root: str = field(default_factory=os.getcwd)
    """
    Directory under which every served file must resolve.
    Defaults to the directory the server is launched from, not the
    directory holding the installed package or console script.
    """

    index_file: str = "index.html"
    """File name, relative to web_root, served for "/" and directories."""

    page_404: str = DEFAULT_PAGE_404
    """HTML page sent ahead of the 404 for missing .html/.htm requests."""

    chunk_size: int = 8192
    """Bytes read from disk and written to the socket per chunk."""

    mime_types: Dict[str, str] = field(default_factory=lambda: dict(MIME_TYPES))
    """Extension (lowercase, no dot) → content type."""

    cache_max_age: int = 3600
    """Cache-Control max-age for served files, in seconds."""

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOR
    # ─────────────────────────────────────────────────────────────────────

    single_not_found: bool = False
    """
    When False (the default) a missing .html/.htm request gets the custom
    404 page (under a 200 head) FOLLOWED BY a generic 404 response. When
    True only the generic 404 is sent.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG shows every streamed chunk; INFO shows heads and responses."""

    log_format: str = "text"
    """Packet/access log format: 'text' or 'json'."""

    stream_gap: float = 5.0
    """Idle seconds after which the next connection starts a new stream."""

    def __post_init__(self):
        self.web_root = os.path.abspath(self.web_root)

    # ─────────────────────────────────────────────────────────────────────
    # DERIVED PATHS
    # ─────────────────────────────────────────────────────────────────────

    @property
    def index_path(self) -> str:
        """Absolute path of the index file. Always inside web_root."""
        return os.path.join(self.web_root, self.index_file)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATICSERVE_HOST        Bind address (default: 0.0.0.0)
        STATICSERVE_PORT        Port (default: 9001)
        STATICSERVE_WEB_ROOT    Web root (default: current directory)
        STATICSERVE_CHUNK_SIZE  Streaming chunk size (default: 8192)
        STATICSERVE_LOG_LEVEL   Logging level (default: INFO)
        STATICSERVE_LOG_FORMAT  text or json (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("STATICSERVE_HOST", "0.0.0.0"),
            port=int(os.getenv("STATICSERVE_PORT", "9001")),
            web_root=os.getenv("STATICSERVE_WEB_ROOT") or os.getcwd(),
            chunk_size=int(os.getenv("STATICSERVE_CHUNK_SIZE", "8192")),
            log_level=os.getenv("STATICSERVE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("STATICSERVE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values. Fails fast with ValueError.

        The web root must exist; the 404 page need not (it is optional at
        request time).
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not os.path.isdir(self.web_root):
            raise ValueError(f"Web root is not a directory: {self.web_root}")

        if not self.index_file or os.path.isabs(self.index_file) or ".." in self.index_file:
            raise ValueError(f"index_file must be a relative name: {self.index_file!r}")

        if self.buffer_size < 16:
            raise ValueError("buffer_size must be >= 16")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.accept_delay < 0:
            raise ValueError("accept_delay must be >= 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', not {self.log_format!r}")
