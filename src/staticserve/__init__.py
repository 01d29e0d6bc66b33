"""
=============================================================================
STATICSERVE - Minimal Static File Server Over Raw Sockets
=============================================================================

Serves files from a directory over HTTP/1.x, one connection at a time,
using nothing but the socket module.

=============================================================================
WHAT IT DOES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   GET /css/site.css HTTP/1.1                                        │
    │        │                                                            │
    │        ▼                                                            │
    │   parse request line ──► sanitize path ──► stream file in chunks    │
    │                                                                     │
    │   HTTP/1.1 200 OK                                                   │
    │   Content-Type: text/css                                            │
    │   Content-Length: 48213                                             │
    │   Cache-Control: public, max-age=3600                               │
    │   Connection: close                                                 │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

    - GET only (anything else: 405)
    - One request per connection, always "Connection: close"
    - Only the request line is read; headers are ignored
    - Paths containing ".." are refused (400)
    - Files are streamed, never loaded whole into memory
    - Sequential: one connection is answered before the next is accepted

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    staticserve/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m staticserve)
    ├── server.py            # StaticServer: per-connection flow
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # Exception taxonomy
    ├── events.py            # Packet and access log records
    ├── core/
    │   ├── socket_server.py # Listening socket, accept loop
    │   └── connection.py    # Client connection wrapper
    ├── http/
    │   ├── request.py       # Request-line parsing
    │   ├── response.py      # Response building and writing
    │   ├── status_codes.py  # HTTPStatus enum
    │   └── mime_types.py    # Extension → Content-Type
    ├── handlers/
    │   ├── paths.py         # Path sanitization and resolution
    │   └── static.py        # File streaming, 404 handling
    └── status/
        └── 404.html         # Default not-found page

=============================================================================
QUICK START
=============================================================================

    from staticserve import StaticServer, ServerConfig

    server = StaticServer(ServerConfig(web_root="./public", port=9001))
    server.run()

or from a shell:

    python -m staticserve ./public --port 9001

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import StaticServer

__all__ = ["StaticServer", "ServerConfig", "__version__"]
