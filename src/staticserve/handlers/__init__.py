"""
=============================================================================
HANDLERS MODULE
=============================================================================

Turning a request path into bytes on the wire.

    PathResolver        raw request path ──► absolute path under web root
    StaticFileHandler   absolute path    ──► 200 stream / 404 / 500

=============================================================================
"""

from .paths import PathResolver
from .static import StaticFileHandler, StreamState

__all__ = [
    "PathResolver",
    "StaticFileHandler",
    "StreamState",
]
