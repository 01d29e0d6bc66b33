"""
=============================================================================
CORE MODULE
=============================================================================

Low-level networking: the listening socket and the per-client connection.

    SocketServer   bind, listen, sequential accept loop
    Connection     one client: single read, writes, close-once

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
]
