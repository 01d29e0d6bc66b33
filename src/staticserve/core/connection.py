"""
=============================================================================
CONNECTION WRAPPER
=============================================================================

Wraps one accepted client socket with exactly the operations the server
needs: one read, any number of writes, and a close that happens once.

=============================================================================
ONE READ, NO LOOP
=============================================================================

TCP is a byte stream: a single recv() may return part of a request line,
the whole request, or the request plus some body. A general-purpose server
loops until it sees "\r\n\r\n". This one does NOT.

    accept() ──► recv(buffer_size) ──► parse ──► respond ──► close
                 └── once ──┘

Whatever the first recv() returns is everything the server will ever
look at. Zero bytes means the client went away before saying anything,
and the connection is closed without a response.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► WRITING ──► CLOSED
     │         │                      ▲
     │         └── nothing read ──────┤
     └─────────────────────────────────┘  (close() from any state)

close() is idempotent. The connection handler always uses the connection
as a context manager, so every branch (success, 4xx, 5xx, transport
failure, unexpected exception) ends in exactly one real socket close:

    with conn:
        data = conn.read_once()
        ...
    # socket closed here, whatever happened above

=============================================================================
TIMEOUTS
=============================================================================

By default there are none: a client that connects and never sends holds
the (sequential) server until it gives up. Setting ServerConfig.timeout
applies a read/write deadline to the client socket; an expired read is
treated like an empty read, an expired write like any other send failure.

=============================================================================
"""

import enum
import itertools
import logging
import socket
import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..errors import TransportError


logger = logging.getLogger(__name__)

# Short, readable ids for log correlation: "c1", "c2", ...
_connection_ids = itertools.count(1)


class ConnectionState(enum.Enum):
    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One accepted client connection.

    Attributes:
        socket: The client socket returned by accept().
        address: (ip, port) of the client.
        buffer_size: Upper bound for the single read.
        timeout: Optional read/write deadline in seconds. None = block.
    """

    socket: socket.socket
    address: Tuple[str, int]
    buffer_size: int = 8192
    timeout: Optional[float] = None

    id: str = field(default_factory=lambda: f"c{next(_connection_ids)}")
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.monotonic)
    bytes_sent: int = 0

    def __post_init__(self):
        # accept() may hand us a socket inheriting the listener's timeout;
        # pin the mode explicitly
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address, or "unknown"."""
        try:
            return self.address[0] or "unknown"
        except (IndexError, TypeError):
            return "unknown"

    @property
    def closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_once(self) -> bytes:
        """
        Read up to buffer_size bytes, once.

        Returns:
            The bytes received. Empty bytes if the client closed the
            connection, reset it, or the read deadline expired: in all
            of those cases there is nothing to answer.
        """
        self.state = ConnectionState.READING
        try:
            return self.socket.recv(self.buffer_size)
        except socket.timeout:
            logger.debug(f"[{self.id}] Read timed out")
            return b""
        except OSError as e:
            logger.debug(f"[{self.id}] Read failed: {e}")
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> None:
        """
        Send all of ``data`` to the client.

        Uses sendall(): a plain send() may write only part of the buffer.

        Raises:
            TransportError: The client went away or the write deadline
                            expired. The caller stops writing; the context
                            manager still closes the socket.
        """
        if self.closed:
            raise TransportError(f"[{self.id}] Send on closed connection")

        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            # socket.timeout, ConnectionResetError and BrokenPipeError
            # are all OSError subclasses
            raise TransportError(f"[{self.id}] Send failed: {e}") from e

        self.bytes_sent += len(data)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """
        Close the connection. Safe to call more than once.

        shutdown(SHUT_WR) first sends FIN, so the client sees a clean end
        of response before the descriptor is released.
        """
        if self.closed:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError as e:
            logger.debug(f"[{self.id}] Close failed: {e}")

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Closed after {self.bytes_sent} bytes, "
            f"{time.monotonic() - self.created_at:.3f}s"
        )

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
