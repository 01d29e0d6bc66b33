"""
=============================================================================
LISTENER LOOP
=============================================================================

Owns the listening socket and accepts connections one at a time.

=============================================================================
SOCKET LIFECYCLE
=============================================================================

    socket()  ──► setsockopt(SO_REUSEADDR) ──► bind() ──► listen()
                                                              │
                    ┌─────────────────────────────────────────┘
                    ▼
              ┌──────────────┐
              │ accept loop  │◄──────────────────────────┐
              └──────┬───────┘                           │
                     │ accept()                          │
                     ▼                                   │
              Connection(client_socket)                  │
                     │                                   │
                     ▼                                   │
              handler(conn)  ── runs to completion ──────┘
                                 (read, respond, close)

              shutdown()                SIGINT / SIGTERM
                     │                          │
                     │          abandon the in-flight connection
                     ▼                          ▼
              close() the listening socket (in a finally)

=============================================================================
SEQUENTIAL HANDLING
=============================================================================

The handler runs on the accept loop's own thread. The next accept()
happens only after the previous connection is fully answered and
closed, so responses can never interleave. One slow client stalls
everyone behind it (see ServerConfig.timeout).

=============================================================================
ERRORS
=============================================================================

    bind()/listen() fail     ──► logged and RE-RAISED: startup is fatal
    accept() fails           ──► logged, loop continues
    handler raises           ──► logged, loop continues

Nothing that happens to a single connection stops the loop. Only
shutdown() does.

=============================================================================
"""

import logging
import signal
import socket
import threading
import time
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Sequential TCP accept loop.

    Usage:
        def handle(conn: Connection):
            with conn:
                ...

        server = SocketServer(config)
        server.start(handle)  # Blocks until shutdown()
    """

    # accept() wakes up this often to notice shutdown()
    POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        """
        Store the config. The socket is created lazily in start().
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        After start() this is the real address, so port=0 in the config
        reports the port the OS picked.
        """
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready.wait(timeout)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restart without waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.settimeout(self.POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """
        Turn SIGINT/SIGTERM into an immediate stop.

        The handler calls shutdown() and then raises KeyboardInterrupt, so
        a connection blocked in recv() or sendall() is abandoned at once
        instead of being waited for. The connection and the listening
        socket are still closed by the finally blocks on the way out.

        Python only allows signal handlers in the main thread; when the
        server runs elsewhere (tests, embedding) this is skipped.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            self.shutdown()
            raise KeyboardInterrupt

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Raises:
            OSError: socket creation, bind or listen failed. Nothing has
                     been served at that point.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to listen on {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")
        self._ready.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            if self.config.accept_delay > 0:
                time.sleep(self.config.accept_delay)

            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Periodic wake-up to check _running
            except OSError as e:
                if not self._running:
                    break  # Socket closed under us by shutdown()
                logger.error(f"Accept error: {e}")
                continue

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )
            logger.debug(f"[{conn.id}] Accepted {client_address[0]}:{client_address[1]}")

            try:
                connection_handler(conn)
            except Exception:
                logger.exception(f"[{conn.id}] Unhandled error")
            finally:
                # The handler closes its connection; this covers handlers
                # that blew up before getting that far
                conn.close()

    def shutdown(self):
        """
        Stop the accept loop. Safe to call from any thread, more than once.

        There is no drain. Called from another thread, the connection being
        handled (if any) finishes, then the loop exits within POLL_INTERVAL
        seconds. SIGINT/SIGTERM do not wait for that connection; see
        _setup_signals().
        """
        if self._running:
            logger.info("Shutting down listener...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        self._ready.clear()
        logger.info("Listener stopped")
