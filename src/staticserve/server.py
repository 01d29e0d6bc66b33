"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Wires the components together and handles each connection end to end.

=============================================================================
REQUEST FLOW
=============================================================================

    SocketServer.accept()
          │
          ▼
    handle_connection(conn)
          │
          ├── read_once()            nothing?      ──► close, no response
          │
          ├── RequestParser.parse()  no match?     ──► 400 Invalid request
          │
          ├── method == "GET"?       no?           ──► 405 Method not allowed
          │
          ├── PathResolver.resolve() rejected?     ──► 400 Invalid path
          │
          └── StaticFileHandler.serve()            ──► 200 / 404 / 500
          │
          ▼
    conn.close()  (exactly once, whichever branch was taken)

=============================================================================
CONNECTION STATES
=============================================================================

    Accepted ──► Parsed ──► Routed ──► Served | Rejected | Errored ──► Closed

Rejections are raised as errors.ServerError subclasses and turned into
responses in one place. A TransportError (client vanished mid-write)
skips the response and goes straight to Closed.

=============================================================================
"""

import logging
import time
from typing import Optional

from .config import ServerConfig
from .core import Connection, SocketServer
from .errors import MethodNotSupported, ProtocolError, ServerError, TransportError
from .events import EventLog
from .handlers import PathResolver, StaticFileHandler
from .http import HTTPStatus, RequestParser, ResponseWriter


logger = logging.getLogger(__name__)


class StaticServer:
    """
    Single-process, sequential static file server.

    =========================================================================
    USAGE
    =========================================================================

        server = StaticServer(ServerConfig(web_root="./public", port=9001))
        server.run()   # Blocks until Ctrl+C

    For tests, run() on a background thread, then:

        server.wait_until_ready(5)
        host, port = server.address
        ...
        server.shutdown()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()  # Fail fast on bad config

        self.events = EventLog(self.config.log_format)
        self._parser = RequestParser()
        self._resolver = PathResolver(self.config.web_root, self.config.index_path)
        self._writer = ResponseWriter(self.events)
        self._files = StaticFileHandler.from_config(self.config, self.events, self._writer)
        self._socket_server = SocketServer(self.config)

        # Stream bookkeeping: a "stream" is a burst of connections with
        # no gap longer than config.stream_gap between them
        self._stream_count = 0
        self._last_accept: Optional[float] = None

    @property
    def address(self):
        return self._socket_server.address

    @property
    def stream_count(self) -> int:
        return self._stream_count

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, configure_logging: bool = True):
        """
        Start serving (blocking).

        Args:
            configure_logging: Install a basicConfig handler at
                               config.log_level. Embedders that configure
                               logging themselves pass False.
        """
        if configure_logging:
            self._setup_logging()

        logger.info(f"Web root: {self.config.web_root}")

        try:
            self._socket_server.start(self.handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def shutdown(self):
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("staticserve").setLevel(level)

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _track_stream(self, now: float):
        if self._last_accept is None or now - self._last_accept >= self.config.stream_gap:
            self._stream_count += 1
            logger.info(f"Starting stream #{self._stream_count}")
        self._last_accept = now

    def handle_connection(self, conn: Connection) -> Optional[HTTPStatus]:
        """
        Handle one connection from first read to close.

        Returns:
            The outcome status, or None when nothing was answered (empty
            read or transport failure). Exposed for tests; the accept loop
            ignores it.
        """
        started = time.monotonic()
        self._track_stream(started)

        method, raw_path = "-", "-"
        status: Optional[HTTPStatus] = None

        with conn:
            data = conn.read_once()
            if not data:
                logger.debug(f"[{conn.id}] Client sent nothing")
                return None

            try:
                request = self._parser.parse(data)
                if request is None:
                    raise ProtocolError()

                method, raw_path = request.method, request.path

                if not request.is_get:
                    raise MethodNotSupported(path=raw_path)

                file_path = self._resolver.resolve(raw_path)
                status = self._files.serve(conn, file_path)

            except TransportError as e:
                logger.warning(f"[{conn.id}] Connection abandoned: {e}")
                status = None

            except ServerError as e:
                status = self._reject(conn, e, raw_path)

        if status is not None:
            self.events.access(
                client_ip=conn.client_ip,
                method=method,
                path=raw_path,
                status_code=int(status),
                bytes_sent=conn.bytes_sent,
                started=started,
            )
        return status

    def _reject(self, conn: Connection, error: ServerError, raw_path: str) -> Optional[HTTPStatus]:
        """Send the response for a rejected request. None if that fails too."""
        logger.info(f"[{conn.id}] {error.status_code} {type(error).__name__}: {raw_path!r}")
        try:
            self._writer.send_error(conn, error, file_path=raw_path)
        except TransportError as e:
            logger.warning(f"[{conn.id}] Connection abandoned: {e}")
            return None
        return error.status
