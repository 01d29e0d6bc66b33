"""
=============================================================================
STATIC FILE STREAMING
=============================================================================

Serves a resolved path to a connection: 200 with the file streamed in
chunks, 404 (optionally preceded by a custom HTML page), or 500.

=============================================================================
FLOW
=============================================================================

    serve(conn, "/srv/www/docs")
        │
        ├── is a directory?  ──► use the configured index file instead
        │
        ├── Content-Type from the MIME table
        │
        ├── not a readable regular file? ──► _serve_not_found()
        │
        ├── open() fails anyway?         ──► 500 "Cannot open file"
        │      (race with a delete, permissions changed, ...)
        │
        └── 200 head, then body chunks:

                ┌──────────┐   read(chunk_size)   ┌──────────┐
                │   file   │ ───────────────────► │  socket  │
                └──────────┘   sendall(chunk)     └──────────┘
                       ... repeated until read() returns b"" ...

=============================================================================
WHY STREAM?
=============================================================================

A file is never read into memory whole. Memory per connection is one
chunk (8 KB by default), whatever the file size.

The catch: Content-Length goes out BEFORE the body, so it is the size
measured at open time (os.fstat on the open handle). If the file grows or
shrinks while being sent, the body is whatever the reads actually return;
the size is never measured again, because the head has already left.

=============================================================================
NOT-FOUND HANDLING (AND ITS QUIRK)
=============================================================================

For a missing path ending in .html/.htm, when the 404 page exists, the
page is streamed through serve() exactly like any other file, 200 head
included. Then the generic 404 response is written after it, on the same
connection:

    HTTP/1.1 200 OK                     ┐
    Content-Type: text/html             │  the custom 404 page
    Content-Length: 312                 │
    ...                                 │
    <html>...Not Found...</html>        ┘
    HTTP/1.1 404 Not Found              ┐
    Content-Type: text/plain            │  the generic 404
    Content-Length: 14                  │
    Connection: close                   │
                                        │
    File not found                      ┘

A browser renders the page from the first response and never reads the
second. A client that parses strictly sees a 200. The logged outcome is
404. This is the default; ServerConfig.single_not_found turns the
page off and leaves only the generic 404.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Mapping, Optional

from ..errors import NotFound, ResourceError, TransportError
from ..events import EventLog, PacketEvent, PacketKind
from ..http.mime_types import MIME_TYPES, get_mime_type, is_html
from ..http.response import ResponseWriter, file_response_head
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


@dataclass
class StreamState:
    """
    Progress of one file body being streamed.

    Only feeds the DATA packet events; it never changes what is sent.
    """

    total_size: int
    bytes_sent: int = 0
    chunk_index: int = 0

    def advance(self, chunk_length: int) -> None:
        self.bytes_sent += chunk_length
        self.chunk_index += 1

    @property
    def progress(self) -> int:
        """Percent of total_size sent. 100 for empty files."""
        if self.total_size <= 0:
            return 100
        return int(self.bytes_sent * 100 / self.total_size)


class StaticFileHandler:
    """
    Streams files from disk to a connection.

    =========================================================================
    USAGE
    =========================================================================

        handler = StaticFileHandler(
            index_path="/srv/www/index.html",
            page_404="/opt/staticserve/status/404.html",
        )
        status = handler.serve(conn, "/srv/www/css/site.css")

    serve() returns the outcome to log (OK, NOT_FOUND or
    INTERNAL_SERVER_ERROR); the bytes have already been written by then.
    It does not close the connection: that is the caller's job.

    =========================================================================
    """

    def __init__(
        self,
        index_path: str,
        page_404: Optional[str] = None,
        chunk_size: int = 8192,
        cache_max_age: int = 3600,
        mime_types: Optional[Mapping[str, str]] = None,
        single_not_found: bool = False,
        events: Optional[EventLog] = None,
        writer: Optional[ResponseWriter] = None,
    ):
        """
        Args:
            index_path: Absolute path served in place of any directory.
            page_404: HTML page sent before the 404 for missing .html/.htm
                      paths. None disables it.
            chunk_size: Bytes per read/write while streaming.
            cache_max_age: max-age for the Cache-Control header.
            mime_types: Extension table; defaults to MIME_TYPES.
            single_not_found: Skip the custom page, send only the 404.
            events: Packet event sink.
            writer: Writer for status responses. Shares ``events`` when
                    not given.
        """
        self.index_path = index_path
        self.page_404 = page_404
        self.chunk_size = chunk_size
        self.cache_max_age = cache_max_age
        self.mime_types = dict(MIME_TYPES if mime_types is None else mime_types)
        self.single_not_found = single_not_found
        self.events = events or EventLog()
        self.writer = writer or ResponseWriter(self.events)

    @classmethod
    def from_config(cls, config, events: Optional[EventLog] = None,
                    writer: Optional[ResponseWriter] = None) -> "StaticFileHandler":
        return cls(
            index_path=config.index_path,
            page_404=config.page_404,
            chunk_size=config.chunk_size,
            cache_max_age=config.cache_max_age,
            mime_types=config.mime_types,
            single_not_found=config.single_not_found,
            events=events,
            writer=writer,
        )

    @staticmethod
    def is_readable_file(path: str) -> bool:
        """A regular file (symlinks followed) that this process may read."""
        return os.path.isfile(path) and os.access(path, os.R_OK)

    @staticmethod
    def _open(path: str) -> BinaryIO:
        return open(path, "rb")

    def serve(self, conn, file_path: str) -> HTTPStatus:
        """
        Serve ``file_path`` to ``conn``.

        Args:
            conn: Connection to write to.
            file_path: Absolute path from PathResolver (or the 404 page).

        Returns:
            The outcome for the access log.

        Raises:
            TransportError: The client went away mid-response, or the file
                            could not be read after its head was sent.
        """
        if os.path.isdir(file_path):
            file_path = self.index_path

        mime_type = get_mime_type(file_path, self.mime_types)

        if not self.is_readable_file(file_path):
            return self._serve_not_found(conn, file_path)

        try:
            f = self._open(file_path)
        except OSError as e:
            logger.error(f"[{conn.id}] Cannot open {file_path}: {e}")
            self.writer.send_error(conn, ResourceError(path=file_path))
            return HTTPStatus.INTERNAL_SERVER_ERROR

        with f:
            file_size = os.fstat(f.fileno()).st_size
            self._stream(conn, f, file_path, mime_type, file_size)

        return HTTPStatus.OK

    def _stream(self, conn, f: BinaryIO, file_path: str, mime_type: str, file_size: int) -> None:
        """Send the 200 head, then the body chunk by chunk."""
        head = file_response_head(mime_type, file_size, self.cache_max_age).to_bytes()

        self.events.packet(PacketEvent(
            kind=PacketKind.HEADERS,
            client_ip=conn.client_ip,
            size=len(head),
            file_path=file_path,
            mime_type=mime_type,
            file_size=file_size,
            content=head,
        ))
        conn.send(head)

        state = StreamState(total_size=file_size)
        while True:
            try:
                chunk = f.read(self.chunk_size)
            except OSError as e:
                # Head is already out; there is no way to report this to
                # the client except by cutting the body short
                raise TransportError(f"Read failed for {file_path}: {e}") from e

            if not chunk:
                break

            conn.send(chunk)
            state.advance(len(chunk))

            self.events.packet(PacketEvent(
                kind=PacketKind.DATA,
                client_ip=conn.client_ip,
                size=len(chunk),
                file_path=file_path,
                mime_type=mime_type,
                packet_num=state.chunk_index,
                total_size=file_size,
                progress=state.progress,
            ))

        if state.bytes_sent != file_size:
            logger.warning(
                f"[{conn.id}] {file_path} changed while streaming: "
                f"announced {file_size} bytes, sent {state.bytes_sent}"
            )

    def _serve_not_found(self, conn, requested_path: str) -> HTTPStatus:
        """
        Answer 404 for ``requested_path``.

        The custom page, when it applies, goes out first (see the module
        docstring); the generic 404 always follows.
        """
        if (
            not self.single_not_found
            and self.page_404
            and is_html(requested_path)
            and self.is_readable_file(self.page_404)
        ):
            self.serve(conn, self.page_404)

        self.writer.send_error(conn, NotFound(path=requested_path))
        return HTTPStatus.NOT_FOUND
