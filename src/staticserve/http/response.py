"""
=============================================================================
HTTP RESPONSE BUILDING AND WRITING
=============================================================================

Builds HTTP/1.1 response heads and complete status responses, and writes
the latter to a connection.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    HTTP/1.1 404 Not Found\r\n          ← Status line
    Content-Type: text/plain\r\n        ┐
    Content-Length: 14\r\n              │ Headers
    Connection: close\r\n               ┘
    \r\n                                ← Empty line
    File not found                      ← Body (exactly Content-Length bytes)

Two shapes of response leave this server:

    1. FILE RESPONSES (200)
       Only the head is built here. The body is streamed from disk in
       chunks by handlers/static.py, so Content-Length is the file size
       measured at open time rather than len(body):

           HTTP/1.1 200 OK
           Content-Type: text/css
           Content-Length: 48213
           Cache-Control: public, max-age=3600
           Connection: close

    2. STATUS RESPONSES (400, 404, 405, 500)
       Small static text bodies, built and sent in ONE sendall() by
       ResponseWriter so a status response is never split.

Every response says "Connection: close": one request per connection.

Header order and spelling are fixed; nothing is added automatically (no
Date, no Server). The bytes on the wire are exactly what is listed above.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus
from ..events import EventLog, PacketEvent, PacketKind


logger = logging.getLogger(__name__)


@dataclass
class HTTPResponse:
    """
    An HTTP response head plus an optional in-memory body.

    For streamed files ``body`` stays empty and ``Content-Length`` is set
    explicitly; to_bytes() then yields just the head.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def to_bytes(self) -> bytes:
        """
        Serialize status line, headers, blank line and body.

        Content-Length is filled in from the body when not already set.
        """
        response_headers = dict(self.headers)
        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("latin-1") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("text/css")
            .content_length(48213)
            .cache(max_age=3600)
            .close_connection()
            .build())

    Headers come out in the order they were set.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def content_length(self, length: int) -> "ResponseBuilder":
        """Set Content-Length explicitly (for bodies that are streamed later)."""
        return self.header("Content-Length", str(length))

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set an in-memory body. Strings are UTF-8 encoded.

        Content-Length is derived from it at build time.
        """
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self._headers["Content-Length"] = str(len(self._body))
        return self

    def cache(self, max_age: int = 3600) -> "ResponseBuilder":
        """
        Mark the response cacheable by browsers and shared caches.

            Cache-Control: public, max-age=3600
                           │       └── seconds
                           └── proxies/CDNs may cache it too
        """
        return self.header("Cache-Control", f"public, max-age={max_age}")

    def close_connection(self) -> "ResponseBuilder":
        return self.header("Connection", "close")

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def file_response_head(mime_type: str, file_size: int, max_age: int = 3600) -> HTTPResponse:
    """
    Build the 200 head that precedes a streamed file body.

    Args:
        mime_type: Content-Type from the MIME table.
        file_size: Size measured when the file was opened.
        max_age: Cache-Control max-age in seconds.
    """
    return (ResponseBuilder()
        .status(HTTPStatus.OK)
        .content_type(mime_type)
        .content_length(file_size)
        .cache(max_age)
        .close_connection()
        .build())


def status_response(
    status: HTTPStatus,
    body: Union[str, bytes],
    content_type: str = "text/plain",
) -> HTTPResponse:
    """
    Build a complete status response.

    Header order: Content-Type, Content-Length, Connection.
    """
    return (ResponseBuilder()
        .status(status)
        .content_type(content_type)
        .body(body)
        .close_connection()
        .build())


# =============================================================================
# RESPONSE WRITER
# =============================================================================

class ResponseWriter:
    """
    Writes complete status responses to a connection in a single write.

    Used for every non-success outcome: 400, 404 (the generic one), 405
    and 500. Each write is reported as a FULL_RESPONSE packet event.
    """

    def __init__(self, events: Optional[EventLog] = None):
        self.events = events or EventLog()

    def send(
        self,
        conn,
        status: HTTPStatus,
        body: Union[str, bytes],
        content_type: str = "text/plain",
        file_path: Optional[str] = None,
    ) -> HTTPResponse:
        """
        Build and send one status response.

        Args:
            conn: The Connection to write to.
            status: Status to send.
            body: Small static body.
            content_type: Body content type.
            file_path: Path to mention in the packet log (raw request path
                       for 400s, resolved path for 404/500).

        Returns:
            The response that was sent.

        Raises:
            TransportError: From conn.send(); the response may be lost.
        """
        response = status_response(status, body, content_type)
        data = response.to_bytes()

        self.events.packet(PacketEvent(
            kind=PacketKind.FULL_RESPONSE,
            client_ip=conn.client_ip,
            size=len(data),
            file_path=file_path,
            status_code=int(status),
            status_text=status.phrase,
            content=data,
        ))

        conn.send(data)
        return response

    def send_error(self, conn, error, file_path: Optional[str] = None) -> HTTPResponse:
        """
        Send the response an errors.ServerError subclass describes.

        ``error.status`` must not be None (TransportError has no response).
        """
        if error.status is None:
            raise ValueError(f"{type(error).__name__} has no response to send")
        return self.send(conn, error.status, error.body, file_path=file_path or error.path)
