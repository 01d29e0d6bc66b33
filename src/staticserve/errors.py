"""
=============================================================================
SERVER ERRORS
=============================================================================

Exception taxonomy for everything that can go wrong while handling one
connection.

=============================================================================
ERROR → RESPONSE MAPPING
=============================================================================

    ┌─────────────────────┬────────┬────────────────────────────────────────┐
    │ Exception           │ Status │ Raised when                            │
    ├─────────────────────┼────────┼────────────────────────────────────────┤
    │ ProtocolError       │ 400    │ Request line does not parse            │
    │ ValidationError     │ 400    │ Path contains ".." or a null byte      │
    │ MethodNotSupported  │ 405    │ Method is not GET                      │
    │ NotFound            │ 404    │ No readable regular file at the path   │
    │ ResourceError       │ 500    │ File passed checks but open() failed   │
    │ TransportError      │ -      │ accept/recv/send failed: no response,  │
    │                     │        │ the connection is just abandoned       │
    └─────────────────────┴────────┴────────────────────────────────────────┘

Every error with a status carries the plain-text body that goes out with
it, so the connection handler can turn any of them into a response with
one call:

    try:
        ...
    except ServerError as e:
        send_response(conn, e.status, "text/plain", e.body)

None of these ever escape the connection handler. The only exceptions
that reach the listener loop's caller are startup failures (bind, listen),
which are plain OSError.

=============================================================================
"""

from typing import Optional

from .http.status_codes import HTTPStatus


class ServerError(Exception):
    """
    Base class for per-connection failures.

    Subclasses set ``status`` and ``body``; ``status`` is None for
    failures that cannot produce a response.
    """

    status: Optional[HTTPStatus] = None
    body: str = ""

    def __init__(self, message: str = "", path: Optional[str] = None):
        super().__init__(message or self.body)
        self.path = path  # Client-supplied or resolved path, for logging only

    @property
    def status_code(self) -> Optional[int]:
        return int(self.status) if self.status is not None else None


class ProtocolError(ServerError):
    """The first line is not ``<METHOD> <PATH> HTTP/1.<0|1>``."""

    status = HTTPStatus.BAD_REQUEST
    body = "Invalid request"


class ValidationError(ServerError):
    """Path sanitization rejected the raw path (traversal or null byte)."""

    status = HTTPStatus.BAD_REQUEST
    body = "Invalid path"


class MethodNotSupported(ServerError):
    status = HTTPStatus.METHOD_NOT_ALLOWED
    body = "Method not allowed"


class NotFound(ServerError):
    status = HTTPStatus.NOT_FOUND
    body = "File not found"


class ResourceError(ServerError):
    """The file looked readable but could not be opened (race, permissions)."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR
    body = "Cannot open file"


class TransportError(ServerError):
    """
    Socket-level failure on an accepted connection.

    Carries no status: once the transport is broken there is nobody to
    send a response to.
    """
