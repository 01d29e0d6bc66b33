"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this server can produce, as an IntEnum with
their reason phrases.

=============================================================================
STATUSES IN USE
=============================================================================

    ┌──────┬────────────────────────┬──────────────────────────────────────┐
    │ Code │ Phrase                 │ When                                 │
    ├──────┼────────────────────────┼──────────────────────────────────────┤
    │ 200  │ OK                     │ File streamed (also the custom 404   │
    │      │                        │ page body, see handlers/static.py)   │
    │ 400  │ Bad Request            │ Bad request line or rejected path    │
    │ 404  │ Not Found              │ Missing or unreadable file           │
    │ 405  │ Method Not Allowed     │ Anything other than GET              │
    │ 500  │ Internal Server Error  │ File passed checks but open failed   │
    └──────┴────────────────────────┴──────────────────────────────────────┘

Using IntEnum means a status compares equal to its integer code:

    >>> HTTPStatus.NOT_FOUND == 404
    True
    >>> f"{HTTPStatus.NOT_FOUND}"
    '404'

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """HTTP status codes produced by the server."""

    OK = 200                        # File served
    BAD_REQUEST = 400               # Malformed request line or invalid path
    NOT_FOUND = 404                 # Nothing readable at that path
    METHOD_NOT_ALLOWED = 405        # Only GET is supported
    INTERNAL_SERVER_ERROR = 500     # Open failed after passing checks

    def __str__(self) -> str:
        # IntEnum.__str__ changed between Python versions; pin it to the code
        return str(self.value)

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                         ─────────
        """
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
