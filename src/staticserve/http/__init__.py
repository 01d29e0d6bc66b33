"""
=============================================================================
HTTP MODULE
=============================================================================

The protocol pieces: request-line parsing, status codes, MIME types, and
response building/writing.

=============================================================================
"""

from .status_codes import HTTPStatus
from .request import ParsedRequest, RequestParser, parse_request_line
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ResponseWriter,
    file_response_head,
    status_response,
)
from .mime_types import DEFAULT_MIME_TYPE, MIME_TYPES, get_mime_type

__all__ = [
    "HTTPStatus",
    "ParsedRequest",
    "RequestParser",
    "parse_request_line",
    "HTTPResponse",
    "ResponseBuilder",
    "ResponseWriter",
    "file_response_head",
    "status_response",
    "DEFAULT_MIME_TYPE",
    "MIME_TYPES",
    "get_mime_type",
]
