r"""
=============================================================================
HTTP REQUEST LINE PARSING
=============================================================================

Extracts the method and path from the first line of a raw request.

=============================================================================
WHAT WE READ, AND WHAT WE IGNORE
=============================================================================

A browser sends a lot more than one line:

    GET /css/site.css HTTP/1.1\r\n       ◄── the ONLY thing we look at
    Host: localhost:9001\r\n             ┐
    User-Agent: Mozilla/5.0 ...\r\n      │  ignored: no header changes
    Accept: text/css,*/*;q=0.1\r\n       │  how a static file is served
    \r\n                                 ┘

The connection handler does exactly ONE recv() of up to buffer_size bytes
and hands the result here. Whatever arrived in that read is all the data
the server will ever consider for this connection. There is no loop
waiting for "\r\n\r\n" and no Content-Length handling: a request line
that does not fit in the buffer, or that arrives split across TCP
segments, simply fails to match and the client gets 400.

=============================================================================
THE PATTERN
=============================================================================

    ^([A-Z]+)\s+(\S+)\s+HTTP/1\.[01]

        ^            start of the buffer (not of any later line)
        ([A-Z]+)     METHOD: one or more uppercase ASCII letters
        \s+          whitespace
        (\S+)        PATH: a run of non-whitespace
        \s+          whitespace
        HTTP/1\.[01] version 1.0 or 1.1; nothing after it is checked

The method is NOT validated against a list here. "BREW / HTTP/1.1"
parses fine; deciding that only GET is allowed (405) is the connection
handler's job, after parsing succeeded.

=============================================================================
DECODING
=============================================================================

Bytes are decoded as UTF-8 with errors="surrogateescape". Invalid bytes
become lone surrogates that os.open() and friends turn back into the
original bytes, so a file whose name is not valid UTF-8 can still be
requested by its raw name.

=============================================================================
"""

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ParsedRequest:
    """
    Method and raw path from a request line.

    Created once per connection by RequestParser and discarded after
    dispatch. The path is exactly what the client sent, query string
    and all; sanitizing it is PathResolver's job.
    """

    method: str
    path: str

    @property
    def is_get(self) -> bool:
        return self.method == "GET"


class RequestParser:
    """
    Parses the request line out of a raw request buffer.

    Usage:
        parser = RequestParser()
        request = parser.parse(b"GET /index.html HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
        if request is None:
            ...  # respond 400
    """

    # Compiled once at class load time. re.ASCII keeps \s and \S to the
    # ASCII whitespace set, matching what HTTP considers whitespace.
    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+)\s+(\S+)\s+HTTP/1\.[01]", re.ASCII)

    def parse(self, data: bytes) -> Optional[ParsedRequest]:
        """
        Parse the request line from raw bytes.

        Args:
            data: Everything the single read returned.

        Returns:
            ParsedRequest, or None if the data does not start with a
            valid request line. None is not an exception: it is the
            ordinary "bad request" outcome and the caller answers 400.
        """
        text = data.decode("utf-8", errors="surrogateescape")

        match = self.REQUEST_LINE_PATTERN.match(text)
        if not match:
            return None

        method, path = match.groups()
        return ParsedRequest(method=method, path=path)


_default_parser = RequestParser()


def parse_request_line(data: bytes) -> Optional[ParsedRequest]:
    """
    Convenience function for one-off parsing.

    Example:
        >>> parse_request_line(b"GET / HTTP/1.0\\r\\n\\r\\n")
        ParsedRequest(method='GET', path='/')
    """
    return _default_parser.parse(data)
