"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file extensions to the Content-Type sent with a streamed file.

=============================================================================
HOW THE EXTENSION IS FOUND
=============================================================================

Only the FINAL path segment is looked at, and only the text after its
LAST dot. Matching is case-insensitive.

    /var/www/css/site.CSS        → "css"   → text/css
    /var/www/archive.tar.gz      → "gz"    → application/gzip
    /var/www/v1.2/README         → ""      → application/octet-stream
    /var/www/file.               → ""      → application/octet-stream
    /var/www/gone.html/          → ""      → application/octet-stream

The dot in "v1.2" belongs to a directory, not the file, so it is ignored.

The table is small: it covers what a static site actually
ships. Anything else is served as application/octet-stream, which makes
browsers download rather than render it.

Unlike some servers, no "; charset=..." parameter is appended: the bytes
go out exactly as they are on disk and the server makes no claim about
their encoding.

=============================================================================
"""

import os
from typing import Mapping, Optional, Union


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Keys are lowercase extensions WITHOUT the leading dot.
#
# =============================================================================

MIME_TYPES = {
    # Text
    "html": "text/html",
    "htm": "text/html",
    "txt": "text/plain",
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",

    # Images
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",

    # Documents and archives
    "pdf": "application/pdf",
    "zip": "application/zip",
    "gz": "application/gzip",

    # Audio / video
    "mp3": "audio/mpeg",
    "mp4": "video/mp4",
    "webm": "video/webm",

    # Fonts
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "otf": "font/otf",
}

# "I don't know what this is, treat it as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_extension(path: Union[str, "os.PathLike[str]"]) -> str:
    """
    Return the lowercase extension of the final path segment, without the dot.

    Returns an empty string when there is none.

    Examples:
        >>> get_extension("/srv/www/Logo.PNG")
        'png'

        >>> get_extension("/srv/www/Makefile")
        ''
    """
    # A trailing "/" leaves an empty final segment: no extension
    name = os.path.basename(os.fspath(path))
    _, dot, extension = name.rpartition(".")
    if not dot:
        return ""
    return extension.lower()


def get_mime_type(
    path: Union[str, "os.PathLike[str]"],
    mime_types: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Get the MIME type for a file based on its extension.

    Args:
        path: File path or bare file name.
        mime_types: Extension table to use. Defaults to MIME_TYPES; the
                    server passes the table from its ServerConfig.

    Returns:
        The content-type string; DEFAULT_MIME_TYPE when the extension is
        missing or unknown.

    Examples:
        >>> get_mime_type("style.css")
        'text/css'

        >>> get_mime_type("/path/to/IMAGE.JPEG")
        'image/jpeg'

        >>> get_mime_type("unknown.xyz")
        'application/octet-stream'
    """
    table = MIME_TYPES if mime_types is None else mime_types
    return table.get(get_extension(path), DEFAULT_MIME_TYPE)


def is_html(path: Union[str, "os.PathLike[str]"]) -> bool:
    """True for .html/.htm paths (any case). Used by not-found handling."""
    return get_extension(path) in ("html", "htm")
