r"""
=============================================================================
PATH RESOLUTION
=============================================================================

Turns the raw path from a request line into an absolute filesystem path
under the web root, or rejects it.

=============================================================================
THE STEPS
=============================================================================

    "/docs//guide\intro.html?v=2#top"
            │
            │  1. empty → "/"
            │  2. cut at first "?" or "#"
            ▼
    "/docs//guide\intro.html"
            │
            │  3. "\" → "/", then "//..." → "/"
            ▼
    "/docs/guide/intro.html"
            │
            │  4. reject if it contains ".." or a NUL byte
            │  5. strip ONE leading "/"
            ▼
    "docs/guide/intro.html"
            │
            │  6. empty → index file
            │  7. os.path.join(web_root, "docs", "guide", "intro.html")
            ▼
    "/srv/www/docs/guide/intro.html"

=============================================================================
KNOWN LIMITATION: THIS IS A SUBSTRING CHECK
=============================================================================

Step 4 rejects ANY path containing "..", including harmless names like
"/notes..txt". It is the only traversal defense, and it is
NOT a canonical containment check:

    - no os.path.realpath(), so a symlink inside the web root that points
      outside it IS followed
    - no percent-decoding, so "/%2e%2e/etc/passwd" is looked up as a file
      literally named "%2e%2e" under the web root (and is not found)

A containment check (resolve, then compare against the resolved web root)
is not done.

=============================================================================
"""

import logging
import os

from ..errors import ValidationError


logger = logging.getLogger(__name__)


class PathResolver:
    """
    Sanitizes request paths and maps them into the web root.

    Usage:
        resolver = PathResolver("/srv/www", "/srv/www/index.html")
        resolver.resolve("/css/site.css")   # "/srv/www/css/site.css"
        resolver.resolve("/")               # "/srv/www/index.html"
        resolver.resolve("/../etc/passwd")  # raises ValidationError
    """

    def __init__(self, web_root: str, index_path: str):
        """
        Args:
            web_root: Absolute web root directory.
            index_path: Absolute path of the index file (already known to
                        be under web_root).
        """
        self.web_root = web_root
        self.index_path = index_path

    @staticmethod
    def normalize(raw_path: str) -> str:
        """
        Steps 1-3: default, strip query/fragment, canonicalize separators.

        Examples:
            >>> PathResolver.normalize("")
            '/'
            >>> PathResolver.normalize("/a//b\\c?x=1")
            '/a/b/c'
        """
        path = raw_path or "/"

        for marker in ("?", "#"):
            path = path.split(marker, 1)[0]

        path = path.replace("\\", "/")
        while "//" in path:
            path = path.replace("//", "/")
        return path

    @staticmethod
    def is_safe(normalized_path: str) -> bool:
        """Step 4: no ".." anywhere and no NUL byte."""
        return ".." not in normalized_path and "\0" not in normalized_path

    def resolve(self, raw_path: str) -> str:
        """
        Resolve a raw request path to an absolute filesystem path.

        Args:
            raw_path: Path exactly as it appeared in the request line.

        Returns:
            Absolute path under web_root, or the index path for "/".
            Existence is NOT checked here.

        Raises:
            ValidationError: Traversal attempt or NUL byte. Carries the
                             raw path for logging.
        """
        path = self.normalize(raw_path)

        if not self.is_safe(path):
            logger.warning(f"Rejected path: {raw_path!r}")
            raise ValidationError(path=raw_path)

        if path.startswith("/"):
            path = path[1:]

        if not path:
            return self.index_path

        # Join segment by segment so the platform separator is used
        return os.path.join(self.web_root, *path.split("/"))
