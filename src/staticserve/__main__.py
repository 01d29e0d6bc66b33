"""
=============================================================================
STATICSERVE CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 0.0.0.0:9001
    python -m staticserve

    # Serve ./public
    python -m staticserve ./public

    # Localhost only, another port, chunk-level logging
    python -m staticserve ./public --host 127.0.0.1 --port 8000 -l DEBUG

    # JSON logs for an aggregator
    python -m staticserve ./public --log-format json

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import DEFAULT_PAGE_404, ServerConfig
from .server import StaticServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticserve",
        description="Minimal static file server over raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticserve                         # Serve the current directory
  python -m staticserve ./public                # Serve ./public
  python -m staticserve ./public -p 8000        # Custom port
  python -m staticserve ./public -l DEBUG       # Log every chunk
        """
    )

    parser.add_argument(
        "web_root",
        nargs="?",
        default=None,
        help="Directory to serve (default: the directory the server is launched from)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default="0.0.0.0",
        help="Address to bind (default: 0.0.0.0, all interfaces)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=9001,
        help="Port to listen on (default: 9001)"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Per-connection read/write deadline in seconds (default: none)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FILE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--index",
        default="index.html",
        help="Index file served for / and directories (default: index.html)"
    )

    parser.add_argument(
        "--page-404",
        default=DEFAULT_PAGE_404,
        help="HTML page sent for missing .html/.htm paths (default: bundled status/404.html)"
    )

    parser.add_argument(
        "--chunk-size",
        type=int,
        default=8192,
        help="Streaming chunk size in bytes (default: 8192)"
    )

    parser.add_argument(
        "--single-not-found",
        action="store_true",
        help="Send only the generic 404, never the custom page in front of it"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Packet and access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserve {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    kwargs = dict(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        index_file=args.index,
        page_404=args.page_404,
        chunk_size=args.chunk_size,
        single_not_found=args.single_not_found,
        log_level=args.log_level,
        log_format=args.log_format,
    )
    if args.web_root is not None:
        kwargs["web_root"] = args.web_root
    return ServerConfig(**kwargs)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        server = StaticServer(config_from_args(args))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        server.run()
    except OSError as e:
        # bind/listen failed: nothing was served
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
