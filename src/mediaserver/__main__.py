"""
=============================================================================
MEDIA SERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (127.0.0.1:8999, 3 workers)
    python -m mediaserver

    # Serve a media directory to the LAN
    python -m mediaserver --host 0.0.0.0 --root ~/Music

    # Log every request line and response head
    python -m mediaserver --debug

Environment variables (MEDIA_HTTP_*) are read first; flags override them.
TEXT requests are logged by a default callback on the "mediaserver.text"
logger.

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .config import ServerConfig, LOG_FORMATS, LOG_LEVELS
from .server import HTTPServer


text_logger = logging.getLogger("mediaserver.text")


def log_text_request(path: str) -> None:
    """Default notification callback."""
    text_logger.info(f"Text request: {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediaserver",
        description="Embedded media streaming server: files with byte ranges, text notifications",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m mediaserver                        # 127.0.0.1:8999
  python -m mediaserver --port 9000            # Custom port
  python -m mediaserver --host 0.0.0.0         # Listen on all interfaces
  python -m mediaserver --root ./media         # Only serve files under ./media
  python -m mediaserver --log-format json      # JSON access log
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for the LAN)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on, 1024-65535 (default: 8999)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of worker threads (default: 3)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # SERVING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--agent", "-a",
        default=None,
        help="Server header and server-info name (default: media-server)",
    )
    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Only serve files inside this directory (default: unrestricted)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        default=None,
        help="Log request lines and response heads (implies --log-level DEBUG)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default="text",
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"mediaserver {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """
    Environment first, then every flag that was actually given.

    Raises:
        ValueError: If an environment variable doesn't parse.
    """
    overrides = {
        "host": args.host,
        "port": args.port,
        "workers": args.workers,
        "server_agent": args.agent,
        "root_dir": args.root,
        "debug": args.debug,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}

    if overrides.get("debug") and "log_level" not in overrides:
        overrides["log_level"] = "DEBUG"

    return ServerConfig.from_env(**overrides)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = HTTPServer(config, callback=log_text_request)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    sys.exit(main())
