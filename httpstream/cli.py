"""
httpstream CLI entry point.

Probes a remote stream and prints the metadata found in its headers.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from httpstream import __version__
from httpstream.config import Config, ConfigError, load_config
from httpstream.playback.library import MetadataLibrary
from httpstream.protocol.url import InvalidURLError
from httpstream.stream import RemoteStream, StreamError

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_STREAM_ERROR = 3


def setup_logging(level: str = "info") -> None:
    """Configure logging to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="httpstream",
        description="Probe an HTTP/ICY audio stream and show its metadata",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  httpstream http://radio.example.com:8000/live
  httpstream --json --log-level warning http://radio.example.com/stream.mp3
  httpstream --webproxy proxy.lan:3128 http://radio.example.com/live
  httpstream --show-request --post "user=me" http://radio.example.com/auth

Environment Variables:
  HTTPSTREAM_WEBPROXY, HTTPSTREAM_USER_AGENT, HTTPSTREAM_COOKIES
  HTTPSTREAM_TIMEOUT, HTTPSTREAM_MAX_REDIRECTS, HTTPSTREAM_LOG_LEVEL
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("url", help="Stream URL to probe")
    parser.add_argument(
        "--post",
        metavar="DATA",
        help="Form-encoded body to POST instead of GET",
    )
    parser.add_argument(
        "--show-request",
        action="store_true",
        help="Print the request that would be sent and exit",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output metadata as JSON",
    )

    # Configuration
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("./config.yaml"),
        metavar="PATH",
        help="Path to config file (default: ./config.yaml)",
    )

    # Network
    network_group = parser.add_argument_group("Network")
    network_group.add_argument(
        "--webproxy",
        metavar="HOST:PORT",
        help="Outbound HTTP proxy",
    )
    network_group.add_argument(
        "--user-agent",
        metavar="TEXT",
        help="User-Agent header value",
    )
    network_group.add_argument(
        "--no-cookies",
        action="store_true",
        help="Disable cookie support",
    )
    network_group.add_argument(
        "--timeout",
        "-t",
        type=float,
        metavar="SECONDS",
        help="Connect and header read timeout (default: 10)",
    )
    network_group.add_argument(
        "--max-redirects",
        type=int,
        metavar="INT",
        help="Maximum redirects to follow (default: 5)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        metavar="LEVEL",
        help="Log level: debug, info, warning, error",
    )

    return parser.parse_args(argv)


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def args_to_dict(args: argparse.Namespace) -> dict:
    """Convert argparse namespace to nested config dict."""
    result: dict = {}

    mappings = {
        "webproxy": ("network", "webproxy"),
        "user_agent": ("network", "user_agent"),
        "timeout": ("network", "timeout"),
        "max_redirects": ("network", "max_redirects"),
        "log_level": ("logging", "level"),
    }

    for arg_name, path in mappings.items():
        value = getattr(args, arg_name, None)
        if value is None:
            continue
        _set_nested(result, path, value)

    # Only set if explicitly disabled
    if getattr(args, "no_cookies", False):
        _set_nested(result, ("network", "cookies"), False)

    return result


def format_metadata(data: dict) -> str:
    """Render metadata as aligned text lines."""
    lines = []
    for key, value in data.items():
        if value is None or value == "":
            continue
        lines.append(f"  {key.replace('_', ' ').title():<16} {value}")
    return "\n".join(lines)


async def run_probe(config: Config, url: str, post: Optional[str], json_output: bool) -> int:
    """
    Probe a stream, following redirects.

    Returns:
        Exit code
    """
    library = MetadataLibrary()
    stream = RemoteStream(config, library)

    try:
        metadata = await stream.resolve(url, post=post)
    except StreamError as e:
        logger.error(f"Stream error: {e}")
        return EXIT_STREAM_ERROR

    data = metadata.to_dict()
    data["format"] = stream.format_for_url(metadata.url)

    if json_output:
        print(json.dumps(data, indent=2))
    else:
        print(f"\n{metadata.url}\n")
        print(format_metadata(data))

    return EXIT_SUCCESS


async def run_show_request(config: Config, url: str, post: Optional[str]) -> int:
    """Print the request for url without connecting."""
    stream = RemoteStream(config)
    request = stream.builder.build(url, post=post)
    sys.stdout.write(request.decode("utf-8"))
    return EXIT_SUCCESS


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0=success, 1=config error, 3=stream error
    """
    args = parse_args(argv)

    setup_logging("info")

    try:
        config = load_config(args.config, args_to_dict(args))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    setup_logging(config.logging.level)

    try:
        if args.show_request:
            return asyncio.run(run_show_request(config, args.url, args.post))
        return asyncio.run(run_probe(config, args.url, args.post, args.json_output))

    except InvalidURLError as e:
        logger.error(f"Invalid URL: {e}")
        return EXIT_CONFIG_ERROR

    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
