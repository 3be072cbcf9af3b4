"""
httpstream - HTTP/ICY remote audio stream protocol handler.

Builds stream requests and interprets response headers into stream
metadata for the playback layer.
"""

__version__ = "0.1.0"

from .config import Config, ConfigError, load_config
from .protocol import (
    HeaderInterpreter,
    RequestBuilder,
    StreamMetadata,
    build_request,
    parse_headers,
)
from .stream import RemoteStream, StreamError

__all__ = [
    "__version__",
    "Config",
    "ConfigError",
    "load_config",
    "HeaderInterpreter",
    "RequestBuilder",
    "StreamMetadata",
    "build_request",
    "parse_headers",
    "RemoteStream",
    "StreamError",
]
