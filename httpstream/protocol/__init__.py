"""
Remote stream protocol module.

Request building and response header interpretation for HTTP/ICY streams.
"""

from .cookies import CookieStore
from .headers import (
    HeaderInterpreter,
    decode_guess,
    normalize_content_type,
    parse_header_line,
    parse_headers,
)
from .interfaces import LibrarySink, PlaybackContext, VendorHandler
from .request import RawRequest, RequestBuilder, build_request, default_user_agent
from .types import (
    HeaderEvent,
    HeaderKind,
    HeaderParseResult,
    ProgressBar,
    StreamMetadata,
)
from .url import InvalidURLError, URLParts, decompose, is_loopback
from .vendors import LOCKER_INFO_HEADER, MP3TUNES_PATTERN, VendorRegistry

__all__ = [
    # Types
    "HeaderEvent",
    "HeaderKind",
    "HeaderParseResult",
    "ProgressBar",
    "StreamMetadata",
    # URL
    "InvalidURLError",
    "URLParts",
    "decompose",
    "is_loopback",
    # Request
    "RawRequest",
    "RequestBuilder",
    "build_request",
    "default_user_agent",
    # Headers
    "HeaderInterpreter",
    "decode_guess",
    "normalize_content_type",
    "parse_header_line",
    "parse_headers",
    # Collaborators
    "CookieStore",
    "LibrarySink",
    "PlaybackContext",
    "VendorHandler",
    "VendorRegistry",
    "LOCKER_INFO_HEADER",
    "MP3TUNES_PATTERN",
]
