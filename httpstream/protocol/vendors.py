"""
Vendor metadata registry.

Maps URL patterns to handlers for vendor-specific response headers.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .interfaces import VendorHandler

logger = logging.getLogger(__name__)

# MP3tunes lockers send track info in a custom header
MP3TUNES_PATTERN = r"mp3tunes\.com"
LOCKER_INFO_HEADER = "X-Locker-Info"


@dataclass
class VendorEntry:
    """A registered vendor header handler."""

    pattern: re.Pattern
    header: str
    handler: VendorHandler


class VendorRegistry:
    """
    Registry of vendor header handlers.

    Usage:
        registry = VendorRegistry()
        registry.register(MP3TUNES_PATTERN, LOCKER_INFO_HEADER, handler)
        handler = registry.find(url, "x-locker-info")
    """

    def __init__(self) -> None:
        self._entries: list[VendorEntry] = []

    def register(self, pattern: str, header: str, handler: VendorHandler) -> None:
        """
        Register a handler for a header on URLs matching pattern.

        Args:
            pattern: Regular expression searched in the stream URL
            header: Header name (case-insensitive)
            handler: Callable receiving (client, url, value)
        """
        self._entries.append(
            VendorEntry(
                pattern=re.compile(pattern, re.IGNORECASE),
                header=header.lower(),
                handler=handler,
            )
        )
        logger.debug(f"Registered vendor handler for {header} on /{pattern}/")

    def find(self, url: str, header: str) -> Optional[VendorHandler]:
        """Get the handler for a header on a URL, if any."""
        header = header.lower()
        for entry in self._entries:
            if entry.header == header and entry.pattern.search(url):
                return entry.handler
        return None

    def __len__(self) -> int:
        return len(self._entries)
