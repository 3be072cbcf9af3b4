"""
Remote stream types.

StreamMetadata is the per-connection record populated from response headers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class HeaderKind(str, Enum):
    """Recognised response header categories."""

    TITLE = "title"
    BITRATE = "bitrate"
    META_INTERVAL = "meta_interval"
    LOCATION = "location"
    CONTENT_TYPE = "content_type"
    CONTENT_LENGTH = "content_length"
    OTHER = "other"  # Candidate for vendor handlers
    END = "end"  # Blank line terminating the header block


@dataclass
class HeaderEvent:
    """A single parsed response header line."""

    kind: HeaderKind
    name: str = ""
    value: str = ""  # Raw header value
    parsed: Any = None  # Value as stored in StreamMetadata


@dataclass
class ProgressBar:
    """
    Progress bar parameters for the playback layer.

    Either duration (seconds) is set, or bitrate (bits/s) and length (bytes).
    """

    url: str
    duration: Optional[float] = None
    bitrate: Optional[int] = None
    length: Optional[int] = None

    @property
    def total_seconds(self) -> Optional[float]:
        """Duration in seconds, estimated from bitrate and length if needed."""
        if self.duration is not None:
            return self.duration
        if self.bitrate and self.length:
            return self.length * 8 / self.bitrate
        return None


@dataclass
class StreamMetadata:
    """
    Metadata for one remote stream connection attempt.

    All fields besides url are optional and best-effort. The record is
    discarded on redirect; the caller starts over with a new one.
    """

    url: str
    info_url: str = ""
    title: Optional[str] = None
    bitrate: Optional[int] = None  # bits/s
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    meta_interval: Optional[int] = None  # bytes between ICY metadata chunks
    meta_pointer: Optional[int] = None
    redirect: Optional[str] = None
    seek_supported: bool = False
    create: Optional[int] = None  # 0 = probe only, don't touch the library

    def __post_init__(self) -> None:
        if not self.info_url:
            self.info_url = self.url

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "url" and "url" in self.__dict__:
            raise AttributeError("StreamMetadata.url cannot be changed")
        super().__setattr__(name, value)

    @property
    def propagate(self) -> bool:
        """Whether header values should be pushed to the library."""
        return self.create is None or self.create != 0

    def set_meta_interval(self, interval: int) -> None:
        """Set the ICY metadata interval and reset the byte pointer."""
        self.meta_interval = interval
        self.meta_pointer = 0

    def advance_meta_pointer(self, count: int) -> int:
        """
        Advance the metadata pointer by count audio bytes.

        Returns:
            Number of metadata boundaries crossed
        """
        if not self.meta_interval or self.meta_interval <= 0:
            return 0
        total = (self.meta_pointer or 0) + count
        self.meta_pointer = total % self.meta_interval
        return total // self.meta_interval

    def estimated_duration(self) -> Optional[float]:
        """Duration in seconds from bitrate and content length."""
        if self.bitrate and self.bitrate > 0 and self.content_length:
            return self.content_length * 8 / self.bitrate
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "url": self.url,
            "info_url": self.info_url,
            "title": self.title,
            "bitrate": self.bitrate,
            "content_type": self.content_type,
            "content_length": self.content_length,
            "meta_interval": self.meta_interval,
            "redirect": self.redirect,
            "seek_supported": self.seek_supported,
            "duration": self.estimated_duration(),
        }


@dataclass
class HeaderParseResult:
    """Outcome of parsing one response header block."""

    events: list[HeaderEvent] = field(default_factory=list)
    consumed: int = 0  # Lines read, including the blank terminator
    terminated: bool = False

    # Derived signals, filled in by HeaderInterpreter
    redirect: Optional[str] = None
    seek_supported: bool = False
    progress: Optional[ProgressBar] = None
