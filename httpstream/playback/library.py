"""
In-memory media library for remote streams.

Stores title, bitrate, content type and duration per URL.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

# Assumed format for remote streams when nothing better is known
DEFAULT_TYPE = "mp3"

MIME_TYPES: dict[str, str] = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mpeg3": "mp3",
    "audio/x-mpeg": "mp3",
    "audio/x-mp3": "mp3",
    "audio/aac": "aac",
    "audio/aacp": "aac",
    "audio/x-aac": "aac",
    "audio/ogg": "ogg",
    "application/ogg": "ogg",
    "audio/flac": "flc",
    "audio/x-flac": "flc",
    "audio/x-ms-wma": "wma",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpegurl": "m3u",
    "audio/x-mpegurl": "m3u",
    "audio/scpls": "pls",
    "audio/x-scpls": "pls",
    "video/x-ms-asf": "asx",
    "audio/x-ms-asx": "asx",
    "text/xml": "xml",
    "application/xml": "xml",
}

TrackRefreshCallback = Callable[[str], None]  # url


def mime_to_type(mime: Optional[str]) -> Optional[str]:
    """
    Map a MIME type to a short format name.

    Parameters such as charset are ignored. Unknown or empty types map to None.
    """
    if not mime:
        return None
    base = mime.split(";", 1)[0].strip().lower()
    return MIME_TYPES.get(base)


def format_for_url(url: str) -> str:
    """Format assumed for a remote stream URL."""
    return DEFAULT_TYPE


@dataclass
class RemoteTrack:
    """Library record for a remote stream."""

    url: str
    title: str = ""
    current_title: str = ""
    bitrate: int = 0  # bits/s
    content_type: str = ""
    duration: float = 0.0  # seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "url": self.url,
            "title": self.title,
            "current_title": self.current_title,
            "bitrate": self.bitrate,
            "content_type": self.content_type,
            "duration": self.duration,
            "type": mime_to_type(self.content_type),
        }


@dataclass
class MetadataLibrary:
    """
    Thread-safe in-memory library keyed by URL.

    Oldest entries are evicted once max_size is reached.
    """

    _tracks: dict[str, RemoteTrack] = field(default_factory=dict)
    _max_size: int = 500
    _refresh_listeners: list[TrackRefreshCallback] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, url: str) -> Optional[RemoteTrack]:
        """Get the record for url."""
        with self._lock:
            return self._tracks.get(url)

    def _track(self, url: str) -> RemoteTrack:
        """Get or create a record. Caller holds the lock."""
        track = self._tracks.get(url)
        if track is None:
            if len(self._tracks) >= self._max_size:
                oldest = next(iter(self._tracks))
                del self._tracks[oldest]
            track = RemoteTrack(url=url)
            self._tracks[url] = track
        return track

    def set_title(self, url: str, title: str) -> None:
        with self._lock:
            self._track(url).title = title

    def set_current_title(self, url: str, title: str) -> None:
        with self._lock:
            self._track(url).current_title = title

    def get_current_title(self, url: str) -> Optional[str]:
        track = self.get(url)
        return track.current_title if track and track.current_title else None

    def set_bitrate(self, url: str, bitrate: int) -> None:
        with self._lock:
            self._track(url).bitrate = bitrate

    def get_current_bitrate(self, url: str) -> Optional[int]:
        """Bitrate previously recorded for url, if any."""
        track = self.get(url)
        return track.bitrate if track and track.bitrate else None

    def set_content_type(self, url: str, content_type: str) -> None:
        with self._lock:
            self._track(url).content_type = content_type

    def get_content_type(self, url: str) -> Optional[str]:
        track = self.get(url)
        return track.content_type if track and track.content_type else None

    def set_duration(self, url: str, duration: float) -> None:
        with self._lock:
            self._track(url).duration = duration

    def get_duration(self, url: str) -> Optional[float]:
        """Known duration of url in seconds, if any."""
        track = self.get(url)
        return track.duration if track and track.duration else None

    def mime_to_type(self, mime: Optional[str]) -> Optional[str]:
        return mime_to_type(mime)

    def on_track_refresh(self, callback: TrackRefreshCallback) -> None:
        """Register a callback for refresh_cached_track()."""
        self._refresh_listeners.append(callback)

    def refresh_cached_track(self, url: str) -> None:
        """Tell listeners that cached copies of url's record are stale."""
        logger.debug(f"Refreshing cached track for {url}")
        for callback in list(self._refresh_listeners):
            callback(url)

    def clear(self) -> None:
        """Remove all records."""
        with self._lock:
            self._tracks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracks)
