"""
Player-side playback context for remote streams.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from httpstream.protocol.types import ProgressBar

logger = logging.getLogger(__name__)


@dataclass
class SeekData:
    """A pending request to resume a remote stream at an offset."""

    new_offset: float  # Byte offset to request
    new_time: float = 0.0  # Playback time (seconds) at that offset


@dataclass
class ScanData:
    """Per-connection stream state."""

    seek_data: Optional[SeekData] = None
    can_seek: bool = False


@dataclass
class QueuedSong:
    """A song in the player's streaming queue."""

    url: str
    start_offset: float = 0.0  # Seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"url": self.url, "start_offset": self.start_offset}


class PlaybackClient:
    """
    Playback state of a single player.

    Players in a sync group share the master's song queue and stream
    timing; master_or_self() resolves which one to update.
    """

    def __init__(self, client_id: str, sync_master: Optional["PlaybackClient"] = None):
        self.client_id = client_id
        self.sync_master = sync_master
        self.scan_data = ScanData()
        self.current_song_queue: list[QueuedSong] = []
        self.remote_stream_start_time: Optional[float] = None
        self.progress_bar: Optional[ProgressBar] = None

    def master_or_self(self) -> "PlaybackClient":
        """Get the sync group master, or this client if not synced."""
        return self.sync_master or self

    def request_seek(self, new_offset: float, new_time: float = 0.0) -> None:
        """Queue a seek to be applied by the next stream request."""
        self.scan_data.seek_data = SeekData(new_offset=new_offset, new_time=new_time)

    def streaming_progress_bar(self, progress: ProgressBar) -> None:
        """Display a progress bar for the current remote stream."""
        self.progress_bar = progress
        logger.debug(f"[{self.client_id}] Progress bar for {progress.url}: {progress.total_seconds}s")

    def elapsed(self, now: Optional[float] = None) -> float:
        """Seconds played since the remote stream start anchor."""
        master = self.master_or_self()
        if master.remote_stream_start_time is None:
            return 0.0
        now = time.time() if now is None else now
        return max(0.0, now - master.remote_stream_start_time)

    def __repr__(self) -> str:
        return f"PlaybackClient({self.client_id!r})"
