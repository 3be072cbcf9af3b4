"""
Collaborator protocols.

Abstractions for the library, playback client and vendor handlers the
protocol handler talks to.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .types import ProgressBar


@runtime_checkable
class LibrarySink(Protocol):
    """
    Protocol for the media library.

    Receives metadata discovered in stream headers, keyed by URL.
    Implementations must serialise their own updates.
    """

    def set_title(self, url: str, title: str) -> None: ...

    def set_current_title(self, url: str, title: str) -> None: ...

    def set_bitrate(self, url: str, bitrate: int) -> None: ...

    def set_content_type(self, url: str, content_type: str) -> None: ...

    def get_duration(self, url: str) -> Optional[float]: ...

    def get_current_bitrate(self, url: str) -> Optional[int]: ...

    def mime_to_type(self, mime: Optional[str]) -> Optional[str]: ...

    def refresh_cached_track(self, url: str) -> None: ...


@runtime_checkable
class PlaybackContext(Protocol):
    """
    Protocol for the player a stream is being opened for.

    Exposes pending seek state, the per-connection seek flag and
    progress bar display.
    """

    scan_data: Any

    def master_or_self(self) -> Any: ...

    def streaming_progress_bar(self, progress: "ProgressBar") -> None: ...


@runtime_checkable
class VendorHandler(Protocol):
    """Handler for a vendor-specific response header."""

    def __call__(self, client: Any, url: str, value: str) -> None: ...
