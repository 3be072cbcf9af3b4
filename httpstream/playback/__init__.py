"""Playback-side collaborators: media library and player context."""

from .client import PlaybackClient, QueuedSong, ScanData, SeekData
from .library import (
    DEFAULT_TYPE,
    MetadataLibrary,
    RemoteTrack,
    format_for_url,
    mime_to_type,
)

__all__ = [
    # Library
    "DEFAULT_TYPE",
    "MetadataLibrary",
    "RemoteTrack",
    "format_for_url",
    "mime_to_type",
    # Player
    "PlaybackClient",
    "QueuedSong",
    "ScanData",
    "SeekData",
]
