"""Tests for the player playback context."""

from httpstream.playback.client import PlaybackClient, QueuedSong, ScanData, SeekData
from httpstream.protocol.interfaces import PlaybackContext
from httpstream.protocol.types import ProgressBar


class TestPlaybackClient:
    """Tests for PlaybackClient."""

    def test_default_state(self) -> None:
        client = PlaybackClient("p1")
        assert client.scan_data == ScanData()
        assert client.current_song_queue == []
        assert client.remote_stream_start_time is None
        assert client.progress_bar is None

    def test_implements_playback_context(self) -> None:
        assert isinstance(PlaybackClient("p1"), PlaybackContext)

    def test_master_or_self(self) -> None:
        master = PlaybackClient("master")
        slave = PlaybackClient("slave", sync_master=master)

        assert master.master_or_self() is master
        assert slave.master_or_self() is master

    def test_request_seek(self) -> None:
        client = PlaybackClient("p1")
        client.request_seek(new_offset=1024, new_time=2.5)
        assert client.scan_data.seek_data == SeekData(new_offset=1024, new_time=2.5)

    def test_streaming_progress_bar(self) -> None:
        client = PlaybackClient("p1")
        progress = ProgressBar(url="http://a/b", duration=10.0)

        client.streaming_progress_bar(progress)

        assert client.progress_bar is progress

    def test_elapsed(self) -> None:
        client = PlaybackClient("p1")
        assert client.elapsed(now=100.0) == 0.0

        client.remote_stream_start_time = 90.0
        assert client.elapsed(now=100.0) == 10.0
        assert client.elapsed(now=80.0) == 0.0

    def test_elapsed_follows_master(self) -> None:
        master = PlaybackClient("master")
        master.remote_stream_start_time = 50.0
        slave = PlaybackClient("slave", sync_master=master)

        assert slave.elapsed(now=60.0) == 10.0


def test_queued_song_to_dict() -> None:
    song = QueuedSong(url="http://a/b", start_offset=12.0)
    assert song.to_dict() == {"url": "http://a/b", "start_offset": 12.0}
