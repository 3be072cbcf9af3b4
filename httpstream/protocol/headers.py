"""
Response header interpreter for remote streams.

Parsing is split in two steps: parse_headers() updates a StreamMetadata
record from header lines without side effects, and HeaderInterpreter
pushes the results to the library, vendor handlers and player.
"""

import logging
import re
from typing import TYPE_CHECKING, Iterable, Optional, Union

from httpstream.playback.library import DEFAULT_TYPE

from .types import HeaderEvent, HeaderKind, HeaderParseResult, ProgressBar, StreamMetadata
from .vendors import VendorRegistry

if TYPE_CHECKING:
    from httpstream.playback.client import PlaybackClient

    from .interfaces import LibrarySink

logger = logging.getLogger(__name__)

_HEADER_PATTERNS: list[tuple[HeaderKind, re.Pattern]] = [
    (HeaderKind.TITLE, re.compile(r"^(ic[ey]-name|x-audiocast-name):\s*(.+)$", re.I)),
    (HeaderKind.BITRATE, re.compile(r"^(icy-br|x-audiocast-bitrate):\s*(.+)$", re.I)),
    (HeaderKind.META_INTERVAL, re.compile(r"^(icy-metaint):\s*(.+)$", re.I)),
    (HeaderKind.LOCATION, re.compile(r"^(location):\s*(.*)$", re.I)),
    (HeaderKind.CONTENT_TYPE, re.compile(r"^(content-type):\s*(.*)$", re.I)),
    (HeaderKind.CONTENT_LENGTH, re.compile(r"^(content-length):\s*(.*)$", re.I)),
    (HeaderKind.OTHER, re.compile(r"^([^:\s]+):\s*(.*)$")),
]

_NUMBER_RE = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")


def decode_guess(value: Union[str, bytes], fallback: str = "iso-8859-1") -> str:
    """
    Decode header text whose encoding is unknown.

    Header values read off the socket as latin-1 are re-checked as UTF-8;
    if they are not valid UTF-8 the fallback single-byte decoding is kept.
    """
    if isinstance(value, str):
        try:
            raw = value.encode("iso-8859-1")
        except UnicodeEncodeError:
            return value  # Already real text
    else:
        raw = value

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode(fallback, errors="replace")


def normalize_content_type(value: str) -> str:
    """
    Drop text/* content types other than text/xml.

    Web servers often serve playlists as text/plain or text/html; an empty
    type makes the caller guess from the URL instead.
    """
    if re.search(r"text", value, re.I) and not re.search(r"text/xml", value, re.I):
        return ""
    return value


def _to_number(value: str) -> Optional[float]:
    match = _NUMBER_RE.match(value)
    return float(match.group(1)) if match else None


def parse_header_line(line: str) -> Optional[HeaderEvent]:
    """
    Classify one response header line.

    Args:
        line: Header line, with or without its CRLF terminator

    Returns:
        HeaderEvent, or None if the line is not a header
    """
    text = line.rstrip("\r\n")
    if not text.strip():
        return HeaderEvent(HeaderKind.END)

    for kind, pattern in _HEADER_PATTERNS:
        match = pattern.match(text)
        if match:
            return HeaderEvent(kind, match.group(1), match.group(2).strip())

    logger.debug(f"Ignoring unparseable header line: {text!r}")
    return None


def _apply_event(event: HeaderEvent, metadata: StreamMetadata) -> bool:
    """Update the record from one event. Returns False if the value was unusable."""
    if event.kind == HeaderKind.TITLE:
        metadata.title = event.parsed = decode_guess(event.value)

    elif event.kind == HeaderKind.BITRATE:
        number = _to_number(event.value)
        if number is None:
            return False
        metadata.bitrate = event.parsed = int(round(number * 1000))

    elif event.kind == HeaderKind.META_INTERVAL:
        number = _to_number(event.value)
        if number is None:
            return False
        event.parsed = int(number)
        metadata.set_meta_interval(event.parsed)

    elif event.kind == HeaderKind.LOCATION:
        metadata.redirect = event.parsed = event.value

    elif event.kind == HeaderKind.CONTENT_TYPE:
        metadata.content_type = event.parsed = normalize_content_type(event.value)

    elif event.kind == HeaderKind.CONTENT_LENGTH:
        number = _to_number(event.value)
        if number is None:
            return False
        metadata.content_length = event.parsed = int(number)

    return True


def parse_headers(lines: Iterable[str], metadata: StreamMetadata) -> HeaderParseResult:
    """
    Parse response header lines into metadata.

    Stops after the blank line ending the header block; anything after it
    belongs to the body and is left alone. Bad lines are logged and skipped.

    Args:
        lines: Header lines in order, status line excluded
        metadata: Record to update

    Returns:
        HeaderParseResult listing the events that were applied
    """
    result = HeaderParseResult()

    for line in lines:
        result.consumed += 1
        logger.info(f"Header: {line.rstrip()}")

        event = parse_header_line(line)
        if event is None:
            continue

        if event.kind == HeaderKind.END:
            logger.info("Received final blank line...")
            result.terminated = True
            break

        if not _apply_event(event, metadata):
            logger.warning(f"Ignoring invalid {event.name} value: {event.value!r}")
            continue

        result.events.append(event)

    result.redirect = metadata.redirect
    return result


class HeaderInterpreter:
    """
    Interprets stream response headers and applies what they imply.

    Usage:
        interpreter = HeaderInterpreter(library, vendors)
        result = interpreter.interpret(header_lines, metadata, client)
        if result.redirect:
            ...  # reconnect with a new StreamMetadata
    """

    def __init__(self, library: "LibrarySink", vendors: Optional[VendorRegistry] = None):
        """
        Initialize interpreter.

        Args:
            library: Library receiving title, bitrate and content type
            vendors: Handlers for vendor-specific headers
        """
        self._library = library
        self._vendors = vendors or VendorRegistry()

    def interpret(
        self,
        lines: Iterable[str],
        metadata: StreamMetadata,
        client: Optional["PlaybackClient"] = None,
    ) -> HeaderParseResult:
        """
        Parse header lines and propagate the results.

        Args:
            lines: Header lines in order, status line excluded
            metadata: Record for this connection attempt
            client: Player the stream is opened for, if any

        Returns:
            HeaderParseResult with redirect, seek and progress signals
        """
        result = parse_headers(lines, metadata)

        for event in result.events:
            self._propagate(event, metadata, client)

        result.seek_supported = self._can_seek(metadata)
        metadata.seek_supported = result.seek_supported

        if client is not None:
            self.apply_to_client(result, metadata, client)

        return result

    def apply_to_client(
        self,
        result: HeaderParseResult,
        metadata: StreamMetadata,
        client: "PlaybackClient",
    ) -> None:
        """Push bitrate, duration and seek state to the player."""
        url = metadata.url

        # Bitrate may already be known from scanning the stream
        if not metadata.bitrate:
            metadata.bitrate = self._library.get_current_bitrate(url)

        duration = self._library.get_duration(url)
        if duration:
            result.progress = ProgressBar(url=url, duration=duration)
        elif (metadata.bitrate or 0) > 0 and (metadata.content_length or 0) > 0:
            # Bitrate left in kbps somewhere upstream
            if metadata.bitrate < 1000:
                metadata.bitrate *= 1000
            result.progress = ProgressBar(
                url=url,
                bitrate=metadata.bitrate,
                length=metadata.content_length,
            )

        if result.progress is not None:
            client.streaming_progress_bar(result.progress)

        if result.seek_supported:
            logger.debug("Stream supports seeking")
            client.scan_data.can_seek = True
        else:
            logger.debug("Stream does not support seeking")
            client.scan_data.can_seek = False

        # Title, bitrate or type may have just changed
        self._library.refresh_cached_track(url)

    def _propagate(
        self,
        event: HeaderEvent,
        metadata: StreamMetadata,
        client: Optional["PlaybackClient"],
    ) -> None:
        if event.kind == HeaderKind.OTHER:
            if client is None:
                return
            handler = self._vendors.find(metadata.url, event.name)
            if handler is not None:
                handler(client, metadata.url, event.value)
            return

        if not metadata.propagate:
            return

        if event.kind == HeaderKind.TITLE:
            # Radio station titles from headers always win
            logger.info(f"Setting new title for {metadata.url}, {event.parsed}")
            self._library.set_title(metadata.url, event.parsed)
            self._library.set_current_title(metadata.url, event.parsed)

        elif event.kind == HeaderKind.BITRATE:
            self._library.set_bitrate(metadata.info_url, event.parsed)
            logger.info(f"Bitrate for {metadata.info_url} set to {event.parsed}")

        elif event.kind == HeaderKind.CONTENT_TYPE:
            self._library.set_content_type(metadata.url, event.parsed)

    def _can_seek(self, metadata: StreamMetadata) -> bool:
        return bool(
            metadata.content_length
            and self._library.mime_to_type(metadata.content_type) == DEFAULT_TYPE
        )
