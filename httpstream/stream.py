"""
Remote stream connections.

Opens a socket to a remote stream, sends the built request, reads the
response headers and hands them to the HeaderInterpreter. Redirects are
followed by starting a fresh connection with a new StreamMetadata.
"""

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Optional
from urllib.parse import urljoin, urlsplit

from .config import Config
from .playback.library import MetadataLibrary, format_for_url
from .protocol.cookies import CookieStore
from .protocol.headers import HeaderInterpreter
from .protocol.request import RequestBuilder
from .protocol.types import StreamMetadata
from .protocol.url import decompose, is_loopback
from .protocol.vendors import VendorRegistry

if TYPE_CHECKING:
    from .playback.client import PlaybackClient

logger = logging.getLogger(__name__)

MAX_HEADER_LINES = 100

_STATUS_RE = re.compile(r"^(?:HTTP/\d\.\d|ICY)\s+(\d{3})", re.IGNORECASE)


class StreamError(Exception):
    """Remote stream connection error."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class RemoteStream:
    """
    Opens remote HTTP/ICY streams and collects their metadata.

    Usage:
        stream = RemoteStream(config, library)
        metadata = await stream.get_tag("http://radio.example.com/live")
        print(metadata.title, metadata.bitrate)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        library: Optional[MetadataLibrary] = None,
        cookies: Optional[CookieStore] = None,
        vendors: Optional[VendorRegistry] = None,
    ):
        """
        Initialize remote stream opener.

        Args:
            config: Configuration (defaults if omitted)
            library: Library receiving stream metadata
            cookies: Shared cookie store (created if cookies are enabled)
            vendors: Vendor header handlers
        """
        self._config = config or Config()
        network = self._config.network

        self.library = library if library is not None else MetadataLibrary()
        if network.cookies:
            self.cookies: Optional[CookieStore] = cookies or CookieStore()
        else:
            self.cookies = None

        self.builder = RequestBuilder(
            user_agent=network.user_agent,
            webproxy=network.webproxy or None,
            cookies=self.cookies,
        )
        self.interpreter = HeaderInterpreter(self.library, vendors)

    @staticmethod
    def format_for_url(url: str) -> str:
        """Format of the stream at url."""
        return format_for_url(url)

    async def open(
        self,
        url: str,
        client: Optional["PlaybackClient"] = None,
        post: Optional[str] = None,
        create: Optional[int] = None,
        info_url: str = "",
    ) -> StreamMetadata:
        """
        Make one connection attempt and parse the response headers.

        The connection is closed once headers are read. A redirect is
        reported in the returned metadata, not followed.

        Args:
            url: Stream URL
            client: Player the stream is opened for
            post: POST body
            create: 0 to keep header values out of the library
            info_url: URL to record bitrate against (defaults to url)

        Returns:
            StreamMetadata for this attempt

        Raises:
            StreamError: On connection failure, timeout or HTTP error status
        """
        metadata = StreamMetadata(url=url, info_url=info_url, create=create)
        network = self._config.network

        parts = decompose(url)
        host, port = parts.server, parts.port
        use_ssl = urlsplit(url).scheme.lower() == "https"

        proxy = network.proxy_address
        if proxy and not is_loopback(parts.server):
            if use_ssl:
                raise StreamError(f"Can't fetch {url} through a web proxy, https is not supported")
            host, port = proxy

        request = self.builder.build(url, client, post)

        logger.debug(f"Connecting to {host}:{port} for {url}")
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port, ssl=use_ssl or None),
                timeout=network.timeout,
            )
        except asyncio.TimeoutError:
            raise StreamError(f"Timed out connecting to {host}:{port}")
        except OSError as e:
            raise StreamError(f"Can't connect to {host}:{port}: {e}")

        try:
            writer.write(request)
            await writer.drain()
            status, lines = await asyncio.wait_for(
                self._read_headers(reader),
                timeout=network.timeout,
            )
        except asyncio.TimeoutError:
            raise StreamError(f"Timed out reading headers from {url}")
        except (ConnectionError, OSError) as e:
            raise StreamError(f"Connection to {url} failed: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.debug(f"Error closing connection to {url}: {e}")

        logger.debug(f"Status {status} from {url}")

        if self.cookies is not None:
            self.cookies.update_from_headers(url, _header_values(lines, "set-cookie"))

        if status >= 400:
            raise StreamError(f"Server returned {status} for {url}", status=status)

        self.interpreter.interpret(lines, metadata, client)
        return metadata

    async def resolve(
        self,
        url: str,
        client: Optional["PlaybackClient"] = None,
        post: Optional[str] = None,
        create: Optional[int] = None,
    ) -> StreamMetadata:
        """
        Open url, following redirects.

        Each hop is a fresh connection with its own StreamMetadata; the
        POST body is only sent to the first URL.

        Raises:
            StreamError: On connection errors or too many redirects
        """
        info_url = url
        max_redirects = self._config.network.max_redirects

        for _ in range(max_redirects + 1):
            metadata = await self.open(url, client, post, create, info_url=info_url)
            if not metadata.redirect:
                return metadata

            url = urljoin(url, metadata.redirect)
            post = None
            logger.info(f"Redirected to {url}")

        raise StreamError(f"Too many redirects for {info_url}")

    async def get_tag(self, url: str, create: Optional[int] = None) -> StreamMetadata:
        """Read metadata for url without a player attached."""
        return await self.resolve(url, create=create)

    async def _read_headers(self, reader: asyncio.StreamReader) -> tuple[int, list[str]]:
        """Read the status line and header lines up to the blank line."""
        try:
            status_line = (await reader.readline()).decode("iso-8859-1")
        except ValueError as e:
            raise StreamError(f"Status line too long: {e}")
        match = _STATUS_RE.match(status_line)
        if not match:
            raise StreamError(f"Invalid status line: {status_line.strip()!r}")
        status = int(match.group(1))

        lines: list[str] = []
        for _ in range(MAX_HEADER_LINES):
            try:
                raw = await reader.readline()
            except ValueError as e:
                # Oversized line was consumed by the reader
                logger.warning(f"Skipping oversized header line: {e}")
                continue
            if not raw:
                break
            line = raw.decode("iso-8859-1")
            lines.append(line)
            if not line.strip():
                break
        else:
            logger.warning(f"More than {MAX_HEADER_LINES} header lines, ignoring the rest")
        return status, lines


def _header_values(lines: list[str], name: str) -> list[str]:
    """Values of all headers called name (case-insensitive)."""
    values = []
    for line in lines:
        key, sep, value = line.partition(":")
        if sep and key.strip().lower() == name:
            values.append(value.strip())
    return values
