"""
HTTP/1.0 request builder for remote streams.

Builds the raw request written to a stream socket, including proxy
paths, basic auth, byte-range seeking, POST bodies and cookies.
"""

import base64
import logging
import platform
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from .url import decompose, is_loopback

if TYPE_CHECKING:
    from httpstream.playback.client import PlaybackClient

    from .cookies import CookieStore

logger = logging.getLogger(__name__)

CRLF = "\r\n"


def default_user_agent() -> str:
    """User-Agent identifying this client."""
    from httpstream import __version__

    return (
        f"httpstream/{__version__} "
        f"({platform.system() or 'Unknown'}; Python {platform.python_version()})"
    )


@dataclass
class RawRequest:
    """A parsed HTTP request: request line, ordered headers and body."""

    method: str
    target: str
    version: str = "HTTP/1.0"
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: str = ""

    @classmethod
    def parse(cls, text: str) -> "RawRequest":
        """
        Parse a CRLF-delimited request.

        Raises:
            ValueError: If the request line is malformed
        """
        head, _, body = text.partition(CRLF + CRLF)
        lines = head.split(CRLF)
        try:
            method, target, version = lines[0].split(" ", 2)
        except ValueError:
            raise ValueError(f"Malformed request line: {lines[0]!r}")

        headers = []
        for line in lines[1:]:
            if not line:
                continue
            name, sep, value = line.partition(":")
            if not sep:
                raise ValueError(f"Malformed request header: {line!r}")
            headers.append((name.strip(), value.strip()))

        return cls(method=method, target=target, version=version, headers=headers, body=body)

    def add_header(self, name: str, value: str) -> None:
        self.headers.append((name, value))

    def get_header(self, name: str) -> Optional[str]:
        """Get the first value of a header (case-insensitive)."""
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None

    def serialize(self) -> str:
        """Render the request; the header block always ends with a blank line."""
        lines = [f"{self.method} {self.target} {self.version}"]
        lines.extend(f"{name}: {value}" for name, value in self.headers)
        return CRLF.join(lines) + CRLF + CRLF + self.body


class RequestBuilder:
    """
    Builds HTTP/1.0 requests for remote audio streams.

    Usage:
        builder = RequestBuilder(webproxy="proxy:3128", cookies=CookieStore())
        data = builder.build("http://radio.example.com:8000/stream", client)
        writer.write(data)
    """

    def __init__(
        self,
        user_agent: str = "",
        webproxy: Optional[str] = None,
        cookies: Optional["CookieStore"] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize request builder.

        Args:
            user_agent: User-Agent header value (default_user_agent() if empty)
            webproxy: Outbound HTTP proxy ("host:port"), if any
            cookies: Cookie store; None disables cookie support
            clock: Wall clock used to anchor seek positions
        """
        self.user_agent = user_agent or default_user_agent()
        self.webproxy = webproxy
        self.cookies = cookies
        self._clock = clock

    def build(
        self,
        url: str,
        client: Optional["PlaybackClient"] = None,
        post: Optional[str] = None,
    ) -> bytes:
        """
        Build the request for url.

        A pending seek on client is consumed: the Range header is added and
        the client's stream position is re-anchored to the seek time.

        Args:
            url: Stream URL
            client: Player the stream is opened for
            post: Form-encoded POST body

        Returns:
            Raw request bytes
        """
        parts = decompose(url)
        path = parts.path

        # Proxies need the absolute URL
        if self.webproxy and not is_loopback(parts.server):
            path = f"http://{parts.host}:{parts.port}{parts.path}"

        method = "POST" if post else "GET"

        lines = [
            f"{method} {path} HTTP/1.0",
            "Accept: */*",
            "Cache-Control: no-cache",
            f"User-Agent: {self.user_agent}",
            "Icy-MetaData: 1",
            "Connection: close",
            # Some hosts redirect forever when :80 is included
            f"Host: {parts.host_header}",
        ]

        if parts.user is not None and parts.password is not None:
            credentials = f"{parts.user}:{parts.password}".encode("utf-8")
            lines.append(f"Authorization: Basic {base64.b64encode(credentials).decode('ascii')}")

        range_header = self._consume_seek(client)
        if range_header:
            lines.append(range_header)

        body = ""
        if post:
            body = post
            lines.append("Content-Type: application/x-www-form-urlencoded")
            lines.append(f"Content-Length: {len(post.encode('utf-8'))}")

        request = CRLF.join(lines) + CRLF + CRLF + body

        if self.cookies is not None:
            request_object = RawRequest.parse(request)
            request_object.target = url
            self.cookies.attach_cookies(request_object)
            request_object.target = path
            request = request_object.serialize()

        logger.debug(f"Request for {url}:\n{request}")
        return request.encode("utf-8")

    def _consume_seek(self, client: Optional["PlaybackClient"]) -> Optional[str]:
        """Turn a pending seek into a Range header, updating playback state."""
        if client is None:
            return None
        seek_data = client.scan_data.seek_data
        if not seek_data:
            return None

        offset = int(seek_data.new_offset)

        master = client.master_or_self()
        if master.current_song_queue:
            master.current_song_queue[-1].start_offset = seek_data.new_time
        master.remote_stream_start_time = self._clock() - seek_data.new_time

        client.scan_data.seek_data = None
        logger.info(f"Seeking to byte {offset} ({seek_data.new_time}s)")

        return f"Range: bytes={offset}-"


def build_request(
    url: str,
    client: Optional["PlaybackClient"] = None,
    post: Optional[str] = None,
    webproxy: Optional[str] = None,
    cookies: Optional["CookieStore"] = None,
) -> bytes:
    """Build a request with a one-off RequestBuilder."""
    return RequestBuilder(webproxy=webproxy, cookies=cookies).build(url, client, post)
