"""
URL decomposition for remote streams.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlsplit

DEFAULT_PORTS = {"http": 80, "https": 443}

_LOOPBACK_RE = re.compile(r"localhost|127\.0\.0\.1", re.IGNORECASE)


class InvalidURLError(ValueError):
    """Raised when a URL cannot be decomposed."""

    pass


@dataclass
class URLParts:
    """Components of a stream URL."""

    server: str
    port: int
    path: str
    user: Optional[str] = None
    password: Optional[str] = None

    @property
    def host(self) -> str:
        """Server name as written in a URL; IPv6 literals are bracketed."""
        return f"[{self.server}]" if ":" in self.server else self.server

    @property
    def host_header(self) -> str:
        """Host header value; port 80 is left out."""
        return self.host if self.port == 80 else f"{self.host}:{self.port}"


def decompose(url: str) -> URLParts:
    """
    Split a URL into server, port, path and credentials.

    Args:
        url: Absolute http(s) URL

    Returns:
        URLParts with port defaulting to the scheme's port

    Raises:
        InvalidURLError: If the URL has no host or an invalid port
    """
    parts = urlsplit(url)
    if not parts.hostname:
        raise InvalidURLError(f"No host in URL: {url}")

    try:
        port = parts.port
    except ValueError as e:
        raise InvalidURLError(f"Invalid port in URL {url}: {e}")

    if port is None:
        port = DEFAULT_PORTS.get(parts.scheme.lower(), 80)

    path = parts.path or "/"
    if parts.query:
        path += "?" + parts.query

    user = unquote(parts.username) if parts.username is not None else None
    password = unquote(parts.password) if parts.password is not None else None

    return URLParts(
        server=parts.hostname,
        port=port,
        path=path,
        user=user,
        password=password,
    )


def is_loopback(server: str) -> bool:
    """Check if a server name refers to the local machine."""
    return bool(_LOOPBACK_RE.search(server))
