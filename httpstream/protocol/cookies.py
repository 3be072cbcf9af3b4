"""
Cookie store for remote stream requests.

Thin wrapper around aiohttp's CookieJar so that raw HTTP/1.0 requests
built for stream sockets share cookies with the rest of the client.
"""

import logging
import threading
from http.cookies import CookieError, SimpleCookie
from typing import TYPE_CHECKING, Iterable, Optional

import aiohttp
from yarl import URL

if TYPE_CHECKING:
    from .request import RawRequest

logger = logging.getLogger(__name__)


class CookieStore:
    """
    Shared cookie storage.

    The underlying aiohttp.CookieJar is created on first use, which must
    happen inside a running event loop.
    """

    def __init__(self, jar: Optional[aiohttp.CookieJar] = None, unsafe: bool = False):
        """
        Initialize cookie store.

        Args:
            jar: Existing cookie jar to share (e.g. a ClientSession's)
            unsafe: Accept cookies from IP address hosts
        """
        self._jar = jar
        self._unsafe = unsafe
        self._lock = threading.Lock()

    @property
    def jar(self) -> aiohttp.CookieJar:
        """The underlying cookie jar."""
        if self._jar is None:
            self._jar = aiohttp.CookieJar(unsafe=self._unsafe)
        return self._jar

    def cookie_header(self, url: str) -> str:
        """Build a Cookie header value for url (empty if none apply)."""
        with self._lock:
            cookies = self.jar.filter_cookies(URL(url))
        return "; ".join(f"{name}={morsel.coded_value}" for name, morsel in cookies.items())

    def attach_cookies(self, request: "RawRequest") -> None:
        """
        Add a Cookie header for the request's URI.

        The request target must be the absolute URL at this point.
        """
        value = self.cookie_header(request.target)
        if value:
            request.add_header("Cookie", value)
            logger.debug(f"Attached cookies for {request.target}")

    def update_from_headers(self, url: str, set_cookie_values: Iterable[str]) -> None:
        """
        Store cookies from Set-Cookie header values of a response.

        Args:
            url: URL the response came from
            set_cookie_values: Raw Set-Cookie header values
        """
        cookies: SimpleCookie = SimpleCookie()
        for value in set_cookie_values:
            try:
                cookies.load(value)
            except CookieError as e:
                logger.warning(f"Can not load cookie {value!r}: {e}")

        if not cookies:
            return

        with self._lock:
            self.jar.update_cookies(cookies, URL(url))
        logger.debug(f"Stored {len(cookies)} cookie(s) from {url}")

    def clear(self) -> None:
        """Remove all cookies."""
        with self._lock:
            self.jar.clear()
