"""
Locator parsing for wttp_client.

Locators look like ``wttp://host[:network]/path[?query]``. The scheme
is optional: a string without a recognized scheme prefix is parsed
as if the prefix had already been stripped.
"""

import re
from typing import NamedTuple, Optional, Tuple

from .constants import SUPPORTED_SCHEMES
from .exceptions import InvalidURLError


_SCHEME_RE = re.compile(
    r"^(?:%s)://" % "|".join(re.escape(scheme) for scheme in SUPPORTED_SCHEMES),
    re.IGNORECASE,
)


class ParsedURL(NamedTuple):
    """Immutable representation of locator components."""
    host: str
    path: str = "/"
    query_params: Tuple[str, ...] = ()
    network: Optional[str] = None

    @property
    def route(self) -> str:
        """Host and path joined back together, without scheme or query."""
        return self.host + self.path


class URLParser:
    """Splits locators into host, path, query tokens and network selector."""

    def parse(self, url: str) -> ParsedURL:
        """
        Parse a locator string.

        Args:
            url: Locator, e.g. ``wttp://site.eth:sepolia/index.html?v=1``

        Returns:
            ParsedURL with the path always starting with "/"

        Raises:
            InvalidURLError: If the locator is not a string, or the
                host/network selector pair is malformed
        """
        if not isinstance(url, str):
            raise InvalidURLError(f"expected a string, got {type(url).__name__}")

        remainder = _SCHEME_RE.sub("", url, count=1)

        route, _, query = remainder.partition("?")
        query_params = tuple(query.split("&")) if query else ()

        host, *segments = route.split("/")
        network = None
        if ":" in host:
            host, _, network = host.partition(":")
            if not host or not network:
                raise InvalidURLError(f"malformed host/network pair in {url!r}")

        path = "/" + "/".join(segments) if segments else "/"

        return ParsedURL(host=host, path=path, query_params=query_params, network=network)


_default_parser = URLParser()


def parse_url(url: str) -> ParsedURL:
    """Parse a locator with the default parser."""
    return _default_parser.parse(url)
