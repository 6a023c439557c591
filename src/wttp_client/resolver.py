"""
Host resolution for wttp_client.
"""

import logging
import re
from collections import OrderedDict
from typing import Optional, Tuple

from .engine.backend import NameRegistry


logger = logging.getLogger(__name__)

CANONICAL_HOST_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_canonical(host: str) -> bool:
    """Check whether ``host`` is already a 0x-prefixed 20-byte address."""
    return bool(CANONICAL_HOST_RE.match(host))


class HostResolver:
    """
    Resolves human-readable hosts to canonical addresses.

    Canonical addresses pass through untouched. Hosts ending in one of
    ``suffixes`` are looked up in the name registry; when there is no
    registry or the lookup finds nothing, the host is returned as given.

    Successful lookups are cached. The cache keeps at most ``cache_size``
    names and drops the least recently used one when full.
    """

    def __init__(
        self,
        registry: Optional[NameRegistry] = None,
        suffixes: Tuple[str, ...] = (".eth",),
        cache: bool = True,
        cache_size: int = 256,
    ):
        if cache_size < 1:
            raise ValueError("cache_size must be at least 1")
        self.registry = registry
        self.suffixes = tuple(suffix.lower() for suffix in suffixes)
        self.cache_size = cache_size
        self._cache: Optional["OrderedDict[str, str]"] = OrderedDict() if cache else None

    def is_resolvable(self, host: str) -> bool:
        return host.lower().endswith(self.suffixes)

    async def resolve(self, host: str) -> str:
        if is_canonical(host) or not self.is_resolvable(host):
            return host

        if self._cache is not None and host in self._cache:
            self._cache.move_to_end(host)
            return self._cache[host]

        if self.registry is None:
            logger.debug(f"No name registry configured, keeping {host}")
            return host

        address = await self.registry.resolve_name(host)
        if not address:
            logger.debug(f"Name {host} did not resolve")
            return host

        logger.debug(f"Resolved {host} -> {address}")
        if self._cache is not None:
            self._cache[host] = address
            if len(self._cache) > self.cache_size:
                evicted, _ = self._cache.popitem(last=False)
                logger.debug(f"Evicted {evicted} from the name cache")
        return address

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()
