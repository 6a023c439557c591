"""
Remote engine interfaces for wttp_client.

This module defines the collaborators the handler talks to: the
per-network site engine, the connector that binds an engine to a
network endpoint, and the name registry used for host resolution.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ..constants import Charset, Location, MimeType
from ..primitives import (
    GetRequest,
    GetResponse,
    HeaderInfo,
    HeadResponse,
    LocateResponse,
    RequestHeader,
    RequestLine,
)

if TYPE_CHECKING:
    from ..context import NetworkConfig


@dataclass(frozen=True)
class EventLog:
    """A named event emitted by a confirmed transaction."""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Receipt:
    """Confirmation of a state-changing call."""

    logs: Tuple[EventLog, ...] = ()
    sender: str = ""
    value: int = 0

    def find_event(self, name: str) -> Optional[EventLog]:
        for log in self.logs:
            if log.name == name:
                return log
        return None


class PendingTransaction(ABC):
    """A submitted state-changing call awaiting confirmation."""

    @abstractmethod
    async def wait(self) -> Receipt:
        """
        Wait until the call is confirmed.

        Returns:
            The receipt with the events the call emitted.

        Raises:
            RemoteError: If the engine rejected the call.
        """
        pass


class SiteEngine(ABC):
    """
    Interface for a site engine bound to one network.

    Read calls return raw replies directly. State-changing calls return
    a PendingTransaction; the reply is carried by the success event in
    its receipt. Rejections are raised as ``RemoteError``.
    """

    @abstractmethod
    async def get(
        self, line: RequestLine, header: RequestHeader, request: GetRequest
    ) -> GetResponse:
        """
        Read a resource.

        Args:
            line: Path and protocol of the request.
            header: Accept sets and conditional fields.
            request: Site address and chunk range.

        Returns:
            The head and the concatenated body of the selected chunks.
        """
        pass

    @abstractmethod
    async def head(self, host: str, line: RequestLine) -> HeadResponse:
        pass

    @abstractmethod
    async def locate(self, host: str, line: RequestLine) -> LocateResponse:
        pass

    @abstractmethod
    async def registry_address(self, host: str) -> str:
        """Address of the data point registry the site stores into."""
        pass

    @abstractmethod
    async def royalty(self, registry: str, address: bytes) -> int:
        """Fee owed for writing the data point ``address`` to ``registry``."""
        pass

    @abstractmethod
    async def put(
        self,
        host: str,
        line: RequestLine,
        mime_type: MimeType,
        charset: Charset,
        location: Location,
        publisher: str,
        data: bytes,
        *,
        sender: str,
        value: int = 0,
    ) -> PendingTransaction:
        pass

    @abstractmethod
    async def patch(
        self,
        host: str,
        line: RequestLine,
        data: bytes,
        chunk: int,
        publisher: str,
        *,
        sender: str,
        value: int = 0,
    ) -> PendingTransaction:
        pass

    @abstractmethod
    async def define(
        self, host: str, line: RequestLine, header: HeaderInfo, *, sender: str
    ) -> PendingTransaction:
        pass

    @abstractmethod
    async def delete(self, host: str, line: RequestLine, *, sender: str) -> PendingTransaction:
        pass


class Connector(ABC):
    """Binds site engines to network endpoints."""

    @abstractmethod
    def connect(self, network: "NetworkConfig") -> SiteEngine:
        """
        Return an engine bound to the network's endpoint.

        Raises:
            OSError: If the endpoint cannot be reached.
        """
        pass


class NameRegistry(ABC):
    """Resolves human-readable names to canonical addresses."""

    @abstractmethod
    async def resolve_name(self, name: str) -> Optional[str]:
        """Return the address registered for ``name``, or None."""
        pass
