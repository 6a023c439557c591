"""
Mock engine implementations for testing.

This module provides in-memory implementations of SiteEngine,
Connector and NameRegistry that can be used for unit testing and
examples without a ledger. The mock keeps a small, plausible model of
the remote engine: chunked resources, a shared data point registry
with royalties, method bitmasks and owner/admin write permission.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from ..address import calculate_address, keccak256
from ..constants import ZERO_ADDRESS, ZERO_DIGEST, Charset, Location, Method, MimeType
from ..exceptions import RemoteError
from ..primitives import (
    DEFAULT_HEADER,
    DataPointStructure,
    GetRequest,
    GetResponse,
    HeaderInfo,
    HeadResponse,
    LocateResponse,
    RequestHeader,
    RequestLine,
    ResourceMetadata,
    ResponseLine,
    WriteResponse,
)
from .backend import Connector, EventLog, NameRegistry, PendingTransaction, Receipt, SiteEngine

if TYPE_CHECKING:
    from ..context import NetworkConfig


logger = logging.getLogger(__name__)

DEFAULT_ROYALTY_RATE = 1000


class MockPendingTransaction(PendingTransaction):
    """Transaction that is already confirmed."""

    def __init__(self, receipt: Receipt):
        self._receipt = receipt

    async def wait(self) -> Receipt:
        return self._receipt


@dataclass
class _DataPoint:
    data: bytes
    structure: DataPointStructure
    publisher: str


@dataclass
class _Resource:
    chunks: List[bytes] = field(default_factory=list)
    structure: DataPointStructure = field(default_factory=DataPointStructure)
    version: int = 0
    modified_date: int = 0


@dataclass
class _Site:
    owner: str
    header: HeaderInfo
    headers: Dict[str, HeaderInfo] = field(default_factory=dict)
    resources: Dict[str, _Resource] = field(default_factory=dict)


class MockSiteEngine(SiteEngine):
    """
    In-memory site engine.

    Sites are created with ``create_site`` and addressed by the
    returned 0x address. Every engine call is recorded in ``calls`` so
    tests can assert whether the network was touched.
    """

    def __init__(
        self,
        royalty_rate: int = DEFAULT_ROYALTY_RATE,
        clock: Optional[Callable[[], int]] = None,
        registry: str = "0x" + "0" * 39 + "1",
    ):
        """
        Initialize the mock engine.

        Args:
            royalty_rate: Fee per byte for writing an already stored data point.
            clock: Returns the current unix time; defaults to the wall clock.
            registry: Address reported for the data point registry.
        """
        self.royalty_rate = royalty_rate
        self.clock = clock or (lambda: int(time.time()))
        self.registry = registry
        self.calls: List[Tuple[Any, ...]] = []
        self.balances: Dict[str, int] = {}
        self._sites: Dict[str, _Site] = {}
        self._data_points: Dict[bytes, _DataPoint] = {}

    # Site management

    def create_site(self, owner: str, header: HeaderInfo = DEFAULT_HEADER) -> str:
        """Deploy a new site and return its address."""
        seed = f"{owner.lower()}:{len(self._sites)}".encode("utf-8")
        address = "0x" + keccak256(seed)[-20:].hex()
        self._sites[address] = _Site(owner=owner.lower(), header=header)
        logger.debug(f"Mock site {address} created for {owner}")
        return address

    def reset(self) -> None:
        """Forget all sites, data points and recorded calls."""
        self.calls.clear()
        self.balances.clear()
        self._sites.clear()
        self._data_points.clear()

    def _site(self, host: str) -> _Site:
        site = self._sites.get(host.lower())
        if site is None:
            raise RemoteError(404, f"No site at {host}")
        return site

    def _header(self, site: _Site, path: str) -> HeaderInfo:
        return site.headers.get(path, site.header)

    def _resource(self, site: _Site, path: str) -> Optional[_Resource]:
        resource = site.resources.get(path)
        if resource is None or not resource.chunks:
            return None
        return resource

    def _check_read(self, header: HeaderInfo, method: Method) -> None:
        if not header.methods & method.mask:
            raise RemoteError(405, f"{method} not allowed")

    def _check_write(self, site: _Site, path: str, sender: str, method: Method) -> None:
        sender = sender.lower()
        if sender == site.owner:
            return
        header = self._header(site, path)
        if header.resource_admin != ZERO_ADDRESS and sender == header.resource_admin.lower():
            if header.methods & method.mask:
                return
        raise RemoteError(403, f"{sender} may not {method} {path}")

    def _etag(self, resource: _Resource) -> bytes:
        return keccak256(b"".join(resource.chunks))

    def _build_head(self, site: _Site, path: str, method: Optional[Method]) -> HeadResponse:
        header = self._header(site, path)
        resource = self._resource(site, path)
        if resource is None:
            return HeadResponse(ResponseLine(404), header_info=header)

        if method is not None:
            self._check_read(header, method)
        code = header.redirect.code if header.redirect.code > 0 else 200
        size = sum(len(self._data_points[address].data) for address in resource.chunks)
        return HeadResponse(
            ResponseLine(code),
            header_info=header,
            metadata=ResourceMetadata(
                size=size,
                version=resource.version,
                modified_date=resource.modified_date,
            ),
            structure=replace(resource.structure, size=size),
            etag=self._etag(resource),
        )

    # Read calls

    async def head(self, host: str, line: RequestLine) -> HeadResponse:
        self.calls.append(("head", host, line.path))
        return self._build_head(self._site(host), line.path, Method.HEAD)

    async def get(
        self, line: RequestLine, header: RequestHeader, request: GetRequest
    ) -> GetResponse:
        self.calls.append(("get", request.host, line.path))
        site = self._site(request.host)
        head = self._build_head(site, line.path, Method.GET)
        if head.code != 200:
            return GetResponse(head)

        if header.if_none_match != ZERO_DIGEST and header.if_none_match == head.etag:
            return GetResponse(replace(head, response_line=ResponseLine(304)))
        if header.if_modified_since and head.metadata.modified_date <= header.if_modified_since:
            return GetResponse(replace(head, response_line=ResponseLine(304)))

        chunks = site.resources[line.path].chunks
        last = len(chunks) - 1
        start = request.range_start
        end = request.range_end if request.range_end > 0 else last
        if start > end or end > last:
            raise RemoteError(416, f"chunks={request.range_start}-{request.range_end}")

        body = b"".join(self._data_points[address].data for address in chunks[start:end + 1])
        if start > 0 or end < last:
            head = replace(head, response_line=ResponseLine(206))
        return GetResponse(head, body)

    async def locate(self, host: str, line: RequestLine) -> LocateResponse:
        self.calls.append(("locate", host, line.path))
        site = self._site(host)
        head = self._build_head(site, line.path, Method.LOCATE)
        if head.code == 404:
            return LocateResponse(head)
        chunks = tuple(site.resources[line.path].chunks)
        return LocateResponse(head, registry_address=self.registry, data_points=chunks)

    async def registry_address(self, host: str) -> str:
        self.calls.append(("registry_address", host))
        self._site(host)
        return self.registry

    async def royalty(self, registry: str, address: bytes) -> int:
        self.calls.append(("royalty", registry, address))
        if registry.lower() != self.registry.lower():
            raise RemoteError(404, f"No registry at {registry}")
        return self._royalty_for(address)

    def _royalty_for(self, address: bytes) -> int:
        existing = self._data_points.get(address)
        if existing is None:
            return 0
        return len(existing.data) * self.royalty_rate

    def _store(self, structure: DataPointStructure, data: bytes, publisher: str, value: int) -> bytes:
        address = calculate_address(structure, data)
        owed = self._royalty_for(address)
        if value < owed:
            raise RemoteError(402, f"Royalty of {owed} required, {value} sent")

        existing = self._data_points.get(address)
        if existing is None:
            self._data_points[address] = _DataPoint(data, structure, publisher.lower())
        elif value:
            self.balances[existing.publisher] = self.balances.get(existing.publisher, 0) + value
        return address

    def _confirm(self, event: str, sender: str, value: int, response: Any) -> MockPendingTransaction:
        log = EventLog(event, {"account": sender, "response": response})
        return MockPendingTransaction(Receipt(logs=(log,), sender=sender, value=value))

    # State-changing calls

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
        self.calls.append(("put", host, line.path))
        site = self._site(host)
        self._check_write(site, line.path, sender, Method.PUT)

        structure = DataPointStructure(len(data), mime_type, charset, location)
        address = self._store(structure, data, publisher, value)

        previous = site.resources.get(line.path)
        site.resources[line.path] = _Resource(
            chunks=[address],
            structure=structure,
            version=(previous.version + 1) if previous else 1,
            modified_date=self.clock(),
        )
        head = replace(self._build_head(site, line.path, None), response_line=ResponseLine(201))
        return self._confirm(
            "PUTSuccess", sender, value, WriteResponse(head, self.registry, address)
        )

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
        self.calls.append(("patch", host, line.path, chunk))
        site = self._site(host)
        self._check_write(site, line.path, sender, Method.PATCH)

        resource = self._resource(site, line.path)
        if resource is None:
            raise RemoteError(404, f"Nothing to patch at {line.path}")
        if chunk > len(resource.chunks):
            raise RemoteError(416, f"Chunk {chunk} is past the end of {line.path}")

        structure = replace(resource.structure, size=len(data))
        address = self._store(structure, data, publisher, value)
        if chunk == len(resource.chunks):
            resource.chunks.append(address)
        else:
            resource.chunks[chunk] = address
        resource.version += 1
        resource.modified_date = self.clock()

        head = self._build_head(site, line.path, None)
        return self._confirm(
            "PATCHSuccess", sender, value, WriteResponse(head, self.registry, address)
        )

    async def define(
        self, host: str, line: RequestLine, header: HeaderInfo, *, sender: str
    ) -> PendingTransaction:
        self.calls.append(("define", host, line.path))
        site = self._site(host)
        self._check_write(site, line.path, sender, Method.DEFINE)

        site.headers[line.path] = header
        head = HeadResponse(ResponseLine(200), header_info=header)
        return self._confirm("DEFINESuccess", sender, 0, WriteResponse(head, self.registry))

    async def delete(self, host: str, line: RequestLine, *, sender: str) -> PendingTransaction:
        self.calls.append(("delete", host, line.path))
        site = self._site(host)
        self._check_write(site, line.path, sender, Method.DELETE)

        if self._resource(site, line.path) is None:
            raise RemoteError(404, f"Nothing to delete at {line.path}")
        del site.resources[line.path]
        head = HeadResponse(ResponseLine(204), header_info=self._header(site, line.path))
        return self._confirm("DELETESuccess", sender, 0, WriteResponse(head, self.registry))


class MockConnector(Connector):
    """
    Connector handing out one MockSiteEngine per network name.

    Every ``connect`` call is recorded in ``connections``.
    """

    def __init__(self, engines: Optional[Dict[str, MockSiteEngine]] = None):
        self.engines: Dict[str, MockSiteEngine] = dict(engines or {})
        self.connections: List[str] = []

    def engine(self, network: str) -> MockSiteEngine:
        """The engine for ``network``, created on first use."""
        if network not in self.engines:
            self.engines[network] = MockSiteEngine()
        return self.engines[network]

    def connect(self, network: "NetworkConfig") -> SiteEngine:
        self.connections.append(network.name)
        return self.engine(network.name)


class MockNameRegistry(NameRegistry):
    """Name registry backed by a dict."""

    def __init__(self, names: Optional[Dict[str, str]] = None):
        self.names: Dict[str, str] = dict(names or {})
        self.lookups: List[str] = []

    def register(self, name: str, address: str) -> None:
        self.names[name.lower()] = address

    async def resolve_name(self, name: str) -> Optional[str]:
        self.lookups.append(name)
        return self.names.get(name.lower())
