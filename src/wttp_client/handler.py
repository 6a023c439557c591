"""
Fetch-style handler for wttp_client.

``WTTPHandler.fetch`` parses a locator, builds the method-specific
request, dispatches it to the site engine of the selected network and
turns the reply into a Response. Request-shape problems and remote
errors come back as 4xx/5xx Responses instead of being raised.
"""

import logging
from dataclasses import replace
from typing import Mapping, Optional, Union

from multidict import CIMultiDict
from typing_extensions import assert_never

from .address import calculate_address
from .constants import Method, status_text
from .context import NetworkContext
from .engine.backend import PendingTransaction, SiteEngine
from .exceptions import (
    InvalidMethodError,
    InvalidRequestError,
    InvalidURLError,
    ProtocolViolationError,
    RemoteError,
)
from .primitives import DataPointStructure, HeaderInfo, RawReply, Response, WriteResponse
from .request_builder import (
    DefineDescriptor,
    DeleteDescriptor,
    ErrorDescriptor,
    GetDescriptor,
    HeadDescriptor,
    LocateDescriptor,
    PatchDescriptor,
    PutDescriptor,
    RequestBuilder,
    RequestDescriptor,
    RequestOptions,
)
from .resolver import HostResolver
from .response_builder import ResponseBuilder
from .url_parser import ParsedURL, URLParser


logger = logging.getLogger(__name__)


class WTTPHandler:
    """
    Client entry point.

    The handler holds a default NetworkContext. A locator's network
    selector or an explicit identity only affects the call it is given
    to: each call binds its own context and the default stays as it was.
    """

    def __init__(self, context: NetworkContext, resolver: Optional[HostResolver] = None):
        """
        Initialize the handler.

        Args:
            context: Default network and acting identity
            resolver: Host resolver; names are kept as written when omitted
        """
        self._context = context
        self._resolver = resolver or HostResolver()
        self._urls = URLParser()
        self._requests = RequestBuilder()
        self._responses = ResponseBuilder()

    @property
    def context(self) -> NetworkContext:
        return self._context

    @property
    def network(self) -> str:
        return self._context.network

    @property
    def identity(self) -> str:
        return self._context.identity

    def set_network(self, network: str) -> None:
        """Make ``network`` the default for subsequent calls."""
        self._context = self._context.switch_to(network)

    def set_identity(self, identity: str) -> None:
        """Make ``identity`` the default signer for subsequent calls."""
        self._context = self._context.with_identity(identity)

    def parse_url(self, url: str) -> ParsedURL:
        return self._urls.parse(url)

    async def resolve_host(self, host: str) -> str:
        return await self._resolver.resolve(host)

    def calculate_data_point_address(
        self, structure: DataPointStructure, payload: Union[bytes, str]
    ) -> bytes:
        return calculate_address(structure, payload)

    async def load_royalty(
        self, host: str, address: bytes, context: Optional[NetworkContext] = None
    ) -> int:
        """
        Fee owed for storing the data point ``address`` through ``host``.

        The fee is read from the registry the site stores into.
        """
        engine = (context or self._context).connection
        registry = await engine.registry_address(host)
        royalty = await engine.royalty(registry, address)
        logger.debug(f"Royalty for 0x{address.hex()} at {registry}: {royalty}")
        return royalty

    async def fetch(
        self,
        url: str,
        method: Union[str, Method, None] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Union[str, bytes, bytearray, memoryview, None] = None,
        identity: Optional[str] = None,
        header_info: Optional[HeaderInfo] = None,
    ) -> Response:
        """
        Perform a request.

        Args:
            url: Locator, ``wttp://host[:network]/path``
            method: Method name or member; GET when omitted
            headers: Request headers (Range, Content-Type, ...)
            body: Payload for PUT and PATCH
            identity: Acting identity for this call only
            header_info: Resource header for DEFINE

        Returns:
            Response. Malformed requests give 4xx without touching the
            network; remote rejections keep their status code; any
            other failure gives 500 with the error message.
        """
        try:
            parsed = self.parse_url(url)
            verb = Method.parse(method)
            options = RequestOptions.from_headers(
                verb,
                parsed.host,
                parsed.path,
                self._header_map(headers),
                body,
                publisher=identity or self._context.identity,
                header=header_info,
            )
        except (InvalidURLError, InvalidMethodError, InvalidRequestError) as e:
            logger.debug(f"Rejected {url!r}: {e}")
            return self._responses.error(400, e.message)

        request = self._requests.build(options)
        if isinstance(request, ErrorDescriptor):
            return self._responses.build(request, None)

        try:
            context = self._bind(parsed.network, identity)
            host = await self.resolve_host(parsed.host)
            request = replace(request, host=host)
            raw = await self._execute(context, request)
            response = self._responses.build(request, raw)
        except RemoteError as e:
            logger.warning(f"{verb} {parsed.route} rejected: {e}")
            response = self._responses.error(e.code, e.reason or status_text(e.code))
        except Exception as e:
            logger.warning(f"{verb} {parsed.route} failed: {e}")
            response = self._responses.error(500, str(e))

        logger.debug(f"{verb} {parsed.route} -> {response.status}")
        return response

    @staticmethod
    def _header_map(headers: Optional[Mapping[str, str]]) -> CIMultiDict:
        try:
            return CIMultiDict(headers or {})
        except (TypeError, ValueError) as e:
            raise InvalidRequestError("Headers must map names to strings", e)

    def _bind(self, network: Optional[str], identity: Optional[str]) -> NetworkContext:
        context = self._context
        if network and not context.is_active(network):
            context = context.switch_to(network)
        if identity:
            context = context.with_identity(identity)
        return context

    async def _execute(self, context: NetworkContext, request: RequestDescriptor) -> Optional[RawReply]:
        engine = context.connection
        sender = context.identity

        if isinstance(request, GetDescriptor):
            return await engine.get(request.line, request.header, request.request)

        if isinstance(request, HeadDescriptor):
            return await engine.head(request.host, request.line)

        if isinstance(request, LocateDescriptor):
            return await engine.locate(request.host, request.line)

        if isinstance(request, PutDescriptor):
            structure = DataPointStructure(
                len(request.payload), request.mime_type, request.charset, request.location
            )
            address = self.calculate_data_point_address(structure, request.payload)
            royalty = await self.load_royalty(request.host, address, context)
            tx = await engine.put(
                request.host,
                request.line,
                request.mime_type,
                request.charset,
                request.location,
                request.publisher,
                request.payload,
                sender=sender,
                value=royalty,
            )
            return await self._confirm(tx, Method.PUT)

        if isinstance(request, PatchDescriptor):
            structure = await self._patch_structure(engine, request)
            address = self.calculate_data_point_address(structure, request.payload)
            royalty = await self.load_royalty(request.host, address, context)
            tx = await engine.patch(
                request.host,
                request.line,
                request.payload,
                request.chunk_index,
                request.publisher,
                sender=sender,
                value=royalty,
            )
            return await self._confirm(tx, Method.PATCH)

        if isinstance(request, DefineDescriptor):
            tx = await engine.define(request.host, request.line, request.header, sender=sender)
            return await self._confirm(tx, Method.DEFINE)

        if isinstance(request, DeleteDescriptor):
            tx = await engine.delete(request.host, request.line, sender=sender)
            return await self._confirm(tx, Method.DELETE)

        assert_never(request)

    async def _patch_structure(self, engine: SiteEngine, request: PatchDescriptor) -> DataPointStructure:
        # the engine addresses the chunk with the stored structure
        head = await engine.head(request.host, request.line)
        if head.code >= 400:
            raise RemoteError(head.code, f"Cannot patch {request.line.path}")
        return replace(head.structure, size=len(request.payload))

    async def _confirm(self, tx: PendingTransaction, method: Method) -> WriteResponse:
        receipt = await tx.wait()
        event_name = f"{method}Success"
        event = receipt.find_event(event_name)
        if event is None:
            raise ProtocolViolationError(f"{event_name} event missing from receipt")

        response = event.args.get("response")
        if not isinstance(response, WriteResponse):
            raise ProtocolViolationError(f"{event_name} event carries no response")
        return response
