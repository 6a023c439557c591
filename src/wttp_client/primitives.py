"""
WTTP primitives for wttp_client.

This module defines the value types exchanged with the remote engine
(request lines, header blocks, raw replies) and the fetch-style
Response handed back to callers. All classes are immutable: each one
is created for a single ``fetch`` call and discarded afterwards.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from multidict import CIMultiDict, CIMultiDictProxy

from .constants import (
    DEFAULT_METHODS_MASK,
    PROTOCOL_VERSION,
    ZERO_ADDRESS,
    ZERO_DIGEST,
    Charset,
    Language,
    Location,
    MimeType,
    status_text as reason_phrase,
)


Digest = bytes  # 32-byte content address
Address = str   # 0x-prefixed hex account/contract address


@dataclass(frozen=True)
class RequestLine:
    path: str
    protocol: str = PROTOCOL_VERSION


@dataclass(frozen=True)
class RequestHeader:
    """Accept and conditional fields of a GET request."""

    accept: Tuple[MimeType, ...] = ()
    accept_charset: Tuple[Charset, ...] = ()
    accept_language: Tuple[Language, ...] = ()
    if_modified_since: int = 0
    if_none_match: Digest = ZERO_DIGEST


@dataclass(frozen=True)
class GetRequest:
    host: Address
    range_start: int = 0
    range_end: int = 0


@dataclass(frozen=True)
class CacheControl:
    max_age: int = 0
    s_maxage: int = 0
    no_store: bool = False
    no_cache: bool = False
    immutable: bool = False
    must_revalidate: bool = False
    proxy_revalidate: bool = False
    stale_while_revalidate: int = 0
    stale_if_error: int = 0
    public: bool = False
    private: bool = False


@dataclass(frozen=True)
class Redirect:
    code: int = 0
    location: str = ""


@dataclass(frozen=True)
class HeaderInfo:
    """
    Resource-level header stored by the engine.

    ``methods`` is a permission bitmask with one bit per
    ``Method`` (see ``Method.bit``).
    """

    cache: CacheControl = field(default_factory=CacheControl)
    methods: int = DEFAULT_METHODS_MASK
    redirect: Redirect = field(default_factory=Redirect)
    resource_admin: Address = ZERO_ADDRESS


DEFAULT_HEADER = HeaderInfo()


@dataclass(frozen=True)
class ResourceMetadata:
    size: int = 0
    version: int = 0
    modified_date: int = 0


@dataclass(frozen=True)
class DataPointStructure:
    """Structural header hashed together with the payload."""

    size: int = 0
    mime_type: MimeType = MimeType.UNSET
    charset: Charset = Charset.UNSET
    location: Location = Location.UNSET


@dataclass(frozen=True)
class ResponseLine:
    code: int
    protocol: str = PROTOCOL_VERSION


@dataclass(frozen=True)
class HeadResponse:
    response_line: ResponseLine
    header_info: HeaderInfo = DEFAULT_HEADER
    metadata: ResourceMetadata = field(default_factory=ResourceMetadata)
    structure: DataPointStructure = field(default_factory=DataPointStructure)
    etag: Digest = ZERO_DIGEST

    @property
    def code(self) -> int:
        return self.response_line.code


@dataclass(frozen=True)
class GetResponse:
    head: HeadResponse
    body: bytes = b""


@dataclass(frozen=True)
class LocateResponse:
    head: HeadResponse
    registry_address: Address = ZERO_ADDRESS
    data_points: Tuple[Digest, ...] = ()


@dataclass(frozen=True)
class WriteResponse:
    """Payload of a PUT/PATCH/DEFINE/DELETE success event."""

    head: HeadResponse
    registry_address: Address = ZERO_ADDRESS
    data_point_address: Digest = ZERO_DIGEST


@dataclass(frozen=True)
class ErrorResponse:
    head: HeadResponse
    body: bytes = b""

    @classmethod
    def create(cls, code: int, message: str) -> "ErrorResponse":
        return cls(head=HeadResponse(ResponseLine(code)), body=message.encode("utf-8"))


RawReply = Union[HeadResponse, GetResponse, LocateResponse, WriteResponse, ErrorResponse]


def _frozen_headers(headers: Union[None, Mapping[str, str], CIMultiDict]) -> CIMultiDictProxy:
    if isinstance(headers, CIMultiDictProxy):
        return headers
    if isinstance(headers, CIMultiDict):
        return CIMultiDictProxy(headers)
    return CIMultiDictProxy(CIMultiDict(headers or {}))


@dataclass(frozen=True)
class Response:
    """
    Fetch-style response.

    Headers are an ordered, case-insensitive, read-only mapping.
    The body is kept as bytes and decoded on demand.
    """

    status: int
    status_text: str = ""
    headers: CIMultiDictProxy = field(default_factory=lambda: _frozen_headers(None))
    content: bytes = b""

    def __post_init__(self) -> None:
        """Validate response data after initialization."""
        if not isinstance(self.status, int):
            raise ValueError("status must be int")

        if not isinstance(self.headers, CIMultiDictProxy):
            raise ValueError("headers must be a CIMultiDictProxy")

        if not isinstance(self.content, bytes):
            raise ValueError("content must be bytes")

    @classmethod
    def create(
        cls,
        status: int,
        body: Union[str, bytes, None] = None,
        headers: Union[None, Mapping[str, str], CIMultiDict] = None,
        reason: Optional[str] = None,
    ) -> "Response":
        """
        Create a Response with proper type conversion.

        Args:
            status: Status code
            body: Text (encoded as UTF-8) or raw bytes
            headers: Optional header mapping
            reason: Reason phrase; looked up from the status when omitted

        Returns:
            New Response instance
        """
        if body is None:
            content = b""
        elif isinstance(body, str):
            content = body.encode("utf-8")
        else:
            content = bytes(body)

        return cls(
            status=status,
            status_text=reason_phrase(status) if reason is None else reason,
            headers=_frozen_headers(headers),
            content=content,
        )

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self, encoding: str = "utf-8") -> str:
        return self.content.decode(encoding)

    def json(self) -> Any:
        return json.loads(self.content.decode("utf-8"))

    def get_header(self, name: str) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        return self.headers.get(name)

    def has_header(self, name: str) -> bool:
        """Check if a header exists (case-insensitive)."""
        return name in self.headers
