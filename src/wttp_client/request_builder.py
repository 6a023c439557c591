"""
Request building for wttp_client.

``RequestBuilder.build`` turns a normalized option bag into one
descriptor per method. Missing required fields do not raise: they
produce an ``ErrorDescriptor`` that the handler turns straight into a
response, before any network access.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple, Union

from .constants import ZERO_ADDRESS, ZERO_DIGEST, Charset, Language, Location, Method, MimeType
from .headers import (
    ChunkRange,
    parse_accept_charset,
    parse_accept_language,
    parse_accepts,
    parse_charset,
    parse_chunk_index,
    parse_if_modified_since,
    parse_if_none_match,
    parse_location,
    parse_mime_type,
    parse_range,
)
from .exceptions import InvalidRequestError
from .primitives import GetRequest, HeaderInfo, RequestHeader, RequestLine


logger = logging.getLogger(__name__)


def to_payload(body: Union[str, bytes, bytearray, memoryview, None]) -> Optional[bytes]:
    """Normalize a request body to bytes; text is encoded as UTF-8."""
    if body is None:
        return None
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    raise InvalidRequestError(f"Content must be text or bytes, got {type(body).__name__}")


def check_header_values(headers: Mapping[str, object]) -> None:
    """Reject header values that are not text; If-Modified-Since may be an int."""
    for name, value in headers.items():
        if isinstance(value, str):
            continue
        if name.lower() == "if-modified-since" and isinstance(value, int) and not isinstance(value, bool):
            continue
        raise InvalidRequestError(f"Header {name} must be a string, got {type(value).__name__}")


@dataclass(frozen=True)
class RequestOptions:
    """Everything a fetch call says about the request, already parsed."""

    method: Method
    host: str
    path: str = "/"
    content: Optional[bytes] = None
    if_none_match: bytes = ZERO_DIGEST
    if_modified_since: int = 0
    range: ChunkRange = ChunkRange()
    mime_type: Optional[MimeType] = None
    charset: Charset = Charset.UNSET
    location: Optional[Location] = None
    publisher: str = ZERO_ADDRESS
    accepts: Tuple[MimeType, ...] = ()
    accepts_charset: Tuple[Charset, ...] = ()
    accepts_language: Tuple[Language, ...] = ()
    chunk_index: Optional[int] = None
    header: Optional[HeaderInfo] = None

    @classmethod
    def from_headers(
        cls,
        method: Method,
        host: str,
        path: str,
        headers: Mapping[str, str],
        body: Union[str, bytes, bytearray, memoryview, None] = None,
        publisher: str = ZERO_ADDRESS,
        header: Optional[HeaderInfo] = None,
    ) -> "RequestOptions":
        """
        Build options from fetch-style headers.

        Args:
            method: Normalized method
            host: Host as written in the locator (not yet resolved)
            path: Resource path
            headers: Case-insensitive header mapping
            body: Request body, text or bytes
            publisher: Identity used when there is no Publisher header
            header: Resource header for DEFINE

        Returns:
            New RequestOptions instance

        Raises:
            InvalidRequestError: If a header value or the body has an unusable type
        """
        check_header_values(headers)
        content_type = headers.get("Content-Type")
        return cls(
            method=method,
            host=host,
            path=path,
            content=to_payload(body),
            if_none_match=parse_if_none_match(headers.get("If-None-Match")),
            if_modified_since=parse_if_modified_since(headers.get("If-Modified-Since")),
            range=parse_range(headers.get("Range")),
            mime_type=parse_mime_type(content_type),
            charset=parse_charset(content_type),
            location=parse_location(headers.get("Content-Location")),
            publisher=headers.get("Publisher") or publisher,
            accepts=parse_accepts(headers.get("Accept")),
            accepts_charset=parse_accept_charset(headers.get("Accept-Charset")),
            accepts_language=parse_accept_language(headers.get("Accept-Language")),
            chunk_index=parse_chunk_index(headers.get("Range")),
            header=header,
        )


@dataclass(frozen=True)
class GetDescriptor:
    host: str
    line: RequestLine
    header: RequestHeader = RequestHeader()
    range_start: int = 0
    range_end: int = 0

    @property
    def request(self) -> GetRequest:
        return GetRequest(self.host, self.range_start, self.range_end)


@dataclass(frozen=True)
class HeadDescriptor:
    host: str
    line: RequestLine


@dataclass(frozen=True)
class LocateDescriptor:
    host: str
    line: RequestLine


@dataclass(frozen=True)
class DeleteDescriptor:
    host: str
    line: RequestLine


@dataclass(frozen=True)
class PutDescriptor:
    host: str
    line: RequestLine
    mime_type: MimeType
    location: Location
    payload: bytes
    publisher: str
    charset: Charset = Charset.UNSET


@dataclass(frozen=True)
class PatchDescriptor:
    """
    PATCH of one chunk.

    The chunk is addressed with the resource's stored structure, so the
    request carries no MIME type, charset or location of its own.
    """

    host: str
    line: RequestLine
    payload: bytes
    chunk_index: int
    publisher: str


@dataclass(frozen=True)
class DefineDescriptor:
    host: str
    line: RequestLine
    header: HeaderInfo


@dataclass(frozen=True)
class ErrorDescriptor:
    """A request rejected before dispatch, with the status to answer."""

    method: Method
    host: str
    line: RequestLine
    code: int
    message: str


RequestDescriptor = Union[
    GetDescriptor,
    HeadDescriptor,
    LocateDescriptor,
    DeleteDescriptor,
    PutDescriptor,
    PatchDescriptor,
    DefineDescriptor,
]


class RequestBuilder:
    """Builds method-specific descriptors from RequestOptions."""

    def build(self, options: RequestOptions) -> Union[RequestDescriptor, ErrorDescriptor]:
        method = options.method
        line = RequestLine(options.path)

        def reject(code: int, message: str) -> ErrorDescriptor:
            logger.debug(f"Rejected {method} {options.host}{options.path}: {code} {message}")
            return ErrorDescriptor(method, options.host, line, code, message)

        if method is Method.GET:
            return GetDescriptor(
                host=options.host,
                line=line,
                header=RequestHeader(
                    accept=options.accepts,
                    accept_charset=options.accepts_charset,
                    accept_language=options.accepts_language,
                    if_modified_since=options.if_modified_since,
                    if_none_match=options.if_none_match,
                ),
                range_start=options.range.start,
                range_end=options.range.end,
            )

        if method is Method.HEAD:
            return HeadDescriptor(options.host, line)

        if method is Method.LOCATE:
            return LocateDescriptor(options.host, line)

        if method is Method.DELETE:
            return DeleteDescriptor(options.host, line)

        if method is Method.PUT:
            if not options.content:
                return reject(400, "Client Error: Content is required for PUT requests")
            if options.mime_type is None or options.mime_type.is_unset:
                return reject(400, "Client Error: MIME type is required for PUT requests")
            if options.location is None or options.location.is_unset:
                return reject(400, "Client Error: Content-Location is required for PUT requests")
            return PutDescriptor(
                host=options.host,
                line=line,
                mime_type=options.mime_type,
                location=options.location,
                payload=options.content,
                publisher=options.publisher,
                charset=options.charset,
            )

        if method is Method.PATCH:
            if not options.content:
                return reject(400, "Client Error: Content is required for PATCH requests")
            if options.chunk_index is None or options.chunk_index < 0:
                return reject(400, "Client Error: Chunk index is required for PATCH requests")
            return PatchDescriptor(
                host=options.host,
                line=line,
                payload=options.content,
                chunk_index=options.chunk_index,
                publisher=options.publisher,
            )

        if method is Method.DEFINE:
            if options.header is None:
                return reject(400, "Client Error: Header is required for DEFINE requests")
            return DefineDescriptor(options.host, line, options.header)

        return reject(501, f"Request Error: Unsupported method: {method}")
