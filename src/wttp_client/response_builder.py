"""
Response building for wttp_client.

Turns a raw engine reply back into a fetch-style Response:
reconstructs HTTP headers from the reply's header block and
metadata, and applies the method-specific body rules.
"""

import json
import logging
from email.utils import formatdate
from typing import List, Optional, Union

from multidict import CIMultiDict
from typing_extensions import assert_never

from .address import to_hex
from .constants import ZERO_DIGEST, Method, status_text
from .exceptions import ProtocolViolationError
from .primitives import (
    CacheControl,
    ErrorResponse,
    GetResponse,
    HeadResponse,
    LocateResponse,
    RawReply,
    Response,
    WriteResponse,
)
from .request_builder import (
    DefineDescriptor,
    DeleteDescriptor,
    ErrorDescriptor,
    GetDescriptor,
    HeadDescriptor,
    LocateDescriptor,
    PatchDescriptor,
    PutDescriptor,
    RequestDescriptor,
)


logger = logging.getLogger(__name__)

NO_RESPONSE_MESSAGE = "no response produced"
METHOD_NOT_ALLOWED_MESSAGE = "Method Not Allowed"


def cache_control_directives(cache: CacheControl) -> List[str]:
    directives = []
    if cache.max_age > 0:
        directives.append(f"max-age={cache.max_age}")
    if cache.s_maxage > 0:
        directives.append(f"s-maxage={cache.s_maxage}")
    if cache.no_store:
        directives.append("no-store")
    if cache.no_cache:
        directives.append("no-cache")
    if cache.immutable:
        directives.append("immutable")
    if cache.must_revalidate:
        directives.append("must-revalidate")
    if cache.proxy_revalidate:
        directives.append("proxy-revalidate")
    if cache.stale_while_revalidate > 0:
        directives.append(f"stale-while-revalidate={cache.stale_while_revalidate}")
    if cache.stale_if_error > 0:
        directives.append(f"stale-if-error={cache.stale_if_error}")
    if cache.public:
        directives.append("public")
    if cache.private:
        directives.append("private")
    return directives


def allowed_methods(mask: int) -> List[str]:
    """Method names whose bit is set in ``mask``, in bit order."""
    return [method.value for method in sorted(Method, key=lambda m: m.bit) if mask & method.mask]


def build_headers(head: HeadResponse) -> CIMultiDict:
    """
    Reconstruct response headers from a reply head.

    Headers whose source field is unset are left out.
    """
    headers: CIMultiDict = CIMultiDict()
    structure = head.structure
    metadata = head.metadata
    info = head.header_info

    if not structure.mime_type.is_unset:
        content_type = structure.mime_type.label
        if not structure.charset.is_unset:
            content_type += f"; charset={structure.charset.label}"
        headers["Content-Type"] = content_type

    if metadata.size > 0:
        headers["Content-Length"] = str(metadata.size)

    if head.etag != ZERO_DIGEST:
        headers["ETag"] = to_hex(head.etag)

    if metadata.modified_date > 0:
        headers["Last-Modified"] = formatdate(metadata.modified_date, usegmt=True)

    directives = cache_control_directives(info.cache)
    if directives:
        headers["Cache-Control"] = ", ".join(directives)

    allow = allowed_methods(info.methods)
    if allow:
        headers["Allow"] = ", ".join(allow)

    if info.redirect.code > 0:
        headers["Location"] = info.redirect.location

    return headers


class ResponseBuilder:
    """Builds Responses from descriptors and raw replies."""

    def error(self, code: int, message: str) -> Response:
        return Response.create(code, message)

    def build(
        self,
        request: Union[RequestDescriptor, ErrorDescriptor],
        raw: Optional[RawReply],
    ) -> Response:
        """
        Build the Response for a dispatched request.

        Args:
            request: The descriptor that was dispatched
            raw: The engine's reply, or None when none was produced

        Returns:
            Response with reconstructed headers

        Raises:
            ProtocolViolationError: If the reply shape does not match
                the request method
        """
        if isinstance(request, ErrorDescriptor):
            return self.error(request.code, request.message)

        if raw is None:
            return self.error(500, NO_RESPONSE_MESSAGE)

        if isinstance(raw, ErrorResponse):
            return Response.create(raw.head.code, raw.body, build_headers(raw.head))

        head = raw if isinstance(raw, HeadResponse) else raw.head
        headers = build_headers(head)

        if isinstance(request, GetDescriptor):
            if not isinstance(raw, GetResponse):
                raise ProtocolViolationError(f"GET answered with {type(raw).__name__}")
            return Response.create(head.code, raw.body, headers)

        if isinstance(request, LocateDescriptor):
            if not isinstance(raw, LocateResponse):
                raise ProtocolViolationError(f"LOCATE answered with {type(raw).__name__}")
            body = json.dumps({
                "Registry-Address": raw.registry_address,
                "DataPoint-Addresses": [to_hex(address) for address in raw.data_points],
            })
            return Response.create(head.code, body, headers)

        if isinstance(request, (PutDescriptor, PatchDescriptor)):
            if not isinstance(raw, WriteResponse):
                raise ProtocolViolationError(f"write answered with {type(raw).__name__}")
            headers["Registry-Address"] = raw.registry_address
            headers["ETag"] = to_hex(raw.data_point_address)
            return Response.create(head.code, request.payload, headers)

        if isinstance(request, (HeadDescriptor, DeleteDescriptor, DefineDescriptor)):
            return Response.create(405, METHOD_NOT_ALLOWED_MESSAGE, headers, status_text(405))

        assert_never(request)
