"""
wttp_client - Fetch-style client for the WTTP protocol

Translates fetch(url, method, headers, body) calls into calls against a
content-addressed site engine reached through ledger transactions, and
rebuilds HTTP-like responses from the engine's replies.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .address import calculate_address, keccak256, to_hex
from .constants import Charset, Language, Location, Method, MimeType
from .context import DEFAULT_NETWORKS, NetworkConfig, NetworkContext
from .exceptions import (
    InvalidMethodError,
    InvalidRequestError,
    InvalidURLError,
    MissingFieldError,
    ProtocolViolationError,
    RemoteError,
    UnknownNetworkError,
    WTTPError,
)
from .handler import WTTPHandler
from .headers import ChunkRange
from .primitives import (
    CacheControl,
    DataPointStructure,
    HeaderInfo,
    Redirect,
    ResourceMetadata,
    Response,
)
from .request_builder import RequestBuilder, RequestOptions
from .resolver import HostResolver
from .response_builder import ResponseBuilder
from .url_parser import ParsedURL, URLParser, parse_url

__all__ = [
    "WTTPHandler",
    "Response",
    "NetworkContext",
    "NetworkConfig",
    "DEFAULT_NETWORKS",
    "HostResolver",
    "URLParser",
    "ParsedURL",
    "parse_url",
    "RequestBuilder",
    "RequestOptions",
    "ResponseBuilder",
    "ChunkRange",
    "calculate_address",
    "keccak256",
    "to_hex",
    "Method",
    "MimeType",
    "Charset",
    "Location",
    "Language",
    "CacheControl",
    "DataPointStructure",
    "HeaderInfo",
    "Redirect",
    "ResourceMetadata",
    "WTTPError",
    "InvalidURLError",
    "InvalidMethodError",
    "InvalidRequestError",
    "MissingFieldError",
    "UnknownNetworkError",
    "ProtocolViolationError",
    "RemoteError",
]
