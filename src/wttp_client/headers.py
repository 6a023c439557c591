"""
Request header parsing for wttp_client.

Each function turns one fetch-style header value into the protocol
field it feeds. Missing or malformed values never raise: they fall
back to the field's neutral default.
"""

import re
from typing import List, NamedTuple, Optional, Tuple, Type, TypeVar, Union

from .constants import ZERO_DIGEST, Charset, CodedEnum, Language, Location, MimeType


_E = TypeVar("_E", bound=CodedEnum)

_RANGE_RE = re.compile(r"chunks=(\d+)-(\d+)?")
_CHUNK_INDEX_RE = re.compile(r"^chunks=(\d+)")
_HEX_RE = re.compile(r"^(?:0x)?([0-9a-fA-F]{64})$")


class ChunkRange(NamedTuple):
    start: int = 0
    end: int = 0


def parse_range(value: Optional[str]) -> ChunkRange:
    """
    Parse a ``Range: chunks=<start>-<end>`` header.

    An open end (``chunks=5-``) yields end 0, meaning "through the
    last chunk". Anything unparseable yields ``ChunkRange(0, 0)``.
    """
    if not value:
        return ChunkRange()
    match = _RANGE_RE.search(value)
    if not match:
        return ChunkRange()
    start, end = match.groups()
    return ChunkRange(int(start), int(end) if end else 0)


def parse_chunk_index(value: Optional[str]) -> Optional[int]:
    """Chunk index targeted by a PATCH (``chunks=<index>``), or None."""
    if not value:
        return None
    match = _CHUNK_INDEX_RE.match(value.strip())
    if not match:
        return None
    return int(match.group(1))


def parse_mime_type(value: Optional[str]) -> Optional[MimeType]:
    """MIME type from a Content-Type value; parameters are ignored."""
    if not value:
        return None
    return MimeType.from_label(value.split(";", 1)[0])


def parse_charset(value: Optional[str]) -> Charset:
    """
    Charset from a bare name or from a full Content-Type value.

    ``text/html; charset=utf-8`` and ``utf-8`` both give UTF_8.
    Unknown or missing charsets give ``Charset.UNSET``.
    """
    if not value:
        return Charset.UNSET
    if ";" in value:
        value = value.split(";", 1)[1]
    if "=" in value:
        value = value.split("=", 1)[1]
    return Charset.from_label(value.strip().strip('"')) or Charset.UNSET


def parse_location(value: Optional[str]) -> Optional[Location]:
    if not value:
        return None
    return Location.from_label(value)


def _parse_list(value: Optional[str], table: Type[_E]) -> Tuple[_E, ...]:
    if not value:
        return ()
    codes: List[_E] = []
    for token in value.split(","):
        # quality values are not ranked
        member = table.from_label(token.split(";", 1)[0])
        if member is not None and not member.is_unset:
            codes.append(member)
    return tuple(codes)


def parse_accepts(value: Optional[str]) -> Tuple[MimeType, ...]:
    return _parse_list(value, MimeType)


def parse_accept_charset(value: Optional[str]) -> Tuple[Charset, ...]:
    return _parse_list(value, Charset)


def parse_accept_language(value: Optional[str]) -> Tuple[Language, ...]:
    return _parse_list(value, Language)


def parse_if_none_match(value: Optional[str]) -> bytes:
    """32-byte digest from a hex ETag (quotes allowed), else the zero digest."""
    if not value:
        return ZERO_DIGEST
    match = _HEX_RE.match(value.strip().strip('"'))
    if not match:
        return ZERO_DIGEST
    return bytes.fromhex(match.group(1))


def parse_if_modified_since(value: Union[str, int, None]) -> int:
    """Unix seconds from an If-Modified-Since value, else 0."""
    if value is None:
        return 0
    if isinstance(value, int):
        return max(value, 0)
    value = value.strip()
    return int(value) if value.isdigit() else 0
