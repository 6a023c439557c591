"""
Content addressing for wttp_client.

A data point address is Keccak-256 over the 2-byte big-endian codes
of MIME type, charset and location, followed by the payload bytes.
The remote engine derives the same digest, so the layout here must
not change.
"""

import logging
from typing import Union

from Crypto.Hash import keccak

from .constants import Location, MimeType
from .exceptions import MissingFieldError
from .primitives import DataPointStructure


logger = logging.getLogger(__name__)


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest (the pre-standard variant, not SHA3-256)."""
    hasher = keccak.new(digest_bits=256)
    hasher.update(data)
    return hasher.digest()


def to_hex(digest: bytes) -> str:
    return "0x" + digest.hex()


def calculate_address(structure: DataPointStructure, payload: Union[bytes, str]) -> bytes:
    """
    Derive the content address of a data point.

    Args:
        structure: MIME type, charset and location of the payload
        payload: Raw bytes, or text encoded as UTF-8

    Returns:
        32-byte digest

    Raises:
        MissingFieldError: If the payload is empty or the MIME type or
            location is unset. An unset charset is allowed.
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    if not payload:
        raise MissingFieldError("payload is empty")
    if structure.mime_type is MimeType.UNSET:
        raise MissingFieldError("MIME type is unset")
    if structure.location is Location.UNSET:
        raise MissingFieldError("location is unset")

    digest = keccak256(
        structure.mime_type.code_bytes
        + structure.charset.code_bytes
        + structure.location.code_bytes
        + payload
    )
    logger.debug(f"Data point address {to_hex(digest)} for {len(payload)} bytes")
    return digest
