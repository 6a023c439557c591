"""
Custom exceptions for wttp_client.

This module defines the exception hierarchy used throughout
the library. Most of these never escape ``WTTPHandler.fetch``: the
dispatcher turns them into 4xx/5xx responses.
"""

from typing import Optional


class WTTPError(Exception):
    """Base exception for all wttp_client errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class InvalidURLError(WTTPError):
    """Raised when a locator cannot be parsed."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Invalid URL: {message}", cause)


class InvalidMethodError(WTTPError):
    """Raised when a method string is not a known WTTP method."""

    def __init__(self, method: object) -> None:
        super().__init__(f"Invalid method: {method}")
        self.method = method


class MissingFieldError(WTTPError):
    """Raised when a required field is absent or set to the unset sentinel."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Missing field: {message}", cause)


class UnknownNetworkError(WTTPError):
    """Raised when switching to a network that has no configured endpoint."""

    def __init__(self, network: str) -> None:
        super().__init__(f"Unknown network: {network}")
        self.network = network


class ProtocolViolationError(WTTPError):
    """Raised when the remote engine's reply breaks the protocol contract."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Protocol violation: {message}", cause)


class RemoteError(WTTPError):
    """
    Structured error envelope returned by the remote engine.

    The engine rejects requests with an HTTP-like status code
    (404, 405, 416, ...) and an optional reason. The dispatcher
    decodes it into a response with the same status.
    """

    def __init__(self, code: int, reason: str = "", cause: Optional[Exception] = None) -> None:
        message = f"{code} {reason}" if reason else str(code)
        super().__init__(f"Remote error: {message}", cause)
        self.code = code
        self.reason = reason


class InvalidRequestError(WTTPError):
    """Raised when request headers or body have an unusable type."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Client Error: {message}", cause)
