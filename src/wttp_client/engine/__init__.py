"""
Remote engine components for wttp_client.

This module provides the collaborator interfaces the handler dispatches
to, plus in-memory mocks for tests and examples.
"""

from .backend import (
    Connector,
    EventLog,
    NameRegistry,
    PendingTransaction,
    Receipt,
    SiteEngine,
)
from .mock import (
    MockConnector,
    MockNameRegistry,
    MockPendingTransaction,
    MockSiteEngine,
)

__all__ = [
    "Connector",
    "EventLog",
    "NameRegistry",
    "PendingTransaction",
    "Receipt",
    "SiteEngine",
    "MockConnector",
    "MockNameRegistry",
    "MockPendingTransaction",
    "MockSiteEngine",
]
