"""
Pytest configuration for wttp_client tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import pytest

from wttp_client.context import NetworkContext
from wttp_client.engine.mock import MockConnector, MockNameRegistry, MockSiteEngine
from wttp_client.handler import WTTPHandler
from wttp_client.resolver import HostResolver


OWNER = "0x" + "a1" * 20
STRANGER = "0x" + "b2" * 20
FIXED_TIME = 1700000000


@pytest.fixture
def owner() -> str:
    return OWNER


@pytest.fixture
def stranger() -> str:
    return STRANGER


@pytest.fixture
def connector() -> MockConnector:
    """Connector whose localhost engine uses a fixed clock."""
    return MockConnector({"localhost": MockSiteEngine(clock=lambda: FIXED_TIME)})


@pytest.fixture
def engine(connector: MockConnector) -> MockSiteEngine:
    return connector.engine("localhost")


@pytest.fixture
def site(engine: MockSiteEngine) -> str:
    """Address of a site on localhost owned by OWNER."""
    return engine.create_site(OWNER)


@pytest.fixture
def name_registry(site: str) -> MockNameRegistry:
    return MockNameRegistry({"mysite.eth": site})


@pytest.fixture
def context(connector: MockConnector) -> NetworkContext:
    return NetworkContext(connector, "localhost", identity=OWNER)


@pytest.fixture
def handler(context: NetworkContext, name_registry: MockNameRegistry) -> WTTPHandler:
    return WTTPHandler(context, HostResolver(name_registry))
