"""
Network and identity context for wttp_client.

A NetworkContext binds one network's engine connection to an acting
identity. Contexts are immutable: switching networks or identities
returns a new context and leaves the original untouched, so a
per-call override can never leak into other calls.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .constants import ZERO_ADDRESS
from .engine.backend import Connector, SiteEngine
from .exceptions import UnknownNetworkError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkConfig:
    """Endpoint and chain of a named network."""

    name: str
    endpoint: str
    chain_id: int
    aliases: Tuple[str, ...] = ()

    def matches(self, selector: str) -> bool:
        selector = selector.strip().lower()
        return selector == self.name or selector in self.aliases or selector == str(self.chain_id)


DEFAULT_NETWORKS: Tuple[NetworkConfig, ...] = (
    NetworkConfig("localhost", "http://127.0.0.1:8545", 31337, ("local", "hardhat")),
    NetworkConfig("polygon", "https://polygon-rpc.com", 137, ("pol", "matic")),
    NetworkConfig("ethereum", "https://eth.llamarpc.com", 1, ("eth", "mainnet")),
    NetworkConfig("sepolia", "https://rpc.sepolia.org", 11155111, ("seth",)),
    NetworkConfig("base", "https://mainnet.base.org", 8453, ()),
)


class NetworkContext:
    """
    Active network connection plus acting identity.

    Args:
        connector: Creates engine connections for network endpoints.
        network: Name, alias or chain id of the network to bind.
        identity: Address that signs state-changing calls.
        networks: Known networks; defaults to ``DEFAULT_NETWORKS``.

    Raises:
        UnknownNetworkError: If ``network`` is not configured.
    """

    def __init__(
        self,
        connector: Connector,
        network: str = "localhost",
        identity: str = ZERO_ADDRESS,
        networks: Tuple[NetworkConfig, ...] = DEFAULT_NETWORKS,
        _connection: Optional[SiteEngine] = None,
    ):
        self._connector = connector
        self._networks = tuple(networks)
        self._config = self._lookup(network)
        self._identity = identity
        self._connection = _connection or connector.connect(self._config)

    def _lookup(self, selector: str) -> NetworkConfig:
        for config in self._networks:
            if config.matches(selector):
                if not config.endpoint:
                    raise UnknownNetworkError(selector)
                return config
        raise UnknownNetworkError(selector)

    @property
    def network(self) -> str:
        """Canonical name of the bound network."""
        return self._config.name

    @property
    def config(self) -> NetworkConfig:
        return self._config

    @property
    def connection(self) -> SiteEngine:
        return self._connection

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def networks(self) -> Dict[str, NetworkConfig]:
        return {config.name: config for config in self._networks}

    def is_active(self, selector: str) -> bool:
        """Check whether ``selector`` names the bound network."""
        return self._config.matches(selector)

    def switch_to(self, network: str, identity: Optional[str] = None) -> "NetworkContext":
        """
        Bind another network.

        Args:
            network: Name, alias or chain id of the target network.
            identity: Acting identity on the new network; keeps the
                current one when omitted.

        Returns:
            A new context. This context is left unchanged.

        Raises:
            UnknownNetworkError: If the network has no configured endpoint.
        """
        identity = self._identity if identity is None else identity
        if self.is_active(network):
            return self.with_identity(identity)

        context = NetworkContext(
            self._connector, network, identity=identity, networks=self._networks
        )
        logger.debug(f"Switched network {self.network} -> {context.network}")
        return context

    def restore(self, previous: "NetworkContext") -> "NetworkContext":
        """Switch back to ``previous``'s network and identity."""
        return self.switch_to(previous.network, previous.identity)

    def with_identity(self, identity: str) -> "NetworkContext":
        if identity == self._identity:
            return self
        return NetworkContext(
            self._connector,
            self._config.name,
            identity=identity,
            networks=self._networks,
            _connection=self._connection,
        )

    def __repr__(self) -> str:
        return f"NetworkContext(network={self.network!r}, identity={self.identity!r})"
