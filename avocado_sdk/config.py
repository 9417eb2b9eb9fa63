"""
Network and deployment configuration for the Avocado SDK.
"""
import importlib.resources
import json
import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Chain on which owner identities, nonces and signing domains live
AVOCADO_CHAIN_ID = 634

ZERO_SALT = "0x" + "00" * 32


class NetworkConfig:
    """
    Read-only access to the packaged ``networks.json`` table.

    Entries are keyed by network name and carry the ``chainId`` and a public
    ``rpc`` endpoint. RPC endpoints can be overridden per network with an
    environment variable named ``<NETWORK>_RPC_URL`` (e.g. ``POLYGON_RPC_URL``).
    """

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network definitions, caching them after the first read.

        Returns:
            Mapping of network name to network definition
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("avocado_sdk").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get a network definition by name.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{network}'. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_network_name(cls, chain_id: int) -> str:
        """
        Find the network name registered for a chain id.

        Raises:
            ValueError: If no network uses the chain id
        """
        for name, network in cls.load_networks().items():
            if int(network["chainId"]) == int(chain_id):
                return name
        raise ValueError(f"No network configured for chain id {chain_id}")

    @classmethod
    def get_chain_id(cls, network: str) -> int:
        return int(cls.get_network(network)["chainId"])

    @classmethod
    def get_rpc_url(cls, chain_id: int, override: Optional[str] = None) -> str:
        """
        Resolve the RPC endpoint for a chain.

        Priority: explicit override, ``<NETWORK>_RPC_URL`` environment
        variable, then the packaged default.
        """
        if override:
            return override

        name = cls.get_network_name(chain_id)
        env_var = f"{name.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            logger.debug(f"Using RPC URL from {env_var}")
            return env_url

        return cls.get_network(name)["rpc"]


@dataclass(frozen=True)
class AvocadoConfig:
    """
    Deployment constants used while building, signing and broadcasting casts.

    Instances are immutable; use :meth:`with_overrides` to derive a variant.

    Attributes:
        home_chain_id: Chain holding owner identities and signing domains
        relay_rpc_url: JSON-RPC endpoint of the Avocado relay
        forwarder_address: Single-signer forwarder (address derivation, nonces, verification)
        multisig_forwarder_address: Multisig forwarder (address derivation, nonces, domain)
        default_source: Referral source used when options carry none
        multisig_source: Referral source used for multisig casts when options carry none
        version_sentinel: Wallet address used to look up the network-wide default domain
        default_salt: Salt for multisig casts. Zero until salt derivation is defined.
        address_chain_id: Chain whose forwarder derives counterfactual wallet addresses
    """
    home_chain_id: int = AVOCADO_CHAIN_ID
    relay_rpc_url: str = "https://rpc.avocado.instadapp.io"
    forwarder_address: str = "0x375F6B0CD12b34Dc28e34C26853a37012C24dDE5"
    multisig_forwarder_address: str = "0x46978CD477A496028A18c02F07ab7F35EDBa5A54"
    default_source: str = "0x000000000000000000000000000000000000Cad0"
    multisig_source: str = "0xE8385fB3A5F15dED06EB5E20E5A81BF43115eb8E"
    version_sentinel: str = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
    default_salt: str = ZERO_SALT
    address_chain_id: int = 137

    def with_overrides(self, **changes: Any) -> "AvocadoConfig":
        return replace(self, **changes)

    @classmethod
    def from_env(cls) -> "AvocadoConfig":
        """
        Build a configuration from ``AVOCADO_*`` environment variables.

        Recognised variables: ``AVOCADO_RELAY_RPC_URL``,
        ``AVOCADO_FORWARDER_ADDRESS``, ``AVOCADO_MULTISIG_FORWARDER_ADDRESS``,
        ``AVOCADO_DEFAULT_SOURCE``, ``AVOCADO_MULTISIG_SOURCE``.
        """
        env_map = {
            "relay_rpc_url": "AVOCADO_RELAY_RPC_URL",
            "forwarder_address": "AVOCADO_FORWARDER_ADDRESS",
            "multisig_forwarder_address": "AVOCADO_MULTISIG_FORWARDER_ADDRESS",
            "default_source": "AVOCADO_DEFAULT_SOURCE",
            "multisig_source": "AVOCADO_MULTISIG_SOURCE",
        }
        changes = {
            attr: os.environ[var]
            for attr, var in env_map.items()
            if os.environ.get(var)
        }
        if changes:
            logger.debug(f"Applying environment overrides: {sorted(changes)}")
        return cls(**changes)
