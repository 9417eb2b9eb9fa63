"""
Remote lookups feeding the message builder and the signature engine.
"""
import logging
from typing import Optional, Union

from web3 import Web3

from .config import AvocadoConfig
from .exceptions import ResolutionError
from .models import Domain, ResolvedVersion
from .registry.base import WalletRegistry
from .typed_data import version_major

logger = logging.getLogger(__name__)

_VERSIONS_BY_MAJOR = {
    1: ResolvedVersion.V1,
    2: ResolvedVersion.V2,
    3: ResolvedVersion.V3,
}


def chain_salt(chain_id: int) -> str:
    """keccak256 of the uint256-encoded chain id, as a 0x-prefixed hex string."""
    return Web3.to_hex(Web3.solidity_keccak(["uint256"], [int(chain_id)]))


class VersionResolver:
    """Determines which wallet schema a wallet on a chain speaks."""

    def __init__(self, registry: WalletRegistry):
        self.registry = registry

    @staticmethod
    def from_override(version: str) -> ResolvedVersion:
        """
        Map a caller-supplied version string.

        Only the major component matters: 1 selects V1, anything else V2.
        """
        return ResolvedVersion.V1 if version_major(version) == 1 else ResolvedVersion.V2

    async def resolve(
        self,
        chain_id: int,
        wallet: str,
        version_override: Optional[str] = None,
    ) -> ResolvedVersion:
        """
        Resolve the wallet version, honouring an explicit override.

        Raises:
            ResolutionError: If the remote lookup fails or reports an unknown version
        """
        if version_override:
            return self.from_override(version_override)

        try:
            deployed = await self.registry.wallet_version(chain_id, wallet)
        except Exception as e:
            raise ResolutionError(f"Failed to resolve wallet version on chain {chain_id}: {e}") from e

        resolved = _VERSIONS_BY_MAJOR.get(version_major(deployed))
        if resolved is None:
            raise ResolutionError(f"Unsupported wallet version {deployed!r} on chain {chain_id}")

        logger.debug(f"Wallet {wallet} on chain {chain_id} runs version {deployed} ({resolved.value})")
        return resolved


class NonceResolver:
    """
    Fetches sequential nonces.

    Nonces supplied by the caller are never looked up nor validated.
    """

    def __init__(self, registry: WalletRegistry):
        self.registry = registry

    async def resolve_sequential(
        self,
        chain_id: int,
        owner: str,
        override: Optional[Union[int, str]] = None,
    ) -> str:
        if override is not None:
            return str(override)
        try:
            nonce = await self.registry.safe_nonce(chain_id, owner)
        except Exception as e:
            raise ResolutionError(f"Failed to fetch nonce for {owner} on chain {chain_id}: {e}") from e
        return str(nonce)

    async def resolve_multisig_sequential(
        self,
        chain_id: int,
        owner: str,
        index: int,
        override: Optional[Union[int, str]] = None,
    ) -> str:
        if override is not None:
            return str(override)
        try:
            nonce = await self.registry.multisig_nonce(chain_id, owner, index)
        except Exception as e:
            raise ResolutionError(
                f"Failed to fetch multisig nonce for {owner}#{index} on chain {chain_id}: {e}"
            ) from e
        return str(nonce)


class DomainResolver:
    """
    Derives the EIP-712 signing domain.

    The domain's ``chainId`` is pinned to the home chain and the target chain is
    bound through the salt, so one wallet signs the same way for every chain
    and the salt tells the deployments apart.
    """

    def __init__(self, registry: WalletRegistry, config: Optional[AvocadoConfig] = None):
        self.registry = registry
        self.config = config or AvocadoConfig()

    def _domain(self, name: str, version: str, chain_id: int, wallet: str) -> Domain:
        return Domain(
            name=name,
            version=version,
            chain_id=self.config.home_chain_id,
            salt=chain_salt(chain_id),
            verifying_contract=wallet,
            target_chain_id=chain_id,
        )

    async def resolve(
        self,
        chain_id: int,
        wallet: str,
        name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> Domain:
        """
        Resolve the domain of a single-signer wallet.

        Reads the name and version from the deployed wallet, falling back to the
        forwarder's network-wide default when the wallet is not deployed yet.

        Raises:
            ResolutionError: If the fallback lookup fails as well
        """
        if name and version:
            return self._domain(name, version, chain_id, wallet)

        try:
            name, version = await self.registry.wallet_domain(chain_id, wallet)
        except Exception as e:
            logger.warning(f"Reading domain from wallet {wallet} on chain {chain_id} failed ({e}); using default")
            try:
                name, version = await self.registry.default_domain(chain_id, self.config.version_sentinel)
            except Exception as fallback_error:
                raise ResolutionError(
                    f"Failed to resolve signing domain on chain {chain_id}: {fallback_error}"
                ) from fallback_error

        return self._domain(name, version, chain_id, wallet)

    async def resolve_multisig(
        self,
        chain_id: int,
        owner: str,
        index: int,
        wallet: str,
        name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> Domain:
        """
        Resolve the domain of a multisig wallet from the multisig forwarder.

        Raises:
            ResolutionError: If the lookup fails
        """
        if not (name and version):
            try:
                name, version = await self.registry.multisig_domain(chain_id, owner, index)
            except Exception as e:
                raise ResolutionError(
                    f"Failed to resolve multisig domain for {owner}#{index} on chain {chain_id}: {e}"
                ) from e

        return self._domain(name, version, chain_id, wallet)
