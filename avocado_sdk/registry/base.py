"""
Remote reads the SDK needs from the Avocado contracts.

This module defines the interface every registry implementation must follow,
so the resolvers, the signature engine and the tests do not depend on a
particular contract-binding library.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class WalletRegistry(ABC):
    """
    Abstract base class for Avocado wallet registry implementations.

    Every method is a read-only remote call. Verification methods in
    particular must be executed as static calls: the on-chain entrypoints
    would otherwise deploy the wallet as a side effect.
    """

    @abstractmethod
    async def compute_address(self, chain_id: int, owner: str) -> str:
        """
        Derive the single-signer wallet address of ``owner``.

        Args:
            chain_id: Chain on which the forwarder is queried
            owner: Externally-owned owner address

        Returns:
            Wallet address (deterministic, whether deployed or not)
        """
        pass

    @abstractmethod
    async def compute_multisig_address(self, chain_id: int, owner: str, index: int) -> str:
        """Derive the multisig wallet address of ``owner`` at ``index``."""
        pass

    @abstractmethod
    async def safe_nonce(self, chain_id: int, owner: str) -> int:
        """Current sequential nonce of the owner's single-signer wallet."""
        pass

    @abstractmethod
    async def multisig_nonce(self, chain_id: int, owner: str, index: int) -> int:
        """Current sequential nonce of the owner's multisig wallet at ``index``."""
        pass

    @abstractmethod
    async def wallet_version(self, chain_id: int, wallet: str) -> str:
        """Semantic version of the wallet implementation deployed (or to be deployed) at ``wallet``."""
        pass

    @abstractmethod
    async def wallet_domain(self, chain_id: int, wallet: str) -> Tuple[str, str]:
        """
        Read ``DOMAIN_SEPARATOR_NAME`` and ``DOMAIN_SEPARATOR_VERSION`` from a deployed wallet.

        Returns:
            ``(name, version)``

        Raises:
            Exception: Whatever the transport raises when the wallet is not deployed
        """
        pass

    @abstractmethod
    async def default_domain(self, chain_id: int, sentinel: str) -> Tuple[str, str]:
        """Network-wide default ``(name, version)`` registered for ``sentinel``."""
        pass

    @abstractmethod
    async def multisig_domain(self, chain_id: int, owner: str, index: int) -> Tuple[str, str]:
        """``(name, version)`` of the owner's multisig wallet at ``index``."""
        pass

    @abstractmethod
    async def wallet_owner(self, chain_id: int, wallet: str) -> str:
        """Owner of a wallet."""
        pass

    @abstractmethod
    async def verify_v1(self, chain_id: int, owner: str, message: Dict[str, Any], signature: str) -> bool:
        """Static call of the V1 verification entrypoint."""
        pass

    @abstractmethod
    async def verify_v2(self, chain_id: int, owner: str, message: Dict[str, Any], signature: str) -> bool:
        """Static call of the V2 verification entrypoint."""
        pass

    @abstractmethod
    async def verify_v3(
        self,
        chain_id: int,
        owner: str,
        params: Dict[str, Any],
        forward_params: Dict[str, Any],
        signature: str,
        signer: str = ZERO_ADDRESS,
    ) -> bool:
        """Static call of the V3 verification entrypoint."""
        pass
