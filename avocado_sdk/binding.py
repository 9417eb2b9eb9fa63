"""
Per-client memo of the owner's wallet address and the active provider's chain id.
"""
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class WalletBindingCache:
    """
    Lazily populated (owner, chain) -> wallet address map.

    Concurrent callers racing on an empty entry may each compute the address;
    the first to store it wins and the rest observe its value.

    An explicit wallet override that differs from the cached address drops the
    cached entry; the override itself is never cached.
    """

    def __init__(self):
        self._wallets: Dict[Tuple[str, int], str] = {}
        self._active_chain_id: Optional[int] = None

    @staticmethod
    def _key(owner: str, chain_id: int) -> Tuple[str, int]:
        return owner.lower(), int(chain_id)

    def get(self, owner: str, chain_id: int) -> Optional[str]:
        return self._wallets.get(self._key(owner, chain_id))

    def bind(self, owner: str, chain_id: int, wallet: str) -> str:
        """Store ``wallet`` unless another caller got there first; return the stored value."""
        return self._wallets.setdefault(self._key(owner, chain_id), wallet)

    def invalidate(self, owner: str, chain_id: int) -> None:
        self._wallets.pop(self._key(owner, chain_id), None)

    async def wallet(
        self,
        owner: str,
        chain_id: int,
        compute: Callable[[], Awaitable[str]],
        override: Optional[str] = None,
    ) -> str:
        """
        Wallet address for ``owner``.

        Args:
            owner: Owner EOA
            chain_id: Chain the address is derived on
            compute: Coroutine factory deriving the address remotely
            override: Caller-supplied wallet address, used as-is

        Returns:
            ``override`` when given, otherwise the cached or freshly computed address
        """
        if override:
            cached = self.get(owner, chain_id)
            if cached is not None and cached.lower() != override.lower():
                logger.debug(f"Wallet override {override} differs from cached {cached}; dropping cache entry")
                self.invalidate(owner, chain_id)
            return override

        cached = self.get(owner, chain_id)
        if cached is not None:
            return cached

        return self.bind(owner, chain_id, await compute())

    async def active_chain_id(self, fetch: Callable[[], Awaitable[int]]) -> int:
        """Chain id of the signer's active provider, fetched on first use."""
        if self._active_chain_id is None:
            chain_id = int(await fetch())
            if self._active_chain_id is None:
                self._active_chain_id = chain_id
        return self._active_chain_id
