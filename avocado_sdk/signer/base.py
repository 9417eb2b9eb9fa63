"""
Key-holder interfaces.

A signer advertises how it can produce typed-data signatures through its
``capability`` flag, and the signature engine dispatches on that flag:

1. ``DIRECT_KEY``: the key is held in-process and signs directly
2. ``DELEGATED``: signing is requested out-of-band (e.g. a wallet extension
   prompt over JSON-RPC) and may come back empty
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional, Union

from web3 import AsyncWeb3


class SignerCapability(str, Enum):
    """How a signer produces typed-data signatures."""
    DIRECT_KEY = "direct_key"
    DELEGATED = "delegated"


class Signer(ABC):
    """Base class for all key-holders."""

    capability: SignerCapability

    @property
    def provider(self) -> Optional[AsyncWeb3]:
        """Provider the key-holder is connected to, if any."""
        return None

    @abstractmethod
    async def get_address(self) -> str:
        """Owner (EOA) address of this key-holder."""
        pass

    @abstractmethod
    async def sign_message(self, message: Union[str, bytes]) -> str:
        """
        EIP-191 personal-sign ``message``.

        Strings are signed as their UTF-8 bytes.

        Returns:
            Hex encoded 65-byte signature
        """
        pass


class DirectKeySigner(Signer):
    """Signer holding its key in-process."""

    capability = SignerCapability.DIRECT_KEY

    @abstractmethod
    async def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, Any],
        message: Dict[str, Any],
    ) -> str:
        """
        Sign EIP-712 typed data.

        Args:
            domain: Domain with python values (``salt`` as bytes)
            types: Type definitions without ``EIP712Domain``
            message: Message with python values (ints, bytes)

        Returns:
            Hex encoded 65-byte signature
        """
        pass


class DelegatedSigner(Signer):
    """Signer that asks an external party (wallet, HSM, user) for signatures."""

    capability = SignerCapability.DELEGATED

    @abstractmethod
    async def request_typed_data_signature(self, owner: str, typed_data: Dict[str, Any]) -> Optional[str]:
        """
        Request an ``eth_signTypedData_v4`` signature.

        Args:
            owner: Address expected to sign
            typed_data: JSON-serialisable typed data (``types`` including
                ``EIP712Domain``, ``domain``, ``primaryType``, ``message``)

        Returns:
            Hex signature, or None if the request produced none
        """
        pass
