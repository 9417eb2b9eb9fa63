"""
In-process signer backed by an eth_account private key.

WARNING: The private key is held in memory. Use a delegated signer (wallet,
KMS, HSM) for keys controlling significant funds.
"""
import logging
from typing import Any, Dict, Union

from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_account.signers.local import LocalAccount

from .base import DirectKeySigner

logger = logging.getLogger(__name__)


class LocalSigner(DirectKeySigner):
    """
    Signer for a raw private key.

    Args:
        private_key: Hex private key, or an existing LocalAccount
    """

    def __init__(self, private_key: Union[str, bytes, LocalAccount]):
        if isinstance(private_key, LocalAccount):
            self.account = private_key
        else:
            self.account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self.account.address

    async def get_address(self) -> str:
        return self.account.address

    async def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, Any],
        message: Dict[str, Any],
    ) -> str:
        signable = encode_typed_data(domain_data=domain, message_types=types, message_data=message)
        signed = self.account.sign_message(signable)
        return "0x" + bytes(signed.signature).hex()

    async def sign_message(self, message: Union[str, bytes]) -> str:
        if isinstance(message, str):
            signable = encode_defunct(text=message)
        else:
            signable = encode_defunct(primitive=bytes(message))
        signed = self.account.sign_message(signable)
        return "0x" + bytes(signed.signature).hex()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(address={self.account.address})"
