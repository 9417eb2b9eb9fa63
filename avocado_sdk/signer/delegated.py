"""
Signer that forwards signing requests to a JSON-RPC wallet.
"""
import json
import logging
from typing import Any, Dict, Optional, Union

from web3 import AsyncWeb3
from web3.types import RPCEndpoint

from ..exceptions import SigningError
from .base import DelegatedSigner

logger = logging.getLogger(__name__)


class Web3ProviderSigner(DelegatedSigner):
    """
    Delegated signer talking to a wallet behind an AsyncWeb3 provider
    (browser extension bridge, remote signer, node-managed account).

    Args:
        w3: AsyncWeb3 instance connected to the wallet
        address: Account to sign with (defaults to the wallet's first account)
    """

    def __init__(self, w3: AsyncWeb3, address: Optional[str] = None):
        self.w3 = w3
        self._address = address

    @property
    def provider(self) -> Optional[AsyncWeb3]:
        return self.w3

    async def get_address(self) -> str:
        if self._address is None:
            accounts = await self.w3.eth.accounts
            if not accounts:
                raise SigningError("Wallet exposes no accounts")
            self._address = accounts[0]
        return self._address

    async def _request(self, method: str, params: list) -> Any:
        response = await self.w3.provider.make_request(RPCEndpoint(method), params)
        if response.get("error"):
            logger.warning(f"{method} rejected by wallet: {response['error']}")
            return None
        return response.get("result")

    async def request_typed_data_signature(self, owner: str, typed_data: Dict[str, Any]) -> Optional[str]:
        return await self._request("eth_signTypedData_v4", [owner, json.dumps(typed_data)])

    async def sign_message(self, message: Union[str, bytes]) -> str:
        data = message.encode("utf-8") if isinstance(message, str) else bytes(message)
        address = await self.get_address()
        signature = await self._request("personal_sign", ["0x" + data.hex(), address.lower()])
        if not signature:
            raise SigningError("Failed to get signature")
        return signature
