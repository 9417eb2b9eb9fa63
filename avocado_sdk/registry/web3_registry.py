"""
WalletRegistry backed by AsyncWeb3 contract calls.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from web3 import AsyncWeb3

from ..config import AvocadoConfig
from ..providers import ChainProviders
from ..typed_data import (
    TYPES_MULTISIG,
    TYPES_SIGNATURE_PARAMS,
    TYPES_V1,
    TYPES_V2,
    abi_components,
    as_abi_tuple,
)
from .base import ZERO_ADDRESS, WalletRegistry

logger = logging.getLogger(__name__)


def _fn(name: str, inputs: List[Dict[str, Any]], outputs: List[str], mutability: str = "view") -> Dict[str, Any]:
    return {
        "inputs": inputs,
        "name": name,
        "outputs": [{"internalType": t, "name": "", "type": t} for t in outputs],
        "stateMutability": mutability,
        "type": "function",
    }


def _arg(name: str, type_: str) -> Dict[str, Any]:
    return {"internalType": type_, "name": name, "type": type_}


def _struct(name: str, types: Dict[str, Any], type_name: str, array: bool = False) -> Dict[str, Any]:
    return {
        "components": abi_components(types, type_name),
        "name": name,
        "type": "tuple[]" if array else "tuple",
    }


_V3_TYPES = {**TYPES_MULTISIG, **TYPES_SIGNATURE_PARAMS}

FORWARDER_ABI = [
    _fn("computeAddress", [_arg("owner_", "address")], ["address"]),
    _fn("avoSafeNonce", [_arg("owner_", "address")], ["uint256"]),
    _fn("avoWalletVersion", [_arg("avoWallet_", "address")], ["string"]),
    _fn("avoWalletVersionName", [_arg("avoWallet_", "address")], ["string"]),
    # verify* are nonpayable on-chain and must only ever be used through .call()
    _fn("verifyV1", [
        _arg("from_", "address"),
        _struct("actions_", TYPES_V1, "Action", array=True),
        _arg("validUntil_", "uint256"),
        _arg("gas_", "uint256"),
        _arg("source_", "address"),
        _arg("metadata_", "bytes"),
        _arg("signature_", "bytes"),
    ], ["bool"], mutability="nonpayable"),
    _fn("verifyV2", [
        _arg("from_", "address"),
        _struct("actions_", TYPES_V2, "Action", array=True),
        _struct("params_", TYPES_V2, "CastParams"),
        _arg("signature_", "bytes"),
    ], ["bool"], mutability="nonpayable"),
    _fn("verifyV3", [
        _arg("from_", "address"),
        _struct("params_", _V3_TYPES, "CastParams"),
        _struct("forwardParams_", _V3_TYPES, "CastForwardParams"),
        _struct("signatureParams_", _V3_TYPES, "SignatureParams"),
    ], ["bool"], mutability="nonpayable"),
]

MULTISIG_FORWARDER_ABI = [
    _fn("computeAvocado", [_arg("owner_", "address"), _arg("index_", "uint32")], ["address"]),
    _fn("avoNonce", [_arg("owner_", "address"), _arg("index_", "uint32")], ["uint256"]),
    _fn("avocadoVersion", [_arg("owner_", "address"), _arg("index_", "uint32")], ["string"]),
    _fn("avocadoVersionName", [_arg("owner_", "address"), _arg("index_", "uint32")], ["string"]),
]

WALLET_ABI = [
    _fn("DOMAIN_SEPARATOR_NAME", [], ["string"]),
    _fn("DOMAIN_SEPARATOR_VERSION", [], ["string"]),
    _fn("owner", [], ["address"]),
]


class Web3WalletRegistry(WalletRegistry):
    """
    Registry reading the Avocado forwarders and wallets through AsyncWeb3.

    Args:
        config: Deployment addresses
        providers: Per-chain AsyncWeb3 factory
        logger: Optional logger instance to use for debug logging
    """

    def __init__(
        self,
        config: Optional[AvocadoConfig] = None,
        providers: Optional[ChainProviders] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or AvocadoConfig()
        self.providers = providers or ChainProviders(self.config)
        self.logger = logger or logging.getLogger(__name__)

    def _contract(self, chain_id: int, address: str, abi: List[Dict[str, Any]]):
        w3 = self.providers.get(chain_id)
        return w3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=abi)

    def _forwarder(self, chain_id: int):
        return self._contract(chain_id, self.config.forwarder_address, FORWARDER_ABI)

    def _multisig_forwarder(self, chain_id: int):
        return self._contract(chain_id, self.config.multisig_forwarder_address, MULTISIG_FORWARDER_ABI)

    @staticmethod
    def _address(value: str) -> str:
        return AsyncWeb3.to_checksum_address(value)

    async def compute_address(self, chain_id: int, owner: str) -> str:
        return await self._forwarder(chain_id).functions.computeAddress(self._address(owner)).call()

    async def compute_multisig_address(self, chain_id: int, owner: str, index: int) -> str:
        fn = self._multisig_forwarder(chain_id).functions.computeAvocado(self._address(owner), index)
        return await fn.call()

    async def safe_nonce(self, chain_id: int, owner: str) -> int:
        return await self._forwarder(chain_id).functions.avoSafeNonce(self._address(owner)).call()

    async def multisig_nonce(self, chain_id: int, owner: str, index: int) -> int:
        return await self._multisig_forwarder(chain_id).functions.avoNonce(self._address(owner), index).call()

    async def wallet_version(self, chain_id: int, wallet: str) -> str:
        return await self._forwarder(chain_id).functions.avoWalletVersion(self._address(wallet)).call()

    async def wallet_domain(self, chain_id: int, wallet: str) -> Tuple[str, str]:
        contract = self._contract(chain_id, wallet, WALLET_ABI)
        version = await contract.functions.DOMAIN_SEPARATOR_VERSION().call()
        name = await contract.functions.DOMAIN_SEPARATOR_NAME().call()
        return name, version

    async def default_domain(self, chain_id: int, sentinel: str) -> Tuple[str, str]:
        forwarder = self._forwarder(chain_id)
        version = await forwarder.functions.avoWalletVersion(self._address(sentinel)).call()
        name = await forwarder.functions.avoWalletVersionName(self._address(sentinel)).call()
        return name, version

    async def multisig_domain(self, chain_id: int, owner: str, index: int) -> Tuple[str, str]:
        forwarder = self._multisig_forwarder(chain_id)
        version = await forwarder.functions.avocadoVersion(self._address(owner), index).call()
        name = await forwarder.functions.avocadoVersionName(self._address(owner), index).call()
        return name, version

    async def wallet_owner(self, chain_id: int, wallet: str) -> str:
        return await self._contract(chain_id, wallet, WALLET_ABI).functions.owner().call()

    async def verify_v1(self, chain_id: int, owner: str, message: Dict[str, Any], signature: str) -> bool:
        actions = [as_abi_tuple(TYPES_V1, "Action", action) for action in message["actions"]]
        fn = self._forwarder(chain_id).functions.verifyV1(
            self._address(owner),
            actions,
            int(message["validUntil"]),
            int(message["gas"]),
            self._address(message["source"]),
            bytes.fromhex(message["metadata"][2:]),
            bytes.fromhex(signature[2:] if signature.startswith("0x") else signature),
        )
        return await fn.call()

    async def verify_v2(self, chain_id: int, owner: str, message: Dict[str, Any], signature: str) -> bool:
        actions = [as_abi_tuple(TYPES_V2, "Action", action) for action in message["actions"]]
        fn = self._forwarder(chain_id).functions.verifyV2(
            self._address(owner),
            actions,
            as_abi_tuple(TYPES_V2, "CastParams", message["params"]),
            bytes.fromhex(signature[2:] if signature.startswith("0x") else signature),
        )
        return await fn.call()

    async def verify_v3(
        self,
        chain_id: int,
        owner: str,
        params: Dict[str, Any],
        forward_params: Dict[str, Any],
        signature: str,
        signer: str = ZERO_ADDRESS,
    ) -> bool:
        fn = self._forwarder(chain_id).functions.verifyV3(
            self._address(owner),
            as_abi_tuple(_V3_TYPES, "CastParams", params),
            as_abi_tuple(_V3_TYPES, "CastForwardParams", forward_params),
            as_abi_tuple(_V3_TYPES, "SignatureParams", {"signature": signature, "signer": signer}),
        )
        return await fn.call()
