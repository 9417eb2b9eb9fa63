"""
Data models for the Avocado SDK.
"""
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Dict, List, Optional, Union

from eth_utils import to_checksum_address
from hexbytes import HexBytes
from pydantic import BaseModel, Field, PrivateAttr, field_validator

from .typed_data import version_major


class ResolvedVersion(str, Enum):
    """Wallet schema version a cast is built and verified for."""
    V1 = "v1"
    V2 = "v2"
    V3 = "v3"
    MULTISIG = "multisig"


def _to_hex(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


def _to_decimal_str(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


class TransactionIntent(BaseModel):
    """A single call the Avocado wallet should execute"""
    to: str
    data: str = "0x"
    value: int = 0
    operation: Optional[str] = None
    gas_limit: Optional[int] = Field(None, alias="gasLimit")
    chain_id: Optional[int] = Field(None, alias="chainId")

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("data", mode="before")
    @classmethod
    def _data_as_hex(cls, value: Any) -> Any:
        return _to_hex(value)

    @field_validator("operation", mode="before")
    @classmethod
    def _operation_as_str(cls, value: Any) -> Any:
        return _to_decimal_str(value)


class SignatureOptions(BaseModel):
    """
    Optional knobs for building a cast.

    Every field is optional; unset fields fall back to the defaults applied by
    the message builder. ``avo_safe_nonce`` may be ``-1`` on multisig casts to request a
    non-sequential nonce, in which case ``salt`` customises it. Single-signer
    casts only accept non-negative nonces.
    """
    metadata: Optional[str] = None
    source: Optional[str] = None
    valid_until: Optional[str] = Field(None, alias="validUntil")
    valid_after: Optional[str] = Field(None, alias="validAfter")
    gas: Optional[str] = None
    gas_price: Optional[str] = Field(None, alias="gasPrice")  # reserved, not enforced on-chain yet
    id: Optional[str] = None
    avo_safe_nonce: Optional[Union[int, str]] = Field(None, alias="avoSafeNonce")
    salt: Optional[str] = None
    safe_address: Optional[str] = Field(None, alias="safeAddress")
    name: Optional[str] = None
    version: Optional[str] = None

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("valid_until", "valid_after", "gas", "gas_price", "id", mode="before")
    @classmethod
    def _numbers_as_str(cls, value: Any) -> Any:
        return _to_decimal_str(value)

    @field_validator("metadata", "salt", mode="before")
    @classmethod
    def _bytes_as_hex(cls, value: Any) -> Any:
        return _to_hex(value)


class _WireModel(BaseModel):
    class Config:
        populate_by_name = True
        frozen = True


class ActionV1(_WireModel):
    target: str
    data: str
    value: str


class Action(ActionV1):
    operation: str


class CastParamsV2(_WireModel):
    valid_until: str = Field(..., alias="validUntil")
    gas: str
    source: str
    id: str
    metadata: str


class CastMessageV1(_WireModel):
    """Cast for V1 wallets: flat fields, actions without an operation."""
    kind: ClassVar[ResolvedVersion] = ResolvedVersion.V1

    actions: List[ActionV1]
    valid_until: str = Field(..., alias="validUntil")
    gas: str
    source: str
    metadata: str
    avo_safe_nonce: str = Field(..., alias="avoSafeNonce")

    def to_typed_data(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class CastMessageV2(_WireModel):
    """Cast for V2 (and V3) single-signer wallets."""
    kind: ClassVar[ResolvedVersion] = ResolvedVersion.V2

    actions: List[Action]
    params: CastParamsV2
    avo_safe_nonce: str = Field(..., alias="avoSafeNonce")

    def to_typed_data(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class CastParamsMultisig(_WireModel):
    actions: List[Action]
    id: str
    avo_nonce: str = Field(..., alias="avoNonce")
    salt: str
    source: str
    metadata: str


class CastForwardParams(_WireModel):
    gas: str
    gas_price: str = Field(..., alias="gasPrice")
    valid_after: str = Field(..., alias="validAfter")
    valid_until: str = Field(..., alias="validUntil")
    value: str


class CastMessageMultisig(_WireModel):
    """Cast for multisig wallets."""
    kind: ClassVar[ResolvedVersion] = ResolvedVersion.MULTISIG

    params: CastParamsMultisig
    forward_params: CastForwardParams = Field(..., alias="forwardParams")

    def to_typed_data(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


CastMessage = Union[CastMessageV1, CastMessageV2, CastMessageMultisig]


def parse_cast_message(data: Union[CastMessage, Dict[str, Any]]) -> CastMessage:
    """
    Turn a wire-format cast (e.g. one received from another process) back into a model.

    Raises:
        ValueError: If the dictionary matches no known cast shape
    """
    if isinstance(data, (CastMessageV1, CastMessageV2, CastMessageMultisig)):
        return data
    if not isinstance(data, dict):
        raise ValueError(f"Cast message must be a dictionary, got {type(data).__name__}")

    if "forwardParams" in data:
        return CastMessageMultisig.model_validate(data)
    if "params" in data:
        return CastMessageV2.model_validate(data)
    if "actions" in data:
        return CastMessageV1.model_validate(data)
    raise ValueError(f"Unrecognised cast message keys: {sorted(data)}")


class Domain(BaseModel):
    """
    EIP-712 signing domain of an Avocado wallet.

    ``chain_id`` is always the home chain; the target chain is bound through
    ``salt``. ``target_chain_id`` is not part of the signed domain.
    """
    name: str
    version: str
    chain_id: int
    salt: str
    verifying_contract: str
    target_chain_id: int

    class Config:
        frozen = True

    @property
    def major(self) -> int:
        return version_major(self.version)

    def to_eip712(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": to_checksum_address(self.verifying_contract),
            "salt": bytes(HexBytes(self.salt)),
        }

    def to_json(self) -> Dict[str, Any]:
        """Domain as sent to JSON-RPC wallets (salt hex encoded)."""
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
            "salt": self.salt,
        }


class Signature(BaseModel):
    signature: str
    signer: Optional[str] = None


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = []

    class Config:
        populate_by_name = True


Waiter = Callable[[int], Awaitable[TxReceipt]]


class TransactionRecord(BaseModel):
    """
    Result of broadcasting a cast.

    Either a transaction fetched from the target chain, or (``pending=True``)
    a placeholder holding only the hash, owner and chain id with zero-valued
    remaining fields. Both can be awaited for a receipt through :meth:`wait`.
    """
    hash: str
    from_address: str = Field(..., alias="from")
    chain_id: int = Field(..., alias="chainId")
    nonce: int = 0
    data: str = "0x"
    gas_limit: int = Field(0, alias="gasLimit")
    value: int = 0
    confirmations: int = 0
    block_number: Optional[int] = Field(None, alias="blockNumber")
    pending: bool = False

    _waiter: Optional[Waiter] = PrivateAttr(default=None)

    class Config:
        populate_by_name = True

    def bind_waiter(self, waiter: Waiter) -> "TransactionRecord":
        self._waiter = waiter
        return self

    async def wait(self, confirmations: int = 0) -> TxReceipt:
        """
        Block until the target chain reports ``confirmations`` blocks for this hash.

        Raises:
            RuntimeError: If the record was built without a chain provider
        """
        if self._waiter is None:
            raise RuntimeError(f"No chain provider bound to transaction {self.hash}")
        return await self._waiter(confirmations)


class FeeDiscount(BaseModel):
    amount: str
    program: str
    name: str
    description: str


class FeeEstimate(BaseModel):
    """Relay fee quote; amounts are decimal strings."""
    fee: str
    multiplier: str
    discount: Optional[FeeDiscount] = None

    @field_validator("fee", "multiplier", mode="before")
    @classmethod
    def _as_decimal(cls, value: Any) -> Any:
        if isinstance(value, str) and value.startswith(("0x", "0X")):
            return str(int(value, 16))
        if isinstance(value, dict) and "hex" in value:
            # BigNumber JSON form
            return str(int(value["hex"], 16))
        return _to_decimal_str(value)
