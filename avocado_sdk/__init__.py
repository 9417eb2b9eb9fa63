"""
Avocado SDK - sign and relay Avocado smart-wallet transactions.
"""
from .broadcast import Broadcaster, CastState, ReceiptPoller
from .client import AvocadoClient
from .config import AVOCADO_CHAIN_ID, AvocadoConfig, NetworkConfig
from .exceptions import (
    AvocadoError,
    BroadcastError,
    ChainMismatchError,
    InvalidNonceError,
    MissingChainIdError,
    RelayError,
    ResolutionError,
    SigningError,
)
from .models import (
    CastMessage,
    CastMessageMultisig,
    CastMessageV1,
    CastMessageV2,
    Domain,
    FeeEstimate,
    ResolvedVersion,
    Signature,
    SignatureOptions,
    TransactionIntent,
    TransactionRecord,
    TxReceipt,
)
from .registry import Web3WalletRegistry, WalletRegistry
from .relay import AvocadoRelay
from .signature import SignatureEngine
from .signer import DelegatedSigner, DirectKeySigner, LocalSigner, Signer, SignerCapability, Web3ProviderSigner
from .version import __version__

__all__ = [
    "AvocadoClient",
    "AvocadoConfig",
    "NetworkConfig",
    "AVOCADO_CHAIN_ID",
    "AvocadoRelay",
    "Broadcaster",
    "ReceiptPoller",
    "CastState",
    "SignatureEngine",
    "WalletRegistry",
    "Web3WalletRegistry",
    "Signer",
    "SignerCapability",
    "DirectKeySigner",
    "DelegatedSigner",
    "LocalSigner",
    "Web3ProviderSigner",
    "TransactionIntent",
    "SignatureOptions",
    "CastMessage",
    "CastMessageV1",
    "CastMessageV2",
    "CastMessageMultisig",
    "Domain",
    "Signature",
    "ResolvedVersion",
    "TransactionRecord",
    "TxReceipt",
    "FeeEstimate",
    "AvocadoError",
    "ResolutionError",
    "SigningError",
    "ChainMismatchError",
    "InvalidNonceError",
    "MissingChainIdError",
    "BroadcastError",
    "RelayError",
    "__version__",
]
