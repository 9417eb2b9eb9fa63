"""
Key-holders able to sign Avocado casts.
"""
from .base import DelegatedSigner, DirectKeySigner, Signer, SignerCapability
from .delegated import Web3ProviderSigner
from .local import LocalSigner

__all__ = [
    "Signer",
    "SignerCapability",
    "DirectKeySigner",
    "DelegatedSigner",
    "LocalSigner",
    "Web3ProviderSigner",
]
