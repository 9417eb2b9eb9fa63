"""
Wallet registry implementations.
"""
from .base import ZERO_ADDRESS, WalletRegistry
from .web3_registry import Web3WalletRegistry

__all__ = ["WalletRegistry", "Web3WalletRegistry", "ZERO_ADDRESS"]
