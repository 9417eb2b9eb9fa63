"""
Exceptions for the Avocado SDK.
"""
from typing import Any, Optional


class AvocadoError(Exception):
    """Base exception for all Avocado SDK errors."""
    pass


class ResolutionError(AvocadoError):
    """Raised when a version, nonce or domain lookup fails."""
    pass


class SigningError(AvocadoError):
    """Raised when the key-holder returns no signature."""
    pass


class ChainMismatchError(AvocadoError):
    """Raised when the active provider is not connected to the home chain."""

    def __init__(self, expected_chain_id: int, actual_chain_id: Optional[int]):
        self.expected_chain_id = expected_chain_id
        self.actual_chain_id = actual_chain_id
        super().__init__(
            f"Signer provider chain id should be {expected_chain_id} (got: {actual_chain_id})"
        )


class MissingChainIdError(AvocadoError):
    """Raised when no target chain id can be resolved for a cast."""
    pass


class InvalidNonceError(AvocadoError):
    """Raised when a nonce override cannot be encoded in the cast it is meant for."""
    pass


class BroadcastError(AvocadoError):
    """Raised when the relay rejects a signed cast."""

    def __init__(self, message: str, payload: Optional[Any] = None):
        self.payload = payload
        super().__init__(message)


class RelayError(AvocadoError):
    """Raised when the relay answers a JSON-RPC request with an error object."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)
