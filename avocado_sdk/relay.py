"""
Client for the Avocado relay JSON-RPC endpoint.
"""
import logging
from typing import Any, Dict, List, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.types import RPCEndpoint

from .config import AvocadoConfig
from .exceptions import RelayError
from .models import FeeEstimate
from .providers import validate_rpc_url

logger = logging.getLogger(__name__)

# Relay response meaning "the cast was not submitted"
BROADCAST_FAILED = "0x"


class AvocadoRelay:
    """
    Thin wrapper around the relay's custom JSON-RPC methods.

    The relay is also the home-chain RPC node, so ``w3`` doubles as the
    default "active provider" of signers that carry none of their own.

    Args:
        rpc_url: Relay endpoint (defaults to the configured relay URL)
        w3: Pre-built AsyncWeb3 instance (takes precedence over ``rpc_url``)
        config: Deployment configuration
        logger: Optional logger instance
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        w3: Optional[AsyncWeb3] = None,
        config: Optional[AvocadoConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or AvocadoConfig()
        self.logger = logger or logging.getLogger(__name__)
        if w3 is None:
            url = validate_rpc_url(rpc_url or self.config.relay_rpc_url, "relay_rpc_url")
            w3 = AsyncWeb3(AsyncHTTPProvider(url))
        self.w3 = w3

    async def send(self, method: str, params: List[Any]) -> Any:
        """
        Send a raw JSON-RPC request to the relay.

        Raises:
            RelayError: If the relay answers with an error object
        """
        self.logger.debug(f"Relay request: {method}")
        response = await self.w3.provider.make_request(RPCEndpoint(method), params)

        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise RelayError(f"{method} failed: {error.get('message', error)}", code=error.get("code"))
            raise RelayError(f"{method} failed: {error}")

        return response.get("result")

    async def broadcast(self, envelope: Dict[str, Any]) -> str:
        """
        Submit a signed cast.

        Returns:
            Transaction hash, or ``BROADCAST_FAILED`` if the relay refused the cast
        """
        result = await self.send("txn_broadcast", [envelope])
        return result if result is not None else BROADCAST_FAILED

    async def estimate_fee(self, message: Dict[str, Any], owner: str, chain_id: int) -> FeeEstimate:
        """Quote the relay fee for an unsigned cast."""
        result = await self.send("txn_estimateFeeWithoutSignature", [message, owner, chain_id])
        if not isinstance(result, dict):
            raise RelayError(f"Unexpected fee estimate response: {result!r}")
        return FeeEstimate.model_validate(result)
