"""
Per-chain AsyncWeb3 instances.
"""
import logging
import urllib.parse
from typing import Dict, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3

from .config import AvocadoConfig, NetworkConfig

logger = logging.getLogger(__name__)


def validate_rpc_url(url: str, url_name: str = "rpc_url") -> str:
    """
    Reject plain-http endpoints unless they point at the local machine.

    Raises:
        ValueError: If the URL doesn't use https (unless it's localhost/127.0.0.1)
    """
    parsed = urllib.parse.urlparse(url)
    host = parsed.netloc.split(':')[0] if parsed.netloc else ''
    is_local = host in ('localhost', '127.0.0.1')
    if parsed.scheme != 'https' and not is_local:
        raise ValueError(f"{url_name} must use https:// for security (got: {parsed.scheme}://)")
    return url


class ChainProviders:
    """
    Lazily creates and caches one AsyncWeb3 instance per chain id.

    The home chain is served by the relay endpoint; every other chain uses
    ``rpc_urls`` overrides first, then :class:`NetworkConfig`.
    """

    def __init__(
        self,
        config: Optional[AvocadoConfig] = None,
        rpc_urls: Optional[Dict[int, str]] = None,
    ):
        self.config = config or AvocadoConfig()
        self.rpc_urls = dict(rpc_urls or {})
        self._providers: Dict[int, AsyncWeb3] = {}

    def rpc_url(self, chain_id: int) -> str:
        if chain_id in self.rpc_urls:
            return self.rpc_urls[chain_id]
        if chain_id == self.config.home_chain_id:
            return self.config.relay_rpc_url
        return NetworkConfig.get_rpc_url(chain_id)

    def get(self, chain_id: int) -> AsyncWeb3:
        chain_id = int(chain_id)
        if chain_id not in self._providers:
            url = validate_rpc_url(self.rpc_url(chain_id))
            logger.debug(f"Creating provider for chain {chain_id}: {url}")
            self._providers[chain_id] = AsyncWeb3(AsyncHTTPProvider(url))
        return self._providers[chain_id]
