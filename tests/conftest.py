"""
Pytest fixtures for the Avocado SDK tests.
"""
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from avocado_sdk import broadcast
from avocado_sdk.client import AvocadoClient
from avocado_sdk.config import AVOCADO_CHAIN_ID
from avocado_sdk.models import CastMessage, CastMessageMultisig, CastMessageV1, CastMessageV2, Domain
from avocado_sdk.registry.base import ZERO_ADDRESS, WalletRegistry
from avocado_sdk.relay import AvocadoRelay
from avocado_sdk.resolvers import chain_salt
from avocado_sdk.signature import SignatureEngine
from avocado_sdk.signer.local import LocalSigner

# Constants for testing
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_WALLET = "0x1111111111111111111111111111111111111111"
TEST_MULTISIG_WALLET = "0x2222222222222222222222222222222222222222"
TEST_TARGET = "0x3333333333333333333333333333333333333333"
TEST_TX_HASH = "0x" + "ab" * 32
TEST_CHAIN_ID = 137
MULTISIG_DOMAIN = ("Avocado-Multisig", "1.0.0")


class AwaitableValue:
    """Stands in for awaitable web3 properties such as ``eth.chain_id``."""

    def __init__(self, value: Any):
        self.value = value

    def __await__(self):
        if False:  # pragma: no cover
            yield
        return self.value


class FakeRegistry(WalletRegistry):
    """
    In-memory wallet registry.

    Every call is recorded in ``calls`` as ``(method, args)``. The verify
    entrypoints recover the signer offline and compare it to the owner, the
    way the forwarder checks signatures on-chain.
    """

    def __init__(
        self,
        owner: str,
        version: str = "3.0.0",
        nonce: int = 7,
        multisig_nonce: int = 3,
        domain: Tuple[str, str] = ("Avocado", "3.0.0"),
        wallet: str = TEST_WALLET,
        multisig_wallet: str = TEST_MULTISIG_WALLET,
    ):
        self.owner = owner
        self.version = version
        self.nonce = nonce
        self._multisig_nonce = multisig_nonce
        self.domain = domain
        self.default = domain
        self.wallet = wallet
        self.multisig_wallet = multisig_wallet
        self.domain_error: Optional[Exception] = None
        self.default_error: Optional[Exception] = None
        self.version_error: Optional[Exception] = None
        self.nonce_error: Optional[Exception] = None
        self.calls: List[Tuple[str, tuple]] = []

    def called(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    async def compute_address(self, chain_id, owner):
        self.calls.append(("compute_address", (chain_id, owner)))
        return self.wallet

    async def compute_multisig_address(self, chain_id, owner, index):
        self.calls.append(("compute_multisig_address", (chain_id, owner, index)))
        return self.multisig_wallet

    async def safe_nonce(self, chain_id, owner):
        self.calls.append(("safe_nonce", (chain_id, owner)))
        if self.nonce_error:
            raise self.nonce_error
        return self.nonce

    async def multisig_nonce(self, chain_id, owner, index):
        self.calls.append(("multisig_nonce", (chain_id, owner, index)))
        if self.nonce_error:
            raise self.nonce_error
        return self._multisig_nonce

    async def wallet_version(self, chain_id, wallet):
        self.calls.append(("wallet_version", (chain_id, wallet)))
        if self.version_error:
            raise self.version_error
        return self.version

    async def wallet_domain(self, chain_id, wallet):
        self.calls.append(("wallet_domain", (chain_id, wallet)))
        if self.domain_error:
            raise self.domain_error
        return self.domain

    async def default_domain(self, chain_id, sentinel):
        self.calls.append(("default_domain", (chain_id, sentinel)))
        if self.default_error:
            raise self.default_error
        return self.default

    async def multisig_domain(self, chain_id, owner, index):
        self.calls.append(("multisig_domain", (chain_id, owner, index)))
        return MULTISIG_DOMAIN

    async def wallet_owner(self, chain_id, wallet):
        self.calls.append(("wallet_owner", (chain_id, wallet)))
        return self.owner

    async def verify_v1(self, chain_id, owner, message, signature):
        self.calls.append(("verify_v1", (chain_id, owner, message, signature)))
        return self._recovers(CastMessageV1.model_validate(message), self._wallet_domain(chain_id), signature, owner)

    async def verify_v2(self, chain_id, owner, message, signature):
        self.calls.append(("verify_v2", (chain_id, owner, message, signature)))
        return self._recovers(CastMessageV2.model_validate(message), self._wallet_domain(chain_id), signature, owner)

    async def verify_v3(self, chain_id, owner, params, forward_params, signature, signer=ZERO_ADDRESS):
        self.calls.append(("verify_v3", (chain_id, owner, params, forward_params, signature, signer)))
        multisig = CastMessageMultisig.model_validate({"params": params, "forwardParams": forward_params})
        if self._recovers(multisig, self._multisig_domain(chain_id), signature, owner):
            return True
        # V3 single-signer wallets are modelled as accepting the V2-typed signature
        single = CastMessageV2.model_validate({
            "actions": params["actions"],
            "params": {
                "validUntil": forward_params["validUntil"],
                "gas": forward_params["gas"],
                "source": params["source"],
                "id": params["id"],
                "metadata": params["metadata"],
            },
            "avoSafeNonce": params["avoNonce"],
        })
        return self._recovers(single, self._wallet_domain(chain_id), signature, owner)

    def _wallet_domain(self, chain_id: int) -> Domain:
        return _domain(*self.domain, chain_id, self.wallet)

    def _multisig_domain(self, chain_id: int) -> Domain:
        return _domain(*MULTISIG_DOMAIN, chain_id, self.multisig_wallet)

    @staticmethod
    def _recovers(message: CastMessage, domain: Domain, signature: str, owner: str) -> bool:
        try:
            return SignatureEngine.recover(message, domain, signature).lower() == owner.lower()
        except Exception:
            # Malformed signatures revert on-chain; the view call reports that as a failed check
            return False


def _domain(name: str, version: str, chain_id: int, wallet: str) -> Domain:
    return Domain(
        name=name,
        version=version,
        chain_id=AVOCADO_CHAIN_ID,
        salt=chain_salt(chain_id),
        verifying_contract=wallet,
        target_chain_id=chain_id,
    )


def make_w3(chain_id: int, block_number: int = 100) -> MagicMock:
    """Mock AsyncWeb3 instance for one chain."""
    w3 = MagicMock()
    w3.eth.chain_id = AwaitableValue(chain_id)
    w3.eth.block_number = AwaitableValue(block_number)
    w3.eth.get_transaction = AsyncMock(return_value=None)
    w3.eth.wait_for_transaction_receipt = AsyncMock()
    w3.provider.make_request = AsyncMock(return_value={"jsonrpc": "2.0", "id": 1, "result": None})
    return w3


class FakeProviders:
    """Hands out one mock AsyncWeb3 per chain id."""

    def __init__(self):
        self.instances: Dict[int, MagicMock] = {}

    def get(self, chain_id: int) -> MagicMock:
        chain_id = int(chain_id)
        if chain_id not in self.instances:
            self.instances[chain_id] = make_w3(chain_id)
        return self.instances[chain_id]


# Make the post-broadcast poll delay instantaneous so lookups don't slow the suite down
@pytest.fixture(autouse=True)
def _fast_poll(monkeypatch):
    monkeypatch.setattr(broadcast, "POLL_DELAY", 0)


@pytest.fixture
def signer():
    return LocalSigner(TEST_PRIV_KEY)


@pytest.fixture
def registry(signer):
    return FakeRegistry(owner=signer.address)


@pytest.fixture
def providers():
    return FakeProviders()


@pytest.fixture
def relay(providers):
    relay = MagicMock(spec=AvocadoRelay)
    relay.w3 = providers.get(AVOCADO_CHAIN_ID)
    relay.broadcast = AsyncMock(return_value=TEST_TX_HASH)
    relay.estimate_fee = AsyncMock()
    return relay


@pytest.fixture
def client(signer, registry, relay, providers):
    return AvocadoClient(signer, registry=registry, relay=relay, providers=providers)
