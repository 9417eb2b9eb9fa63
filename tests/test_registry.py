"""
Tests for the AsyncWeb3-backed wallet registry.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_utils import to_checksum_address
from web3 import AsyncWeb3

from avocado_sdk.config import ZERO_SALT, AvocadoConfig
from avocado_sdk.registry.base import ZERO_ADDRESS
from avocado_sdk.registry.web3_registry import (
    FORWARDER_ABI,
    MULTISIG_FORWARDER_ABI,
    WALLET_ABI,
    Web3WalletRegistry,
)
from conftest import TEST_TARGET, TEST_WALLET, FakeProviders

OWNER = "0x9999999999999999999999999999999999999999"
SOURCE = to_checksum_address("0x000000000000000000000000000000000000cad0")
SIGNATURE = "0x" + "11" * 65


class ContractStub:
    """Records ``contract.functions.<name>(*args).call()`` invocations."""

    def __init__(self, results):
        self.results = results
        self.invocations = []
        self.functions = self

    def __getattr__(self, name):
        def bind(*args):
            self.invocations.append((name, args))
            fn = MagicMock()
            fn.call = AsyncMock(return_value=self.results.get(name))
            return fn
        return bind


@pytest.fixture
def providers():
    return FakeProviders()


def install(providers, chain_id, **results):
    """Route every ``eth.contract`` on ``chain_id`` to one stub, recording the address and ABI."""
    stub = ContractStub(results)
    contract = MagicMock(return_value=stub)
    providers.get(chain_id).eth.contract = contract
    return stub, contract


@pytest.fixture
def registry(providers):
    return Web3WalletRegistry(AvocadoConfig(), providers)


class TestReads:

    @pytest.mark.asyncio
    async def test_compute_address(self, registry, providers):
        stub, contract = install(providers, 137, computeAddress=TEST_WALLET)

        assert await registry.compute_address(137, OWNER) == TEST_WALLET

        assert stub.invocations == [("computeAddress", (OWNER,))]
        kwargs = contract.call_args.kwargs
        assert kwargs["address"] == AsyncWeb3.to_checksum_address(AvocadoConfig().forwarder_address)
        assert kwargs["abi"] is FORWARDER_ABI

    @pytest.mark.asyncio
    async def test_multisig_reads(self, registry, providers):
        stub, contract = install(
            providers, 10, computeAvocado=TEST_WALLET, avoNonce=4, avocadoVersion="1.0.0", avocadoVersionName="Avocado-Multisig"
        )

        assert await registry.compute_multisig_address(10, OWNER, 2) == TEST_WALLET
        assert await registry.multisig_nonce(10, OWNER, 2) == 4
        assert await registry.multisig_domain(10, OWNER, 2) == ("Avocado-Multisig", "1.0.0")

        assert ("computeAvocado", (OWNER, 2)) in stub.invocations
        assert contract.call_args.kwargs["abi"] is MULTISIG_FORWARDER_ABI

    @pytest.mark.asyncio
    async def test_nonce_and_version(self, registry, providers):
        install(providers, 137, avoSafeNonce=12, avoWalletVersion="3.0.0")

        assert await registry.safe_nonce(137, OWNER) == 12
        assert await registry.wallet_version(137, TEST_WALLET) == "3.0.0"

    @pytest.mark.asyncio
    async def test_wallet_domain_reads_wallet_contract(self, registry, providers):
        stub, contract = install(providers, 137, DOMAIN_SEPARATOR_NAME="Avocado", DOMAIN_SEPARATOR_VERSION="2.0.0")

        assert await registry.wallet_domain(137, TEST_WALLET) == ("Avocado", "2.0.0")

        assert contract.call_args.kwargs["address"] == TEST_WALLET
        assert contract.call_args.kwargs["abi"] is WALLET_ABI

    @pytest.mark.asyncio
    async def test_default_domain_queries_sentinel(self, registry, providers):
        stub, _ = install(providers, 137, avoWalletVersion="3.0.0", avoWalletVersionName="Avocado")

        assert await registry.default_domain(137, ZERO_ADDRESS) == ("Avocado", "3.0.0")
        assert stub.invocations == [
            ("avoWalletVersion", (ZERO_ADDRESS,)),
            ("avoWalletVersionName", (ZERO_ADDRESS,)),
        ]

    @pytest.mark.asyncio
    async def test_wallet_owner(self, registry, providers):
        install(providers, 10, owner=OWNER)
        assert await registry.wallet_owner(10, TEST_WALLET) == OWNER

    @pytest.mark.asyncio
    async def test_lookup_errors_propagate(self, registry, providers):
        providers.get(137).eth.contract = MagicMock(side_effect=ConnectionError("node down"))

        with pytest.raises(ConnectionError):
            await registry.safe_nonce(137, OWNER)


class TestVerify:

    @pytest.mark.asyncio
    async def test_verify_v1(self, registry, providers):
        stub, _ = install(providers, 137, verifyV1=True)
        message = {
            "actions": [{"target": TEST_TARGET, "data": "0x1234", "value": "5"}],
            "validUntil": "9",
            "gas": "21000",
            "source": SOURCE,
            "metadata": "0x",
            "avoSafeNonce": "7",
        }

        assert await registry.verify_v1(137, OWNER, message, SIGNATURE) is True

        [(name, args)] = stub.invocations
        assert name == "verifyV1"
        assert args == (
            OWNER,
            [(TEST_TARGET, b"\x12\x34", 5)],
            9,
            21000,
            SOURCE,
            b"",
            b"\x11" * 65,
        )

    @pytest.mark.asyncio
    async def test_verify_v2(self, registry, providers):
        stub, _ = install(providers, 137, verifyV2=False)
        message = {
            "actions": [{"target": TEST_TARGET, "data": "0x", "value": "0", "operation": "1"}],
            "params": {"validUntil": "0", "gas": "0", "source": SOURCE, "id": "0", "metadata": "0xbeef"},
            "avoSafeNonce": "7",
        }

        assert await registry.verify_v2(137, OWNER, message, SIGNATURE[2:]) is False

        [(name, (owner, actions, params, signature))] = stub.invocations
        assert name == "verifyV2"
        assert owner == OWNER
        assert actions == [(TEST_TARGET, b"", 0, 1)]
        assert params == (0, 0, SOURCE, 0, b"\xbe\xef")
        assert signature == b"\x11" * 65

    @pytest.mark.asyncio
    async def test_verify_v3(self, registry, providers):
        stub, _ = install(providers, 137, verifyV3=True)
        params = {
            "actions": [{"target": TEST_TARGET, "data": "0x", "value": "0", "operation": "0"}],
            "id": "0",
            "avoNonce": "7",
            "salt": ZERO_SALT,
            "source": SOURCE,
            "metadata": "0x",
        }
        forward_params = {"gas": "1", "gasPrice": "2", "validAfter": "3", "validUntil": "4", "value": "5"}

        assert await registry.verify_v3(137, OWNER, params, forward_params, SIGNATURE) is True

        [(name, (owner, cast_params, forward, signature_params))] = stub.invocations
        assert name == "verifyV3"
        assert cast_params == ([(TEST_TARGET, b"", 0, 0)], 0, 7, b"\x00" * 32, SOURCE, b"")
        assert forward == (1, 2, 3, 4, 5)
        assert signature_params == (b"\x11" * 65, ZERO_ADDRESS)


class TestAbi:

    def test_verify_functions_are_nonpayable(self):
        verify = [fn for fn in FORWARDER_ABI if fn["name"].startswith("verify")]

        assert {fn["name"] for fn in verify} == {"verifyV1", "verifyV2", "verifyV3"}
        assert all(fn["stateMutability"] == "nonpayable" for fn in verify)

    def test_v2_params_components_follow_type_order(self):
        [verify_v2] = [fn for fn in FORWARDER_ABI if fn["name"] == "verifyV2"]
        params = verify_v2["inputs"][2]

        assert params["type"] == "tuple"
        assert [c["name"] for c in params["components"]] == ["validUntil", "gas", "source", "id", "metadata"]
