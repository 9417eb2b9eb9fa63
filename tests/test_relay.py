"""
Tests for the relay JSON-RPC client.
"""
import pytest

from avocado_sdk.exceptions import RelayError
from avocado_sdk.models import FeeEstimate
from avocado_sdk.relay import BROADCAST_FAILED, AvocadoRelay
from conftest import TEST_TX_HASH, make_w3


@pytest.fixture
def w3():
    return make_w3(634)


@pytest.fixture
def relay(w3):
    return AvocadoRelay(w3=w3)


def respond(w3, **body):
    w3.provider.make_request.return_value = {"jsonrpc": "2.0", "id": 1, **body}


class TestSend:

    @pytest.mark.asyncio
    async def test_returns_result(self, relay, w3):
        respond(w3, result="ok")

        assert await relay.send("txn_custom", [1, "two"]) == "ok"
        w3.provider.make_request.assert_awaited_once_with("txn_custom", [1, "two"])

    @pytest.mark.asyncio
    async def test_error_object(self, relay, w3):
        respond(w3, error={"code": -32000, "message": "insufficient balance"})

        with pytest.raises(RelayError, match="insufficient balance") as exc_info:
            await relay.send("txn_broadcast", [])

        assert exc_info.value.code == -32000

    @pytest.mark.asyncio
    async def test_error_string(self, relay, w3):
        respond(w3, error="boom")

        with pytest.raises(RelayError, match="boom") as exc_info:
            await relay.send("txn_broadcast", [])

        assert exc_info.value.code is None


class TestBroadcast:

    @pytest.mark.asyncio
    async def test_hash_returned(self, relay, w3):
        respond(w3, result=TEST_TX_HASH)

        assert await relay.broadcast({"safe": "0x1"}) == TEST_TX_HASH
        w3.provider.make_request.assert_awaited_once_with("txn_broadcast", [{"safe": "0x1"}])

    @pytest.mark.asyncio
    async def test_refusal(self, relay, w3):
        respond(w3, result=BROADCAST_FAILED)
        assert await relay.broadcast({}) == BROADCAST_FAILED

    @pytest.mark.asyncio
    async def test_null_result_is_refusal(self, relay, w3):
        respond(w3, result=None)
        assert await relay.broadcast({}) == BROADCAST_FAILED


class TestEstimateFee:

    @pytest.mark.asyncio
    async def test_parses_hex_amounts(self, relay, w3):
        respond(w3, result={"fee": "0x64", "multiplier": {"type": "BigNumber", "hex": "0x0a"}})

        fee = await relay.estimate_fee({"actions": []}, "0xowner", 137)

        assert fee == FeeEstimate(fee="100", multiplier="10")
        w3.provider.make_request.assert_awaited_once_with(
            "txn_estimateFeeWithoutSignature", [{"actions": []}, "0xowner", 137]
        )

    @pytest.mark.asyncio
    async def test_unexpected_shape(self, relay, w3):
        respond(w3, result="0x64")

        with pytest.raises(RelayError, match="Unexpected fee estimate"):
            await relay.estimate_fee({}, "0xowner", 137)


class TestConstruction:

    def test_plain_http_rejected(self):
        with pytest.raises(ValueError, match="https"):
            AvocadoRelay(rpc_url="http://relay.example.com")

    def test_localhost_allowed(self):
        relay = AvocadoRelay(rpc_url="http://localhost:8545")
        assert relay.w3 is not None
