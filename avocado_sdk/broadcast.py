"""
Relay submission and post-broadcast confirmation.

A cast moves through ``BUILT -> SIGNED -> SUBMITTED`` and ends either
``CONFIRMED`` (the target chain returned the transaction) or
``PENDING_UNCONFIRMED`` (the relay accepted it but the chain has not shown it
yet). Pending results are returned, never raised.
"""
import asyncio
import functools
import logging
import time
from enum import Enum
from typing import Any, Dict, Optional, Union

from web3.exceptions import TimeExhausted, TransactionNotFound

from .exceptions import BroadcastError
from .models import CastMessage, Signature, TransactionRecord, TxReceipt
from .providers import ChainProviders
from .relay import BROADCAST_FAILED, AvocadoRelay

logger = logging.getLogger(__name__)

# Post-broadcast lookup policy
POLL_ATTEMPTS = 3
POLL_DELAY = 2
RECEIPT_TIMEOUT = 120


class CastState(str, Enum):
    BUILT = "built"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    PENDING_UNCONFIRMED = "pending_unconfirmed"


def log_transition(log: logging.Logger, state: CastState, detail: str = "") -> None:
    log.info(f"Cast {state.value}{': ' + detail if detail else ''}")


def _hex(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


def _sanitize_envelope(envelope: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove signatures from a broadcast envelope for logging

    Args:
        envelope: Envelope sent to the relay

    Returns:
        Copy with signatures redacted
    """
    if not isinstance(envelope, dict):
        return {"type": str(type(envelope))}

    result = envelope.copy()

    if "signature" in result:
        result["signature"] = f"[REDACTED - {len(str(result['signature']))} chars]"

    if isinstance(result.get("signatures"), list):
        result["signatures"] = [
            {**entry, "signature": f"[REDACTED - {len(str(entry.get('signature', '')))} chars]"}
            if isinstance(entry, dict) else "[REDACTED]"
            for entry in result["signatures"]
        ]

    return result


def _wire(message: Union[CastMessage, Dict[str, Any]]) -> Dict[str, Any]:
    return message if isinstance(message, dict) else message.to_typed_data()


def _signature_hex(signature: Union[Signature, str]) -> str:
    return signature.signature if isinstance(signature, Signature) else signature


class ReceiptPoller:
    """
    Looks a relayed transaction up on its target chain.

    Args:
        providers: Per-chain AsyncWeb3 instances
        logger: Optional logger instance
    """

    def __init__(self, providers: ChainProviders, logger: Optional[logging.Logger] = None):
        self.providers = providers
        self.logger = logger or logging.getLogger(__name__)

    async def poll(self, tx_hash: str, owner: str, chain_id: int) -> TransactionRecord:
        """
        Fetch ``tx_hash`` from the target chain, waiting ``POLL_DELAY`` seconds
        before each of ``POLL_ATTEMPTS`` lookups.

        Returns:
            The fetched transaction, or a pending placeholder if every lookup missed
        """
        w3 = self.providers.get(chain_id)

        for attempt in range(1, POLL_ATTEMPTS + 1):
            await asyncio.sleep(POLL_DELAY)
            try:
                tx = await w3.eth.get_transaction(tx_hash)
            except TransactionNotFound:
                tx = None

            if tx:
                self.logger.debug(f"Transaction {tx_hash} found on chain {chain_id} (attempt {attempt})")
                record = await self._record_from_tx(w3, tx, owner, chain_id)
                return record.bind_waiter(functools.partial(self.wait_for_transaction, chain_id, tx_hash))

            self.logger.debug(f"Transaction {tx_hash} not yet visible on chain {chain_id} (attempt {attempt})")

        self.logger.warning(
            f"Transaction {tx_hash} accepted by relay but not found on chain {chain_id} "
            f"after {POLL_ATTEMPTS} attempts; returning pending record"
        )
        record = TransactionRecord(hash=tx_hash, from_address=owner, chain_id=chain_id, pending=True)
        return record.bind_waiter(functools.partial(self.wait_for_transaction, chain_id, tx_hash))

    async def wait_for_transaction(self, chain_id: int, tx_hash: str, confirmations: int = 0) -> TxReceipt:
        """
        Wait for the receipt of ``tx_hash`` and for ``confirmations`` blocks on top of it.

        Raises:
            TimeExhausted: If the chain does not get there within ``RECEIPT_TIMEOUT`` seconds
        """
        w3 = self.providers.get(chain_id)
        deadline = time.monotonic() + RECEIPT_TIMEOUT

        receipt = await w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT)

        if confirmations > 1:
            while (await w3.eth.block_number) - receipt["blockNumber"] + 1 < confirmations:
                if time.monotonic() > deadline:
                    raise TimeExhausted(
                        f"Transaction {tx_hash} did not reach {confirmations} confirmations "
                        f"within {RECEIPT_TIMEOUT} seconds"
                    )
                await asyncio.sleep(POLL_DELAY)

        return self._convert_receipt(receipt)

    async def _record_from_tx(self, w3, tx: Any, owner: str, chain_id: int) -> TransactionRecord:
        tx = dict(tx)
        block_number = tx.get("blockNumber")
        confirmations = 0
        if block_number is not None:
            confirmations = max(0, (await w3.eth.block_number) - block_number + 1)

        return TransactionRecord(
            hash=_hex(tx.get("hash")),
            from_address=tx.get("from") or owner,
            chain_id=chain_id,
            nonce=tx.get("nonce") or 0,
            data=_hex(tx.get("input")) or "0x",
            gas_limit=tx.get("gas") or 0,
            value=tx.get("value") or 0,
            confirmations=confirmations,
            block_number=block_number,
        )

    def _convert_receipt(self, web3_receipt: Any) -> TxReceipt:
        """
        Convert Web3 receipt to our TxReceipt model

        Args:
            web3_receipt: The Web3 transaction receipt

        Returns:
            Our TxReceipt model
        """
        receipt_dict = dict(web3_receipt)

        # Convert bytes to hex strings
        for key, value in list(receipt_dict.items()):
            receipt_dict[key] = _hex(value)

        receipt_dict["logs"] = [
            {key: _hex(value) for key, value in dict(log).items()}
            for log in receipt_dict.get("logs") or []
        ]

        return TxReceipt.model_validate(receipt_dict)


class Broadcaster:
    """
    Submits signed casts to the relay and resolves them into transaction records.

    Only the post-broadcast lookup is retried; a relay refusal is final.

    Args:
        relay: Relay client
        poller: Target-chain lookup
        logger: Optional logger instance
    """

    def __init__(
        self,
        relay: AvocadoRelay,
        poller: ReceiptPoller,
        logger: Optional[logging.Logger] = None,
    ):
        self.relay = relay
        self.poller = poller
        self.logger = logger or logging.getLogger(__name__)

    async def broadcast(
        self,
        message: Union[CastMessage, Dict[str, Any]],
        signature: Union[Signature, str],
        owner: str,
        chain_id: int,
        wallet: str,
        digest: str,
    ) -> TransactionRecord:
        """
        Submit a single-signer cast.

        Args:
            message: Signed cast
            signature: Owner signature
            owner: Owner EOA
            chain_id: Target chain
            wallet: Wallet executing the cast
            digest: EIP-712 digest, sent for the relay's cross-check

        Raises:
            BroadcastError: If the relay refuses the cast
        """
        envelope = {
            "signature": _signature_hex(signature),
            "message": _wire(message),
            "owner": owner,
            "targetChainId": str(chain_id),
            "dryRun": False,
            "safe": wallet,
            "digestHash": digest,
        }
        return await self._submit(envelope, owner, chain_id)

    async def broadcast_multisig(
        self,
        message: Union[CastMessage, Dict[str, Any]],
        signature: Union[Signature, str],
        owner: str,
        chain_id: int,
        wallet: str,
        index: int,
    ) -> TransactionRecord:
        """
        Submit a multisig cast carrying this owner's signature.

        Raises:
            BroadcastError: If the relay refuses the cast
        """
        signer = signature.signer if isinstance(signature, Signature) and signature.signer else owner
        envelope = {
            "signatures": [{"signature": _signature_hex(signature), "signer": signer}],
            "message": _wire(message),
            "owner": owner,
            "safe": wallet,
            "targetChainId": str(chain_id),
            "index": str(index),
        }
        return await self._submit(envelope, owner, chain_id)

    async def _submit(self, envelope: Dict[str, Any], owner: str, chain_id: int) -> TransactionRecord:
        safe_envelope = _sanitize_envelope(envelope)
        self.logger.debug(f"Broadcasting cast: {safe_envelope}")

        tx_hash = await self.relay.broadcast(envelope)
        if tx_hash == BROADCAST_FAILED:
            self.logger.error(f"Relay refused cast for {envelope.get('safe')} on chain {chain_id}")
            raise BroadcastError("Tx failed!", payload=safe_envelope)

        log_transition(self.logger, CastState.SUBMITTED, tx_hash)

        record = await self.poller.poll(tx_hash, owner, chain_id)
        state = CastState.PENDING_UNCONFIRMED if record.pending else CastState.CONFIRMED
        log_transition(self.logger, state, tx_hash)
        return record
