#!/usr/bin/env python3
"""
Example of building, signing, verifying and broadcasting a cast in separate steps.
"""
import asyncio
import json
import os

from avocado_sdk import AvocadoClient, LocalSigner


async def main():
    """
    Split the send flow so the signed cast can be inspected (or handed to
    another process) before the relay sees it.

    This example shows how to:
    1. Quote the relay fee for a batch
    2. Build the cast message without signing it
    3. Sign and verify it against the wallet contract
    4. Broadcast the signed message
    """
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    TARGET_CHAIN_ID = int(os.environ.get("TARGET_CHAIN_ID", "10"))
    MULTISIG_INDEX = os.environ.get("MULTISIG_INDEX")

    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    client = AvocadoClient(LocalSigner(PRIVATE_KEY)).for_chain(TARGET_CHAIN_ID)
    intents = [{"to": "0x000000000000000000000000000000000000dEaD", "data": "0x", "value": 0}]

    fee = await client.estimate_fee(intents, TARGET_CHAIN_ID)
    print(f"Relay fee: {fee.fee} (multiplier {fee.multiplier})")

    if MULTISIG_INDEX is not None:
        index = int(MULTISIG_INDEX)
        message = await client.generate_signature_message_multisig(intents, TARGET_CHAIN_ID, index)
        signature = await client.build_signature_multisig(message, TARGET_CHAIN_ID, index)
        print(json.dumps(message.to_typed_data(), indent=2))

        record = await client.broadcast_signed_message_multisig(message, signature, TARGET_CHAIN_ID, index)
    else:
        message = await client.generate_signature_message(intents, TARGET_CHAIN_ID, {"metadata": "0x"})
        signature = await client.build_signature(message, TARGET_CHAIN_ID)
        print(json.dumps(message.to_typed_data(), indent=2))

        if not await client.verify(message, signature, TARGET_CHAIN_ID):
            print("ERROR: wallet contract rejected the signature")
            return

        record = await client.broadcast_signed_message(message, signature, TARGET_CHAIN_ID)

    print(f"Transaction hash: {record.hash} (pending: {record.pending})")


if __name__ == "__main__":
    asyncio.run(main())
