#!/usr/bin/env python3
"""
Simple example of using the Avocado SDK.
"""
import asyncio
import logging
import os

from avocado_sdk import AvocadoClient, BroadcastError, LocalSigner


async def main():
    """
    Demonstrate basic usage of the AvocadoClient.

    This example shows how to:
    1. Initialize the client from a private key
    2. Look up the owner's Avocado wallet
    3. Send a batch of calls through the relay
    4. Wait for the transaction to be mined on the target chain
    """
    # Read configuration from environment
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    TARGET_CHAIN_ID = int(os.environ.get("TARGET_CHAIN_ID", "137"))
    RECIPIENT = os.environ.get("RECIPIENT", "0x000000000000000000000000000000000000dEaD")

    # Verify configuration
    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    logging.basicConfig(level=logging.INFO)

    signer = LocalSigner(PRIVATE_KEY)
    client = AvocadoClient(signer)

    print(f"Owner address: {await client.get_owner_address()}")
    print(f"Avocado wallet: {await client.get_safe_address()}")
    print(f"Wallet nonce on chain {TARGET_CHAIN_ID}: {await client.get_safe_nonce(TARGET_CHAIN_ID)}")

    # Two plain value transfers executed atomically by the wallet
    intents = [
        {"to": RECIPIENT, "value": 1},
        {"to": RECIPIENT, "value": 2},
    ]

    try:
        record = await client.send_transactions(intents, TARGET_CHAIN_ID)

        print(f"Cast relayed! Transaction hash: {record.hash}")
        if record.pending:
            print("Transaction not visible on the target chain yet, waiting for the receipt...")

        receipt = await record.wait()
        print(f"Block number: {receipt.block_number}")
        print(f"Status: {'Success' if receipt.status == 1 else 'Failed'}")

    except BroadcastError as e:
        print(f"Relay rejected the cast: {e}")
    except Exception as e:
        print(f"Error sending transactions: {str(e)}")


if __name__ == "__main__":
    asyncio.run(main())
