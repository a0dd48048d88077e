#!/usr/bin/env python3
"""
Verify a mint transaction and its mint account over RPC

Usage:
  python verify_transaction.py [signature] [mint_address]
Without arguments the latest successful deployment from the index is used.
"""

import asyncio
import sys
from datetime import datetime, timezone
from typing import Optional, Tuple

from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey
from solders.signature import Signature
from spl.token.constants import TOKEN_PROGRAM_ID

from minter.config import load_config
from minter.database import DeploymentLedger
from minter.errors import ConfigurationError
from minter.logging_setup import setup_logging
from minter.services.solana_service import explorer_link, parse_mint_account


def resolve_targets(argv, ledger: DeploymentLedger) -> Tuple[Optional[str], Optional[str]]:
    """Signature and mint from argv, falling back to the latest deployment"""
    if argv:
        return argv[0], argv[1] if len(argv) > 1 else None
    latest = ledger.latest_successful()
    if not latest:
        return None, None
    return latest.get('signature'), latest.get('mint')


def format_block_time(block_time: Optional[int]) -> str:
    if block_time is None:
        return 'N/A'
    return datetime.fromtimestamp(block_time, tz=timezone.utc).isoformat()


async def check_transaction(client: AsyncClient, signature: str):
    print("🔍 Transaction lookup")
    print("-" * 50)
    try:
        resp = await client.get_transaction(Signature.from_string(signature), max_supported_transaction_version=0)
    except Exception as e:
        print(f"⚠️  getTransaction failed: {e}")
        return

    tx = resp.value
    if tx is None:
        print("❌ Transaction not found")
        return

    meta = tx.transaction.meta
    print("✅ Transaction found")
    print(f"   • Slot: {tx.slot}")
    print(f"   • Block Time: {format_block_time(tx.block_time)}")
    print(f"   • Status: {'Failed' if meta is not None and meta.err else 'Success'}")
    print(f"   • Fee: {meta.fee if meta is not None else 'N/A'} lamports")


async def check_mint(client: AsyncClient, mint_address: str, signature: Optional[str]):
    print("\n🔍 Mint account")
    print("-" * 50)
    mint = Pubkey.from_string(mint_address)
    try:
        account = (await client.get_account_info(mint)).value
    except Exception as e:
        print(f"⚠️  Mint account check failed: {e}")
        return

    if account is None:
        print("❌ Mint account not found")
        return

    print("✅ Mint account exists")
    print(f"   • Owner: {account.owner}")
    print(f"   • Lamports: {account.lamports}")
    print(f"   • Data Length: {len(account.data)} bytes")
    if account.owner == TOKEN_PROGRAM_ID:
        try:
            info = parse_mint_account(bytes(account.data))
            print("   • Account Type: SPL Token Mint")
            print(f"   • Supply: {info['supply']}")
            print(f"   • Decimals: {info['decimals']}")
            print(f"   • Mint Authority Present: {info['mint_authority_present']}")
        except ValueError as e:
            print(f"⚠️  Could not parse mint data: {e}")

    print("\n🔍 Transaction history for mint")
    print("-" * 50)
    try:
        history = (await client.get_signatures_for_address(mint, limit=10)).value
    except Exception as e:
        print(f"⚠️  Transaction history check failed: {e}")
        return

    if not history:
        print("❌ No transactions found for mint account")
    for index, entry in enumerate(history, start=1):
        ours = ' ⭐ (OUR TX)' if signature and str(entry.signature) == signature else ''
        print(f"   {index}. {entry.signature}{ours}")
        print(f"      • Slot: {entry.slot}")
        print(f"      • Status: {'Failed' if entry.err else 'Success'}")
        if entry.block_time:
            print(f"      • Time: {format_block_time(entry.block_time)}")


async def check_network(client: AsyncClient):
    print("\n🔍 Network information")
    print("-" * 50)
    try:
        version = (await client.get_version()).value
        slot = (await client.get_slot()).value
        epoch = (await client.get_epoch_info()).value
    except Exception as e:
        print(f"⚠️  Network info check failed: {e}")
        return

    print("✅ Network connection successful")
    print(f"   • Solana Core: {version.solana_core}")
    print(f"   • Current Slot: {slot}")
    print(f"   • Current Epoch: {epoch.epoch}")


async def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    print("🔍 Transaction Verification\n")

    try:
        config = load_config(require_keypair=False)
    except ConfigurationError as e:
        print(f"❌ CONFIGURATION ERROR: {e}")
        return 1
    setup_logging(config.debug)

    signature, mint_address = resolve_targets(argv, DeploymentLedger(config.deployment_index))
    if not signature:
        print("❌ No signature given and no successful deployment in the index")
        print("Usage: python verify_transaction.py [signature] [mint_address]")
        return 1

    rpc_url = config.solana.rpc_url
    print(f"📝 Transaction Signature: {signature}")
    if mint_address:
        print(f"🎯 Mint Address: {mint_address}")
    print(f"🌐 RPC URL: {rpc_url}\n")

    client = AsyncClient(rpc_url)
    try:
        await check_transaction(client, signature)
        if mint_address:
            await check_mint(client, mint_address, signature)
        await check_network(client)
    finally:
        await client.close()

    print("\n🌐 Explorer Links")
    print(f"• Transaction: {explorer_link('tx', signature, rpc_url)}")
    if mint_address:
        print(f"• Mint Account: {explorer_link('address', mint_address, rpc_url)}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
