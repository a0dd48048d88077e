#!/usr/bin/env python3
"""
Show the latest successful NFT deployment with explorer links and
on-chain account checks
"""

import asyncio
import sys
from datetime import datetime
from typing import Dict, Optional

from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey

from minter.config import load_config
from minter.database import DeploymentLedger
from minter.errors import ConfigurationError
from minter.logging_setup import setup_logging
from minter.services import IPFSService, MetadataService
from minter.services.solana_service import explorer_link


def explorer_links(deployment: Dict) -> Dict[str, str]:
    """Explorer URLs for the transaction, mint and token account"""
    rpc_url = deployment['rpcUrl']
    return {
        'tx': explorer_link('tx', deployment['signature'], rpc_url),
        'tx_solanafm': f"https://solana.fm/tx/{deployment['signature']}?cluster=custom-{rpc_url}",
        'mint': explorer_link('address', deployment['mint'], rpc_url),
        'mint_solanafm': f"https://solana.fm/address/{deployment['mint']}?cluster=custom-{rpc_url}",
        'token_account': explorer_link('address', deployment['tokenAccount'], rpc_url),
    }


async def describe_account(client: AsyncClient, label: str, address: str) -> Optional[object]:
    """Print owner and lamports of an account, if it exists"""
    try:
        resp = await client.get_account_info(Pubkey.from_string(address))
    except Exception as e:
        print(f"⚠️  {label} verification failed: {e}")
        return None

    account = resp.value
    if account is None:
        print(f"❌ {label} not found")
        return None

    print(f"✅ {label} exists")
    print(f"   • Owner: {account.owner}")
    print(f"   • Lamports: {account.lamports}")
    print(f"   • Data length: {len(account.data)} bytes")
    return account


def print_deployment(deployment: Dict):
    metadata = deployment.get('metadata', {})
    print("🎯 Latest NFT Deployment Details")
    print("=" * 50)
    print(f"📛 Name: {metadata.get('name')}")
    print(f"🏷️  Symbol: {metadata.get('symbol')}")
    print(f"📝 Description: {metadata.get('description')}")
    print(f"🎯 Mint Address: {deployment['mint']}")
    print(f"🏦 Token Account: {deployment['tokenAccount']}")
    print(f"🖼️  Image URL: {deployment.get('imageUrl')}")
    print(f"📝 Transaction: {deployment['signature']}")
    try:
        deployed_at = datetime.fromisoformat(deployment['timestamp'].replace('Z', '+00:00'))
        print(f"⏱️  Deployed: {deployed_at.astimezone().strftime('%Y-%m-%d %H:%M:%S')}")
    except (KeyError, ValueError):
        print(f"⏱️  Deployed: {deployment.get('timestamp')}")
    print(f"⏳ Deployment Time: {deployment.get('deploymentTimeMs', 0) / 1000:.2f}s")
    print(f"🌐 Network: {deployment.get('network')} ({deployment['rpcUrl']})")


async def main() -> int:
    print("🔍 NFT Viewer\n")

    try:
        config = load_config(require_keypair=False)
    except ConfigurationError as e:
        print(f"❌ CONFIGURATION ERROR: {e}")
        return 1
    setup_logging(config.debug)

    try:
        deployment = DeploymentLedger(config.deployment_index).latest_successful()
    except (OSError, ValueError) as e:
        print(f"❌ Could not read deployment data: {e}")
        return 1

    if not deployment:
        print("❌ No successful NFT deployments found")
        return 1

    print_deployment(deployment)

    links = explorer_links(deployment)
    print("\n🔍 Explorer Links")
    print("-" * 50)
    print("\n📝 Transaction:")
    print(f"• Solana Explorer: {links['tx']}")
    print(f"• SolanaFM: {links['tx_solanafm']}")
    print("\n🎯 Mint Account:")
    print(f"• Solana Explorer: {links['mint']}")
    print(f"• SolanaFM: {links['mint_solanafm']}")
    print("\n🏦 Token Account:")
    print(f"• Solana Explorer: {links['token_account']}")

    print("\n🔍 Account Verification")
    print("-" * 50)
    client = AsyncClient(deployment['rpcUrl'])
    try:
        await describe_account(client, "Mint account", deployment['mint'])
        await describe_account(client, "Token account", deployment['tokenAccount'])
    finally:
        await client.close()

    print("\n🖼️  Image Verification")
    print("-" * 50)
    image_url = deployment.get('imageUrl') or ''
    check = await MetadataService(IPFSService(config.ipfs)).check_image(image_url)
    if check.reachable:
        print("✅ Image is accessible")
        print(f"   • Content-Type: {check.content_type}")
    else:
        print(f"❌ Image not verified: {check.error or check.outcome}")

    print("\n🎉 Use the explorer links above to view your NFT!")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
