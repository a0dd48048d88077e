#!/usr/bin/env python3
"""
Prepare a local environment for NFT deployment
- validates configuration
- creates a keypair if none exists
- shows the balance and requests a devnet airdrop when empty
- writes a sample metadata file
"""

import asyncio
import json
import os
import sys

from solana.constants import LAMPORTS_PER_SOL
from solders.keypair import Keypair

from minter.config import Config, load_config
from minter.errors import ConfigurationError
from minter.logging_setup import setup_logging
from minter.services import SolanaService
from minter.services.solana_service import load_keypair

AIRDROP_SOL = 1

SAMPLE_METADATA = {
    "name": "My First Solayer NFT",
    "symbol": "SLYR1",
    "description": "My first NFT deployed on Solayer devnet using secure deployment",
    "image": "https://gateway.pinata.cloud/ipfs/YOUR_IPFS_HASH_HERE",
    "attributes": [
        {"trait_type": "Network", "value": "Solayer Devnet"},
        {"trait_type": "Deployment", "value": "Secure"},
        {"trait_type": "Storage", "value": "IPFS"},
    ],
}


def ensure_keypair(path: str) -> Keypair:
    """Load the keypair at path, generating a new one if the file is missing"""
    if not os.path.exists(path):
        print("🔑 No keypair found. Generating new keypair...")
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        keypair = Keypair()
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(list(bytes(keypair)), f)
        os.chmod(path, 0o600)
        print(f"✅ Keypair written to {path}")
        return keypair

    return load_keypair(path)


def create_sample_metadata(path: str) -> bool:
    """Write the sample metadata file unless one exists; True if created"""
    if os.path.exists(path):
        print("✅ Metadata file already exists")
        return False

    print("📄 Creating sample metadata file...")
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(SAMPLE_METADATA, f, indent=2)
    print(f"✅ Sample metadata created at: {path}")
    print("⚠️  Remember to replace YOUR_IPFS_HASH_HERE with your actual IPFS hash")
    return True


async def check_balance(config: Config, keypair: Keypair):
    """Show the balance and request an airdrop if the wallet is empty"""
    service = SolanaService.connect(config.solana.rpc_url, keypair, commitment=config.solana.commitment)
    try:
        balance = await service.get_balance_sol()
        print(f"💰 Current balance: {balance} SOL")

        if balance == 0:
            print("🪂 Requesting airdrop...")
            await service.client.request_airdrop(keypair.pubkey(), AIRDROP_SOL * LAMPORTS_PER_SOL)
            await asyncio.sleep(3)
            print(f"💰 New balance: {await service.get_balance_sol()} SOL")
    except Exception as e:
        print(f"❌ Failed to check balance: {e}")
    finally:
        await service.close()


async def main() -> int:
    print("🚀 Setting up Solayer NFT deployment environment...\n")

    try:
        config = load_config(require_keypair=False)
        setup_logging(config.debug)
        config.display()
        print("")

        keypair = ensure_keypair(config.solana.keypair_path)
        print(f"✅ Wallet address: {keypair.pubkey()}")
    except ConfigurationError as e:
        print(f"❌ Setup failed: {e}")
        return 1

    await check_balance(config, keypair)
    create_sample_metadata(config.default_metadata_file)

    print("\n🎉 Setup complete! Next steps:")
    print("1. Upload your image to IPFS: python upload_to_ipfs.py <image_path>")
    print(f"2. Edit {config.default_metadata_file} with your IPFS hash")
    print("3. Run: python nft_deployer.py")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
