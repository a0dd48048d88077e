#!/usr/bin/env python3
"""
Solayer NFT Deployer
Mints a single NFT (0-decimal SPL token, supply 1) from a metadata file and
records every step in the deployment index.

Usage:
- Set up your .env file with SOLANA_RPC_URL, SOLANA_KEYPAIR_PATH, etc.
- Run: python nft_deployer.py [metadata_file]
"""

import asyncio
import logging
import sys
import time
from typing import Dict, List, Optional

from solders.keypair import Keypair

from minter.config import Config, load_config
from minter.database import DeploymentLedger
from minter.errors import ConfigurationError, DeploymentError
from minter.logging_setup import setup_logging
from minter.models import (
    STEP_METADATA_PREPARED,
    STEP_TRANSACTION_SENT,
    STEP_NFT_DEPLOYED,
    STEP_DEPLOYMENT_FAILED,
)
from minter.services import IPFSService, MetadataService, SolanaService
from minter.services.metadata_service import load_metadata
from minter.services.solana_service import load_keypair, explorer_link

# Longer URIs (data URIs) are shortened in the metadata_prepared record
MAX_LOGGED_URI_LENGTH = 100


def shorten_uri(uri: str) -> str:
    if len(uri) > MAX_LOGGED_URI_LENGTH:
        return uri[:MAX_LOGGED_URI_LENGTH] + '...'
    return uri


class NFTDeployer:
    """Runs one NFT deployment from metadata file to confirmed mint"""

    def __init__(self, config: Config,
                 solana_service: Optional[SolanaService] = None,
                 metadata_service: Optional[MetadataService] = None,
                 ledger: Optional[DeploymentLedger] = None):
        self.config = config
        self.logger = logging.getLogger('nft_deployer')
        self.solana = solana_service
        self.metadata_service = metadata_service or MetadataService(IPFSService(config.ipfs))
        self.ledger = ledger or DeploymentLedger(config.deployment_index)

    def initialize(self):
        """Load the payer keypair and create the RPC client"""
        if self.solana is None:
            payer = load_keypair(self.config.solana.keypair_path)
            self.solana = SolanaService.connect(
                self.config.solana.rpc_url,
                payer,
                commitment=self.config.solana.commitment,
            )

        print("✅ NFT Deployer initialized")
        print(f"📍 Wallet: {self.solana.payer.pubkey()}")
        print(f"🌐 Network: {self.config.solana.network}")

    async def close(self):
        if self.solana is not None:
            await self.solana.close()

    async def deploy_nft(self, metadata_file: str) -> Dict:
        """Validate, publish, mint and confirm; returns the nft_deployed record"""
        if self.solana is None:
            raise DeploymentError("Deployer not initialized, call initialize() first")

        start_time = time.monotonic()

        try:
            print("🚀 Starting NFT deployment...")
            print(f"📄 Metadata file: {metadata_file}")

            raw_metadata = load_metadata(metadata_file)
            print(f"📋 NFT Name: \"{raw_metadata.get('name')}\"")
            print(f"🎨 Symbol: \"{raw_metadata.get('symbol')}\"")

            metadata, _ = await self.metadata_service.validate(raw_metadata)
            await self.solana.check_prerequisites()

            # Pinata uploads use blocking requests
            published = await asyncio.to_thread(self.metadata_service.create_metadata_uri, metadata)
            metadata_uri = published.uri
            self.ledger.append({
                'step': STEP_METADATA_PREPARED,
                'metadata': metadata.to_dict(),
                'metadataUri': shorten_uri(metadata_uri),
            })

            # Only the public key of the mint identity outlives this call
            mint_keypair = Keypair()
            mint_address = str(mint_keypair.pubkey())
            print(f"🎯 Generated mint address: {mint_address}")

            prepared = await self.solana.build_mint_transaction(mint_keypair)
            del mint_keypair

            signature = await self.solana.send_transaction(prepared.transaction)
            self.ledger.append({
                'step': STEP_TRANSACTION_SENT,
                'signature': signature,
                'mint': mint_address,
            })

            status = await self.solana.confirm_transaction(signature)
            deployment_time_ms = int((time.monotonic() - start_time) * 1000)

            rpc_url = self.config.solana.rpc_url
            deployment_data = {
                'step': STEP_NFT_DEPLOYED,
                'success': True,
                'mint': mint_address,
                'tokenAccount': str(prepared.token_account),
                'signature': signature,
                'metadata': metadata.to_dict(),
                'metadataUri': metadata_uri,
                'imageUrl': metadata.image,
                'network': self.config.solana.network,
                'rpcUrl': rpc_url,
                'deploymentTimeMs': deployment_time_ms,
                'status': status.to_dict(),
                'explorer': explorer_link('tx', signature, rpc_url),
            }
            record = self.ledger.append(deployment_data)

            print("\n🎉 NFT Successfully Deployed!")
            print("=" * 50)
            print(f"🎯 Mint Address: {mint_address}")
            print(f"🏦 Token Account: {prepared.token_account}")
            print(f"🖼️ Image URL: {metadata.image}")
            print(f"📝 Transaction: {signature}")
            print(f"⏱️ Deployment Time: {deployment_time_ms / 1000:.2f}s")
            print(f"🔍 Explorer: {deployment_data['explorer']}")
            print(f"📊 Full details: {self.config.deployment_index}")

            return record

        except Exception as e:
            deployment_time_ms = int((time.monotonic() - start_time) * 1000)
            print(f"❌ Deployment failed: {e}")
            self.logger.error(f"Deployment failed ({type(e).__name__}): {e}")

            try:
                self.ledger.append({
                    'step': STEP_DEPLOYMENT_FAILED,
                    'error': str(e),
                    'errorType': type(e).__name__,
                    'metadataFile': metadata_file,
                    'deploymentTimeMs': deployment_time_ms,
                })
            except (OSError, ValueError) as ledger_error:
                # The deployment error is what the caller needs to see
                self.logger.error(f"Could not record failed deployment: {ledger_error}")
            raise


async def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the process exit code"""
    argv = sys.argv[1:] if argv is None else argv
    print("🚀 Solayer NFT Deployment Tool\n")

    deployer = None
    try:
        config = load_config()
        setup_logging(config.debug)
        print("✅ Configuration validated")

        metadata_file = argv[0] if argv else config.default_metadata_file
        deployer = NFTDeployer(config)
        deployer.initialize()
        await deployer.deploy_nft(metadata_file)
        return 0

    except ConfigurationError as e:
        print(f"\n❌ CONFIGURATION ERROR: {e}")
        print("   Please ensure you have a .env file with all required variables.")
        return 1

    except Exception as e:
        print(f"\n❌ Deployment failed: {e}")
        print("\n💡 Troubleshooting tips:")
        print("1. Check your .env file configuration")
        print("2. Ensure you have sufficient SOL balance")
        print("3. Verify your metadata file is valid JSON")
        print("4. Check network connectivity")
        return 1

    finally:
        if deployer is not None:
            await deployer.close()


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
