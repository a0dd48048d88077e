"""
Configuration loading for the NFT deployer

Values come from the environment (optionally a .env file). The resulting
Config is immutable and passed explicitly to every component.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError


REQUIRED_ENV_VARS = ('SOLANA_RPC_URL', 'SOLANA_KEYPAIR_PATH')
VALID_COMMITMENTS = ('processed', 'confirmed', 'finalized')

DEFAULT_NETWORK = 'devnet'
DEFAULT_COMMITMENT = 'confirmed'
DEFAULT_API_PORT = 3000
DEFAULT_PINATA_GATEWAY = 'https://gateway.pinata.cloud'
DEFAULT_METADATA_FILE = 'assets/nft-metadata.json'
DEFAULT_DEPLOYMENT_INDEX = 'deployment-index.json'


def expand_path(filepath: str) -> str:
    """Expand a leading ~ to the user's home directory"""
    return os.path.expanduser(filepath)


@dataclass(frozen=True)
class SolanaSettings:
    rpc_url: str
    keypair_path: str
    network: str = DEFAULT_NETWORK
    commitment: str = DEFAULT_COMMITMENT


@dataclass(frozen=True)
class IPFSSettings:
    pinata_jwt: Optional[str] = None
    gateway: str = DEFAULT_PINATA_GATEWAY

    @property
    def configured(self) -> bool:
        return bool(self.pinata_jwt)


@dataclass(frozen=True)
class APISettings:
    port: int = DEFAULT_API_PORT
    app_env: str = 'development'

    @property
    def is_development(self) -> bool:
        return self.app_env == 'development'


@dataclass(frozen=True)
class Config:
    """Immutable deployer configuration"""
    solana: SolanaSettings
    ipfs: IPFSSettings = field(default_factory=IPFSSettings)
    api: APISettings = field(default_factory=APISettings)
    default_metadata_file: str = DEFAULT_METADATA_FILE
    deployment_index: str = DEFAULT_DEPLOYMENT_INDEX
    debug: bool = False

    def display(self):
        """Print configuration without sensitive data"""
        print("📋 Configuration:")
        print(f"   Network: {self.solana.network}")
        print(f"   RPC URL: {self.solana.rpc_url}")
        print(f"   Keypair: {self.solana.keypair_path}")
        print(f"   Commitment: {self.solana.commitment}")
        print(f"   API Port: {self.api.port}")
        print(f"   IPFS Configured: {'Yes' if self.ipfs.configured else 'No'}")
        print(f"   Deployment Index: {self.deployment_index}")


def load_config(env: Optional[Mapping[str, str]] = None, require_keypair: bool = True) -> Config:
    """Build a Config from environment variables

    Args:
        env: Mapping to read from. Defaults to os.environ after loading .env.
        require_keypair: Check that the keypair file exists.

    Raises:
        ConfigurationError: If required variables are missing or invalid.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    missing = [var for var in REQUIRED_ENV_VARS if not env.get(var)]
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    keypair_path = expand_path(env['SOLANA_KEYPAIR_PATH'])
    if require_keypair and not os.path.exists(keypair_path):
        raise ConfigurationError(f"Solana keypair not found at: {keypair_path}")

    commitment = env.get('SOLANA_COMMITMENT', DEFAULT_COMMITMENT).lower()
    if commitment not in VALID_COMMITMENTS:
        raise ConfigurationError(
            f"Invalid SOLANA_COMMITMENT '{commitment}', expected one of {', '.join(VALID_COMMITMENTS)}"
        )

    try:
        port = int(env.get('PORT') or DEFAULT_API_PORT)
    except ValueError:
        raise ConfigurationError(f"Invalid PORT: {env.get('PORT')}")

    return Config(
        solana=SolanaSettings(
            rpc_url=env['SOLANA_RPC_URL'],
            keypair_path=keypair_path,
            network=env.get('NETWORK') or DEFAULT_NETWORK,
            commitment=commitment,
        ),
        ipfs=IPFSSettings(
            pinata_jwt=env.get('PINATA_JWT') or None,
            gateway=(env.get('PINATA_GATEWAY') or DEFAULT_PINATA_GATEWAY).rstrip('/'),
        ),
        api=APISettings(
            port=port,
            app_env=env.get('APP_ENV') or 'development',
        ),
        default_metadata_file=env.get('DEFAULT_METADATA_FILE') or DEFAULT_METADATA_FILE,
        deployment_index=env.get('DEPLOYMENT_INDEX') or DEFAULT_DEPLOYMENT_INDEX,
        debug=env.get('DEBUG', 'false').lower() == 'true',
    )
