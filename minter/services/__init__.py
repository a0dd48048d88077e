from .ipfs_service import IPFSService
from .metadata_service import MetadataService
from .solana_service import SolanaService, PreparedMint

__all__ = ['IPFSService', 'MetadataService', 'SolanaService', 'PreparedMint']
