#!/usr/bin/env python3
"""
Upload an NFT image to IPFS via Pinata

Usage:
  python upload_to_ipfs.py <image_path>
"""

import sys

from minter.config import load_config
from minter.errors import ConfigurationError, PublishFailure
from minter.logging_setup import setup_logging
from minter.services import IPFSService


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Usage: python upload_to_ipfs.py <image_path>")
        print("Example: python upload_to_ipfs.py assets/my-nft.png")
        return 1

    try:
        config = load_config(require_keypair=False)
        setup_logging(config.debug)
        result = IPFSService(config.ipfs).upload_file(argv[0])
    except (ConfigurationError, PublishFailure) as e:
        print(f"❌ Upload failed: {e}")
        return 1

    print("✅ Image uploaded successfully!")
    print(f"📎 IPFS Hash: {result['hash']}")
    print(f"🔗 Image URL: {result['url']}")

    print("\n🔄 Next steps:")
    print("1. Copy the Image URL above")
    print("2. Edit your metadata file and replace YOUR_IPFS_HASH_HERE")
    print("3. Run: python nft_deployer.py")
    return 0


if __name__ == "__main__":
    sys.exit(main())
