"""
IPFS service for uploading images and metadata to Pinata
"""

import os
import json
import logging
from typing import Optional, Dict

import requests

from ..config import IPFSSettings
from ..errors import PublishFailure


PINATA_FILE_URL = "https://api.pinata.cloud/pinning/pinFileToIPFS"
PINATA_JSON_URL = "https://api.pinata.cloud/pinning/pinJSONToIPFS"
PROJECT_TAG = "solayer-nft"


class IPFSService:
    """Service for handling Pinata uploads"""

    def __init__(self, settings: IPFSSettings, timeout: float = 30):
        """Initialize IPFS service with the Pinata JWT and gateway"""
        self.pinata_jwt = settings.pinata_jwt
        self.gateway = settings.gateway.rstrip('/')
        self.timeout = timeout
        self.logger = logging.getLogger('nft_deployer')

    @property
    def configured(self) -> bool:
        return bool(self.pinata_jwt)

    def gateway_url(self, ipfs_hash: str) -> str:
        return f"{self.gateway}/ipfs/{ipfs_hash}"

    def _headers(self) -> Dict[str, str]:
        if not self.pinata_jwt:
            raise PublishFailure("PINATA_JWT not configured in .env file")
        return {"Authorization": f"Bearer {self.pinata_jwt}"}

    def _pinned(self, response) -> Dict[str, str]:
        """Turn a Pinata response into {hash, url} or raise PublishFailure"""
        if not 200 <= response.status_code < 300:
            raise PublishFailure(f"Pinata upload failed ({response.status_code}): {response.text}")
        try:
            ipfs_hash = response.json()['IpfsHash']
        except (ValueError, KeyError) as e:
            raise PublishFailure(f"Unexpected Pinata response: {e}") from e
        return {"hash": ipfs_hash, "url": self.gateway_url(ipfs_hash)}

    def upload_file(self, file_path: str, name: Optional[str] = None) -> Dict[str, str]:
        """Upload a local file (multipart) and return {hash, url}"""
        headers = self._headers()
        if not os.path.exists(file_path):
            raise PublishFailure(f"Image file not found: {file_path}")

        file_name = name or os.path.basename(file_path)
        pinata_metadata = {
            "name": file_name,
            "keyvalues": {"project": PROJECT_TAG, "type": "image"},
        }

        print("📤 Uploading image to IPFS via Pinata...")
        try:
            with open(file_path, 'rb') as f:
                response = requests.post(
                    PINATA_FILE_URL,
                    files={'file': (file_name, f)},
                    data={'pinataMetadata': json.dumps(pinata_metadata)},
                    headers=headers,
                    timeout=self.timeout,
                )
        except requests.RequestException as e:
            raise PublishFailure(f"Failed to upload to Pinata: {e}") from e

        result = self._pinned(response)
        self.logger.info(f"Image uploaded to IPFS: {result['hash']}")
        return result

    def upload_json(self, metadata: Dict) -> Dict[str, str]:
        """Upload metadata JSON and return {hash, url}"""
        headers = self._headers()
        body = {
            "pinataContent": metadata,
            "pinataMetadata": {
                "name": f"{metadata.get('name', 'NFT')} Metadata",
                "keyvalues": {"project": PROJECT_TAG, "type": "metadata"},
            },
        }

        print("📤 Uploading metadata to IPFS via Pinata...")
        try:
            response = requests.post(PINATA_JSON_URL, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise PublishFailure(f"Failed to upload metadata to Pinata: {e}") from e

        result = self._pinned(response)
        self.logger.info(f"Metadata uploaded to IPFS: {result['hash']}")
        return result
