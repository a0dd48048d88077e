"""
Metadata loading, validation and publishing
"""

import asyncio
import base64
import json
import logging
import os
from typing import Dict, Optional, Tuple

import aiohttp

from ..errors import ValidationError, PublishFailure
from ..models import NFTMetadata, PublishResult, ImageCheckResult, REQUIRED_METADATA_FIELDS
from .ipfs_service import IPFSService


DATA_URI_PREFIX = "data:application/json;base64,"


def to_data_uri(metadata: Dict) -> str:
    """Encode metadata as a self-contained base64 JSON data URI"""
    encoded = base64.b64encode(json.dumps(metadata).encode('utf-8')).decode('ascii')
    return f"{DATA_URI_PREFIX}{encoded}"


def load_metadata(path: str) -> Dict:
    """Read a metadata JSON object from disk"""
    if not os.path.exists(path):
        raise ValidationError(f"Metadata file not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Metadata file is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Metadata file must contain a JSON object")
    return data


def validate_metadata(data: Dict) -> NFTMetadata:
    """Check required fields, naming every one that is missing or not text"""
    missing = [name for name in REQUIRED_METADATA_FIELDS if not data.get(name)]
    invalid = [
        name for name in REQUIRED_METADATA_FIELDS
        if name not in missing and not isinstance(data[name], str)
    ]
    if missing or invalid:
        problems = []
        if missing:
            problems.append(f"Missing required metadata fields: {', '.join(missing)}")
        if invalid:
            problems.append(f"Metadata fields must be strings: {', '.join(invalid)}")
        raise ValidationError(
            "; ".join(problems),
            missing_fields=missing,
            invalid_fields=invalid,
        )
    return NFTMetadata.from_dict(data)


class MetadataService:
    """Validates NFT metadata and turns it into a URI"""

    def __init__(self, ipfs_service: IPFSService, image_timeout: float = 10):
        self.ipfs_service = ipfs_service
        self.image_timeout = image_timeout
        self.logger = logging.getLogger('nft_deployer')

    async def check_image(self, image_url: str) -> ImageCheckResult:
        """Best-effort HEAD request against the image URL (never raises)"""
        if not isinstance(image_url, str) or not image_url.startswith(('http://', 'https://')):
            return ImageCheckResult(url=str(image_url), outcome="skipped")

        print("🖼️ Verifying image accessibility...")
        try:
            timeout = aiohttp.ClientTimeout(total=self.image_timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.head(image_url, allow_redirects=True) as response:
                    content_type = response.headers.get('Content-Type')
                    if not 200 <= response.status < 300:
                        message = f"Image not accessible: {response.status} {response.reason}"
                        self.logger.warning(f"Could not verify image: {message}")
                        return ImageCheckResult(
                            url=image_url, outcome="recovered",
                            status_code=response.status, error=message,
                        )

                    print(f"✅ Image verified: {content_type}")
                    return ImageCheckResult(
                        url=image_url, outcome="succeeded",
                        status_code=response.status, content_type=content_type,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            self.logger.warning(f"Could not verify image: {e}")
            return ImageCheckResult(url=image_url, outcome="recovered", error=str(e) or type(e).__name__)

    async def validate(self, data: Dict) -> Tuple[NFTMetadata, ImageCheckResult]:
        """Validate required fields, then check the image without blocking on it"""
        print("🔍 Validating metadata...")
        metadata = validate_metadata(data)
        image_check = await self.check_image(metadata.image)
        print("✅ Metadata validation passed")
        return metadata, image_check

    def create_metadata_uri(self, metadata: NFTMetadata) -> PublishResult:
        """Pin metadata to IPFS when configured, otherwise embed it as a data URI"""
        print("📤 Creating metadata URI...")
        payload = metadata.to_dict()
        error: Optional[str] = None

        if self.ipfs_service.configured:
            try:
                pinned = self.ipfs_service.upload_json(payload)
                print(f"🔗 Metadata URL: {pinned['url']}")
                return PublishResult(uri=pinned['url'], outcome="succeeded", ipfs_hash=pinned['hash'])
            except PublishFailure as e:
                error = str(e)
                self.logger.warning(f"IPFS upload failed: {e}")
                print("📋 Falling back to data URI...")
        else:
            error = "Pinata not configured"

        print("📋 Using data URI for metadata")
        return PublishResult(uri=to_data_uri(payload), outcome="recovered", error=error)
