import asyncio
import base64
import json

import aiohttp
import pytest

from minter.config import IPFSSettings
from minter.errors import PublishFailure, ValidationError
from minter.services import metadata_service
from minter.services.ipfs_service import IPFSService
from minter.services.metadata_service import (
    DATA_URI_PREFIX,
    MetadataService,
    load_metadata,
    validate_metadata,
)


GENESIS = {
    "name": "Solayer Genesis #1",
    "symbol": "SLYR1",
    "description": "First NFT on Solayer devnet",
    "image": "https://example.com/genesis.png",
    "attributes": [{"trait_type": "Edition", "value": "Genesis"}],
}


class FakeResponse:
    def __init__(self, status, content_type="image/png", reason="OK"):
        self.status = status
        self.reason = reason
        self.headers = {"Content-Type": content_type}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Replaces aiohttp.ClientSession; head() returns the configured result"""
    result = None
    requested = []

    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def head(self, url, **kwargs):
        FakeSession.requested.append(url)
        if isinstance(FakeSession.result, Exception):
            raise FakeSession.result
        return FakeSession.result


@pytest.fixture
def fake_session(monkeypatch):
    FakeSession.result = FakeResponse(200)
    FakeSession.requested = []
    monkeypatch.setattr(metadata_service.aiohttp, "ClientSession", FakeSession)
    return FakeSession


class StubIPFS:
    def __init__(self, configured=True, error=None):
        self.configured = configured
        self.error = error
        self.uploaded = []

    def upload_json(self, payload):
        self.uploaded.append(payload)
        if self.error:
            raise self.error
        return {"hash": "QmMeta", "url": "https://gateway.pinata.cloud/ipfs/QmMeta"}


def _decode(uri):
    assert uri.startswith(DATA_URI_PREFIX)
    return json.loads(base64.b64decode(uri[len(DATA_URI_PREFIX):]))


def test_validate_names_every_missing_field() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_metadata({"name": "x"})

    assert exc_info.value.missing_fields == ["symbol", "description", "image"]
    assert "symbol, description, image" in str(exc_info.value)


def test_empty_string_counts_as_missing() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_metadata(dict(GENESIS, image=""))

    assert exc_info.value.missing_fields == ["image"]


def test_unknown_fields_are_preserved() -> None:
    metadata = validate_metadata(dict(GENESIS, external_url="https://solayer.org"))

    assert metadata.attributes == GENESIS["attributes"]
    assert metadata.to_dict()["external_url"] == "https://solayer.org"


def test_load_metadata_errors(tmp_path) -> None:
    with pytest.raises(ValidationError, match="not found"):
        load_metadata(str(tmp_path / "missing.json"))

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ValidationError, match="not valid JSON"):
        load_metadata(str(broken))

    array = tmp_path / "array.json"
    array.write_text("[1, 2]")
    with pytest.raises(ValidationError, match="JSON object"):
        load_metadata(str(array))


def test_unconfigured_pinning_falls_back_to_data_uri() -> None:
    service = MetadataService(IPFSService(IPFSSettings()))
    metadata = validate_metadata(GENESIS)

    result = service.create_metadata_uri(metadata)

    assert result.outcome == "recovered"
    assert result.is_fallback
    assert _decode(result.uri) == metadata.to_dict()


def test_pinning_failure_falls_back_to_data_uri() -> None:
    ipfs = StubIPFS(error=PublishFailure("Pinata upload failed (500): boom"))
    service = MetadataService(ipfs)

    result = service.create_metadata_uri(validate_metadata(GENESIS))

    assert len(ipfs.uploaded) == 1
    assert result.outcome == "recovered"
    assert "boom" in result.error
    assert _decode(result.uri)["symbol"] == "SLYR1"


def test_pinned_metadata_uses_gateway_url() -> None:
    service = MetadataService(StubIPFS())

    result = service.create_metadata_uri(validate_metadata(GENESIS))

    assert result.outcome == "succeeded"
    assert result.uri == "https://gateway.pinata.cloud/ipfs/QmMeta"
    assert result.ipfs_hash == "QmMeta"


def test_check_image_skips_non_http(fake_session) -> None:
    service = MetadataService(StubIPFS())

    result = asyncio.run(service.check_image("ipfs://QmImage"))

    assert result.outcome == "skipped"
    assert fake_session.requested == []


def test_check_image_success(fake_session) -> None:
    service = MetadataService(StubIPFS())

    result = asyncio.run(service.check_image(GENESIS["image"]))

    assert result.reachable
    assert result.content_type == "image/png"


def test_check_image_http_error_is_recovered(fake_session) -> None:
    fake_session.result = FakeResponse(404, reason="Not Found")
    service = MetadataService(StubIPFS())

    result = asyncio.run(service.check_image(GENESIS["image"]))

    assert result.outcome == "recovered"
    assert result.status_code == 404


def test_check_image_network_error_is_recovered(fake_session) -> None:
    fake_session.result = aiohttp.ClientConnectionError("dns failure")
    service = MetadataService(StubIPFS())

    metadata, image_check = asyncio.run(service.validate(GENESIS))

    assert metadata.name == GENESIS["name"]
    assert image_check.outcome == "recovered"
    assert "dns failure" in image_check.error


def test_non_string_required_fields_are_rejected() -> None:
    data = dict(GENESIS, image={"uri": "https://example.com/genesis.png"}, symbol=123, description="")

    with pytest.raises(ValidationError) as exc_info:
        validate_metadata(data)

    assert exc_info.value.missing_fields == ["description"]
    assert exc_info.value.invalid_fields == ["symbol", "image"]
    assert "must be strings: symbol, image" in str(exc_info.value)


def test_check_image_skips_non_string(fake_session) -> None:
    service = MetadataService(StubIPFS())

    result = asyncio.run(service.check_image({"uri": "https://example.com/genesis.png"}))

    assert result.outcome == "skipped"
    assert fake_session.requested == []
