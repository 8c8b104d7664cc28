"""Tests for IPFS gateway helpers and the Pinata client."""

import json
from unittest.mock import patch

import pytest
import requests

from conftest import make_response
from MODRED.core.exceptions import ConfigError, PinningError
from MODRED.services.ipfs import (
    PinataClient,
    build_nft_metadata,
    extract_ipfs_hash,
    get_ipfs_gateway_url,
    parse_metadata,
    public_media_url,
)

GATEWAY = "https://gateway.pinata.cloud"


class TestGateway:

    @pytest.mark.parametrize("url,expected", [
        ("ipfs://Qm123", f"{GATEWAY}/ipfs/Qm123"),
        ("https://ipfs.io/ipfs/Qm123/file.png", f"{GATEWAY}/ipfs/Qm123/file.png"),
        ("https://example.com/image.png", "https://example.com/image.png"),
        ("", ""),
    ])
    def test_gateway_url(self, url, expected):
        assert get_ipfs_gateway_url(url, gateway=GATEWAY) == expected

    def test_extract_hash(self):
        assert extract_ipfs_hash("ipfs://bafk") == "bafk"
        assert extract_ipfs_hash("bafk") == "bafk"

    def test_public_media_url(self):
        assert public_media_url("ipfs://bafk") == "https://ipfs.io/ipfs/bafk"

    def test_parse_inline_json(self):
        assert parse_metadata('{"name": "Song", "description": "Demo"}') == {
            "name": "Song", "description": "Demo"
        }

    def test_parse_remote_metadata(self):
        with patch("MODRED.services.ipfs.gateway.requests.get") as mock_get:
            mock_get.return_value = make_response(200, {"name": "Remote"})
            result = parse_metadata("ipfs://QmMeta")

        assert result == {"name": "Remote"}
        assert mock_get.call_args[0][0].endswith("/ipfs/QmMeta")

    def test_parse_failure_returns_placeholder(self):
        with patch("MODRED.services.ipfs.gateway.requests.get") as mock_get:
            mock_get.side_effect = requests.ConnectionError("down")
            result = parse_metadata("ipfs://QmMeta")

        assert result == {"name": "Unknown", "description": "No description available"}

    def test_parse_garbage_returns_placeholder(self):
        assert parse_metadata("{not json")["name"] == "Unknown"
        assert parse_metadata("")["name"] == "Unknown"

    def test_build_nft_metadata(self):
        metadata = build_nft_metadata("ipfs://bafk", "Song", "", True)

        assert metadata["name"] == "Song"
        assert metadata["image"] == "ipfs://bafk"
        assert metadata["description"] == "No description provided"
        assert metadata["properties"]["isEncrypted"] is True
        assert metadata["properties"]["ipHash"] == "ipfs://bafk"

    def test_build_nft_metadata_unnamed(self):
        metadata = build_nft_metadata("ipfs://bafk", None, None, False)
        assert metadata["name"].startswith("IP Asset #")
        assert metadata["properties"]["name"] == "Unnamed"


class TestPinataClient:

    def make_client(self, session, **kwargs):
        return PinataClient(
            jwt="jwt-token",
            api_url="https://api.pinata.cloud",
            retry_delay=0,
            session=session,
            **kwargs
        )

    def test_requires_jwt(self):
        with patch("MODRED.services.ipfs.pinata_client.settings") as mock_settings:
            mock_settings.pinata_jwt = None
            mock_settings.pinata_api_key = None
            mock_settings.pinata_secret_key = None
            with pytest.raises(ConfigError):
                PinataClient()

    def test_api_key_pair_headers(self, session):
        session.post.return_value = make_response(200, {"IpfsHash": "bafkjson"})
        with patch("MODRED.services.ipfs.pinata_client.settings") as mock_settings:
            mock_settings.pinata_jwt = None
            client = PinataClient(
                api_key="key", secret_key="secret", api_url="https://api.pinata.cloud",
                max_retries=1, retry_delay=0, timeout=5, session=session
            )

        client.pin_json({"name": "Song"}, name="Song.json")

        assert session.post.call_args[1]["headers"] == {
            "pinata_api_key": "key",
            "pinata_secret_api_key": "secret",
        }

    def test_pin_file(self, session):
        session.post.return_value = make_response(200, {"IpfsHash": "bafkfile", "PinSize": 11})
        client = self.make_client(session)

        result = client.pin_file(b"hello world", "song.mp3")

        assert result["cid"] == "bafkfile"
        assert result["uri"] == "ipfs://bafkfile"
        assert result["size"] == 11
        assert len(result["content_hash"]) == 64

        args, kwargs = session.post.call_args
        assert args[0] == "https://api.pinata.cloud/pinning/pinFileToIPFS"
        assert kwargs["headers"] == {"Authorization": "Bearer jwt-token"}
        filename, data, content_type = kwargs["files"]["file"]
        assert (filename, data, content_type) == ("song.mp3", b"hello world", "audio/mpeg")

        pin_metadata = json.loads(kwargs["data"]["pinataMetadata"])
        assert pin_metadata["name"] == "song.mp3"
        assert pin_metadata["keyvalues"]["uploadedBy"] == "ModredIP"
        assert pin_metadata["keyvalues"]["fileSize"] == "11"

    def test_pin_json(self, session):
        session.post.return_value = make_response(200, {"IpfsHash": "bafkjson"})
        client = self.make_client(session)

        result = client.pin_json({"name": "Song"}, name="Song.json")

        assert result["uri"] == "ipfs://bafkjson"
        kwargs = session.post.call_args[1]
        assert kwargs["json"] == {
            "pinataContent": {"name": "Song"},
            "pinataMetadata": {"name": "Song.json"},
        }

    def test_retries_transient_errors(self, session):
        session.post.side_effect = [
            requests.ConnectionError("reset"),
            make_response(502, text="bad gateway"),
            make_response(200, {"IpfsHash": "bafkretry"}),
        ]
        client = self.make_client(session, max_retries=3)

        with patch("MODRED.services.ipfs.pinata_client.time.sleep") as mock_sleep:
            result = client.pin_json({"a": 1})

        assert result["cid"] == "bafkretry"
        assert session.post.call_count == 3
        assert mock_sleep.call_count == 2

    def test_permanent_error_not_retried(self, session):
        session.post.return_value = make_response(401, text="unauthorized")
        client = self.make_client(session, max_retries=3)

        with pytest.raises(PinningError) as exc_info:
            client.pin_json({"a": 1})

        assert session.post.call_count == 1
        assert "401" in exc_info.value.message

    def test_retries_exhausted(self, session):
        session.post.side_effect = requests.Timeout("slow")
        client = self.make_client(session, max_retries=2)

        with patch("MODRED.services.ipfs.pinata_client.time.sleep"):
            with pytest.raises(PinningError):
                client.pin_file(b"x", "a.txt")

        assert session.post.call_count == 2
