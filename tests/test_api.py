"""Tests for the FastAPI backend routes with mocked services."""

import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from web3.exceptions import ContractLogicError

from conftest import CONTRACT, TX_HASH, tx_result
from MODRED.core import cors
from MODRED.core.exceptions import ChainError, PinningError, ValidationError, YakoaError
from MODRED.core.settings import Settings
from MODRED.microservices import api

REGISTER_BODY = {
    "ipHash": "ipfs://bafk",
    "metadata": json.dumps({"name": "Song"}),
    "isEncrypted": False,
    "modredIpContractAddress": CONTRACT,
}

LICENSE_BODY = {
    "tokenId": 1,
    "royaltyPercentage": 10,
    "duration": 86400,
    "commercialUse": True,
    "terms": "{}",
    "modredIpContractAddress": CONTRACT,
}


@pytest.fixture
def services(monkeypatch):
    """Replace the startup-initialised services with mocks."""
    mocks = {
        "chain_client": MagicMock(),
        "yakoa_client": MagicMock(),
        "yakoa_registrar": MagicMock(),
        "pinata_client": MagicMock(),
        "registration_service": MagicMock(),
        "license_service": MagicMock(),
        "royalty_service": MagicMock(),
    }
    for name, mock in mocks.items():
        monkeypatch.setattr(api, name, mock)
    return mocks


@pytest.fixture
def client(services):
    return TestClient(api.app, raise_server_exceptions=False)


class TestHealth:

    def test_root(self, client):
        data = client.get("/").json()
        assert data["message"] == "ModredIP Backend API"
        assert data["endpoints"]["register"] == "/api/register"

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["environment"] == api.settings.node_env
        assert data["uptime"] >= 0
        assert data["services"]["chain_client"] == "initialized"

    def test_cors_test_echoes_origin(self, client):
        response = client.get("/api/cors-test", headers={"Origin": "http://localhost:5173"})
        assert response.json()["origin"] == "http://localhost:5173"

    def test_blocked_origin_is_logged(self, client, monkeypatch):
        cors_logger = MagicMock()
        monkeypatch.setattr(cors, "logger", cors_logger)
        monkeypatch.setattr(cors, "default_settings", Settings(_env_file=None, node_env="production"))

        client.get("/health", headers={"Origin": "https://evil.example.com"})
        client.get("/health", headers={"Origin": "http://localhost:5173"})

        cors_logger.warning.assert_called_once_with("CORS blocked origin: https://evil.example.com")

    def test_unknown_route(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found", "message": "Route /api/nope not found"}

    def test_unhandled_error(self, client, services):
        services["registration_service"].register.side_effect = RuntimeError("boom")

        response = client.post("/api/register", json=REGISTER_BODY)

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"


class TestRegister:

    def test_success(self, client, services):
        services["registration_service"].register.return_value = {
            "message": "IP Asset successfully registered on Etherlink and Yakoa",
            "etherlink": {"txHash": TX_HASH, "ipAssetId": 57, "blockNumber": 2 ** 60},
            "yakoa": {"id": f"{CONTRACT}:57"},
        }

        response = client.post("/api/register", json=REGISTER_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["etherlink"]["ipAssetId"] == 57
        assert data["etherlink"]["blockNumber"] == str(2 ** 60)
        services["registration_service"].register.assert_called_once_with(
            ip_hash="ipfs://bafk",
            metadata=REGISTER_BODY["metadata"],
            is_encrypted=False,
            contract_address=CONTRACT,
        )

    @pytest.mark.parametrize("missing", ["ipHash", "metadata", "isEncrypted", "modredIpContractAddress"])
    def test_missing_parameters(self, client, services, missing):
        body = {k: v for k, v in REGISTER_BODY.items() if k != missing}

        response = client.post("/api/register", json=body)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Missing required parameters: ipHash, metadata, isEncrypted, modredIpContractAddress"
        }
        services["registration_service"].register.assert_not_called()

    def test_empty_hash_rejected(self, client):
        response = client.post("/api/register", json={**REGISTER_BODY, "ipHash": ""})
        assert response.status_code == 400

    def test_chain_failure(self, client, services):
        services["registration_service"].register.side_effect = ChainError("registerIP reverted")

        response = client.post("/api/register", json=REGISTER_BODY)

        assert response.status_code == 500
        assert response.json() == {"error": "Registration failed", "details": "registerIP reverted"}

    def test_yakoa_failure(self, client, services):
        services["registration_service"].register.side_effect = YakoaError(
            "Yakoa API error: 500", status_code=500, response={"detail": "upstream"}
        )

        response = client.post("/api/register", json=REGISTER_BODY)

        assert response.status_code == 500
        assert response.json() == {"error": "Registration failed", "details": "Yakoa API error: 500"}

    def test_invalid_address(self, client, services):
        services["registration_service"].register.side_effect = ValidationError("Invalid contract address: x")

        response = client.post("/api/register", json=REGISTER_BODY)

        assert response.status_code == 400

    def test_service_not_initialized(self, client, monkeypatch):
        monkeypatch.setattr(api, "registration_service", None)

        response = client.post("/api/register", json=REGISTER_BODY)

        assert response.status_code == 503


class TestLicense:

    @pytest.mark.parametrize("path", ["/api/license", "/api/license/mint"])
    def test_mint(self, client, services, path):
        services["license_service"].mint.return_value = {
            "success": True,
            **tx_result(),
            "message": "License minted successfully on Etherlink",
        }

        response = client.post(path, json=LICENSE_BODY)

        assert response.status_code == 200
        assert response.json() == {
            "message": "License minted successfully on Etherlink",
            "data": {
                "txHash": TX_HASH,
                "blockNumber": 5177789,
                "explorerUrl": f"https://testnet.explorer.etherlink.com/tx/{TX_HASH}",
            },
        }

    def test_mint_failure(self, client, services):
        services["license_service"].mint.return_value = {
            "success": False,
            "error": "mintLicense reverted",
            "message": "Failed to mint license on Etherlink",
        }

        response = client.post("/api/license/mint", json=LICENSE_BODY)

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to mint license on Etherlink",
            "details": "mintLicense reverted",
        }

    def test_missing_parameters(self, client):
        body = {**LICENSE_BODY, "tokenId": 0}

        response = client.post("/api/license/mint", json=body)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Missing required parameters: tokenId, royaltyPercentage")


class TestRoyalty:

    def test_pay(self, client, services):
        services["royalty_service"].pay.return_value = {
            "message": "Revenue paid successfully",
            "data": tx_result(amountWei=10 ** 18),
        }

        response = client.post("/api/royalty/pay", json={"tokenId": 1, "amount": "1"})

        assert response.status_code == 200
        assert response.json()["data"]["amountWei"] == str(10 ** 18)
        services["royalty_service"].pay.assert_called_once_with(1, "1", None)

    def test_pay_invalid_amount(self, client, services):
        services["royalty_service"].pay.side_effect = ValidationError(
            "Payment amount must be greater than zero"
        )

        response = client.post("/api/royalty/pay", json={"tokenId": 1, "amount": 0})

        assert response.status_code == 400
        assert response.json()["error"] == "Payment amount must be greater than zero"

    def test_claim_failure(self, client, services):
        services["royalty_service"].claim.side_effect = ChainError("claimRoyalties reverted")

        response = client.post("/api/royalty/claim", json={"tokenId": 1})

        assert response.status_code == 500
        assert response.json()["error"] == "Royalty claim failed"


class TestAssets:

    ASSET = {
        "tokenId": 1,
        "owner": "0x" + "a1" * 20,
        "ipHash": "ipfs://bafk",
        "metadata": '{"name": "Song"}',
        "totalRevenue": 10 ** 18,
    }

    def test_list_assets(self, client, services):
        services["chain_client"].list_ip_assets.return_value = [self.ASSET]

        data = client.get("/api/assets").json()

        assert data["count"] == 1
        asset = data["assets"][0]
        assert asset["parsedMetadata"] == {"name": "Song"}
        assert asset["gatewayUrl"].endswith("/ipfs/bafk")
        assert asset["totalRevenue"] == str(10 ** 18)

    def test_asset_not_found(self, client, services):
        services["chain_client"].get_ip_asset.side_effect = ContractLogicError("execution reverted")

        response = client.get("/api/assets/99")

        assert response.status_code == 404

    def test_list_licenses_with_contract(self, client, services):
        services["chain_client"].list_licenses.return_value = [{"licenseId": 1}]

        data = client.get("/api/licenses", params={"contractAddress": CONTRACT}).json()

        assert data == {"licenses": [{"licenseId": 1}], "count": 1}
        services["chain_client"].list_licenses.assert_called_once_with(CONTRACT)

    def test_get_license(self, client, services):
        services["chain_client"].get_license.return_value = {"licenseId": 2, "tokenId": 1}
        assert client.get("/api/licenses/2").json()["licenseId"] == 2

    def test_read_failure(self, client, services):
        services["chain_client"].list_ip_assets.side_effect = ChainError("rpc down")
        assert client.get("/api/assets").status_code == 500


class TestIpfs:

    def test_upload(self, client, services):
        services["pinata_client"].pin_file.return_value = {
            "cid": "bafkfile", "uri": "ipfs://bafkfile", "size": 5, "content_hash": "x"
        }

        response = client.post(
            "/api/ipfs/upload",
            files={"file": ("song.mp3", b"audio", "audio/mpeg")}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["cid"] == "bafkfile"
        assert data["url"] == "ipfs://bafkfile"
        assert data["gatewayUrl"].endswith("/ipfs/bafkfile")
        services["pinata_client"].pin_file.assert_called_once_with(b"audio", "song.mp3", "audio/mpeg")

    def test_upload_failure(self, client, services):
        services["pinata_client"].pin_file.side_effect = PinningError("Pinata upload failed: 401")

        response = client.post("/api/ipfs/upload", files={"file": ("a.txt", b"x", "text/plain")})

        assert response.status_code == 502

    def test_upload_runs_off_event_loop(self, client, services):
        seen = []

        def pin_file(data, filename, content_type):
            try:
                asyncio.get_running_loop()
                seen.append("event loop")
            except RuntimeError:
                seen.append("worker thread")
            return {"cid": "bafk", "uri": "ipfs://bafk"}

        services["pinata_client"].pin_file.side_effect = pin_file

        response = client.post("/api/ipfs/upload", files={"file": ("a.txt", b"x", "text/plain")})

        assert response.status_code == 200
        assert seen == ["worker thread"]

    def test_upload_disabled_without_jwt(self, client, monkeypatch):
        monkeypatch.setattr(api, "pinata_client", None)

        response = client.post("/api/ipfs/upload", files={"file": ("a.txt", b"x", "text/plain")})

        assert response.status_code == 503

    def test_metadata(self, client, services):
        services["pinata_client"].pin_json.return_value = {"cid": "bafkmeta", "uri": "ipfs://bafkmeta"}

        response = client.post("/api/ipfs/metadata", json={"ipHash": "ipfs://bafk", "name": "Song"})

        data = response.json()
        assert data["uri"] == "ipfs://bafkmeta"
        assert data["metadata"]["properties"]["ipHash"] == "ipfs://bafk"


class TestYakoa:

    def test_proxy_register(self, client, services):
        services["yakoa_client"].proxy_register.return_value = {"success": True, "token_id": "x:1"}

        response = client.post("/api/yakoa/register", json={"id": "x:1"})

        assert response.json()["success"] is True
        services["yakoa_client"].proxy_register.assert_called_once_with({"id": "x:1"})

    def test_proxy_register_upstream_error(self, client, services):
        services["yakoa_client"].proxy_register.side_effect = YakoaError(
            "Yakoa API error: 422", status_code=422, response={"detail": "bad"}
        )

        response = client.post("/api/yakoa/register", json={"id": "x:1"})

        assert response.status_code == 422
        assert response.json() == {
            "success": False, "error": "Yakoa API error: 422", "details": {"detail": "bad"}
        }

    def test_submit_uses_registrar(self, client, services):
        services["yakoa_registrar"].register_ip_asset.return_value = {"success": True, "mock": True}

        assert client.post("/api/yakoa/submit", json={"tokenId": "x:1"}).json()["mock"] is True

    def test_infringement_by_contract(self, client, services):
        services["yakoa_client"].get_infringement_status.return_value = {"id": "x", "totalInfringements": 0}

        response = client.get(f"/api/infringement/contract/{CONTRACT.upper().replace('0X', '0x')}/57")

        assert response.status_code == 200
        services["yakoa_client"].get_infringement_status.assert_called_once_with(f"{CONTRACT}:57")

    def test_infringement_not_found(self, client, services):
        services["yakoa_client"].get_infringement_status.side_effect = YakoaError(
            "Yakoa API error: 404", status_code=404
        )

        response = client.get("/api/infringement/x:1")

        assert response.status_code == 404

    def test_token_lookup(self, client, services):
        services["yakoa_client"].get_token.return_value = {"id": "x:1"}
        assert client.get("/api/yakoa/token/x:1").json() == {"id": "x:1"}


def test_startup_tolerates_missing_pinata(monkeypatch):
    monkeypatch.setattr(api.settings, "pinata_jwt", None)
    with patch.object(api, "ModredIPClient"), patch.object(api, "YakoaClient"):
        with TestClient(api.app):
            assert api.pinata_client is None
            assert api.registration_service is not None
