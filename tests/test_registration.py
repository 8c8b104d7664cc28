"""Tests for the register, license and royalty workflows."""

import json
from unittest.mock import MagicMock

import pytest

from conftest import CONTRACT, TX_HASH, tx_result
from MODRED.core.exceptions import ChainError, ConfigError, ValidationError, YakoaError
from MODRED.services.registration import LicenseService, RegistrationService, RoyaltyService

METADATA = json.dumps({"name": "Song", "description": "Demo", "creator": "0x" + "a1" * 20})


@pytest.fixture
def chain():
    return MagicMock()


@pytest.fixture
def yakoa():
    return MagicMock()


class TestRegistrationService:

    def test_registers_on_chain_and_yakoa(self, chain, yakoa):
        chain.register_ip.return_value = tx_result(57)
        yakoa.register_token.return_value = {"id": f"{CONTRACT}:57", "alreadyRegistered": False}

        result = RegistrationService(chain, yakoa).register("ipfs://bafk", METADATA, False, CONTRACT)

        assert result["message"] == "IP Asset successfully registered on Etherlink and Yakoa"
        assert result["etherlink"] == {
            "txHash": TX_HASH,
            "ipAssetId": 57,
            "explorerUrl": f"https://testnet.explorer.etherlink.com/tx/{TX_HASH}",
            "blockNumber": 5177789,
            "ipHash": "ipfs://bafk",
        }
        assert result["yakoa"]["id"] == f"{CONTRACT}:57"

        payload = yakoa.register_token.call_args[0][0]
        assert payload["id"] == f"{CONTRACT}:57"
        assert payload["registration_tx"]["hash"] == TX_HASH
        assert payload["metadata"]["title"] == "Song"

    def test_already_in_yakoa(self, chain, yakoa):
        chain.register_ip.return_value = tx_result(57)
        yakoa.register_token.return_value = {"id": f"{CONTRACT}:57", "alreadyRegistered": True}

        result = RegistrationService(chain, yakoa).register("ipfs://bafk", METADATA, False, CONTRACT)

        assert result["message"] == "IP Asset registered on Etherlink, already exists in Yakoa"

    def test_missing_token_id_skips_yakoa(self, chain, yakoa):
        chain.register_ip.return_value = tx_result(None, ipAssetId=None)

        result = RegistrationService(chain, yakoa).register("ipfs://bafk", METADATA, True, CONTRACT)

        assert result["message"] == "Registration successful (IP Asset ID not extracted)"
        assert result["etherlink"]["ipAssetId"] is None
        assert "yakoa" not in result
        yakoa.register_token.assert_not_called()

    def test_yakoa_failure_propagates(self, chain, yakoa):
        chain.register_ip.return_value = tx_result(57)
        yakoa.register_token.side_effect = YakoaError(
            "Yakoa API error: 422", status_code=422, response={"detail": "bad"}
        )

        with pytest.raises(YakoaError) as exc_info:
            RegistrationService(chain, yakoa).register("ipfs://bafk", METADATA, False, CONTRACT)

        assert exc_info.value.status_code == 422
        chain.register_ip.assert_called_once()

    def test_chain_failure_propagates(self, chain, yakoa):
        chain.register_ip.side_effect = ChainError("registerIP reverted")

        with pytest.raises(ChainError):
            RegistrationService(chain, yakoa).register("ipfs://bafk", METADATA, False, CONTRACT)
        yakoa.register_token.assert_not_called()


class TestLicenseService:

    def test_mint_success(self, chain):
        chain.mint_license.return_value = tx_result()

        result = LicenseService(chain).mint(1, 10, 86400, True, "{}", CONTRACT)

        assert result["success"] is True
        assert result["txHash"] == TX_HASH
        assert result["message"] == "License minted successfully on Etherlink"
        chain.mint_license.assert_called_once_with(1, 10, 86400, True, "{}", CONTRACT)

    @pytest.mark.parametrize("error", [
        ChainError("mintLicense reverted"),
        ConfigError("WALLET_PRIVATE_KEY is required"),
    ])
    def test_mint_failure_never_raises(self, chain, error):
        chain.mint_license.side_effect = error

        result = LicenseService(chain).mint(1, 10, 86400, True, "{}", CONTRACT)

        assert result == {
            "success": False,
            "error": error.message,
            "message": "Failed to mint license on Etherlink",
        }


class TestRoyaltyService:

    def test_pay(self, chain):
        chain.pay_revenue.return_value = tx_result(amountWei=10 ** 15)

        result = RoyaltyService(chain).pay(1, "0.001")

        assert result["message"] == "Revenue paid successfully"
        assert result["data"]["amountWei"] == 10 ** 15

    def test_pay_invalid_amount_propagates(self, chain):
        chain.pay_revenue.side_effect = ValidationError("Payment amount must be greater than zero")

        with pytest.raises(ValidationError):
            RoyaltyService(chain).pay(1, "0")

    def test_claim(self, chain):
        chain.claim_royalties.return_value = tx_result()

        result = RoyaltyService(chain).claim(2, CONTRACT)

        assert result["message"] == "Royalties claimed successfully"
        chain.claim_royalties.assert_called_once_with(2, CONTRACT)
