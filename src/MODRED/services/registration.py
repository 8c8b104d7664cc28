"""
Register, license and royalty workflows.

These services sit between the HTTP layer and the integration clients:
they call the contract, hand registrations on to Yakoa and shape the
result dictionaries returned to the frontend.

Module Input:
    - Validated request fields from the API layer
    - ModredIPClient and YakoaClient instances

Module Output:
    - Response dictionaries with camelCase keys, as the frontend expects
"""

from typing import Any, Dict, Optional

from MODRED.core.exceptions import ModredError
from MODRED.core.logging_config import get_logger
from MODRED.core.serialization import to_json_safe
from MODRED.core.settings import settings
from MODRED.services.chain import ModredIPClient
from MODRED.services.yakoa import YakoaClient, build_asset_submission

logger = get_logger(__name__)


class RegistrationService:
    """
    Register an IP asset on Etherlink, then submit it to Yakoa.

    Attributes:
        chain (ModredIPClient): Contract client
        yakoa (YakoaClient): Yakoa API client
    """

    def __init__(self, chain: ModredIPClient, yakoa: YakoaClient):
        self.chain = chain
        self.yakoa = yakoa

    def register(
        self,
        ip_hash: str,
        metadata: str,
        is_encrypted: bool,
        contract_address: str
    ) -> Dict[str, Any]:
        """
        Run the full registration flow.

        Args:
            ip_hash (str): Content reference of the IP file
            metadata (str): Metadata JSON string stored on-chain
            is_encrypted (bool): Encryption flag
            contract_address (str): ModredIP contract address

        Returns:
            Dict[str, Any]: message, etherlink {txHash, ipAssetId,
            explorerUrl, blockNumber, ipHash} and, when a token id was
            extracted, the yakoa block

        Raises:
            ChainError: If the on-chain registration fails
            YakoaError: If the Yakoa submission fails (a 409 is not a failure)
        """
        chain_result = self.chain.register_ip(ip_hash, metadata, is_encrypted, contract_address)
        ip_asset_id = chain_result.get("ipAssetId")
        logger.info(
            f"Etherlink registration successful: tx={chain_result['txHash']} "
            f"ipAssetId={ip_asset_id}"
        )

        etherlink = {
            "txHash": chain_result["txHash"],
            "ipAssetId": ip_asset_id,
            "explorerUrl": chain_result["explorerUrl"],
            "blockNumber": chain_result["blockNumber"],
            "ipHash": ip_hash,
        }

        if ip_asset_id is None:
            logger.warning("No Transfer log in receipt; skipping Yakoa submission")
            return {
                "message": "Registration successful (IP Asset ID not extracted)",
                "etherlink": etherlink,
            }

        payload = build_asset_submission(
            ip_hash=ip_hash,
            metadata=metadata,
            is_encrypted=is_encrypted,
            contract_address=contract_address,
            ip_asset_id=ip_asset_id,
            tx_hash=chain_result["txHash"],
            block_number=chain_result["blockNumber"],
            default_email=settings.yakoa_default_email,
        )

        yakoa_response = self.yakoa.register_token(to_json_safe(payload))

        if yakoa_response.get("alreadyRegistered"):
            message = "IP Asset registered on Etherlink, already exists in Yakoa"
        else:
            message = "IP Asset successfully registered on Etherlink and Yakoa"

        return {"message": message, "etherlink": etherlink, "yakoa": yakoa_response}


class LicenseService:
    """Mint licenses; failures are reported in the result, never raised."""

    def __init__(self, chain: ModredIPClient):
        self.chain = chain

    def mint(
        self,
        token_id: int,
        royalty_percentage: int,
        duration: int,
        commercial_use: bool,
        terms: str,
        contract_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Mint a license on Etherlink.

        Returns:
            Dict[str, Any]: On success: success, txHash, blockNumber,
            explorerUrl, message. On failure: success=False, error, message.
        """
        try:
            result = self.chain.mint_license(
                token_id, royalty_percentage, duration, commercial_use, terms, contract_address
            )
        except ModredError as e:
            logger.error(f"Error minting license: {e.message}")
            return {
                "success": False,
                "error": e.message,
                "message": "Failed to mint license on Etherlink",
            }

        return to_json_safe({
            "success": True,
            **result,
            "message": "License minted successfully on Etherlink",
        })


class RoyaltyService:
    """Pay revenue into an IP asset and claim accrued royalties."""

    def __init__(self, chain: ModredIPClient):
        self.chain = chain

    def pay(self, token_id: int, amount: Any, contract_address: Optional[str] = None) -> Dict[str, Any]:
        result = self.chain.pay_revenue(token_id, amount, contract_address)
        return {"message": "Revenue paid successfully", "data": result}

    def claim(self, token_id: int, contract_address: Optional[str] = None) -> Dict[str, Any]:
        result = self.chain.claim_royalties(token_id, contract_address)
        return {"message": "Royalties claimed successfully", "data": result}
