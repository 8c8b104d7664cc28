"""
HTTP client the Streamlit UI uses to talk to the backend API.

Module Input:
    - Backend base URL (default: settings.backend_url)
    - Form values collected by the UI

Module Output:
    - Decoded JSON responses
    - BackendError carrying the backend's error message on failure
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from MODRED.core.exceptions import BackendError
from MODRED.core.logging_config import get_logger
from MODRED.core.settings import settings
from MODRED.services.chain.abi import ZERO_ADDRESS

logger = get_logger(__name__)

# License form defaults
DEFAULT_ROYALTY_PERCENTAGE = 10
DEFAULT_LICENSE_DURATION = 86400
DEFAULT_PAYMENT_AMOUNT = "0.001"
DEFAULT_LICENSE_TERMS = {
    "transferable": True,
    "commercialAttribution": True,
    "commercializerChecker": ZERO_ADDRESS,
    "commercializerCheckerData": "0000000000000000000000000000000000000000",
    "commercialRevShare": 100000000,
    "commercialRevCeiling": 0,
    "derivativesAllowed": True,
    "derivativesAttribution": True,
    "derivativesApproval": False,
    "derivativesReciprocal": True,
    "derivativeRevCeiling": 0,
    "currency": "0x15140000000000000000000000000000000000000",
}


def build_license_terms(**overrides: Any) -> str:
    """
    Serialize license terms to the JSON string stored on-chain.

    Example:
        >>> json.loads(build_license_terms(derivativesAllowed=False))["derivativesAllowed"]
        False
    """
    unknown = set(overrides) - set(DEFAULT_LICENSE_TERMS)
    if unknown:
        raise ValueError(f"Unknown license terms: {', '.join(sorted(unknown))}")
    return json.dumps({**DEFAULT_LICENSE_TERMS, **overrides})


def royalty_percent(value: Any) -> Optional[float]:
    """On-chain royalty value as shown on the dashboard (stored in hundredths)."""
    if value is None:
        return None
    return float(value) / 100

def build_registration_metadata(
    name: str,
    description: str,
    image: str,
    creator: str,
    ip_hash: str,
    contract_address: str,
    file_name: Optional[str] = None,
    file_type: Optional[str] = None,
    file_size: int = 0,
    creator_email: Optional[str] = None
) -> str:
    """
    Build the metadata JSON string sent with a registration.

    The fields feed both the on-chain record and the Yakoa submission, so
    this carries the content and monitoring hints Yakoa uses.
    """
    now = datetime.now(timezone.utc).isoformat()
    file_name = file_name or "unknown"
    extension = file_name.rsplit(".", 1)[-1] if "." in file_name else "unknown"

    return json.dumps({
        "name": name,
        "description": description,
        "image": image,
        "creator": creator,
        "created_at": now,
        "content_type": file_type or "unknown",
        "file_size": file_size,
        "mime_type": file_type or "unknown",
        "tags": [],
        "category": "general",
        "license_type": "all_rights_reserved",
        "commercial_use": False,
        "derivatives_allowed": False,
        "creator_email": creator_email or settings.yakoa_default_email,
        "file_name": file_name,
        "file_extension": extension,
        "upload_timestamp": now,
        "network": "etherlink",
        "chain_id": str(settings.chain_id),
        "contract_address": contract_address,
        "monitoring_enabled": True,
        "infringement_alerts": True,
        "content_hash": ip_hash,
        "original_filename": file_name,
    })


class BackendClient:
    """
    Thin requests wrapper over the backend routes.

    Attributes:
        base_url (str): Backend base URL without trailing slash
        timeout (float): Request timeout in seconds; contract writes wait
            for receipts, so this is generous
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 180.0,
        session: Optional[requests.Session] = None
    ):
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Backend unreachable at {url}: {e}")
            raise BackendError(f"Backend unreachable: {e}")

        try:
            data = response.json()
        except ValueError:
            data = {"error": response.text}

        if not response.ok:
            message = data.get("error") if isinstance(data, dict) else None
            details = data.get("details") if isinstance(data, dict) else None
            if details and not isinstance(details, (dict, list)):
                message = f"{message}: {details}"
            raise BackendError(
                message or f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                details=data if isinstance(data, dict) else {"body": data}
            )
        return data

    # ---------------- Health ----------------

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def is_available(self) -> bool:
        try:
            return self.health().get("status") == "healthy"
        except BackendError:
            return False

    # ---------------- Writes ----------------

    def register_ip(
        self,
        ip_hash: str,
        metadata: str,
        is_encrypted: bool,
        contract_address: str
    ) -> Dict[str, Any]:
        return self._request("POST", "/api/register", json={
            "ipHash": ip_hash,
            "metadata": metadata,
            "isEncrypted": is_encrypted,
            "modredIpContractAddress": contract_address,
        })

    def mint_license(
        self,
        token_id: int,
        royalty_percentage: int,
        duration: int,
        commercial_use: bool,
        terms: str,
        contract_address: str
    ) -> Dict[str, Any]:
        return self._request("POST", "/api/license/mint", json={
            "tokenId": token_id,
            "royaltyPercentage": royalty_percentage,
            "duration": duration,
            "commercialUse": commercial_use,
            "terms": terms,
            "modredIpContractAddress": contract_address,
        })

    def pay_revenue(self, token_id: int, amount: str, contract_address: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/api/royalty/pay", json={
            "tokenId": token_id,
            "amount": amount,
            "modredIpContractAddress": contract_address,
        })

    def claim_royalties(self, token_id: int, contract_address: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/api/royalty/claim", json={
            "tokenId": token_id,
            "modredIpContractAddress": contract_address,
        })

    # ---------------- Reads ----------------

    def list_assets(self, contract_address: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"contractAddress": contract_address} if contract_address else None
        return self._request("GET", "/api/assets", params=params)["assets"]

    def list_licenses(self, contract_address: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"contractAddress": contract_address} if contract_address else None
        return self._request("GET", "/api/licenses", params=params)["licenses"]

    def get_asset(self, token_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/assets/{token_id}")

    def get_license(self, license_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/licenses/{license_id}")

    # ---------------- IPFS ----------------

    def upload_file(self, data: bytes, filename: str, content_type: Optional[str] = None) -> Dict[str, Any]:
        files = {"file": (filename, data, content_type or "application/octet-stream")}
        return self._request("POST", "/api/ipfs/upload", files=files)

    def upload_metadata(
        self,
        ip_hash: str,
        name: str,
        description: str,
        is_encrypted: bool
    ) -> Dict[str, Any]:
        return self._request("POST", "/api/ipfs/metadata", json={
            "ipHash": ip_hash,
            "name": name,
            "description": description,
            "isEncrypted": is_encrypted,
        })

    # ---------------- Yakoa ----------------

    def get_infringement_status(self, token_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/infringement/{token_id}")

    def get_infringement_by_contract(self, contract_address: str, token_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/infringement/contract/{contract_address}/{token_id}")

    def get_yakoa_token(self, token_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/yakoa/token/{token_id}")
