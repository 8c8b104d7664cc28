"""
Yakoa API client for token registration and infringement lookups.

Module Input:
    - Token registration payloads
    - Yakoa token ids ("{contract}:{token_id}")
    - API key, subdomain and network from settings

Module Output:
    - Yakoa token records
    - Normalised infringement status
    - Proxy-style registration responses for browser clients
"""

from typing import Any, Dict, Optional

import requests

from MODRED.core.exceptions import YakoaError
from MODRED.core.logging_config import get_logger
from MODRED.core.settings import settings

from .payload import base_token_id

logger = get_logger(__name__)


class YakoaClient:
    """
    Thin client over the Yakoa sandbox REST API.

    Attributes:
        base_url (str): "https://{subdomain}.ip-api-sandbox.yakoa.io/{network}"
        token_url (str): Token collection endpoint
        timeout (float): Request timeout in seconds
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.api_key = api_key or settings.yakoa_api_key
        self.base_url = (base_url or settings.get_yakoa_base_url()).rstrip("/")
        self.token_url = f"{self.base_url}/token"
        self.timeout = timeout or settings.yakoa_timeout_seconds
        self._session = session or requests.Session()

        if not self.api_key:
            logger.warning("YAKOA_API_KEY is not set; Yakoa requests will be rejected")

    def _headers(self, with_body: bool = False) -> Dict[str, str]:
        headers = {"Accept": "application/json", "X-API-KEY": self.api_key or ""}
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Yakoa request {method} {url} failed: {e}")
            raise YakoaError(
                f"Yakoa API unreachable: {e}",
                details={"url": url, "method": method}
            )

    def register_token(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register a token with Yakoa.

        A 409 means the token id is already registered; in that case the
        existing record is fetched and returned with alreadyRegistered=True.

        Args:
            payload: Body built by build_registration_payload

        Returns:
            Dict[str, Any]: Yakoa token record

        Raises:
            YakoaError: On any other non-2xx response or network failure
        """
        token_id = payload.get("id", "")
        logger.info(f"Registering token {token_id} with Yakoa")
        logger.debug(f"Yakoa payload: {payload}")

        response = self._request(
            "POST", self.token_url, json=payload, headers=self._headers(with_body=True)
        )
        data = self._decode(response)

        if response.status_code == 409:
            logger.info(f"Token {token_id} already registered with Yakoa")
            try:
                existing = self.get_token(token_id)
            except YakoaError as e:
                logger.warning(f"Could not fetch existing Yakoa token {token_id}: {e.message}")
                existing = {"id": token_id}
            return {**existing, "alreadyRegistered": True}

        if not response.ok:
            logger.error(f"Error registering to Yakoa: {response.status_code} {data}")
            raise YakoaError(
                f"Yakoa API error: {response.status_code}",
                status_code=response.status_code,
                response=data
            )

        logger.info(f"Yakoa registration accepted for {token_id}")
        if isinstance(data, dict):
            return {**data, "alreadyRegistered": False}
        return {"data": data, "alreadyRegistered": False}

    def get_token(self, token_id: str) -> Dict[str, Any]:
        """
        Fetch a token record.

        Raises:
            YakoaError: status_code 404 when the token is unknown
        """
        lookup_id = base_token_id(token_id)
        response = self._request(
            "GET", f"{self.token_url}/{lookup_id}", headers=self._headers()
        )
        data = self._decode(response)

        if not response.ok:
            logger.error(f"Error fetching Yakoa token {lookup_id}: {response.status_code}")
            raise YakoaError(
                f"Yakoa API error: {response.status_code}",
                status_code=response.status_code,
                response=data
            )
        return data

    def check_token_exists(self, token_id: str) -> bool:
        try:
            self.get_token(token_id)
            return True
        except YakoaError as e:
            if e.status_code == 404:
                return False
            raise

    def get_infringement_status(self, token_id: str) -> Dict[str, Any]:
        """
        Summarise the infringement block of a token record.

        Returns:
            Dict[str, Any]: id, status, result, inNetworkInfringements,
            externalInfringements, credits, lastChecked, totalInfringements
        """
        token = self.get_token(token_id)
        infringements = token.get("infringements") or {}
        in_network = infringements.get("in_network_infringements") or []
        external = infringements.get("external_infringements") or []

        return {
            "id": token.get("id", base_token_id(token_id)),
            "status": infringements.get("status") or "unknown",
            "result": infringements.get("result") or "unknown",
            "inNetworkInfringements": in_network,
            "externalInfringements": external,
            "credits": infringements.get("credits") or {},
            "lastChecked": infringements.get("last_checked"),
            "totalInfringements": len(in_network) + len(external),
        }

    def proxy_register(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Forward a browser registration body to Yakoa unchanged.

        Returns:
            Dict[str, Any]: success, token_id, registration_status, details

        Raises:
            YakoaError: Carrying the upstream status and body on non-2xx
        """
        logger.info(f"Proxying Yakoa registration for {body.get('id')}")
        response = self._request(
            "POST", self.token_url, json=body, headers=self._headers(with_body=True)
        )
        data = self._decode(response)

        if not response.ok:
            raise YakoaError(
                f"Yakoa API error: {response.status_code}",
                status_code=response.status_code,
                response=data
            )

        data = data if isinstance(data, dict) else {}
        return {
            "success": True,
            "token_id": data.get("token_id"),
            "registration_status": data.get("registration_status") or "registered",
            "details": data.get("details") or "IP asset successfully registered with Yakoa",
        }
