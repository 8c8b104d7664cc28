"""
Yakoa registration with proxy, direct and mock fallbacks.

Browser clients could not always reach Yakoa directly, so registration is
attempted through the configured proxy first, then against the API, and
finally answered with a mock record when mock fallback is enabled.

Usage:
    registrar = YakoaRegistrar()
    result = registrar.register_ip_asset({
        "tokenId": "0x8f0a...:57",
        "creator": "0xd4a6...",
        "metadata": {"name": "Song", "description": "Demo"},
        "mediaUrl": "https://gateway.pinata.cloud/ipfs/bafk...",
    })
"""

import json
import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from MODRED.core.exceptions import YakoaError
from MODRED.core.logging_config import get_logger
from MODRED.core.settings import settings

from .client import YakoaClient

logger = get_logger(__name__)

ZERO_TX_HASH = "0x" + "0" * 64


class YakoaRegistrar:
    """
    Register IP assets with Yakoa, degrading gracefully.

    Attributes:
        client (YakoaClient): Direct API client
        proxy_url (Optional[str]): Base URL of a Yakoa proxy service
        mock_fallback (bool): Return a mock registration as last resort
    """

    def __init__(
        self,
        client: Optional[YakoaClient] = None,
        proxy_url: Optional[str] = None,
        mock_fallback: Optional[bool] = None,
        session: Optional[requests.Session] = None
    ):
        self.client = client or YakoaClient()
        self.proxy_url = (proxy_url or settings.yakoa_proxy_url or "").rstrip("/") or None
        self.mock_fallback = settings.yakoa_mock_fallback if mock_fallback is None else mock_fallback
        self._session = session or requests.Session()

    @staticmethod
    def build_request(asset_info: Dict[str, Any]) -> Dict[str, Any]:
        """
        Build a Yakoa token request from frontend asset info.

        Args:
            asset_info: tokenId, creator, metadata {name, description, image},
                optional mediaUrl and registrationTx {hash, blockNumber, timestamp}

        Returns:
            Dict[str, Any]: Request body with a media entry per available URL
        """
        metadata = asset_info.get("metadata") or {}
        tx = asset_info.get("registrationTx")

        if tx:
            registration_tx = {
                "hash": tx.get("hash"),
                "block_number": tx.get("blockNumber"),
                "timestamp": tx.get("timestamp"),
            }
        else:
            registration_tx = {
                "hash": ZERO_TX_HASH,
                "block_number": 0,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

        request_body = {
            "id": asset_info.get("tokenId"),
            "registration_tx": registration_tx,
            "creator_id": asset_info.get("creator"),
            "metadata": {
                "name": metadata.get("name"),
                "description": metadata.get("description"),
                "image": metadata.get("image"),
            },
            "media": [],
        }

        if asset_info.get("mediaUrl"):
            request_body["media"].append({"media_id": "ipfs_media", "url": asset_info["mediaUrl"]})
        if metadata.get("image"):
            request_body["media"].append({"media_id": "metadata_image", "url": metadata["image"]})

        return request_body

    def _try_proxy(self, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self.proxy_url:
            return None
        try:
            response = self._session.post(
                f"{self.proxy_url}/api/yakoa/register",
                json=body,
                timeout=self.client.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"Yakoa proxy unavailable: {e}")
            return None

        if not response.ok:
            logger.warning(f"Yakoa proxy error: {response.status_code}")
            return None

        try:
            return response.json()
        except ValueError:
            logger.warning("Yakoa proxy returned a non-JSON body")
            return None

    def _try_direct(self, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return self.client.proxy_register(body)
        except YakoaError as e:
            if e.status_code is None:
                logger.warning(f"Direct Yakoa call failed: {e.message}")
                return None
            error_body = e.response
            if isinstance(error_body, dict) and set(error_body) == {"raw"}:
                # Non-JSON upstream body
                error_body = error_body["raw"]
            error_text = error_body if isinstance(error_body, str) else json.dumps(error_body)
            logger.error(f"Yakoa API error: {e.status_code} {error_text}")
            return {
                "success": False,
                "error": f"API request failed: {e.status_code} {error_text}",
            }

    @staticmethod
    def mock_response(asset_info: Dict[str, Any]) -> Dict[str, Any]:
        """Simulated successful registration for development."""
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
        name = (asset_info.get("metadata") or {}).get("name", "Unknown IP Asset")
        return {
            "success": True,
            "token_id": f"yakoa_{int(time.time() * 1000)}_{suffix}",
            "registration_status": "registered",
            "details": (
                f'IP asset "{name}" successfully registered with Yakoa for copyright '
                "monitoring. This is a mock response for development purposes."
            ),
            "mock": True,
        }

    def register_ip_asset(self, asset_info: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register an IP asset, trying proxy, direct API, then mock.

        Returns:
            Dict[str, Any]: success plus token_id / registration_status /
            details, or success=False with an error message. Never raises.
        """
        try:
            body = self.build_request(asset_info)
            logger.info(f"Registering IP asset {body.get('id')} with Yakoa")

            result = self._try_proxy(body)
            if result is not None:
                return result

            result = self._try_direct(body)
            if result is not None:
                return result

            if self.mock_fallback:
                logger.warning("Using mock registration response due to network issues")
                return self.mock_response(asset_info)

            return {"success": False, "error": "Yakoa registration unavailable"}

        except Exception as e:
            logger.error(f"Error registering IP asset with Yakoa: {e}")
            return {"success": False, "error": str(e)}
