"""
Pinata client for IPFS pinning with retry logic and metadata support.

This module provides a PinataClient class for pinning files and JSON
documents to IPFS through Pinata's REST API, with configurable pin
metadata and exponential backoff retry logic for transient failures.

Module Input:
    - Raw file bytes with name and content type
    - JSON-serialisable documents
    - Pinata JWT (or API key pair) and endpoint from settings

Module Output:
    - IPFS content identifiers (CIDs)
    - Upload status and error details via logging
"""

import hashlib
import json
import mimetypes
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from MODRED.core.exceptions import ConfigError, PinningError
from MODRED.core.logging_config import get_logger
from MODRED.core.settings import settings

logger = get_logger(__name__)

# Errors that will not succeed on retry
PERMANENT_STATUS_CODES = {400, 401, 403, 404, 413}


class PinataClient:
    """
    Pinata client with automatic retries and MIME detection.

    Attributes:
        jwt (Optional[str]): Bearer token for the Pinata API
        api_key (Optional[str]): Legacy API key, sent when no JWT is set
        api_url (str): Pinata API base URL
        max_retries (int): Maximum attempts per upload
        retry_delay (float): Initial delay in seconds between retries
        timeout (float): Per-request timeout in seconds

    Thread Safety:
        Not thread-safe. Create separate instances for concurrent use.
    """

    def __init__(
        self,
        jwt: Optional[str] = None,
        api_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        api_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Pinata client.

        Args:
            jwt (Optional[str]): Pinata JWT (default: settings.pinata_jwt)
            api_key (Optional[str]): Legacy key pair, used when no JWT is set
            secret_key (Optional[str]): Secret for the legacy key pair
            api_url (Optional[str]): API base URL (default: settings.pinata_api_url)
            max_retries (Optional[int]): Upload attempts (default: settings)
            retry_delay (Optional[float]): Initial backoff (default: settings)
            timeout (Optional[float]): Request timeout (default: settings)
            session (Optional[requests.Session]): Shared HTTP session

        Raises:
            ConfigError: If neither a JWT nor an API key pair is configured
        """
        self.jwt = jwt or settings.pinata_jwt
        self.api_key = api_key or settings.pinata_api_key
        self.secret_key = secret_key or settings.pinata_secret_key
        if not self.jwt and not (self.api_key and self.secret_key):
            raise ConfigError(
                "Pinata credentials are not configured. Set PINATA_JWT, or "
                "PINATA_API_KEY and PINATA_SECRET_KEY, in the environment.",
                details={"setting": "pinata_jwt"}
            )

        self.api_url = (api_url or settings.pinata_api_url).rstrip("/")
        self.max_retries = max(1, max_retries or settings.pinata_max_retries)
        self.retry_delay = settings.pinata_retry_delay if retry_delay is None else retry_delay
        self.timeout = timeout or settings.pinata_timeout_seconds
        self._session = session or requests.Session()

        logger.info(f"Initialized PinataClient for {self.api_url}")

    def _headers(self) -> Dict[str, str]:
        if self.jwt:
            return {"Authorization": f"Bearer {self.jwt}"}
        return {"pinata_api_key": self.api_key, "pinata_secret_api_key": self.secret_key}

    @staticmethod
    def _detect_content_type(filename: str) -> str:
        content_type, _ = mimetypes.guess_type(filename)
        return content_type or "application/octet-stream"

    def _post_with_retry(self, path: str, description: str, **kwargs) -> Dict[str, Any]:
        """
        POST to Pinata with exponential backoff.

        Args:
            path: API path relative to api_url
            description: What is being pinned, for log lines
            **kwargs: Passed to requests (files, data, json)

        Returns:
            Dict[str, Any]: Decoded Pinata response

        Raises:
            PinningError: On a permanent error or when retries are exhausted
        """
        url = f"{self.api_url}/{path.lstrip('/')}"
        last_error = None

        for attempt in range(self.max_retries):
            try:
                logger.info(
                    f"Pinning {description} (attempt {attempt + 1}/{self.max_retries})"
                )
                response = self._session.post(
                    url,
                    headers=self._headers(),
                    timeout=self.timeout,
                    **kwargs
                )

                if response.ok:
                    return response.json()

                last_error = f"{response.status_code} {response.reason} - {response.text}"
                logger.warning(f"Pinata API error for {description}: {last_error}")

                if response.status_code in PERMANENT_STATUS_CODES:
                    break

            except requests.RequestException as e:
                last_error = str(e)
                logger.warning(
                    f"Pin attempt {attempt + 1} failed for {description}: {last_error}"
                )

            if attempt < self.max_retries - 1:
                delay = self.retry_delay * (2 ** attempt)
                logger.info(f"Retrying in {delay:.1f} seconds...")
                time.sleep(delay)

        raise PinningError(
            f"Pinata upload failed: {last_error}",
            details={"description": description, "url": url, "last_error": last_error}
        )

    def pin_file(
        self,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
        keyvalues: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Pin raw file bytes to IPFS.

        Args:
            data (bytes): File contents
            filename (str): Original filename, used as pin name
            content_type (Optional[str]): Override MIME detection
            keyvalues (Optional[Dict[str, Any]]): Extra pin metadata

        Returns:
            Dict[str, Any]: cid, uri (ipfs://cid), size and sha256 content_hash

        Raises:
            PinningError: If the upload fails after retries

        Example:
            >>> client.pin_file(b"...", "artwork.png")["uri"]
            'ipfs://bafkrei...'
        """
        detected_type = content_type or self._detect_content_type(filename)
        content_hash = hashlib.sha256(data).hexdigest()

        pin_metadata = {
            "name": filename,
            "keyvalues": {
                "uploadedBy": "ModredIP",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "fileType": detected_type,
                "fileSize": str(len(data)),
                "contentHash": content_hash,
                **{k: str(v) for k, v in (keyvalues or {}).items()},
            },
        }

        result = self._post_with_retry(
            "pinning/pinFileToIPFS",
            filename,
            files={"file": (filename, data, detected_type)},
            data={"pinataMetadata": json.dumps(pin_metadata)},
        )

        cid = result["IpfsHash"]
        logger.info(f"Successfully pinned {filename} as {cid}")

        return dict(
            cid=cid,
            uri=f"ipfs://{cid}",
            size=result.get("PinSize", len(data)),
            content_hash=content_hash,
        )

    def pin_json(self, document: Dict[str, Any], name: str = "metadata.json") -> Dict[str, Any]:
        """
        Pin a JSON document to IPFS.

        Args:
            document (Dict[str, Any]): JSON-serialisable content
            name (str): Pin name (default: "metadata.json")

        Returns:
            Dict[str, Any]: cid and ipfs:// uri
        """
        result = self._post_with_retry(
            "pinning/pinJSONToIPFS",
            name,
            json={"pinataContent": document, "pinataMetadata": {"name": name}},
        )

        cid = result["IpfsHash"]
        logger.info(f"Successfully pinned JSON {name} as {cid}")

        return dict(
            cid=cid,
            uri=f"ipfs://{cid}",
            size=result.get("PinSize", 0),
            content_hash=None,
        )
