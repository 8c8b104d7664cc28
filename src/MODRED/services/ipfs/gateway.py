"""
IPFS URI helpers and IP metadata parsing.

Module Input:
    - ipfs:// URIs, /ipfs/ gateway paths, inline JSON metadata strings
    - Gateway base URL from settings

Module Output:
    - HTTP gateway URLs
    - Bare content hashes
    - Parsed metadata dictionaries
    - Standard NFT metadata documents
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from MODRED.core.logging_config import get_logger
from MODRED.core.settings import settings

logger = get_logger(__name__)

IPFS_SCHEME = "ipfs://"
PUBLIC_IPFS_GATEWAY = "https://ipfs.io"

UNKNOWN_METADATA = {
    "name": "Unknown",
    "description": "No description available",
}


def extract_ipfs_hash(value: str) -> str:
    """
    Strip the ipfs:// scheme from a content reference.

    Example:
        >>> extract_ipfs_hash("ipfs://bafkreih...")
        'bafkreih...'
    """
    if value and value.startswith(IPFS_SCHEME):
        return value[len(IPFS_SCHEME):]
    return value


def get_ipfs_gateway_url(url: str, gateway: Optional[str] = None) -> str:
    """
    Convert an IPFS reference to an HTTP gateway URL.

    Args:
        url: ipfs:// URI, any URL containing /ipfs/, or any other URL
        gateway: Gateway base (default: settings.ipfs_gateway)

    Returns:
        str: Gateway URL; other URLs are returned unchanged and an empty
        input yields an empty string.

    Example:
        >>> get_ipfs_gateway_url("ipfs://Qm123")
        'https://gateway.pinata.cloud/ipfs/Qm123'
    """
    if not url:
        return ""

    gateway = (gateway or settings.ipfs_gateway).rstrip("/")

    if url.startswith(IPFS_SCHEME):
        return f"{gateway}/ipfs/{extract_ipfs_hash(url)}"

    if "/ipfs/" in url:
        cid_path = url.split("/ipfs/", 1)[1]
        if cid_path:
            return f"{gateway}/ipfs/{cid_path}"

    return url


def public_media_url(ip_hash: str) -> str:
    """Public ipfs.io URL for a content hash, as submitted to Yakoa."""
    return f"{PUBLIC_IPFS_GATEWAY}/ipfs/{extract_ipfs_hash(ip_hash)}"


def parse_metadata(metadata_uri: str, timeout: float = 10.0) -> Dict[str, Any]:
    """
    Resolve on-chain metadata into a dictionary.

    The contract stores either an inline JSON string or a URI pointing at a
    JSON document on IPFS. Any failure yields the "Unknown" placeholder.

    Args:
        metadata_uri: Inline JSON, ipfs:// URI or gateway URL
        timeout: HTTP timeout in seconds for remote metadata

    Returns:
        Dict[str, Any]: Parsed metadata, at minimum name and description
    """
    if not metadata_uri:
        return dict(UNKNOWN_METADATA)

    try:
        text = metadata_uri.strip()
        if text.startswith("{"):
            return json.loads(text)

        if text.startswith(IPFS_SCHEME) or "/ipfs/" in text:
            gateway_url = get_ipfs_gateway_url(text)
            response = requests.get(gateway_url, timeout=timeout)
            response.raise_for_status()
            return response.json()

    except (ValueError, requests.RequestException) as e:
        logger.warning(f"Could not parse metadata '{metadata_uri[:80]}': {e}")

    return dict(UNKNOWN_METADATA)


def build_nft_metadata(
    ip_hash: str,
    name: Optional[str],
    description: Optional[str],
    is_encrypted: bool
) -> Dict[str, Any]:
    """
    Build the standard NFT metadata document pinned before registration.

    Args:
        ip_hash: Content reference of the registered file
        name: Display name (generated when blank)
        description: Free text (placeholder when blank)
        is_encrypted: Whether the pinned content is encrypted

    Returns:
        Dict[str, Any]: ERC-721 style metadata with a properties block
    """
    now = datetime.now(timezone.utc)
    description = description or "No description provided"

    return {
        "name": name or f"IP Asset #{int(now.timestamp() * 1000)}",
        "description": description,
        "image": ip_hash,
        "properties": {
            "ipHash": ip_hash,
            "name": name or "Unnamed",
            "description": description,
            "isEncrypted": is_encrypted,
            "uploadDate": now.isoformat(),
        },
    }
