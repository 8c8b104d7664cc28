"""
Yakoa request payload builders.

Yakoa identifies tokens as "{contract}:{token_id}" and expects the
registration transaction, the creator address, metadata and media list in
a fixed JSON shape. This module turns a ModredIP registration into that
shape.
"""

import json
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from MODRED.core.logging_config import get_logger
from MODRED.services.chain.abi import ZERO_ADDRESS
from MODRED.services.ipfs.gateway import extract_ipfs_hash, public_media_url

logger = get_logger(__name__)

ETH_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

DEFAULT_CREATOR_EMAIL = "creator@modredip.com"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_token_id(contract_address: str, token_id: Any) -> str:
    """
    Build the Yakoa token id for a contract token.

    Example:
        >>> build_token_id("0x8F0A...0217", 57)
        '0x8f0a...0217:57'
    """
    return f"{contract_address.lower()}:{token_id}"


def generate_timestamped_id(contract_address: str, token_id: Any, now_ms: Optional[int] = None) -> str:
    """Token id with a trailing millisecond timestamp, unique per attempt."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{build_token_id(contract_address, token_id)}:{stamp}"


def base_token_id(token_id: str) -> str:
    """
    Drop a trailing timestamp segment from a token id.

    Yakoa lookups only accept "{contract}:{token_id}".

    Example:
        >>> base_token_id("0x0734...9f82:57:1754506037466")
        '0x0734...9f82:57'
    """
    parts = token_id.split(":")
    if len(parts) > 2:
        return ":".join(parts[:2])
    return token_id


def normalize_creator(creator: Optional[str]) -> str:
    """Lowercase creator address, or the zero address if it is not a valid one."""
    if not creator or not ETH_ADDRESS_RE.match(str(creator)):
        logger.warning(f"Invalid creator address '{creator}', using zero address")
        return ZERO_ADDRESS
    return creator.lower()


def parse_registration_metadata(metadata: str) -> Dict[str, Any]:
    """Parse the metadata JSON string sent with a registration."""
    try:
        parsed = json.loads(metadata)
        if isinstance(parsed, dict):
            return parsed
    except (TypeError, ValueError):
        pass
    return {"name": "Unknown", "description": "", "creator": "unknown"}


def build_registration_payload(
    token_id: str,
    tx_hash: str,
    block_number: Any,
    creator_id: str,
    metadata: Dict[str, Any],
    media: List[Dict[str, Any]],
    license_parents: Optional[List[Dict[str, Any]]] = None,
    authorizations: Optional[List[Dict[str, Any]]] = None,
    timestamp: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build the body of POST /token.

    The id keeps its original case; transaction hash and creator are
    lowercased. The same authorizations are sent for token and creator.
    """
    authorizations = authorizations or []
    return {
        "id": token_id,
        "registration_tx": {
            "hash": tx_hash.lower(),
            "block_number": block_number,
            "timestamp": timestamp or _now_iso(),
        },
        "creator_id": creator_id.lower(),
        "metadata": metadata,
        "media": media,
        "license_parents": license_parents or [],
        "token_authorizations": authorizations,
        "creator_authorizations": authorizations,
    }


def build_asset_submission(
    ip_hash: str,
    metadata: str,
    is_encrypted: bool,
    contract_address: str,
    ip_asset_id: Any,
    tx_hash: str,
    block_number: Any,
    default_email: str = DEFAULT_CREATOR_EMAIL
) -> Dict[str, Any]:
    """
    Derive the full Yakoa payload for a freshly registered IP asset.

    Args:
        ip_hash: Content reference (ipfs://cid or bare cid)
        metadata: Registration metadata JSON string
        is_encrypted: Encryption flag from the registration
        contract_address: ModredIP contract address
        ip_asset_id: Token id extracted from the receipt
        tx_hash: Registration transaction hash
        block_number: Registration block number
        default_email: Authorization email when metadata carries none

    Returns:
        Dict[str, Any]: Body for YakoaClient.register_token
    """
    parsed = parse_registration_metadata(metadata)
    contract = contract_address.lower()
    creator_id = normalize_creator(parsed.get("creator"))
    content_hash = extract_ipfs_hash(ip_hash)
    created_at = parsed.get("created_at") or _now_iso()
    name = parsed.get("name") or "Unknown"
    description = parsed.get("description") or ""
    email = parsed.get("creator_email") or default_email

    yakoa_metadata = {
        "title": name,
        "description": description,
        "creator": creator_id,
        "created_at": created_at,
        "ip_hash": content_hash,
        "is_encrypted": is_encrypted,
        "contract_address": contract,
        "token_id": str(ip_asset_id),
        "content_type": parsed.get("content_type") or "unknown",
        "file_size": parsed.get("file_size") or 0,
        "mime_type": parsed.get("mime_type") or "unknown",
        "tags": parsed.get("tags") or [],
        "category": parsed.get("category") or "general",
        "license_type": parsed.get("license_type") or "all_rights_reserved",
        "commercial_use": parsed.get("commercial_use") or False,
        "derivatives_allowed": parsed.get("derivatives_allowed") or False,
    }

    media = [
        {
            "media_id": name,
            "url": public_media_url(content_hash),
            "type": parsed.get("mime_type") or "unknown",
            "size": parsed.get("file_size") or 0,
            "metadata": {
                "name": name,
                "description": description,
                "creator": creator_id,
                "created_at": created_at,
            },
        }
    ]

    authorizations = [
        {
            "brand_id": None,
            "brand_name": None,
            "data": {"type": "email", "email_address": email},
        }
    ]

    return build_registration_payload(
        token_id=build_token_id(contract, ip_asset_id),
        tx_hash=tx_hash,
        block_number=block_number,
        creator_id=creator_id,
        metadata=yakoa_metadata,
        media=media,
        authorizations=authorizations,
    )
