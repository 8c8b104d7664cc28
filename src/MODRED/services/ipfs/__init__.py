"""
IPFS pinning and gateway helpers.

Modules:
    pinata_client: Pinata upload client with retry logic
    gateway: ipfs:// URI conversion and metadata parsing
"""

from .pinata_client import PinataClient
from .gateway import (
    build_nft_metadata,
    extract_ipfs_hash,
    get_ipfs_gateway_url,
    parse_metadata,
    public_media_url,
)

__all__ = [
    "PinataClient",
    "build_nft_metadata",
    "extract_ipfs_hash",
    "get_ipfs_gateway_url",
    "parse_metadata",
    "public_media_url",
]
