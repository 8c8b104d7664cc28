"""
Yakoa copyright-monitoring integration.

Exports:
    YakoaClient: Token registration, lookup and infringement status
    YakoaRegistrar: Registration with proxy/direct/mock fallbacks
    build_asset_submission: Payload for a freshly registered IP asset
    build_token_id, base_token_id, generate_timestamped_id: Token id helpers

Example:
    from MODRED.services.yakoa import YakoaClient

    client = YakoaClient()
    status = client.get_infringement_status("0x8f0a...:57")
    print(status["totalInfringements"])
"""

from .client import YakoaClient
from .registrar import YakoaRegistrar
from .payload import (
    base_token_id,
    build_asset_submission,
    build_registration_payload,
    build_token_id,
    generate_timestamped_id,
    normalize_creator,
)

__all__ = [
    "YakoaClient",
    "YakoaRegistrar",
    "base_token_id",
    "build_asset_submission",
    "build_registration_payload",
    "build_token_id",
    "generate_timestamped_id",
    "normalize_creator",
]
