"""
ModredIP contract access over web3.

Modules:
    contract_client: Reads and signed writes against the ModredIP contract
    abi: Contract ABI fragments and event topics
"""

from .contract_client import ModredIPClient, extract_token_id
from .abi import MODRED_IP_ABI, TRANSFER_EVENT_TOPIC, ZERO_ADDRESS

__all__ = [
    "ModredIPClient",
    "extract_token_id",
    "MODRED_IP_ABI",
    "TRANSFER_EVENT_TOPIC",
    "ZERO_ADDRESS",
]
