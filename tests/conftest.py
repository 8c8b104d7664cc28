"""Shared fixtures for the ModredIP test suite."""

from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

CONTRACT = "0x8f0a07eeb4b3e5bb4ab2bd0a40c5c24c9eda0217"
TX_HASH = "0x" + "ab" * 32


def make_response(status_code: int = 200, json_data: Any = None, text: str = "") -> MagicMock:
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.reason = "OK" if response.ok else "Error"
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def session():
    """A requests.Session double; set .post / .request return values per test."""
    return MagicMock()


def tx_result(ip_asset_id: Optional[int] = None, **extra) -> dict:
    result = {
        "txHash": TX_HASH,
        "blockNumber": 5177789,
        "explorerUrl": f"https://testnet.explorer.etherlink.com/tx/{TX_HASH}",
    }
    if ip_asset_id is not None or "ipAssetId" in extra:
        result["ipAssetId"] = ip_asset_id
    result.update(extra)
    return result
