"""
JSON-safe conversion of chain values.

Contract reads and transaction receipts carry uint256 values, HexBytes and
web3 AttributeDicts. Browsers parse JSON numbers as IEEE doubles, so any
integer outside the safe range is sent as a decimal string instead.
"""

from collections.abc import Mapping
from typing import Any

# Number.MAX_SAFE_INTEGER in JavaScript
MAX_SAFE_INTEGER = 2 ** 53 - 1


def convert_bigints_to_strings(value: Any) -> Any:
    """
    Recursively convert big integers and chain-native types to JSON types.

    Args:
        value: Any nested structure of dicts, lists, tuples and scalars

    Returns:
        The same structure with:
            - ints beyond +/- 2**53 - 1 as decimal strings
            - HexBytes / bytes as 0x-prefixed hex strings
            - Mappings (including AttributeDict) as plain dicts
            - tuples and sets as lists

    Example:
        >>> convert_bigints_to_strings({"value": 10 ** 18, "ok": True})
        {'value': '1000000000000000000', 'ok': True}
    """
    # bool is an int subclass and must stay a bool
    if isinstance(value, bool) or value is None:
        return value

    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INTEGER:
            return str(value)
        return value

    # HexBytes is a bytes subclass
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()

    if isinstance(value, Mapping):
        return {str(k): convert_bigints_to_strings(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set)):
        return [convert_bigints_to_strings(v) for v in value]

    return value


# Name used by the HTTP layer
to_json_safe = convert_bigints_to_strings
