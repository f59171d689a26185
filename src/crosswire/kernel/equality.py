"""Structural equality for configuration values.

Desired configuration (parsed from user input) and current configuration
(returned by chain SDKs) rarely share a Python type: one side may be a
pydantic model and the other a dict, a tuple may face a list, an address may
differ only in hex casing. Values are first canonicalized, then compared.

Canonicalization rules:
- pydantic models are dumped to dicts by field name
- mappings become dicts with canonicalized values; None-valued keys are
  dropped
- tuples and lists become lists (order preserved)
- sets and frozensets become sorted lists
- bytes become lowercase ``0x`` hex strings
- ``0x`` hex strings are lowercased
- everything else is compared as-is

Order-insensitive collections (verifier lists) are sorted by their models at
parse time, not here: sequence order is significant in general.
"""

from collections.abc import Mapping, Set
from typing import Any

from pydantic import BaseModel


def _is_hex(value: str) -> bool:
    if len(value) < 2 or value[:2] not in ("0x", "0X"):
        return False
    return all(c in "0123456789abcdefABCDEF" for c in value[2:])


def canonicalize(value: Any) -> Any:
    """Return a canonical, comparison-friendly form of ``value``."""
    if isinstance(value, BaseModel):
        return canonicalize(value.model_dump())
    if isinstance(value, Mapping):
        return {str(k): canonicalize(v) for k, v in value.items() if v is not None}
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, str):
        return value.lower() if _is_hex(value) else value
    if isinstance(value, (Set, frozenset)):
        return sorted((canonicalize(v) for v in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [canonicalize(v) for v in value]
    return value


def is_deep_equal(a: Any, b: Any) -> bool:
    """Deep structural equality after canonicalization."""
    return canonicalize(a) == canonicalize(b)
