# src/credgrain/mint/address.py
from __future__ import annotations

"""Hierarchical node addresses.

An address is an ordered tuple of string segments. Plugins write nodes under
distinct prefixes, so a prefix names a family of contributions.
"""

import json
from typing import Any, Iterable, Sequence, Tuple

from credgrain.ledger.errors import InputError

NodeAddress = Tuple[str, ...]


def node_address(parts: Iterable[Any]) -> NodeAddress:
    """Build an address from path segments; segments must be strings without NUL."""
    if isinstance(parts, (str, bytes)):
        raise InputError("address_must_be_sequence", {"value": str(parts)[:64]})
    out = []
    for p in parts:
        if not isinstance(p, str):
            raise InputError("address_part_must_be_str", {"part": repr(p)[:64]})
        if "\0" in p:
            raise InputError("address_part_contains_nul", {"part": repr(p)[:64]})
        out.append(p)
    return tuple(out)


def has_prefix(address: NodeAddress, prefix: NodeAddress) -> bool:
    return len(prefix) <= len(address) and tuple(address[: len(prefix)]) == tuple(prefix)


def address_to_string(address: NodeAddress) -> str:
    return "NodeAddress" + json.dumps(list(address), separators=(",", ":"))


def any_common_prefixes(addresses: Sequence[NodeAddress]) -> bool:
    """True if any address is a prefix of another (duplicates count).

    O(n^2); meant for small lists (about one per plugin).
    """
    for i, a in enumerate(addresses):
        for j, b in enumerate(addresses):
            if i != j and has_prefix(a, b):
                return True
    return False


__all__ = [
    "NodeAddress",
    "address_to_string",
    "any_common_prefixes",
    "has_prefix",
    "node_address",
]
