# src/credgrain/loader.py
from __future__ import annotations

"""Reading policy, budget and data files.

YAML is a superset of JSON, so one safe_load covers both formats.
"""

from pathlib import Path
from typing import Any, List

import yaml

from credgrain.ledger.allocation import AllocationPolicy
from credgrain.ledger.errors import SerializationError
from credgrain.ledger.serialization import policy_from_json
from credgrain.mint.budget import MintBudget
from credgrain.mint.serialization import budget_from_json


def read_structured_file(path: str) -> Any:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(str(p))
    try:
        return yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SerializationError("unparseable_file", {"path": str(p), "error": str(e)}) from e


def load_policies(path: str) -> List[AllocationPolicy]:
    """Load one policy object, a list of them, or {"policies": [...]}."""
    obj = read_structured_file(path)
    if isinstance(obj, dict) and "policies" in obj:
        obj = obj["policies"]
    if isinstance(obj, dict):
        obj = [obj]
    if not isinstance(obj, list):
        raise SerializationError("policies_must_be_list", {"path": path, "type": type(obj).__name__})
    return [policy_from_json(p) for p in obj]


def load_mint_budget(path: str) -> MintBudget:
    """Load a minting budget, either bare or under a top-level "mintBudget" key."""
    obj = read_structured_file(path)
    if isinstance(obj, dict) and "mintBudget" in obj:
        obj = obj["mintBudget"]
    return budget_from_json(obj)
