from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from credgrain.api.errors import ApiError
from credgrain.api.routes_public_parts.common import _json_object, _require_key
from credgrain.mint.budget import apply_budget
from credgrain.mint.interval import partition_weekly
from credgrain.mint.serialization import (
    adjusted_weights_to_json,
    budget_from_json,
    partition_from_json,
    partition_to_json,
    timestamps_from_json,
    weights_from_json,
)

router = APIRouter()

Json = Dict[str, Any]


@router.post("/mint-budget/apply")
async def mint_budget_apply(request: Request) -> Json:
    """Apply a minting budget to node weights.

    Body:
      { "budget": {...}, "weights": [{"address": [...], "weight": n}],
        "intervals": [{"startTimeMs", "endTimeMs", "addresses": [[...]]}] }
      "timestamps": [{"address": [...], "timestampMs": n}] may replace
      "intervals"; nodes are then grouped into weekly intervals.

    Returns:
      { ok, weights: [...], adjustments: [...], intervals: [...] }
      (intervals as applied, useful when they were grouped from timestamps)
    """
    body = await _json_object(request)

    budget = budget_from_json(_require_key(body, "budget"))
    weights = weights_from_json(body.get("weights") or [])

    if "intervals" in body:
        partition = partition_from_json(body["intervals"])
    elif "timestamps" in body:
        partition = partition_weekly(timestamps_from_json(body["timestamps"]))
    else:
        raise ApiError.bad_request(
            "missing_field", "Body must include 'intervals' or 'timestamps'", {"field": "intervals"}
        )

    adjusted = apply_budget(weights, budget, partition)
    out: Json = {"ok": True}
    out.update(adjusted_weights_to_json(adjusted))
    out["intervals"] = partition_to_json(partition)
    return out
