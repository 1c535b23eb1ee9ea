from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Request

from credgrain.api.errors import ApiError
from credgrain.api.routes_public_parts.common import _cfg, _json_object, _require_key
from credgrain.ledger.allocation import allocation_total, compute_allocation, compute_allocations
from credgrain.ledger.serialization import allocation_to_json, identities_from_json, policy_from_json

router = APIRouter()

Json = Dict[str, Any]


@router.post("/allocations")
async def allocations_compute(request: Request) -> Json:
    """Compute one allocation, or several against the same identities.

    Body:
      { "policy": {...}, "identities": [{"id", "cred": [...], "paid": "<decimal>"}] }
      or { "policies": [{...}, ...], "identities": [...] }

    Returns:
      { ok, allocation } or { ok, allocations, total }
    """
    body = await _json_object(request)
    cfg = _cfg(request)

    raw_identities = _require_key(body, "identities")
    if isinstance(raw_identities, list) and len(raw_identities) > cfg.max_identities:
        raise ApiError.too_large(
            "too_many_identities",
            "Too many identities in one request",
            {"max_identities": cfg.max_identities, "got": len(raw_identities)},
        )
    identities = identities_from_json(raw_identities)

    if "policies" in body:
        raw_policies = body["policies"]
        if not isinstance(raw_policies, list):
            raise ApiError.bad_request("bad_request", "'policies' must be a list", {})
        policies = [policy_from_json(p) for p in raw_policies]
        allocations = compute_allocations(policies, identities)
        out: List[Json] = [allocation_to_json(a) for a in allocations]
        return {"ok": True, "allocations": out, "total": allocation_total(allocations).to_decimal_string()}

    policy = policy_from_json(_require_key(body, "policy"))
    return {"ok": True, "allocation": allocation_to_json(compute_allocation(policy, identities))}
