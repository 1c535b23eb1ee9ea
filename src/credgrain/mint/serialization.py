# src/credgrain/mint/serialization.py
from __future__ import annotations

"""Serialized forms of minting budgets, node weights and interval partitions.

Addresses travel as arrays of path segments.
"""

from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr, TypeAdapter, ValidationError

from credgrain.ledger.errors import SerializationError
from credgrain.mint.address import NodeAddress, node_address
from credgrain.mint.budget import AdjustedWeights, BudgetLine, BudgetPolicy, MintBudget
from credgrain.mint.interval import Interval, IntervalNodes

Json = Dict[str, Any]


class _StrictModel(BaseModel):
    """Strict model: reject unknown keys."""

    model_config = ConfigDict(extra="forbid")


class BudgetPolicyModel(_StrictModel):
    startTimeMs: StrictInt
    budget: Union[StrictInt, StrictFloat]


class BudgetLineModel(_StrictModel):
    prefix: List[StrictStr]
    policies: List[BudgetPolicyModel]


class MintBudgetModel(_StrictModel):
    intervalLength: StrictStr
    lines: List[BudgetLineModel]


class NodeWeightModel(_StrictModel):
    address: List[StrictStr]
    weight: Union[StrictInt, StrictFloat]


class IntervalNodesModel(_StrictModel):
    startTimeMs: StrictInt
    endTimeMs: StrictInt
    addresses: List[List[StrictStr]]


class NodeTimestampModel(_StrictModel):
    address: List[StrictStr]
    timestampMs: StrictInt


_WEIGHTS_ADAPTER: TypeAdapter = TypeAdapter(List[NodeWeightModel])
_PARTITION_ADAPTER: TypeAdapter = TypeAdapter(List[IntervalNodesModel])
_TIMESTAMPS_ADAPTER: TypeAdapter = TypeAdapter(List[NodeTimestampModel])


def _parse(adapter: Any, obj: Any, what: str) -> Any:
    try:
        if isinstance(adapter, TypeAdapter):
            return adapter.validate_python(obj)
        return adapter.model_validate(obj)
    except ValidationError as e:
        errors = [{"loc": [str(x) for x in err.get("loc", ())], "msg": str(err.get("msg", ""))} for err in e.errors()]
        raise SerializationError(f"invalid_{what}", {"errors": errors}) from e


def budget_from_json(obj: Any) -> MintBudget:
    m = _parse(MintBudgetModel, obj, "mint_budget")
    return MintBudget(
        interval_length=m.intervalLength,
        lines=tuple(
            BudgetLine(
                prefix=node_address(line.prefix),
                policies=tuple(BudgetPolicy(start_time_ms=p.startTimeMs, budget=p.budget) for p in line.policies),
            )
            for line in m.lines
        ),
    )


def budget_to_json(b: MintBudget) -> Json:
    return {
        "intervalLength": b.interval_length,
        "lines": [
            {
                "prefix": list(line.prefix),
                "policies": [{"startTimeMs": p.start_time_ms, "budget": p.budget} for p in line.policies],
            }
            for line in b.lines
        ],
    }


def weights_from_json(obj: Any) -> Dict[NodeAddress, float]:
    out: Dict[NodeAddress, float] = {}
    for m in _parse(_WEIGHTS_ADAPTER, obj, "weights"):
        out[node_address(m.address)] = float(m.weight)
    return out


def weights_to_json(weights: Mapping[NodeAddress, float]) -> List[Json]:
    return [{"address": list(a), "weight": float(w)} for a, w in sorted(weights.items())]


def partition_from_json(obj: Any) -> Tuple[IntervalNodes, ...]:
    return tuple(
        IntervalNodes(
            interval=Interval(start_time_ms=m.startTimeMs, end_time_ms=m.endTimeMs),
            addresses=tuple(node_address(a) for a in m.addresses),
        )
        for m in _parse(_PARTITION_ADAPTER, obj, "partition")
    )


def partition_to_json(partition: Sequence[IntervalNodes]) -> List[Json]:
    return [
        {
            "startTimeMs": item.interval.start_time_ms,
            "endTimeMs": item.interval.end_time_ms,
            "addresses": [list(a) for a in item.addresses],
        }
        for item in partition
    ]


def timestamps_from_json(obj: Any) -> Dict[NodeAddress, int]:
    return {node_address(m.address): int(m.timestampMs) for m in _parse(_TIMESTAMPS_ADAPTER, obj, "timestamps")}


def adjusted_weights_to_json(adjusted: AdjustedWeights) -> Json:
    return {
        "weights": weights_to_json(adjusted.weights),
        "adjustments": [
            {
                "prefix": list(a.prefix),
                "intervalStartMs": a.interval_start_ms,
                "minted": a.minted,
                "ceiling": a.ceiling,
                "normalizer": a.normalizer,
            }
            for a in adjusted.adjustments
        ],
    }


__all__ = [
    "adjusted_weights_to_json",
    "budget_from_json",
    "budget_to_json",
    "partition_from_json",
    "partition_to_json",
    "timestamps_from_json",
    "weights_from_json",
    "weights_to_json",
]
