# src/credgrain/mint/budget.py
from __future__ import annotations

"""Cred minting budgets.

A budget says that nodes matching an address prefix may mint at most a fixed
amount of Cred per interval. Since every plugin writes nodes under a distinct
prefix, this gives plugin-level budgets; the same mechanism works for finer
prefixes such as specific node types.

When an interval would exceed its ceiling, the weights of the matching nodes
in that interval are scaled down proportionally. Weights are never scaled up,
and other intervals are untouched.
"""

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from credgrain.ledger.constants import INTERVAL_WEEKLY, SUPPORTED_INTERVAL_LENGTHS
from credgrain.ledger.errors import (
    InvalidWeight,
    PrefixConflict,
    ScheduleError,
    UnorderedPolicies,
    UnsupportedGranularity,
)
from credgrain.metrics import inc_counter
from credgrain.mint.address import NodeAddress, address_to_string, any_common_prefixes, has_prefix, node_address
from credgrain.mint.interval import IntervalNodes, validate_partition
from credgrain.structured_logging import log_event

log = logging.getLogger("credgrain.mint")

WeightEvaluator = Callable[[NodeAddress], float]

# Nodes without an explicit weight count as weight 1.
DEFAULT_NODE_WEIGHT: float = 1.0


@dataclass(frozen=True)
class BudgetPolicy:
    """Ceiling on Cred minted per interval, effective from start_time_ms."""

    start_time_ms: int
    budget: float

    def __post_init__(self) -> None:
        if isinstance(self.start_time_ms, bool) or not isinstance(self.start_time_ms, int):
            raise ScheduleError("start_time_must_be_int", {"start_time_ms": repr(self.start_time_ms)})
        b = self.budget
        if isinstance(b, bool) or not isinstance(b, (int, float)) or math.isnan(b) or b < 0:
            raise ScheduleError("invalid_ceiling", {"budget": repr(b)})


@dataclass(frozen=True)
class BudgetLine:
    """One line item: a prefix plus its time-ordered policies."""

    prefix: NodeAddress
    policies: Tuple[BudgetPolicy, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "prefix", node_address(self.prefix))
        object.__setattr__(self, "policies", tuple(self.policies))


@dataclass(frozen=True)
class MintBudget:
    """Budget line items. No line's prefix may be a prefix of another's."""

    lines: Tuple[BudgetLine, ...] = ()
    interval_length: str = INTERVAL_WEEKLY

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class IntervalAdjustment:
    prefix: NodeAddress
    interval_start_ms: int
    minted: float
    ceiling: float
    normalizer: float


@dataclass(frozen=True)
class AdjustedWeights:
    """Node weights after the budget, plus a record of every scaled interval."""

    weights: Mapping[NodeAddress, float]
    adjustments: Tuple[IntervalAdjustment, ...] = field(default=())


def _in_sorted_order(xs: Sequence[int]) -> bool:
    last = -math.inf
    for x in xs:
        if x < last:
            return False
        last = x
    return True


def validate_budget(budget: MintBudget) -> None:
    prefixes = [line.prefix for line in budget.lines]
    if any_common_prefixes(prefixes):
        raise PrefixConflict(
            "budget_prefix_conflict_detected",
            {"prefixes": [address_to_string(p) for p in prefixes]},
        )
    if budget.interval_length not in SUPPORTED_INTERVAL_LENGTHS:
        raise UnsupportedGranularity(
            "non_weekly_budgets_not_supported",
            {"interval_length": budget.interval_length},
        )
    for line in budget.lines:
        if not _in_sorted_order([p.start_time_ms for p in line.policies]):
            raise UnorderedPolicies(
                "policies_out_of_order",
                {"prefix": address_to_string(line.prefix)},
            )


def _check_weights(weights: Mapping[NodeAddress, float]) -> None:
    for address, w in weights.items():
        if isinstance(w, bool) or not isinstance(w, (int, float)) or not math.isfinite(w) or w < 0:
            raise InvalidWeight(
                "negative_or_non_finite_weight",
                {"address": address_to_string(address), "weight": repr(w)},
            )


def _apply_line(
    line: BudgetLine,
    weights: Mapping[NodeAddress, float],
    partition: Sequence[IntervalNodes],
    evaluator: WeightEvaluator,
    updated: Dict[NodeAddress, float],
    adjustments: List[IntervalAdjustment],
) -> None:
    policies = line.policies
    policy_index = 0
    ceiling = math.inf

    for item in partition:
        start = item.interval.start_time_ms
        while policy_index < len(policies) and policies[policy_index].start_time_ms <= start:
            ceiling = float(policies[policy_index].budget)
            policy_index += 1

        matching = [a for a in item.addresses if has_prefix(a, line.prefix)]
        if not matching:
            continue

        minted = math.fsum(evaluator(a) for a in matching)
        if minted <= ceiling:
            continue

        normalizer = ceiling / minted
        for a in matching:
            updated[a] = float(weights.get(a, DEFAULT_NODE_WEIGHT)) * normalizer

        adjustments.append(
            IntervalAdjustment(
                prefix=line.prefix,
                interval_start_ms=start,
                minted=minted,
                ceiling=ceiling,
                normalizer=normalizer,
            )
        )
        log_event(
            log,
            "mint_budget_interval_scaled",
            level=logging.DEBUG,
            prefix=list(line.prefix),
            interval_start_ms=start,
            minted=minted,
            ceiling=ceiling,
            normalizer=normalizer,
        )


def apply_budget(
    weights: Mapping[NodeAddress, float],
    budget: MintBudget,
    partition: Sequence[IntervalNodes],
    evaluator: Optional[WeightEvaluator] = None,
) -> AdjustedWeights:
    """Return node weights that keep every interval within the budget.

    `weights` are the explicit node weights (absent nodes weigh 1).
    `evaluator` gives the effective weight of a node for measuring minted
    Cred; by default it is the explicit weight. Every line is measured
    against the original weights, so line order does not matter.
    """
    validate_budget(budget)
    _check_weights(weights)
    validate_partition(partition)

    def _explicit_weight(a: NodeAddress) -> float:
        return float(weights.get(a, DEFAULT_NODE_WEIGHT))

    evaluate = evaluator if evaluator is not None else _explicit_weight

    updated: Dict[NodeAddress, float] = dict(weights)
    adjustments: List[IntervalAdjustment] = []
    for line in budget.lines:
        _apply_line(line, weights, partition, evaluate, updated, adjustments)

    inc_counter("mint_budgets_applied_total")
    inc_counter("mint_budget_intervals_scaled_total", len(adjustments))
    log_event(
        log,
        "mint_budget_applied",
        lines=len(budget.lines),
        intervals=len(partition),
        scaled_intervals=len(adjustments),
    )
    return AdjustedWeights(weights=MappingProxyType(updated), adjustments=tuple(adjustments))


__all__ = [
    "AdjustedWeights",
    "BudgetLine",
    "BudgetPolicy",
    "DEFAULT_NODE_WEIGHT",
    "IntervalAdjustment",
    "MintBudget",
    "WeightEvaluator",
    "apply_budget",
    "validate_budget",
]
