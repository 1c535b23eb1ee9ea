# src/credgrain/ledger/allocation.py
from __future__ import annotations

"""Grain allocation policies.

Projects regularly distribute Grain to contributors based on their Cred
scores. This module turns one allocation policy plus the contributors' Cred
history into exact receipts.

Policies:
  - BALANCED: pay so that lifetime payouts track lifetime Cred
  - IMMEDIATE: pay in proportion to Cred in the most recent interval
  - RECENT: pay in proportion to exponentially discounted Cred
  - SPECIAL: pay the whole budget to one identity

Every policy except SPECIAL derives a weight vector and hands it to
split_budget; the result is checked to conserve the budget exactly.
"""

import logging
import uuid
from dataclasses import dataclass
from fractions import Fraction
from typing import Callable, ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from credgrain.ledger.apportion import Weight, split_budget
from credgrain.ledger.constants import POLICY_BALANCED, POLICY_IMMEDIATE, POLICY_RECENT, POLICY_SPECIAL
from credgrain.ledger.errors import (
    ConservationViolation,
    InputError,
    InvalidDiscount,
    InvalidGrain,
    InvalidWeight,
    UnknownRecipient,
)
from credgrain.ledger.grain import Grain, grain_sum
from credgrain.ledger.identities import (
    AllocationIdentity,
    CredScores,
    IdentityId,
    ValidatedIdentities,
    validate_identities,
)
from credgrain.metrics import inc_counter
from credgrain.structured_logging import log_event

log = logging.getLogger("credgrain.allocation")

CredMapping = Callable[[CredScores], Sequence[float]]


class Discount(float):
    """Time discount factor in [0, 1]; 1 means only the latest interval counts."""

    def __new__(cls, value: float) -> "Discount":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidDiscount("discount_must_be_real", {"type": type(value).__name__})
        if not (0 <= value <= 1):
            raise InvalidDiscount("discount_out_of_range", {"discount": repr(value), "range": [0, 1]})
        return super().__new__(cls, value)


def to_discount(n: float) -> Discount:
    return Discount(n)


def _require_budget(budget: Grain) -> None:
    if not isinstance(budget, Grain):
        raise InvalidGrain("budget_must_be_grain", {"type": type(budget).__name__})


@dataclass(frozen=True)
class BalancedPolicy:
    """Pay everyone so that lifetime Grain stays consistent with lifetime Cred.

    Takes new information into account: if past contributions are now seen
    as more valuable, their authors get paid more on the next distribution.
    """

    budget: Grain
    cred_mapping: Optional[CredMapping] = None

    policy_type: ClassVar[str] = POLICY_BALANCED

    def __post_init__(self) -> None:
        _require_budget(self.budget)


@dataclass(frozen=True)
class ImmediatePolicy:
    """Split the budget by Cred in the most recent interval only."""

    budget: Grain
    cred_mapping: Optional[CredMapping] = None

    policy_type: ClassVar[str] = POLICY_IMMEDIATE

    def __post_init__(self) -> None:
        _require_budget(self.budget)


@dataclass(frozen=True)
class RecentPolicy:
    """Split the budget by exponentially discounted Cred.

    A generalization of ImmediatePolicy: discount 1 gives the same result.
    """

    budget: Grain
    discount: Discount
    cred_mapping: Optional[CredMapping] = None

    policy_type: ClassVar[str] = POLICY_RECENT

    def __post_init__(self) -> None:
        _require_budget(self.budget)
        object.__setattr__(self, "discount", Discount(self.discount))


@dataclass(frozen=True)
class SpecialPolicy:
    """Pay the whole budget to one identity (e.g. initialization payouts).

    Subverts the "Grain comes from Cred" model; keep it out of easy reach.
    """

    budget: Grain
    memo: str
    recipient: IdentityId

    policy_type: ClassVar[str] = POLICY_SPECIAL

    def __post_init__(self) -> None:
        _require_budget(self.budget)
        if not isinstance(self.memo, str):
            raise InputError("memo_must_be_str", {"type": type(self.memo).__name__})
        object.__setattr__(self, "recipient", IdentityId(self.recipient))


AllocationPolicy = Union[BalancedPolicy, ImmediatePolicy, RecentPolicy, SpecialPolicy]


@dataclass(frozen=True)
class GrainReceipt:
    id: IdentityId
    amount: Grain


@dataclass(frozen=True)
class Allocation:
    id: str
    policy: AllocationPolicy
    receipts: Tuple[GrainReceipt, ...]


def _validate_policy(p: AllocationPolicy) -> AllocationPolicy:
    if not isinstance(p, (BalancedPolicy, ImmediatePolicy, RecentPolicy, SpecialPolicy)):
        raise InputError("unknown_policy", {"type": type(p).__name__})
    return p


def validate_allocation_budget(a: Allocation) -> Allocation:
    """Post-condition: receipts conserve the budget and name each identity once.

    Raising here means apportionment is broken, not that the input was bad.
    """
    amt = grain_sum(r.amount for r in a.receipts)
    if amt != a.policy.budget:
        raise ConservationViolation(
            "budget_not_conserved",
            {"budget": a.policy.budget.to_decimal_string(), "distributed": amt.to_decimal_string()},
        )
    ids = [r.id for r in a.receipts]
    if len(set(ids)) != len(ids):
        raise ConservationViolation("duplicate_receipt_identity", {"allocation_id": a.id})
    return a


def _apply_mapping(weights: Sequence[Weight], cred_mapping: Optional[CredMapping]) -> Sequence[Weight]:
    if cred_mapping is None:
        return weights
    mapped = list(cred_mapping(tuple(float(w) for w in weights)))
    if len(mapped) != len(weights):
        raise InvalidWeight("cred_mapping_changed_length", {"expected": len(weights), "got": len(mapped)})
    return mapped


def _to_receipts(identities: ValidatedIdentities, amounts: Sequence[Grain]) -> Tuple[GrainReceipt, ...]:
    return tuple(GrainReceipt(id=i.id, amount=a) for i, a in zip(identities, amounts))


def _immediate_weights(identities: ValidatedIdentities) -> List[float]:
    return [i.most_recent_cred for i in identities]


def _recent_weights(identities: ValidatedIdentities, discount: Discount) -> List[float]:
    out = []
    for i in identities:
        acc = 0.0
        for c in i.cred:
            acc = acc * (1 - discount) + c
        out.append(acc)
    return out


def _balanced_weights(budget: Grain, identities: ValidatedIdentities) -> List[Fraction]:
    """Underpayment of each identity against the fully-balanced counterfactual.

    Imagine the whole Grain supply so far, plus this budget, had been paid in
    proportion to current lifetime Cred. Each identity's shortfall against
    that counterfactual is its weight; overpaid identities weigh zero.
    Shortfalls are exact, in minimal units; with no payout history they are
    exactly proportional to lifetime Cred.
    """
    total_cred = Fraction(identities.total_lifetime_cred)
    target_total = (identities.total_paid + budget).units

    out = []
    for i in identities:
        target = target_total * Fraction(i.lifetime_cred) / total_cred
        out.append(max(target - i.paid.units, Fraction(0)))
    return out


def _special_receipts(policy: SpecialPolicy, identities: ValidatedIdentities) -> Tuple[GrainReceipt, ...]:
    for i in identities:
        if i.id == policy.recipient:
            return (GrainReceipt(id=i.id, amount=policy.budget),)
    raise UnknownRecipient("no_active_grain_account", {"recipient": str(policy.recipient)})


def _receipts(policy: AllocationPolicy, identities: ValidatedIdentities) -> Tuple[GrainReceipt, ...]:
    if isinstance(policy, SpecialPolicy):
        return _special_receipts(policy, identities)

    if isinstance(policy, BalancedPolicy):
        weights = _balanced_weights(policy.budget, identities)
    elif isinstance(policy, ImmediatePolicy):
        weights = _immediate_weights(identities)
    elif isinstance(policy, RecentPolicy):
        weights = _recent_weights(identities, policy.discount)
    else:  # pragma: no cover - guarded by _validate_policy
        raise InputError("unknown_policy", {"type": type(policy).__name__})

    weights = _apply_mapping(weights, policy.cred_mapping)
    return _to_receipts(identities, split_budget(policy.budget, weights))


def compute_allocation(
    policy: AllocationPolicy,
    identities: Union[Sequence[AllocationIdentity], ValidatedIdentities],
) -> Allocation:
    """Compute one allocation; raises rather than ever returning a partial result."""
    validated_policy = _validate_policy(policy)
    processed = identities if isinstance(identities, ValidatedIdentities) else validate_identities(identities)

    allocation = validate_allocation_budget(
        Allocation(
            id=uuid.uuid4().hex,
            policy=validated_policy,
            receipts=_receipts(validated_policy, processed),
        )
    )

    inc_counter("allocations_computed_total")
    inc_counter(f"allocations_{validated_policy.policy_type.lower()}_total")
    log_event(
        log,
        "allocation_computed",
        allocation_id=allocation.id,
        policy_type=validated_policy.policy_type,
        budget=validated_policy.budget.to_decimal_string(),
        identities=len(processed),
        receipts=len(allocation.receipts),
        paid_identities=sum(1 for r in allocation.receipts if not r.amount.is_zero()),
    )
    return allocation


def compute_allocations(
    policies: Sequence[AllocationPolicy],
    identities: Union[Sequence[AllocationIdentity], ValidatedIdentities],
) -> Tuple[Allocation, ...]:
    """Compute several allocations against the same identities.

    Each allocation conserves its own budget; policies do not see each
    other's receipts. Nothing is returned unless every policy succeeds.
    """
    processed = identities if isinstance(identities, ValidatedIdentities) else validate_identities(identities)
    return tuple(compute_allocation(p, processed) for p in policies)


def allocation_total(allocations: Sequence[Allocation]) -> Grain:
    return grain_sum(r.amount for a in allocations for r in a.receipts)


def receipts_by_identity(allocation: Allocation) -> Dict[str, Grain]:
    return {str(r.id): r.amount for r in allocation.receipts}


__all__ = [
    "Allocation",
    "AllocationPolicy",
    "BalancedPolicy",
    "CredMapping",
    "Discount",
    "GrainReceipt",
    "ImmediatePolicy",
    "RecentPolicy",
    "SpecialPolicy",
    "allocation_total",
    "compute_allocation",
    "compute_allocations",
    "receipts_by_identity",
    "to_discount",
    "validate_allocation_budget",
]
