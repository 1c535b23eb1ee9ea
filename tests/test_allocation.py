# tests/test_allocation.py
from __future__ import annotations

import dataclasses
import math
import random
from fractions import Fraction

import pytest

from credgrain import metrics
from credgrain.ledger.allocation import (
    Allocation,
    BalancedPolicy,
    Discount,
    GrainReceipt,
    ImmediatePolicy,
    RecentPolicy,
    SpecialPolicy,
    allocation_total,
    compute_allocation,
    compute_allocations,
    receipts_by_identity,
    validate_allocation_budget,
)
from credgrain.ledger.errors import (
    ConservationViolation,
    DegenerateWeights,
    InvalidDiscount,
    InvalidGrain,
    InvalidWeight,
    UnknownRecipient,
    ZeroTotalScore,
)
from credgrain.ledger.grain import ZERO, Grain
from credgrain.ledger.identities import AllocationIdentity, IdentityId


def _g(n: int) -> Grain:
    return Grain.from_number(n)


def _ident(id_: str, cred, paid="0") -> AllocationIdentity:
    return AllocationIdentity(id=id_, cred=cred, paid=paid)


def _amounts(allocation: Allocation) -> dict:
    return receipts_by_identity(allocation)


def test_immediate_pays_most_recent_interval_only() -> None:
    identities = [_ident("x", [5, 1]), _ident("y", [0, 3])]
    a = compute_allocation(ImmediatePolicy(budget=_g(40)), identities)
    assert _amounts(a) == {"x": _g(10), "y": _g(30)}
    assert [r.id for r in a.receipts] == ["x", "y"]
    assert a.policy.budget == _g(40)


def test_recent_with_full_discount_equals_immediate() -> None:
    identities = [_ident("x", [5, 1, 7]), _ident("y", [2, 3, 1]), _ident("z", [9, 0, 2])]
    budget = Grain.from_decimal("1000.123456789")
    recent = compute_allocation(RecentPolicy(budget=budget, discount=Discount(1)), identities)
    immediate = compute_allocation(ImmediatePolicy(budget=budget), identities)
    assert _amounts(recent) == _amounts(immediate)


def test_recent_discounts_old_cred() -> None:
    # discount 0.5: x -> 4*0.5 + 0 = 2, y -> 0*0.5 + 2 = 2
    identities = [_ident("x", [4, 0]), _ident("y", [0, 2])]
    a = compute_allocation(RecentPolicy(budget=_g(10), discount=Discount(0.5)), identities)
    assert _amounts(a) == {"x": _g(5), "y": _g(5)}


def test_recent_with_no_discount_is_lifetime_cred() -> None:
    identities = [_ident("x", [1, 1]), _ident("y", [0, 2])]
    a = compute_allocation(RecentPolicy(budget=_g(8), discount=Discount(0)), identities)
    assert _amounts(a) == {"x": _g(4), "y": _g(4)}


def test_balanced_with_nothing_paid_is_proportional_to_lifetime_cred() -> None:
    identities = [_ident("x", [1, 2]), _ident("y", [3, 4])]
    a = compute_allocation(BalancedPolicy(budget=_g(100)), identities)
    assert _amounts(a) == {"x": _g(30), "y": _g(70)}


def _assert_within_one_unit_of_lifetime_share(allocation: Allocation, creds) -> None:
    lifetimes = [Fraction(math.fsum(c)) for c in creds]
    total = sum(lifetimes, Fraction(0))
    budget = allocation.policy.budget.units
    for r, lifetime in zip(allocation.receipts, lifetimes):
        assert abs(r.amount.units - budget * lifetime / total) < 1


def test_balanced_with_no_history_is_exact_to_one_unit() -> None:
    creds = [[1, 0.5], [2, 0.25], [7, 3.3]]
    identities = [_ident(f"id{n}", c) for n, c in enumerate(creds)]
    a = compute_allocation(BalancedPolicy(budget=Grain(10**24 + 7)), identities)
    assert allocation_total([a]) == Grain(10**24 + 7)
    _assert_within_one_unit_of_lifetime_share(a, creds)


def test_balanced_random_histories_are_exact_to_one_unit() -> None:
    rng = random.Random(2024)
    for _ in range(100):
        creds = [[rng.random() * 10 for _ in range(3)] for _ in range(rng.randint(1, 8))]
        identities = [_ident(f"id{n}", c) for n, c in enumerate(creds)]
        budget = Grain(rng.randint(1, 10**24))
        _assert_within_one_unit_of_lifetime_share(compute_allocation(BalancedPolicy(budget=budget), identities), creds)


def test_balanced_handles_budgets_beyond_float_range() -> None:
    creds = [[1], [2]]
    budget = Grain(10**400 + 1)
    a = compute_allocation(BalancedPolicy(budget=budget), [_ident("x", [1]), _ident("y", [2])])
    assert allocation_total([a]) == budget
    _assert_within_one_unit_of_lifetime_share(a, creds)


def test_balanced_pays_only_the_underpaid() -> None:
    # lifetime cred is equal but x has already received 10 Grain
    identities = [_ident("x", [1], "10"), _ident("y", [1], "0")]
    a = compute_allocation(BalancedPolicy(budget=_g(10)), identities)
    assert _amounts(a) == {"x": ZERO, "y": _g(10)}


def test_balanced_splits_budget_across_shortfalls() -> None:
    identities = [_ident("x", [1], "10"), _ident("y", [1], "0")]
    a = compute_allocation(BalancedPolicy(budget=_g(20)), identities)
    # target 15 each; shortfalls 5 and 15
    assert _amounts(a) == {"x": _g(5), "y": _g(15)}


def test_balanced_with_zero_budget_on_balanced_history_is_degenerate() -> None:
    identities = [_ident("x", [1], "5"), _ident("y", [1], "5")]
    with pytest.raises(DegenerateWeights):
        compute_allocation(BalancedPolicy(budget=ZERO), identities)


def test_special_pays_recipient_only() -> None:
    identities = [_ident("x", [1]), _ident("y", [2])]
    policy = SpecialPolicy(budget=_g(7), memo="genesis", recipient=IdentityId("y"))
    a = compute_allocation(policy, identities)
    assert a.receipts == (GrainReceipt(id=IdentityId("y"), amount=_g(7)),)


def test_special_unknown_recipient_raises() -> None:
    policy = SpecialPolicy(budget=_g(7), memo="genesis", recipient=IdentityId("nobody"))
    with pytest.raises(UnknownRecipient):
        compute_allocation(policy, [_ident("x", [1])])


def test_cred_mapping_is_applied_to_weights() -> None:
    identities = [_ident("x", [1]), _ident("y", [3])]

    def flatten(ws):
        return [1.0 if w > 0 else 0.0 for w in ws]

    a = compute_allocation(ImmediatePolicy(budget=_g(10), cred_mapping=flatten), identities)
    assert _amounts(a) == {"x": _g(5), "y": _g(5)}


def test_cred_mapping_must_preserve_length() -> None:
    policy = ImmediatePolicy(budget=_g(10), cred_mapping=lambda ws: list(ws) + [1.0])
    with pytest.raises(InvalidWeight):
        compute_allocation(policy, [_ident("x", [1])])


def test_allocation_always_conserves_budget() -> None:
    identities = [_ident(f"id{i}", [i % 3, (i * 7) % 5, 1]) for i in range(17)]
    budget = Grain.from_decimal("123.456789012345678901")
    for policy in (
        ImmediatePolicy(budget=budget),
        RecentPolicy(budget=budget, discount=Discount(0.3)),
        BalancedPolicy(budget=budget),
    ):
        a = compute_allocation(policy, identities)
        assert allocation_total([a]) == budget
        assert len(a.receipts) == len(identities)


def test_invalid_input_is_rejected_before_allocation() -> None:
    with pytest.raises(ZeroTotalScore):
        compute_allocation(ImmediatePolicy(budget=_g(1)), [_ident("x", [0])])


def test_policy_fields_are_validated() -> None:
    with pytest.raises(InvalidDiscount):
        RecentPolicy(budget=_g(1), discount=1.5)  # type: ignore[arg-type]
    with pytest.raises(InvalidGrain):
        ImmediatePolicy(budget="10")  # type: ignore[arg-type]


def test_tampered_allocation_fails_conservation_check() -> None:
    a = compute_allocation(ImmediatePolicy(budget=_g(10)), [_ident("x", [1]), _ident("y", [1])])
    tampered = dataclasses.replace(a, receipts=a.receipts[:1])
    with pytest.raises(ConservationViolation):
        validate_allocation_budget(tampered)


def test_compute_allocations_shares_identities() -> None:
    identities = [_ident("x", [1, 0]), _ident("y", [0, 1])]
    allocs = compute_allocations([ImmediatePolicy(budget=_g(10)), BalancedPolicy(budget=_g(10))], identities)
    assert len(allocs) == 2
    assert allocs[0].id != allocs[1].id
    assert allocation_total(allocs) == _g(20)


def test_compute_allocation_counts_metrics() -> None:
    metrics.reset()
    compute_allocation(ImmediatePolicy(budget=_g(1)), [_ident("x", [1])])
    counters = metrics.snapshot()["counters"]
    assert counters["allocations_computed_total"] == 1
    assert counters["allocations_immediate_total"] == 1
