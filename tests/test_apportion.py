# tests/test_apportion.py
from __future__ import annotations

import random
from fractions import Fraction

import pytest

from credgrain.ledger.apportion import split_budget, split_units
from credgrain.ledger.errors import DegenerateWeights, InvalidWeight
from credgrain.ledger.grain import Grain


def test_exact_split_has_no_remainder() -> None:
    assert split_units(100, [1, 3]) == (25, 75)
    assert split_budget(Grain.from_number(40), [10, 30]) == (Grain.from_number(10), Grain.from_number(30))


def test_sum_is_conserved_and_each_share_within_one_unit() -> None:
    rng = random.Random(1234)
    for _ in range(200):
        n = rng.randint(1, 12)
        weights = [rng.choice([0.0, rng.random() * 100]) for _ in range(n)]
        if not any(weights):
            weights[0] = 1.0
        total = rng.randint(0, 10**20)
        shares = split_units(total, weights)
        assert sum(shares) == total
        wsum = sum(Fraction(w) for w in weights)
        for s, w in zip(shares, weights):
            ideal = total * Fraction(w) / wsum
            assert abs(s - ideal) < 1


def test_zero_weight_gets_nothing() -> None:
    assert split_units(7, [0, 1, 0]) == (0, 7, 0)


def test_ties_go_to_lower_index() -> None:
    assert split_units(1, [1, 1, 1]) == (1, 0, 0)
    assert split_units(2, [1, 1, 1]) == (1, 1, 0)
    assert split_units(5, [1, 1]) == (3, 2)


def test_larger_remainder_wins() -> None:
    # ideals: 10/3 * (1, 2) -> 3.33 / 6.67; the larger remainder gets the unit
    assert split_units(10, [1, 2]) == (3, 7)


def test_zero_total_splits_to_zeros() -> None:
    assert split_units(0, [1, 2, 3]) == (0, 0, 0)


def test_all_zero_weights_is_degenerate() -> None:
    with pytest.raises(DegenerateWeights):
        split_units(10, [0, 0])
    with pytest.raises(DegenerateWeights):
        split_units(10, [])


@pytest.mark.parametrize("bad", [-1.0, float("nan"), float("inf"), "1", None])
def test_invalid_weights_rejected(bad) -> None:
    with pytest.raises(InvalidWeight):
        split_units(10, [1.0, bad])


def test_exact_rational_and_huge_integer_weights() -> None:
    assert split_units(10, [Fraction(1, 3), Fraction(2, 3)]) == (3, 7)
    huge = 10**400
    assert split_units(3, [huge, 2 * huge]) == (1, 2)
