# src/credgrain/ledger/apportion.py
from __future__ import annotations

"""Largest-remainder apportionment of a Grain total over real-valued weights.

This is the single place where Grain is rounded. Every allocation policy
derives a weight vector and hands it here; nothing else re-derives rounding.

Determinism:
  - ideal shares are computed exactly (floats convert to Fraction losslessly)
  - leftover units go to the largest remainders; ties go to the lower index,
    i.e. the caller's input order is the tie-break
"""

import math
from fractions import Fraction
from typing import List, Sequence, Tuple, Union

from credgrain.ledger.errors import DegenerateWeights, InvalidWeight
from credgrain.ledger.grain import Grain

# Exact rationals are accepted as-is; floats convert to Fraction losslessly.
Weight = Union[int, float, Fraction]


def _exact_weights(weights: Sequence[Weight]) -> List[Fraction]:
    out: List[Fraction] = []
    for i, w in enumerate(weights):
        if isinstance(w, bool) or not isinstance(w, (int, float, Fraction)):
            raise InvalidWeight("weight_must_be_real", {"index": i, "type": type(w).__name__})
        # math.isfinite would overflow on huge ints and rationals
        if (isinstance(w, float) and not math.isfinite(w)) or w < 0:
            raise InvalidWeight("negative_or_non_finite_weight", {"index": i, "weight": repr(w)})
        out.append(Fraction(w))
    return out


def split_units(total_units: int, weights: Sequence[Weight]) -> Tuple[int, ...]:
    """Split `total_units` minimal units proportionally to `weights`.

    Returns integer unit counts that sum exactly to `total_units`, each within
    strictly less than one unit of its ideal proportional share.
    """
    exact = _exact_weights(weights)
    weight_total = sum(exact, Fraction(0))
    if weight_total == 0:
        raise DegenerateWeights("all_weights_zero", {"n": len(exact)})

    floors: List[int] = []
    remainders: List[Fraction] = []
    for w in exact:
        ideal = total_units * w / weight_total
        f = math.floor(ideal)
        floors.append(f)
        remainders.append(ideal - f)

    leftover = total_units - sum(floors)
    # 0 <= leftover < len(weights) holds by construction of the floors.
    order = sorted(range(len(exact)), key=lambda i: (-remainders[i], i))
    for i in order[:leftover]:
        floors[i] += 1
    return tuple(floors)


def split_budget(total: Grain, weights: Sequence[Weight]) -> Tuple[Grain, ...]:
    """Apportion `total` across `weights` with zero leakage."""
    return tuple(Grain(u) for u in split_units(total.units, weights))


__all__ = ["Weight", "split_budget", "split_units"]
