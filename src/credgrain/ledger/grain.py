# src/credgrain/ledger/grain.py
from __future__ import annotations

"""Grain: the fixed-point reward unit.

A Grain value is stored as a non-negative integer count of minimal units
(1 Grain = 10**18 units). Floats are allowed for intermediate ratios only;
anything converted back to Grain is floored to the resolution.
"""

import math
import re
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Iterable

from credgrain.ledger.constants import GRAIN_DECIMALS, ONE_GRAIN
from credgrain.ledger.errors import GrainUnderflow, InvalidGrain

_DECIMAL_RE = re.compile(r"^(\d+)(?:\.(\d+))?$")


@dataclass(frozen=True, order=True, slots=True)
class Grain:
    units: int

    def __post_init__(self) -> None:
        # bool is an int subclass; disallow it explicitly
        if isinstance(self.units, bool) or not isinstance(self.units, int):
            raise InvalidGrain("units_must_be_int", {"type": type(self.units).__name__})
        if self.units < 0:
            raise InvalidGrain("negative_grain", {"units": self.units})

    # ---- construction ----

    @classmethod
    def from_decimal(cls, s: str) -> "Grain":
        """Parse a decimal string such as "12" or "0.5" (at most 18 fractional digits)."""
        if not isinstance(s, str):
            raise InvalidGrain("not_a_string", {"type": type(s).__name__})
        m = _DECIMAL_RE.match(s.strip())
        if m is None:
            raise InvalidGrain("malformed_decimal", {"value": s})
        whole, frac = m.group(1), m.group(2) or ""
        if len(frac) > GRAIN_DECIMALS:
            raise InvalidGrain("too_many_decimals", {"value": s, "max_decimals": GRAIN_DECIMALS})
        frac = frac.ljust(GRAIN_DECIMALS, "0")
        return cls(int(whole) * ONE_GRAIN + int(frac))

    from_string = from_decimal

    @classmethod
    def from_number(cls, n: int) -> "Grain":
        """Whole Grain from an int, e.g. Grain.from_number(40) == 40 Grain."""
        if isinstance(n, bool) or not isinstance(n, int):
            raise InvalidGrain("whole_grain_must_be_int", {"type": type(n).__name__})
        if n < 0:
            raise InvalidGrain("negative_grain", {"value": n})
        return cls(n * ONE_GRAIN)

    # ---- arithmetic ----

    def add(self, other: "Grain") -> "Grain":
        return Grain(self.units + _require_grain(other).units)

    def sub(self, other: "Grain") -> "Grain":
        o = _require_grain(other)
        if o.units > self.units:
            raise GrainUnderflow(
                "result_would_be_negative",
                {"minuend": self.to_decimal_string(), "subtrahend": o.to_decimal_string()},
            )
        return Grain(self.units - o.units)

    def multiply_float(self, x: float) -> "Grain":
        """Multiply by a non-negative real, flooring to the resolution.

        Flooring biases every conversion against over-payment; the
        apportionment step reconciles the residual.
        """
        if isinstance(x, bool) or not isinstance(x, (int, float)):
            raise InvalidGrain("multiplier_must_be_real", {"type": type(x).__name__})
        if not math.isfinite(x) or x < 0:
            raise InvalidGrain("invalid_multiplier", {"multiplier": repr(x)})
        return Grain(math.floor(self.units * Fraction(x)))

    def __add__(self, other: "Grain") -> "Grain":
        return self.add(other)

    def __sub__(self, other: "Grain") -> "Grain":
        return self.sub(other)

    def is_zero(self) -> bool:
        return self.units == 0

    # ---- rendering ----

    def to_float(self) -> float:
        return self.units / ONE_GRAIN

    def to_decimal_string(self) -> str:
        """Fixed-resolution decimal string: always 18 fractional digits."""
        whole, frac = divmod(self.units, ONE_GRAIN)
        return f"{whole}.{frac:0{GRAIN_DECIMALS}d}"

    def format(self, decimals: int = 0, suffix: str = "") -> str:
        """Human string truncated to `decimals` places, with thousands separators."""
        d = max(0, min(int(decimals), GRAIN_DECIMALS))
        whole, frac = divmod(self.units, ONE_GRAIN)
        out = f"{whole:,}"
        if d:
            out += "." + f"{frac:0{GRAIN_DECIMALS}d}"[:d]
        return out + suffix

    def __str__(self) -> str:
        return self.to_decimal_string()


ZERO = Grain(0)


def _require_grain(x: Any) -> Grain:
    if not isinstance(x, Grain):
        raise InvalidGrain("not_grain", {"type": type(x).__name__})
    return x


def grain_sum(xs: Iterable[Grain]) -> Grain:
    total = 0
    for x in xs:
        total += _require_grain(x).units
    return Grain(total)


__all__ = ["Grain", "ZERO", "grain_sum"]
