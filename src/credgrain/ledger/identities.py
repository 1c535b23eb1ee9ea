# src/credgrain/ledger/identities.py
from __future__ import annotations

"""Identity records and their validation ahead of any allocation policy."""

import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Sequence, Set, Tuple, Union

from credgrain.ledger.errors import (
    DuplicateIdentity,
    EmptyInput,
    InconsistentScoreLength,
    InvalidGrain,
    InvalidIdentityId,
    InvalidScore,
    NegativePaid,
    ZeroTotalScore,
)
from credgrain.ledger.grain import Grain, grain_sum

_ID_RE = re.compile(r"\S+")
_MAX_ID_LEN = 256


class IdentityId(str):
    """Validated identity identifier: non-empty, no whitespace, bounded length."""

    def __new__(cls, value: Any) -> "IdentityId":
        if isinstance(value, IdentityId):
            return value
        if not isinstance(value, str):
            raise InvalidIdentityId("identity_id_must_be_str", {"type": type(value).__name__})
        if not value or len(value) > _MAX_ID_LEN or not _ID_RE.fullmatch(value):
            raise InvalidIdentityId("malformed_identity_id", {"id": value[:_MAX_ID_LEN]})
        return super().__new__(cls, value)


CredScores = Tuple[float, ...]
PaidLike = Union[Grain, str, int]


@dataclass(frozen=True)
class AllocationIdentity:
    """Raw identity input: one Cred score per completed interval, plus lifetime payouts.

    `paid` may be a Grain, a decimal string, or an int count of minimal units;
    it is normalized by validate_identities.
    """

    id: str
    cred: Sequence[float]
    paid: PaidLike


@dataclass(frozen=True)
class ProcessedIdentity:
    id: IdentityId
    paid: Grain
    cred: CredScores
    lifetime_cred: float
    most_recent_cred: float


@dataclass(frozen=True)
class ValidatedIdentities:
    """Identities that passed validate_identities.

    Guarantees:
      - at least one identity, ids unique
      - no cred is negative or non-finite, all cred series share one length
      - total cred is positive
      - paid is a non-negative Grain
    """

    items: Tuple[ProcessedIdentity, ...]

    def __iter__(self) -> Iterator[ProcessedIdentity]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def ids(self) -> Tuple[IdentityId, ...]:
        return tuple(i.id for i in self.items)

    @property
    def total_lifetime_cred(self) -> float:
        return math.fsum(i.lifetime_cred for i in self.items)

    @property
    def total_paid(self) -> Grain:
        return grain_sum(i.paid for i in self.items)


def _coerce_paid(identity_id: str, paid: Any) -> Grain:
    if isinstance(paid, Grain):
        return paid
    if isinstance(paid, str):
        s = paid.strip()
        if s.startswith("-"):
            raise NegativePaid("negative_paid", {"id": identity_id, "paid": paid})
        return Grain.from_decimal(s)
    if isinstance(paid, int) and not isinstance(paid, bool):
        if paid < 0:
            raise NegativePaid("negative_paid", {"id": identity_id, "paid": paid})
        return Grain(paid)
    raise InvalidGrain("paid_must_be_grain", {"id": identity_id, "type": type(paid).__name__})


def _check_cred(identity_id: str, cred: Any) -> CredScores:
    if isinstance(cred, (str, bytes)) or not isinstance(cred, Iterable):
        raise InvalidScore("cred_must_be_sequence", {"id": identity_id})
    out = []
    for c in cred:
        if isinstance(c, bool) or not isinstance(c, (int, float)):
            raise InvalidScore("cred_must_be_real", {"id": identity_id, "cred": repr(c)})
        if c < 0 or not math.isfinite(c):
            raise InvalidScore("invalid_cred", {"id": identity_id, "cred": repr(c)})
        out.append(float(c))
    return tuple(out)


def validate_identities(records: Sequence[AllocationIdentity]) -> ValidatedIdentities:
    """Sanitize identity records; pure, raises on the first problem found."""
    items = list(records or [])
    if not items:
        raise EmptyInput("no_identities", {"hint": "must have at least one identity to allocate grain to"})

    seen: Set[str] = set()
    results = []
    cred_length = None
    has_positive_cred = False

    for rec in items:
        iid = IdentityId(rec.id)
        if iid in seen:
            raise DuplicateIdentity("duplicate_identity", {"id": str(iid)})
        seen.add(iid)

        paid = _coerce_paid(iid, rec.paid)
        cred = _check_cred(iid, rec.cred)

        if cred_length is None:
            cred_length = len(cred)
        elif len(cred) != cred_length:
            raise InconsistentScoreLength(
                "inconsistent_cred_length",
                {"id": str(iid), "expected": cred_length, "got": len(cred)},
            )

        if any(c > 0 for c in cred):
            has_positive_cred = True

        results.append(
            ProcessedIdentity(
                id=iid,
                paid=paid,
                cred=cred,
                lifetime_cred=math.fsum(cred),
                most_recent_cred=cred[-1] if cred else 0.0,
            )
        )

    if not has_positive_cred:
        raise ZeroTotalScore("cred_is_zero", {"identities": len(results)})

    return ValidatedIdentities(items=tuple(results))


__all__ = [
    "AllocationIdentity",
    "CredScores",
    "IdentityId",
    "ProcessedIdentity",
    "ValidatedIdentities",
    "validate_identities",
]
