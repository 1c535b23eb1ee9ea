# tests/test_identities.py
from __future__ import annotations

import pytest

from credgrain.ledger.errors import (
    DuplicateIdentity,
    EmptyInput,
    InconsistentScoreLength,
    InvalidIdentityId,
    InvalidScore,
    NegativePaid,
    ZeroTotalScore,
)
from credgrain.ledger.grain import Grain
from credgrain.ledger.identities import AllocationIdentity, IdentityId, validate_identities


def _ident(id_: str, cred, paid="0") -> AllocationIdentity:
    return AllocationIdentity(id=id_, cred=cred, paid=paid)


def test_validate_computes_lifetime_and_recent() -> None:
    v = validate_identities([_ident("x", [1, 2, 3], "5"), _ident("y", [0, 0, 4], 10)])
    assert len(v) == 2
    assert v.ids == ("x", "y")
    x, y = list(v)
    assert x.lifetime_cred == 6.0
    assert x.most_recent_cred == 3.0
    assert x.paid == Grain.from_number(5)
    # int paid is a count of minimal units
    assert y.paid == Grain(10)
    assert v.total_lifetime_cred == 10.0
    assert v.total_paid == Grain.from_number(5) + Grain(10)


def test_empty_input_rejected() -> None:
    with pytest.raises(EmptyInput):
        validate_identities([])


def test_negative_paid_rejected() -> None:
    with pytest.raises(NegativePaid):
        validate_identities([_ident("x", [1], "-1")])
    with pytest.raises(NegativePaid):
        validate_identities([_ident("x", [1], -5)])


def test_inconsistent_lengths_rejected() -> None:
    with pytest.raises(InconsistentScoreLength):
        validate_identities([_ident("x", [1, 2]), _ident("y", [1])])


@pytest.mark.parametrize("bad", [-1.0, float("nan"), float("inf")])
def test_invalid_scores_rejected(bad: float) -> None:
    with pytest.raises(InvalidScore):
        validate_identities([_ident("x", [1.0, bad])])


def test_zero_total_score_rejected() -> None:
    with pytest.raises(ZeroTotalScore):
        validate_identities([_ident("x", [0, 0]), _ident("y", [0, 0])])
    with pytest.raises(ZeroTotalScore):
        validate_identities([_ident("x", [])])


def test_duplicate_identity_rejected() -> None:
    with pytest.raises(DuplicateIdentity):
        validate_identities([_ident("x", [1]), _ident("x", [2])])


@pytest.mark.parametrize("bad", ["", " ", "a b", "x\n", "z" * 257])
def test_identity_id_validation(bad: str) -> None:
    with pytest.raises(InvalidIdentityId):
        IdentityId(bad)


def test_identity_id_accepts_uuid_like_strings() -> None:
    assert IdentityId("YVZhbGlkVXVpZEF0TGFzdA") == "YVZhbGlkVXVpZEF0TGFzdA"
