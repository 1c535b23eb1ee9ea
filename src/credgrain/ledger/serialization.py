# src/credgrain/ledger/serialization.py
from __future__ import annotations

"""Serialized forms of allocation policies, allocations and identities.

Strict schemas: unknown keys and mismatched `policyType` discriminants are
rejected. Grain amounts travel as decimal strings at fixed 18-digit
resolution, never as binary floats. A policy's cred_mapping is code, not
configuration, and is not serialized.
"""

from typing import Annotated, Any, Dict, List, Literal, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, TypeAdapter, ValidationError

from credgrain.ledger.allocation import (
    Allocation,
    AllocationPolicy,
    BalancedPolicy,
    GrainReceipt,
    ImmediatePolicy,
    RecentPolicy,
    SpecialPolicy,
    validate_allocation_budget,
)
from credgrain.ledger.errors import InputError, NegativeBudget, SerializationError
from credgrain.ledger.grain import Grain
from credgrain.ledger.identities import AllocationIdentity, IdentityId

Json = Dict[str, Any]


class _StrictModel(BaseModel):
    """Strict model: reject unknown keys."""

    model_config = ConfigDict(extra="forbid")


class BalancedPolicyModel(_StrictModel):
    policyType: Literal["BALANCED"]
    budget: StrictStr


class ImmediatePolicyModel(_StrictModel):
    policyType: Literal["IMMEDIATE"]
    budget: StrictStr


class RecentPolicyModel(_StrictModel):
    policyType: Literal["RECENT"]
    budget: StrictStr
    discount: Union[StrictInt, StrictFloat]


class SpecialPolicyModel(_StrictModel):
    policyType: Literal["SPECIAL"]
    budget: StrictStr
    memo: StrictStr
    recipient: StrictStr


PolicyModel = Annotated[
    Union[BalancedPolicyModel, ImmediatePolicyModel, RecentPolicyModel, SpecialPolicyModel],
    Field(discriminator="policyType"),
]


class GrainReceiptModel(_StrictModel):
    id: StrictStr
    amount: StrictStr


class AllocationModel(_StrictModel):
    id: StrictStr
    policy: PolicyModel
    receipts: List[GrainReceiptModel]


class AllocationIdentityModel(_StrictModel):
    id: StrictStr
    cred: List[Union[StrictInt, StrictFloat]]
    paid: StrictStr = "0"


_POLICY_ADAPTER: TypeAdapter = TypeAdapter(PolicyModel)
_IDENTITIES_ADAPTER: TypeAdapter = TypeAdapter(List[AllocationIdentityModel])


def _errors(e: ValidationError) -> List[Json]:
    return [
        {"loc": [str(x) for x in err.get("loc", ())], "msg": str(err.get("msg", "")), "type": str(err.get("type", ""))}
        for err in e.errors()
    ]


def _parse(adapter_or_model: Any, obj: Any, what: str) -> Any:
    try:
        if isinstance(adapter_or_model, TypeAdapter):
            return adapter_or_model.validate_python(obj)
        return adapter_or_model.model_validate(obj)
    except ValidationError as e:
        raise SerializationError(f"invalid_{what}", {"errors": _errors(e)}) from e


def parse_budget(s: str) -> Grain:
    if s.strip().startswith("-"):
        raise NegativeBudget("invalid_budget", {"budget": s})
    return Grain.from_decimal(s)


def _policy_from_model(m: Any) -> AllocationPolicy:
    budget = parse_budget(m.budget)
    if isinstance(m, BalancedPolicyModel):
        return BalancedPolicy(budget=budget)
    if isinstance(m, ImmediatePolicyModel):
        return ImmediatePolicy(budget=budget)
    if isinstance(m, RecentPolicyModel):
        return RecentPolicy(budget=budget, discount=m.discount)
    if isinstance(m, SpecialPolicyModel):
        return SpecialPolicy(budget=budget, memo=m.memo, recipient=IdentityId(m.recipient))
    raise SerializationError("unknown_policy_model", {"type": type(m).__name__})  # pragma: no cover


def policy_from_json(obj: Any) -> AllocationPolicy:
    return _policy_from_model(_parse(_POLICY_ADAPTER, obj, "policy"))


def policy_to_json(p: AllocationPolicy) -> Json:
    out: Json = {"policyType": p.policy_type, "budget": p.budget.to_decimal_string()}
    if isinstance(p, RecentPolicy):
        out["discount"] = float(p.discount)
    elif isinstance(p, SpecialPolicy):
        out["memo"] = p.memo
        out["recipient"] = str(p.recipient)
    elif not isinstance(p, (BalancedPolicy, ImmediatePolicy)):
        raise InputError("unknown_policy", {"type": type(p).__name__})
    return out


def allocation_to_json(a: Allocation) -> Json:
    return {
        "id": a.id,
        "policy": policy_to_json(a.policy),
        "receipts": [{"id": str(r.id), "amount": r.amount.to_decimal_string()} for r in a.receipts],
    }


def allocation_from_json(obj: Any) -> Allocation:
    """Load a stored allocation and re-check that it conserves its budget."""
    m = _parse(AllocationModel, obj, "allocation")
    allocation = Allocation(
        id=m.id,
        policy=_policy_from_model(m.policy),
        receipts=tuple(GrainReceipt(id=IdentityId(r.id), amount=Grain.from_decimal(r.amount)) for r in m.receipts),
    )
    return validate_allocation_budget(allocation)


def identities_from_json(obj: Any) -> List[AllocationIdentity]:
    ms = _parse(_IDENTITIES_ADAPTER, obj, "identities")
    return [AllocationIdentity(id=m.id, cred=tuple(m.cred), paid=m.paid) for m in ms]


def identities_to_json(identities: Sequence[AllocationIdentity]) -> List[Json]:
    out = []
    for i in identities:
        paid = i.paid
        if isinstance(paid, int) and not isinstance(paid, bool):
            paid = Grain(paid)
        out.append(
            {
                "id": str(i.id),
                "cred": [float(c) for c in i.cred],
                "paid": paid.to_decimal_string() if isinstance(paid, Grain) else str(paid),
            }
        )
    return out


__all__ = [
    "allocation_from_json",
    "allocation_to_json",
    "identities_from_json",
    "identities_to_json",
    "parse_budget",
    "policy_from_json",
    "policy_to_json",
]
