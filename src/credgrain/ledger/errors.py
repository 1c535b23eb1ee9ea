# src/credgrain/ledger/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional

Json = Dict[str, Any]


@dataclass(eq=False)
class CredGrainError(Exception):
    """Canonical error type for allocation and minting budget failures.

    `code` is fixed per subclass; `reason` is a short machine-readable slug
    and `details` carries the offending values.
    """

    reason: str
    details: Optional[Json] = None

    code: ClassVar[str] = "credgrain_error"

    def __str__(self) -> str:
        if not self.details:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"

    def to_json(self) -> Json:
        return {"code": self.code, "message": self.reason, "details": dict(self.details or {})}


# ---------------------------------------------------------------------------
# Input-shape errors (caller-fixable)
# ---------------------------------------------------------------------------


class InputError(CredGrainError):
    code = "invalid_input"


class EmptyInput(InputError):
    code = "empty_input"


class NegativePaid(InputError):
    code = "negative_paid"


class InconsistentScoreLength(InputError):
    code = "inconsistent_score_length"


class InvalidScore(InputError):
    code = "invalid_score"


class ZeroTotalScore(InputError):
    code = "zero_total_score"


class DuplicateIdentity(InputError):
    code = "duplicate_identity"


class InvalidIdentityId(InputError):
    code = "invalid_identity_id"


class NegativeBudget(InputError):
    code = "negative_budget"


class UnknownRecipient(InputError):
    code = "unknown_recipient"


class InvalidWeight(InputError):
    code = "invalid_weight"


class DegenerateWeights(InputError):
    code = "degenerate_weights"


class InvalidGrain(InputError):
    code = "invalid_grain"


class GrainUnderflow(InputError):
    code = "grain_underflow"


class InvalidDiscount(InputError):
    code = "invalid_discount"


class InvalidPartition(InputError):
    code = "invalid_partition"


class SerializationError(InputError):
    code = "serialization_error"


# ---------------------------------------------------------------------------
# Schedule-shape errors (the minting budget config must be fixed)
# ---------------------------------------------------------------------------


class ScheduleError(CredGrainError):
    code = "invalid_schedule"


class PrefixConflict(ScheduleError):
    code = "prefix_conflict"


class UnorderedPolicies(ScheduleError):
    code = "unordered_policies"


class UnsupportedGranularity(ScheduleError):
    code = "unsupported_granularity"


# ---------------------------------------------------------------------------
# Internal invariant violations (implementation bugs)
# ---------------------------------------------------------------------------


class InvariantError(CredGrainError):
    code = "invariant_violation"


class ConservationViolation(InvariantError):
    code = "conservation_violation"


__all__ = [
    "ConservationViolation",
    "CredGrainError",
    "DegenerateWeights",
    "DuplicateIdentity",
    "EmptyInput",
    "InconsistentScoreLength",
    "InputError",
    "InvalidDiscount",
    "InvalidGrain",
    "InvalidIdentityId",
    "InvalidPartition",
    "InvalidScore",
    "InvalidWeight",
    "InvariantError",
    "GrainUnderflow",
    "NegativeBudget",
    "NegativePaid",
    "PrefixConflict",
    "ScheduleError",
    "SerializationError",
    "UnknownRecipient",
    "UnorderedPolicies",
    "UnsupportedGranularity",
    "ZeroTotalScore",
]
