# src/credgrain/__init__.py
"""credgrain: exact Grain distributions from Cred, and Cred minting budgets."""

from __future__ import annotations

from credgrain.ledger.allocation import (
    Allocation,
    BalancedPolicy,
    GrainReceipt,
    ImmediatePolicy,
    RecentPolicy,
    SpecialPolicy,
    compute_allocation,
    compute_allocations,
)
from credgrain.ledger.apportion import split_budget
from credgrain.ledger.grain import ZERO, Grain
from credgrain.ledger.identities import AllocationIdentity, validate_identities
from credgrain.mint.budget import BudgetLine, BudgetPolicy, MintBudget, apply_budget

__version__ = "0.1.0"

__all__ = [
    "Allocation",
    "AllocationIdentity",
    "BalancedPolicy",
    "BudgetLine",
    "BudgetPolicy",
    "Grain",
    "GrainReceipt",
    "ImmediatePolicy",
    "MintBudget",
    "RecentPolicy",
    "SpecialPolicy",
    "ZERO",
    "apply_budget",
    "compute_allocation",
    "compute_allocations",
    "split_budget",
    "validate_identities",
]
