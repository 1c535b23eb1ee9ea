# src/credgrain/ledger/__init__.py
"""
Grain ledger core.

  - grain: fixed-point Grain amounts
  - apportion: largest-remainder split of a Grain total over weights
  - identities: identity records and their validation
  - allocation: the BALANCED / IMMEDIATE / RECENT / SPECIAL policies
  - serialization: strict JSON forms of policies and allocations
  - errors: the error taxonomy shared with the mint package
"""

from __future__ import annotations

__all__ = [
    "grain",
    "apportion",
    "identities",
    "allocation",
    "serialization",
    "errors",
    "constants",
]
