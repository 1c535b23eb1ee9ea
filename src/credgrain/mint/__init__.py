# src/credgrain/mint/__init__.py
"""
Cred minting budgets.

  - address: hierarchical node addresses and prefix checks
  - interval: interval partitions (weekly)
  - budget: per-interval ceilings applied to node weights
  - serialization: strict JSON forms of budgets, weights and partitions
"""

from __future__ import annotations

__all__ = ["address", "interval", "budget", "serialization"]
