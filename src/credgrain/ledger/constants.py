# src/credgrain/ledger/constants.py
from __future__ import annotations

"""Grain and minting budget constants.

- Grain is divisible to 1e-18 (one "attoGrain" is the minimal unit)
- Minting budget intervals are weekly; weeks start Sunday 00:00 UTC
"""

# Monetary precision (1 Grain = 1e18 units)
GRAIN_DECIMALS: int = 18
ONE_GRAIN: int = 10**GRAIN_DECIMALS

# Serialized discriminants for allocation policies
POLICY_BALANCED: str = "BALANCED"
POLICY_IMMEDIATE: str = "IMMEDIATE"
POLICY_RECENT: str = "RECENT"
POLICY_SPECIAL: str = "SPECIAL"

POLICY_TYPES = (POLICY_BALANCED, POLICY_IMMEDIATE, POLICY_RECENT, POLICY_SPECIAL)

# Only one interval granularity is supported for now; it is kept in the data
# layer so it can change later without a format break.
INTERVAL_WEEKLY: str = "WEEKLY"
SUPPORTED_INTERVAL_LENGTHS = (INTERVAL_WEEKLY,)

WEEK_MS: int = 7 * 24 * 60 * 60 * 1000
