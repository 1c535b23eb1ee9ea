# src/credgrain/mint/interval.py
from __future__ import annotations

"""Time intervals and the interval partition of contribution addresses."""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Set, Tuple

from credgrain.ledger.constants import WEEK_MS
from credgrain.ledger.errors import InvalidPartition
from credgrain.mint.address import NodeAddress, address_to_string

# 1970-01-01 was a Thursday; the Sunday before it starts week zero.
_EPOCH_SUNDAY_MS = -4 * 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class Interval:
    start_time_ms: int
    end_time_ms: int


@dataclass(frozen=True)
class IntervalNodes:
    """Addresses whose contributions fall in one interval."""

    interval: Interval
    addresses: Tuple[NodeAddress, ...]


def week_start_ms(timestamp_ms: int) -> int:
    """Start (Sunday 00:00 UTC) of the week containing timestamp_ms."""
    ts = int(timestamp_ms)
    return ts - ((ts - _EPOCH_SUNDAY_MS) % WEEK_MS)


def validate_partition(partition: Sequence[IntervalNodes]) -> None:
    """Intervals must be non-empty, chronological and non-overlapping.

    Each address belongs to exactly one interval and is listed once.
    """
    last_end = None
    seen: Set[NodeAddress] = set()
    for n, item in enumerate(partition):
        iv = item.interval
        if iv.end_time_ms <= iv.start_time_ms:
            raise InvalidPartition(
                "empty_interval",
                {"index": n, "start_time_ms": iv.start_time_ms, "end_time_ms": iv.end_time_ms},
            )
        if last_end is not None and iv.start_time_ms < last_end:
            raise InvalidPartition(
                "intervals_out_of_order_or_overlapping",
                {"index": n, "start_time_ms": iv.start_time_ms, "previous_end_ms": last_end},
            )
        for address in item.addresses:
            if address in seen:
                raise InvalidPartition(
                    "duplicate_address",
                    {"index": n, "address": address_to_string(address)},
                )
            seen.add(address)
        last_end = iv.end_time_ms


def partition_weekly(timestamps: Mapping[NodeAddress, int]) -> Tuple[IntervalNodes, ...]:
    """Group addresses into contiguous weekly intervals by timestamp.

    Weeks run from the first to the last timestamp seen, including weeks with
    no addresses. Within an interval, addresses keep their input order.
    """
    if not timestamps:
        return ()

    buckets: Dict[int, List[NodeAddress]] = {}
    for address, ts in timestamps.items():
        buckets.setdefault(week_start_ms(ts), []).append(address)

    first = min(buckets)
    last = max(buckets)
    out = []
    start = first
    while start <= last:
        out.append(
            IntervalNodes(
                interval=Interval(start_time_ms=start, end_time_ms=start + WEEK_MS),
                addresses=tuple(buckets.get(start, [])),
            )
        )
        start += WEEK_MS
    return tuple(out)


__all__ = ["Interval", "IntervalNodes", "partition_weekly", "validate_partition", "week_start_ms"]
