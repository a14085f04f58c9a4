"""
Explicit memoization of analytics results.

Results are keyed by the operation name, its arguments and a content hash
of the ledger snapshot, so an unchanged snapshot hits and any change to a
trade misses. The ledger calls `invalidate()` on every mutation to drop
entries that can no longer be hit.
"""
import hashlib
import json
import logging
import threading
from typing import Any, Callable, Dict, Hashable, Sequence, Tuple, TypeVar

from strategy_analytics.types import Trade

__all__ = ["snapshot_key", "SnapshotCache"]

log = logging.getLogger(__name__)

T = TypeVar("T")


def snapshot_key(trades: Sequence[Trade]) -> str:
    """SHA-256 over the JSON form of every trade, in ledger order."""
    digest = hashlib.sha256()
    for trade in trades:
        digest.update(json.dumps(trade.model_dump(mode="json"), sort_keys=True).encode())
        digest.update(b"\n")
    return digest.hexdigest()


class SnapshotCache:
    """A result cache bound to ledger snapshot contents."""

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, Hashable, str], Any] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_compute(
        self,
        operation: str,
        args: Hashable,
        trades: Sequence[Trade],
        compute: Callable[[], T],
    ) -> T:
        key = (operation, args, snapshot_key(trades))
        with self._lock:
            if key in self._entries:
                self.hits += 1
                return self._entries[key]

        value = compute()
        with self._lock:
            self.misses += 1
            self._entries[key] = value
        log.debug(f"Cached {operation}{args!r} for snapshot {key[2][:12]}.")
        return value

    def invalidate(self) -> None:
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        if dropped:
            log.debug(f"Invalidated {dropped} cached results.")
