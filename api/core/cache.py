"""In-memory record mirror for stores.

Each store keeps a bounded mapping of record id -> serialised record,
maintained from ORM flush events. The mirror is best-effort: it only
holds records written (or preloaded) since the process started, and
least-recently-written entries are evicted once ``maxsize`` is reached.

Note: Cache is per-worker/replica, not shared across instances.
"""

from typing import Any

from cachetools import LRUCache

Record = dict[str, Any]


class StoreCache:
    """Mirror of one store's records.

    ``count`` tracks how many records the store is known to hold, which
    can exceed ``len(data)`` after eviction.
    """

    def __init__(self, maxsize: int) -> None:
        self.count = 0
        self.data: LRUCache[str, Record] = LRUCache(maxsize=maxsize)

    def get(self, record_id: str) -> Record | None:
        return self.data.get(record_id)

    def put(self, record_id: str, record: Record, *, inserted: bool = False) -> None:
        self.data[record_id] = record
        if inserted:
            self.count += 1

    def discard(self, record_id: str) -> None:
        self.data.pop(record_id, None)
        self.count = max(self.count - 1, 0)

    def load(self, records: dict[str, Record]) -> None:
        """Replace the mirror with a full snapshot."""
        self.data.clear()
        for record_id, record in records.items():
            self.data[record_id] = record
        self.count = len(records)

    def clear(self) -> None:
        self.data.clear()
        self.count = 0

    def stats(self) -> dict[str, int]:
        return {
            "count": self.count,
            "current_size": len(self.data),
            "max_size": int(self.data.maxsize),
        }
