"""Fixed-capacity history of recently observed transactions"""
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from uswap_monitor.models.stats import LogEntry

LogPredicate = Callable[[LogEntry], bool]

class LogBuffer:
    """
    Ring of the most recent LogEntry objects, oldest evicted first.

    Readers copy the ring under the lock and filter outside it, so a slow
    predicate never holds up the poller.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def snapshot(self, limit: int, predicate: Optional[LogPredicate] = None) -> List[LogEntry]:
        """Up to limit matching entries, newest first"""
        if limit <= 0:
            return []
        with self._lock:
            entries = list(self._entries)

        matches = []
        for entry in reversed(entries):
            if predicate is None or predicate(entry):
                matches.append(entry)
                if len(matches) >= limit:
                    break
        return matches
