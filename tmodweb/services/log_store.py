"""Bounded in-memory store of panel events shown to connected clients."""

from collections import deque
from datetime import datetime
import threading

from tmodweb.state import LogEntry

DEFAULT_RECENT_LIMIT = 10


class LogStore:
    """Append-only ring of ``LogEntry`` values guarded by one lock.

    Only the newest ``capacity`` entries are retained; older ones fall off
    the front of the ring so long uptimes do not grow memory.
    """

    def __init__(self, capacity=200, display_tz=None, clock=None):
        self._lock = threading.Lock()
        self._entries = deque(maxlen=max(1, int(capacity)))
        self._display_tz = display_tz
        self._clock = clock or (lambda: datetime.now(tz=self._display_tz))

    def append(self, message):
        """Stamp ``message`` with the current wall-clock time and store it."""
        entry = LogEntry(timestamp=self._clock(), message=str(message))
        with self._lock:
            self._entries.append(entry)
        return entry

    def recent(self, n=DEFAULT_RECENT_LIMIT):
        """Return the last ``n`` entries, oldest first."""
        if n <= 0:
            return []
        with self._lock:
            snapshot = list(self._entries)
        return snapshot[-n:]

    def __len__(self):
        with self._lock:
            return len(self._entries)
