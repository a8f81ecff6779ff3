"""
Audit Log

Append-only, time-stamped record of state-changing events, newest first.
Optionally bounded (oldest entries are dropped once max_entries is hit).
"""

import logging
from collections import deque
from typing import Optional

from ..domain.models import AuditEntry
from .scheduler import SimulatedClock


logger = logging.getLogger(__name__)


class AuditLog:
    """In-memory audit trail.

    Thread-safety: callers serialize access (owned by one state machine).
    """

    def __init__(self, clock: SimulatedClock, max_entries: Optional[int] = None):
        self.clock = clock
        self.max_entries = max_entries
        # Newest at the left
        self._entries: deque[AuditEntry] = deque(maxlen=max_entries)

    def record(self, message: str) -> AuditEntry:
        """Stamp message with the current clock time and prepend it."""
        entry = AuditEntry(timestamp=self.clock.now(), message=message)
        self._entries.appendleft(entry)
        logger.info("[AUDIT] %s %s", entry.time, message)
        return entry

    def entries(self, limit: Optional[int] = None) -> list[AuditEntry]:
        """Entries newest first."""
        items = list(self._entries)
        return items if limit is None else items[:limit]

    def latest(self) -> Optional[AuditEntry]:
        return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)
