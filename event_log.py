"""
event_log.py

Append-only, in-memory record of received webhook calls.

Events live for the lifetime of the process only (no persistence, no eviction) and the
log is the single source of event ids: 1, 2, 3, ... in arrival order.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

from webhook_helpers import utc_now_iso


class EventLog:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[Dict[str, Any]] = []
        self._last_received_at: Optional[str] = None

    def append(self, headers: Dict[str, str], body: Any) -> Dict[str, Any]:
        """
        Record one webhook call and return the new event.

        `receivedAt` never goes backwards, even if the wall clock does.
        """
        with self._lock:
            received_at = utc_now_iso()
            # Fixed-width ISO strings compare chronologically.
            if self._last_received_at is not None and received_at < self._last_received_at:
                received_at = self._last_received_at
            event = {
                "id": len(self._events) + 1,
                "receivedAt": received_at,
                "headers": dict(headers),
                "body": body,
            }
            self._events.append(event)
            self._last_received_at = received_at
            return event

    def all(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
