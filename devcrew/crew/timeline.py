"""Thread-safe run records: the event timeline and per-role contributions."""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..logger import get_logger

_log = get_logger(__name__)


@dataclass(frozen=True)
class TimelineEvent:
    timestamp: float
    event: str
    role: str

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "event": self.event, "role": self.role}


class Timeline:
    """Append-only, time-ordered event log shared by concurrent tasks.

    ``listener`` is called after each append, outside the lock. Listener
    exceptions are logged and dropped.
    """

    def __init__(self, listener: Optional[Callable[[TimelineEvent], None]] = None):
        self._events: List[TimelineEvent] = []
        self._lock = threading.Lock()
        self._listener = listener

    def add(self, event: str, role: str) -> TimelineEvent:
        with self._lock:
            entry = TimelineEvent(timestamp=time.time(), event=event, role=role)
            self._events.append(entry)
        if self._listener is not None:
            try:
                self._listener(entry)
            except Exception as e:
                _log.warning("Timeline listener failed: %s", e)
        return entry

    def events(self) -> Tuple[TimelineEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def count(self, prefix: str) -> int:
        """Number of events whose description starts with ``prefix``."""
        with self._lock:
            return sum(1 for e in self._events if e.event.startswith(prefix))

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class ContributionMap:
    """role -> {task_id -> result}, guarded for concurrent writers."""

    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def record(self, role: str, task_id: str, result: Any) -> None:
        with self._lock:
            self._data.setdefault(role, {})[task_id] = result

    def get(self, role: str) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data.get(role, {}))

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {role: dict(results) for role, results in self._data.items()}

    def roles(self) -> List[str]:
        with self._lock:
            return list(self._data)
