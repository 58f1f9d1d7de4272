"""In-memory log of recent API calls, newest first."""

from __future__ import annotations

import json
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

MAX_ENTRIES = 100


class CallStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ApiLogEntry:
    endpoint: str
    request_data: Any
    response_data: Any
    duration_ms: int
    status: CallStatus
    error: str | None = None
    id: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


class ApiCallLog:
    """Bounded, thread-safe log of API calls."""

    def __init__(self, max_entries: int = MAX_ENTRIES) -> None:
        self._entries: deque[ApiLogEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def record(
        self,
        endpoint: str,
        *,
        request_data: Any = None,
        response_data: Any = None,
        duration_ms: int = 0,
        error: str | None = None,
    ) -> str:
        """Add an entry and return its id."""
        entry = ApiLogEntry(
            endpoint=endpoint,
            request_data=request_data,
            response_data=response_data,
            duration_ms=duration_ms,
            status=CallStatus.ERROR if error else CallStatus.SUCCESS,
            error=error,
            id=str(time.time_ns()),
        )
        with self._lock:
            self._entries.appendleft(entry)
        return entry.id

    def entries(self) -> list[ApiLogEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def export_json(self) -> str:
        return json.dumps([e.to_dict() for e in self.entries()], indent=2, default=str)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


api_log = ApiCallLog()
