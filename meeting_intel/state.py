from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Request


@dataclass
class State:
    """Mutable application state shared across requests.

    Attached to FastAPI's app.state; counters feed the diagnostics endpoint.
    """

    started_at: float = field(default_factory=time.time)
    summaries_total: int = 0
    summaries_by_source: Dict[str, int] = field(default_factory=dict)
    sessions_saved: int = 0
    last_error: Optional[str] = None
    last_error_ts: Optional[float] = None
    lock: threading.Lock = field(default_factory=threading.Lock)

    def record_summary(self, source: str) -> None:
        with self.lock:
            self.summaries_total += 1
            self.summaries_by_source[source] = self.summaries_by_source.get(source, 0) + 1

    def record_saved(self) -> None:
        with self.lock:
            self.sessions_saved += 1

    def record_error(self, message: str) -> None:
        with self.lock:
            self.last_error = message
            self.last_error_ts = time.time()

    def snapshot(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "uptime_s": int(time.time() - self.started_at),
                "summaries_total": self.summaries_total,
                "summaries_by_source": dict(self.summaries_by_source),
                "sessions_saved": self.sessions_saved,
                "last_error": self.last_error,
                "last_error_ts": self.last_error_ts,
            }


def get_state(request: Request) -> State:  # FastAPI dependency helper
    return request.app.state.state
