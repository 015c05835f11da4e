import json
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import config
from napclock.control_events import ControlEvent, new_event


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventLogger:
    """Minimal structured event logger (jsonl). Doubles as the analytics EventSink."""

    def __init__(self, path: Optional[str] = None, enabled: Optional[bool] = None, source: str = "sleep_timer"):
        self.path = path if path is not None else config.EVENT_LOG_PATH
        self.enabled = enabled if enabled is not None else config.EVENT_LOG_ENABLED
        self.source = source
        self._lock = threading.Lock()

    def record(self, event_name: str, attributes: Dict[str, Any]) -> None:
        self.log(new_event(event_name, payload=dict(attributes), source=self.source))

    def log(self, event: ControlEvent) -> None:
        if not self.enabled or not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        record = {
            "ts": _utc_now_iso(),
            "event": event.name,
            "source": event.source,
            "payload": event.payload,
            "correlation_id": getattr(event, "correlation_id", None),
        }
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")
