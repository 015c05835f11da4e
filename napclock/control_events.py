from dataclasses import dataclass
from typing import Any, Dict, Optional, Set
import time


EVENT_TIMER_ARMED = "timer_armed"
EVENT_TIMER_CANCELLED = "timer_cancelled"
EVENT_TIMER_COMPLETED = "timer_completed"
EVENT_TIMER_ORPHAN_CLEARED = "timer_orphan_cleared"
EVENT_TIMER_PERMISSION_REQUIRED = "timer_permission_required"
EVENT_CONTENT_ADVANCE_REQUESTED = "content_advance_requested"

TIMER_TYPE_FIXED_DURATION = "fixed_duration"
TIMER_TYPE_END_OF_CONTENT = "end_of_content"


@dataclass(frozen=True)
class ControlEvent:
    name: str
    payload: Dict[str, Any]
    timestamp: float
    source: Optional[str] = None
    correlation_id: Optional[str] = None

    @staticmethod
    def now(
        name: str,
        payload: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> "ControlEvent":
        return ControlEvent(
            name=name,
            payload=payload or {},
            timestamp=time.time(),
            source=source,
            correlation_id=correlation_id,
        )


def new_event(
    name: str,
    payload: Optional[Dict[str, Any]] = None,
    source: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> ControlEvent:
    """Helper to create ControlEvent with consistent metadata."""
    return ControlEvent.now(
        name=name,
        payload=payload,
        source=source,
        correlation_id=correlation_id,
    )


ALLOWED_EVENTS: Set[str] = {
    EVENT_TIMER_ARMED,
    EVENT_TIMER_CANCELLED,
    EVENT_TIMER_COMPLETED,
    EVENT_TIMER_ORPHAN_CLEARED,
    EVENT_TIMER_PERMISSION_REQUIRED,
    EVENT_CONTENT_ADVANCE_REQUESTED,
}
