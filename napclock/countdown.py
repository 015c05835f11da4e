"""
Countdown Projector - Remaining Time for UI Polling

Pure functions, safe to call on any polling interval:
    remaining(fire_at_ms, now_ms)  -> timedelta clamped at zero,
                                      or None for end-of-content timers
    format_remaining(duration)     -> "5:15m", "0:00m", or "" if None
"""

from datetime import timedelta
from typing import Optional

import config

NOT_APPLICABLE = ""


def remaining(fire_at_epoch_ms: int, now_epoch_ms: int, sentinel_ms: int = None) -> Optional[timedelta]:
    """
    Time left until the timer fires.

    Args:
        fire_at_epoch_ms: Stored fire time
        now_epoch_ms: Current time
        sentinel_ms: End-of-content fire time (default: from config)

    Returns:
        Non-negative timedelta, or None when the timer has no wall-clock deadline
    """
    sentinel_ms = sentinel_ms if sentinel_ms is not None else config.TIMER_END_OF_CONTENT_SENTINEL_MS
    if fire_at_epoch_ms >= sentinel_ms:
        return None
    return timedelta(milliseconds=max(0, fire_at_epoch_ms - now_epoch_ms))


def remaining_ms(fire_at_epoch_ms: int, now_epoch_ms: int, sentinel_ms: int = None) -> Optional[int]:
    left = remaining(fire_at_epoch_ms, now_epoch_ms, sentinel_ms)
    if left is None:
        return None
    return left // timedelta(milliseconds=1)


def format_remaining(duration: Optional[timedelta]) -> str:
    """Format as minutes:seconds with an 'm' suffix, e.g. '65:03m'."""
    if duration is None:
        return NOT_APPLICABLE
    total_seconds = max(0, int(duration.total_seconds()))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}m"
