"""
Protocol Interfaces for Napclock Collaborators

The timer core only talks to the outside world through these contracts:
- WakeScheduler: OS-level "call me back at this wall-clock time"
- PlaybackController: the transport the timer pauses
- ContentAdvanceSink: consumer of "advance to next content"
- DurableStore: generic key/value persistence under the timer store
- EventSink: fire-and-forget analytics

Following KISS principle: Simple interfaces, no complex abstractions.
"""

from typing import Protocol, Optional, Dict, Any


class WakeScheduler(Protocol):
    """OS wake-scheduling primitive"""

    def arm(self, fire_at_epoch_ms: int, token: str) -> None:
        """
        Register a wake callback for `token` at `fire_at_epoch_ms`.

        Raises:
            PermissionError: scheduling permission not granted
            Exception: any other rejection by the platform
        """
        ...

    def disarm(self, token: str) -> bool:
        """Remove the registration for `token`. True if one existed."""
        ...

    def is_armed(self, token: str) -> bool:
        """Check whether `token` has a live registration"""
        ...

    def has_permission(self) -> bool:
        """Check whether exact wake scheduling is currently allowed"""
        ...

    def request_permission(self) -> None:
        """Open the platform consent flow (fire-and-forget)"""
        ...


class PlaybackController(Protocol):
    """Playback transport paused by fixed-duration timers"""

    def has_active_session(self) -> bool:
        """Check whether something is playing (or paused mid-item)"""
        ...

    def pause(self) -> None:
        """Pause playback"""
        ...


class ContentAdvanceSink(Protocol):
    """Consumer of the end-of-content signal"""

    def signal_advance(self) -> None:
        """Request the next content item (fire-and-forget)"""
        ...


class DurableStore(Protocol):
    """Generic key/value persistence"""

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Value for key, or None if absent"""
        ...

    def put(self, key: str, value: Dict[str, Any]) -> None:
        """Replace value for key"""
        ...

    def delete(self, key: str) -> None:
        """Remove key (no-op if absent)"""
        ...


class EventSink(Protocol):
    """Analytics sink"""

    def record(self, event_name: str, attributes: Dict[str, Any]) -> None:
        """Record one analytics event (fire-and-forget)"""
        ...
