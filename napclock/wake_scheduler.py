"""
Wake Scheduler - Adapter and In-Process Implementation

WakeSchedulerAdapter wraps any WakeScheduler capability and turns its
exceptions into outcomes the timer core can branch on:
    arm()     -> ArmOutcome.OK / DENIED / STALE / FAILED
    disarm()  -> bool (idempotent, never raises)
    is_armed()-> bool (raises AdapterFailure if the platform cannot answer)

ThreadingWakeScheduler is a WakeScheduler that fires callbacks from worker
threads inside this process. Its registrations die with the process, which
is exactly the case the recovery reconciler repairs on the next start.

Architecture: Callback-based design (no playback dependencies)
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import config
from napclock.base_module import BaseModule
from napclock.interfaces import WakeScheduler
from napclock.timer_models import AdapterFailure


def now_epoch_ms() -> int:
    return int(time.time() * 1000)


class ArmOutcome(Enum):
    OK = "ok"
    DENIED = "denied"
    STALE = "stale"
    FAILED = "failed"


class WakeSchedulerAdapter(BaseModule):
    """Thin, exception-free wrapper around a WakeScheduler."""

    def __init__(
        self,
        scheduler: WakeScheduler,
        clock: Callable[[], int] = None,
        sentinel_ms: int = None,
        debug: bool = False,
        verbose: bool = True,
    ):
        super().__init__(__name__, debug=debug, verbose=verbose)
        self._scheduler = scheduler
        self._clock = clock or now_epoch_ms
        self.sentinel_ms = sentinel_ms if sentinel_ms is not None else config.TIMER_END_OF_CONTENT_SENTINEL_MS
        self.last_error: Optional[Exception] = None

    def arm(self, fire_at_epoch_ms: int, token: str) -> ArmOutcome:
        """
        Register `token` to fire at `fire_at_epoch_ms`.

        Returns:
            OK on success, DENIED without permission, STALE if the fire time
            is not in the future, FAILED for any other rejection
        """
        self.last_error = None

        if fire_at_epoch_ms < self.sentinel_ms and fire_at_epoch_ms <= self._clock():
            self.logger.warning(f"Refusing stale wake registration (fire_at={fire_at_epoch_ms})")
            return ArmOutcome.STALE

        try:
            if not self._scheduler.has_permission():
                self.logger.warning("Wake scheduling permission not granted")
                return ArmOutcome.DENIED
            self._scheduler.arm(fire_at_epoch_ms, token)
        except PermissionError as e:
            self.last_error = e
            self.logger.warning(f"Wake registration denied: {e}")
            return ArmOutcome.DENIED
        except Exception as e:
            self.last_error = e
            self.logger.error(f"Wake registration failed: {e}")
            return ArmOutcome.FAILED

        self.logger.debug(f"Wake registration armed: token={token[:8]} fire_at={fire_at_epoch_ms}")
        return ArmOutcome.OK

    def disarm(self, token: str) -> bool:
        """Remove registration for `token`. Disarming an unknown token is not an error."""
        try:
            removed = bool(self._scheduler.disarm(token))
        except Exception as e:
            self.logger.warning(f"Wake disarm failed for token={token[:8]}: {e}")
            return False
        self.logger.debug(f"Wake registration disarmed: token={token[:8]} (existed={removed})")
        return removed

    def is_armed(self, token: str) -> bool:
        """
        Check for a live registration.

        Raises:
            AdapterFailure: the platform could not be queried
        """
        try:
            return bool(self._scheduler.is_armed(token))
        except Exception as e:
            raise AdapterFailure(f"Could not query wake registration: {e}") from e

    def has_permission(self) -> bool:
        try:
            return bool(self._scheduler.has_permission())
        except Exception as e:
            self.logger.warning(f"Wake permission query failed: {e}")
            return False

    def request_permission(self) -> None:
        try:
            self._scheduler.request_permission()
        except Exception as e:
            self.logger.warning(f"Wake permission request failed: {e}")

    def permission_status_message(self) -> str:
        if self.has_permission():
            return "Timer permission is enabled"
        return "Timer permission required. Tap to enable in settings."


@dataclass
class _Registration:
    fire_at_epoch_ms: int
    cancel_event: threading.Event
    thread: Optional[threading.Thread]


class ThreadingWakeScheduler(BaseModule):
    """
    In-process WakeScheduler.

    One daemon worker per registration waits on a cancel event until the
    deadline, then calls `callback(token)`. Deadlines at or beyond the
    sentinel are held without a worker (end-of-content timers).
    """

    def __init__(
        self,
        callback: Callable[[str], None] = None,
        clock: Callable[[], int] = None,
        permission_granted: bool = None,
        sentinel_ms: int = None,
        debug: bool = False,
        verbose: bool = True,
    ):
        """
        Initialize in-process wake scheduler.

        Args:
            callback: Called with the token when a registration fires
            clock: Epoch-milliseconds clock (default: wall clock)
            permission_granted: Simulated permission (default: from config)
            sentinel_ms: Deadline treated as "never by clock" (default: from config)
            debug: Enable debug logging
        """
        super().__init__(__name__, debug=debug, verbose=verbose)
        self._callback = callback
        self._clock = clock or now_epoch_ms
        self.permission_granted = (
            permission_granted if permission_granted is not None else config.WAKE_PERMISSION_GRANTED
        )
        self.sentinel_ms = sentinel_ms if sentinel_ms is not None else config.TIMER_END_OF_CONTENT_SENTINEL_MS
        self.permission_requests = 0

        self._registrations: Dict[str, _Registration] = {}
        self._lock = threading.Lock()

    def set_callback(self, callback: Callable[[str], None]) -> None:
        self._callback = callback

    def arm(self, fire_at_epoch_ms: int, token: str) -> None:
        if not self.permission_granted:
            raise PermissionError("Exact wake scheduling not permitted")

        cancel_event = threading.Event()
        thread = None
        if fire_at_epoch_ms < self.sentinel_ms:
            delay = max(0.0, (fire_at_epoch_ms - self._clock()) / 1000.0)
            thread = threading.Thread(
                target=self._wait_and_fire,
                args=(token, delay, cancel_event),
                daemon=True,
                name=f"WakeTimer-{token[:8]}",
            )

        with self._lock:
            previous = self._registrations.pop(token, None)
            if previous:
                previous.cancel_event.set()
            self._registrations[token] = _Registration(fire_at_epoch_ms, cancel_event, thread)

        if thread:
            thread.start()
        self.logger.debug(f"Registered token={token[:8]} fire_at={fire_at_epoch_ms}")

    def disarm(self, token: str) -> bool:
        with self._lock:
            registration = self._registrations.pop(token, None)
        if registration is None:
            return False
        registration.cancel_event.set()
        return True

    def is_armed(self, token: str) -> bool:
        with self._lock:
            return token in self._registrations

    def has_permission(self) -> bool:
        return self.permission_granted

    def request_permission(self) -> None:
        self.permission_requests += 1
        self.logger.info("Wake permission requested")

    def pending_tokens(self):
        with self._lock:
            return list(self._registrations.keys())

    def shutdown(self) -> None:
        """Drop every registration without firing."""
        with self._lock:
            registrations = list(self._registrations.values())
            self._registrations.clear()
        for registration in registrations:
            registration.cancel_event.set()

    def _wait_and_fire(self, token: str, delay: float, cancel_event: threading.Event):
        # Event.wait() overflows above TIMEOUT_MAX, so long delays wait in slices
        remaining = delay
        while True:
            chunk = min(remaining, threading.TIMEOUT_MAX)
            if cancel_event.wait(timeout=chunk):
                self.logger.debug(f"Wake registration cancelled before firing: token={token[:8]}")
                return
            remaining -= chunk
            if remaining <= 0:
                break

        with self._lock:
            registration = self._registrations.get(token)
            if registration is None or registration.cancel_event is not cancel_event:
                return
            del self._registrations[token]

        self.logger.info(f"Wake registration fired: token={token[:8]}")
        if not self._callback:
            self.logger.warning("No wake callback installed; fire dropped")
            return
        try:
            self._callback(token)
        except Exception as e:
            self.logger.error(f"Wake callback error: {e}")
