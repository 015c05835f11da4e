"""
Recovery Reconciler - Cold-Start Orphan Cleanup

Runs once per process lifetime, before the first arm/cancel. If the store
says a timer is armed but the wake scheduler has no registration for its
token (reboot, killed process, wiped scheduler state), the record is an
orphan and is cleared silently. It is never re-armed: the original
deadline is gone or unrecoverable.
"""

import threading
from enum import Enum
from typing import Optional

from napclock.base_module import BaseModule
from napclock.control_events import EVENT_TIMER_ORPHAN_CLEARED
from napclock.interfaces import EventSink
from napclock.logging_utils import log_info, log_timer
from napclock.timer_models import AdapterFailure
from napclock.timer_store import TimerStore
from napclock.wake_scheduler import WakeSchedulerAdapter


class ReconcileResult(Enum):
    NO_TIMER = "no_timer"
    CONSISTENT = "consistent"
    ORPHAN_CLEARED = "orphan_cleared"
    UNKNOWN = "unknown"  # scheduler could not be queried; record kept
    SKIPPED = "skipped"  # already ran in this process


class RecoveryReconciler(BaseModule):
    """Makes store.is_active honest right after startup."""

    def __init__(
        self,
        store: TimerStore,
        wake: WakeSchedulerAdapter,
        events: Optional[EventSink] = None,
        debug: bool = False,
        verbose: bool = True,
    ):
        super().__init__(__name__, debug=debug, verbose=verbose)
        self.store = store
        self.wake = wake
        self.events = events
        self._ran = False
        self._lock = threading.Lock()

    @property
    def has_run(self) -> bool:
        return self._ran

    def reconcile(self) -> ReconcileResult:
        """
        Compare the stored record with the wake scheduler once.

        Returns:
            What was found (and repaired); SKIPPED on repeat calls
        """
        with self._lock:
            if self._ran:
                self.logger.debug("Recovery already ran in this process")
                return ReconcileResult.SKIPPED
            self._ran = True

        with self.store.lock():
            timer = self.store.current()
            if timer is None:
                self.logger.debug("Recovery: no armed timer")
                return ReconcileResult.NO_TIMER

            try:
                armed = self.wake.is_armed(timer.token)
            except AdapterFailure as e:
                self.logger.warning(f"Recovery: keeping {timer!r}, wake scheduler unavailable: {e}")
                return ReconcileResult.UNKNOWN

            if armed:
                log_info(self.logger, f"Recovery: {timer!r} still pending")
                return ReconcileResult.CONSISTENT

            self.store.clear()

        log_timer(self.logger, f"Recovery: cleared orphaned {timer!r}")
        if self.events:
            try:
                self.events.record(EVENT_TIMER_ORPHAN_CLEARED, {'timer_type': timer.mode.tag})
            except Exception as e:
                self.logger.warning(f"Analytics event {EVENT_TIMER_ORPHAN_CLEARED} not recorded: {e}")
        return ReconcileResult.ORPHAN_CLEARED
