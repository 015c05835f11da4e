"""
Sleep Timer Service - What the Host Application Talks To

Bundles scheduler, trigger handler and recovery reconciler behind one
object and adds the UI conveniences:
- start(): runs recovery once (also done lazily before the first arm/cancel)
- arm()/arm_preset()/try_arm(), cancel()/try_cancel()
- on_wake(token): wake scheduler callback
- on_content_completed(): playback layer callback for end-of-content timers
- countdown_text(), should_show_countdown(), status()

Example Usage:
    service = create_sleep_timer_service()
    service.start()

    ok, message = service.try_arm(FixedDuration(15))
    print(message)                      # "Timer set for 15 minutes"
    print(service.countdown_text())     # "14:59m"
"""

from typing import Callable, Optional, Tuple

import config
from napclock.base_module import BaseModule
from napclock.logging_utils import log_success
from napclock.countdown import format_remaining, remaining, remaining_ms
from napclock.recovery import ReconcileResult, RecoveryReconciler
from napclock.timer_models import (
    AdapterFailure,
    Armed,
    EndOfContent,
    InvalidTimerMode,
    PastDeadline,
    PermissionDenied,
    ScheduledTimer,
    TimerConfiguration,
    TimerMode,
    TimerStatus,
    mode_from_preset_index,
)
from napclock.timer_scheduler import TimerScheduler
from napclock.trigger_handler import TriggerHandler
from napclock.wake_scheduler import WakeSchedulerAdapter, now_epoch_ms

MESSAGE_PERMISSION_DENIED = "Timer permission required. Please allow alarms & reminders."
MESSAGE_PAST_DEADLINE = "Please choose a time in the future"
MESSAGE_FAILED = "Could not set the timer, please try again"
MESSAGE_CANCELLED = "Timer cancelled"
MESSAGE_NOTHING_TO_CANCEL = "No timer is set"


class SleepTimerService(BaseModule):
    """Façade over the sleep timer components."""

    def __init__(
        self,
        scheduler: TimerScheduler,
        trigger_handler: TriggerHandler,
        reconciler: RecoveryReconciler,
        wake: WakeSchedulerAdapter,
        clock: Callable[[], int] = None,
        cancel_on_close: bool = None,
        debug: bool = False,
        verbose: bool = True,
    ):
        super().__init__(__name__, debug=debug, verbose=verbose)
        self.scheduler = scheduler
        self.trigger_handler = trigger_handler
        self.reconciler = reconciler
        self.wake = wake
        self._clock = clock or now_epoch_ms
        self.cancel_on_close_enabled = (
            cancel_on_close if cancel_on_close is not None else config.TIMER_CANCEL_ON_CLOSE
        )

    def start(self) -> ReconcileResult:
        """Run cold-start recovery (once per process)."""
        return self.reconciler.reconcile()

    def _ensure_recovered(self):
        if not self.reconciler.has_run:
            self.reconciler.reconcile()

    # Commands

    def arm(self, mode: TimerMode) -> Armed:
        """Arm a timer; raises the TimerScheduler.arm() errors."""
        self._ensure_recovered()
        return self.scheduler.arm(mode)

    def arm_preset(self, index: int) -> Armed:
        """Arm the timer-sheet preset at `index` (last index = end of content)."""
        return self.arm(mode_from_preset_index(index))

    def try_arm(self, mode: TimerMode) -> Tuple[bool, str]:
        """
        Arm a timer and translate errors into user messages.

        Returns:
            Tuple of (success, message)
        """
        try:
            armed = self.arm(mode)
        except PermissionDenied:
            return (False, MESSAGE_PERMISSION_DENIED)
        except (PastDeadline, InvalidTimerMode):
            return (False, MESSAGE_PAST_DEADLINE)
        except AdapterFailure as e:
            self.logger.error(f"Failed to set timer: {e}")
            return (False, MESSAGE_FAILED)
        return (True, armed.message)

    def cancel(self) -> bool:
        self._ensure_recovered()
        return self.scheduler.cancel()

    def try_cancel(self) -> Tuple[bool, str]:
        if self.cancel():
            return (True, MESSAGE_CANCELLED)
        return (False, MESSAGE_NOTHING_TO_CANCEL)

    def cancel_on_close(self) -> bool:
        """Host shutdown hook; cancels only when enabled in config."""
        if not self.cancel_on_close_enabled:
            return False
        return self.cancel()

    def clear_all(self) -> None:
        """Disarm and forget everything, including the last selection."""
        self._ensure_recovered()
        store = self.scheduler.store
        with store.lock():
            timer = store.current()
            if timer:
                self.wake.disarm(timer.token)
            store.clear_all()
        log_success(self.logger, "Sleep timer data cleared")

    # Callbacks

    def on_wake(self, token: str) -> bool:
        """Wake scheduler callback."""
        return self.trigger_handler.handle(token)

    def on_content_completed(self) -> bool:
        """
        Playback layer callback: the current content item finished.

        Fires the armed timer only if it is an end-of-content timer.
        """
        timer = self.scheduler.current()
        if timer is None or not isinstance(timer.mode, EndOfContent):
            return False
        return self.trigger_handler.handle(timer.token)

    # Queries

    def is_active(self) -> bool:
        return self.scheduler.is_active()

    def current(self) -> Optional[ScheduledTimer]:
        return self.scheduler.current()

    def remaining_ms(self) -> Optional[int]:
        """Milliseconds left; None if no timer or no wall-clock deadline."""
        timer = self.scheduler.current()
        if timer is None:
            return None
        return remaining_ms(timer.fire_at_epoch_ms, self._clock(), self.scheduler.sentinel_ms)

    def countdown_text(self) -> str:
        timer = self.scheduler.current()
        if timer is None:
            return ""
        return format_remaining(remaining(timer.fire_at_epoch_ms, self._clock(), self.scheduler.sentinel_ms))

    def should_show_countdown(self) -> bool:
        left = self.remaining_ms()
        return left is not None and left > 0

    def can_schedule(self) -> bool:
        return self.wake.has_permission()

    def request_permission(self) -> None:
        self.wake.request_permission()

    def permission_status_message(self) -> str:
        return self.wake.permission_status_message()

    def configuration(self) -> TimerConfiguration:
        return self.scheduler.configuration()

    def status(self) -> TimerStatus:
        timer = self.scheduler.current()
        return TimerStatus(
            is_active=timer is not None,
            mode=timer.mode if timer else None,
            fire_at_epoch_ms=timer.fire_at_epoch_ms if timer else None,
            remaining_ms=self.remaining_ms() if timer else None,
            can_schedule=self.can_schedule(),
            configuration=self.scheduler.configuration(),
        )
