"""
Timer Scheduler - Single-Slot Arm/Cancel State Machine

Arms at most one sleep timer at a time:
- FixedDuration(m): fires m minutes after arming, pauses playback
- EndOfContent: no wall-clock deadline (sentinel fire time), the playback
  layer reports completion; the record exists so UI and trigger handling
  stay uniform

Arming while armed replaces the old timer (last writer wins). A failed
arm never commits: the stored record is exactly what it was before.

Example Usage:
    scheduler = TimerScheduler(store, wake_adapter, events)

    armed = scheduler.arm(FixedDuration(15))
    print(armed.message)            # "Timer set for 15 minutes"

    scheduler.cancel()              # True, disarmed and cleared
"""

import uuid
from typing import Callable, Dict, Any, Optional

import config
from napclock.base_module import BaseModule
from napclock.control_events import (
    EVENT_TIMER_ARMED,
    EVENT_TIMER_CANCELLED,
    EVENT_TIMER_PERMISSION_REQUIRED,
    TIMER_TYPE_END_OF_CONTENT,
    TIMER_TYPE_FIXED_DURATION,
)
from napclock.interfaces import EventSink
from napclock.logging_utils import log_timer
from napclock.timer_models import (
    AdapterFailure,
    Armed,
    EndOfContent,
    FixedDuration,
    InvalidTimerMode,
    PastDeadline,
    PermissionDenied,
    ScheduledTimer,
    TimerConfiguration,
    TimerMode,
    describe_mode,
)
from napclock.timer_store import TimerStore
from napclock.wake_scheduler import ArmOutcome, WakeSchedulerAdapter, now_epoch_ms


def new_token() -> str:
    return uuid.uuid4().hex


def timer_type(mode: TimerMode) -> str:
    return TIMER_TYPE_END_OF_CONTENT if isinstance(mode, EndOfContent) else TIMER_TYPE_FIXED_DURATION


class TimerScheduler(BaseModule):
    """
    Core timer state machine.

    Computes the fire time, registers it with the wake scheduler and
    persists the record only after the registration succeeded.
    """

    def __init__(
        self,
        store: TimerStore,
        wake: WakeSchedulerAdapter,
        events: Optional[EventSink] = None,
        clock: Callable[[], int] = None,
        token_factory: Callable[[], str] = None,
        sentinel_ms: int = None,
        debug: bool = False,
        verbose: bool = True,
    ):
        """
        Initialize Timer Scheduler.

        Args:
            store: Durable timer store
            wake: Wake scheduler adapter
            events: Analytics sink (optional)
            clock: Epoch-milliseconds clock (default: wall clock)
            token_factory: Token generator (default: uuid4 hex)
            sentinel_ms: Fire time stored for end-of-content (default: from config)
            debug: Enable debug logging
        """
        super().__init__(__name__, debug=debug, verbose=verbose)
        self.store = store
        self.wake = wake
        self.events = events
        self._clock = clock or now_epoch_ms
        self._token_factory = token_factory or new_token
        self.sentinel_ms = sentinel_ms if sentinel_ms is not None else config.TIMER_END_OF_CONTENT_SENTINEL_MS

    def arm(self, mode: TimerMode) -> Armed:
        """
        Arm a timer, replacing any active one.

        Args:
            mode: FixedDuration(minutes) or EndOfContent()

        Returns:
            Armed result with the stored record and a confirmation message

        Raises:
            InvalidTimerMode: not a timer mode
            PermissionDenied: wake permission missing (consent flow requested)
            PastDeadline: computed fire time is not in the future (minutes <= 0)
            AdapterFailure: wake scheduler rejected the registration
        """
        if not isinstance(mode, (FixedDuration, EndOfContent)):
            raise InvalidTimerMode(f"Not a timer mode: {mode!r}")

        with self.store.lock():
            armed_at = self._clock()
            fire_at = self._fire_time(mode, armed_at)

            if not self.wake.has_permission():
                self._deny_permission()

            previous = self.store.current()
            if previous:
                self.wake.disarm(previous.token)
                log_timer(self.logger, f"Replacing active timer {previous!r}")

            token = self._token_factory()
            outcome = self.wake.arm(fire_at, token)
            if outcome is not ArmOutcome.OK:
                self._restore_registration(previous)
                self._raise_for(outcome)

            timer = ScheduledTimer(
                is_active=True,
                mode=mode,
                armed_at_epoch_ms=armed_at,
                fire_at_epoch_ms=fire_at,
                token=token,
            )
            try:
                self.store.save(timer)
            except OSError as e:
                self.wake.disarm(token)
                self._restore_registration(previous)
                raise AdapterFailure(f"Could not persist timer: {e}") from e
            try:
                self.store.save_configuration(TimerConfiguration.for_mode(mode))
            except OSError as e:
                self.logger.warning(f"Timer selection not saved: {e}")

        log_timer(self.logger, f"Timer armed: {timer!r}")
        self._record(EVENT_TIMER_ARMED, {
            'timer_type': timer_type(mode),
            'duration_minutes': mode.minutes if isinstance(mode, FixedDuration) else 0,
        })
        return Armed(timer=timer, message=describe_mode(mode))

    def cancel(self, reset_configuration: bool = True) -> bool:
        """
        Cancel the active timer.

        Args:
            reset_configuration: Also forget the last selection

        Returns:
            True if a timer was cancelled, False if none was active
        """
        with self.store.lock():
            timer = self.store.current()
            if timer is None:
                # Drops an inactive or unreadable leftover, if any
                self.store.clear()
                self.logger.debug("No active sleep timer to cancel")
                return False

            self.wake.disarm(timer.token)
            self.store.clear()
            if reset_configuration:
                self.store.reset_configuration()

        log_timer(self.logger, f"Timer cancelled: {timer!r}")
        self._record(EVENT_TIMER_CANCELLED, {'timer_type': timer_type(timer.mode)})
        return True

    def is_active(self) -> bool:
        return self.store.is_active()

    def current(self) -> Optional[ScheduledTimer]:
        return self.store.current()

    # Last selection (timer sheet pre-fill)

    def configuration(self) -> TimerConfiguration:
        return self.store.load_configuration()

    def has_configuration(self) -> bool:
        return self.store.load_configuration().has_settings

    def save_configuration(self, mode: TimerMode) -> None:
        self.store.save_configuration(TimerConfiguration.for_mode(mode))

    def reset_configuration(self) -> None:
        self.store.reset_configuration()

    def _fire_time(self, mode: TimerMode, armed_at: int) -> int:
        if isinstance(mode, EndOfContent):
            return self.sentinel_ms
        fire_at = armed_at + mode.duration_ms
        now = self._clock()
        if fire_at <= now:
            raise PastDeadline(f"Timer would fire at {fire_at}, not after {now} ({mode.minutes} min)")
        return fire_at

    def _deny_permission(self):
        self.logger.warning("Exact wake permission not granted, requesting consent")
        self.wake.request_permission()
        self._record(EVENT_TIMER_PERMISSION_REQUIRED, {})
        raise PermissionDenied("Wake scheduling permission not granted")

    def _raise_for(self, outcome: ArmOutcome):
        if outcome is ArmOutcome.DENIED:
            self._deny_permission()
        if outcome is ArmOutcome.STALE:
            raise PastDeadline("Wake scheduler reported the fire time as already passed")
        raise AdapterFailure(f"Wake scheduler rejected registration: {self.wake.last_error}")

    def _restore_registration(self, previous: Optional[ScheduledTimer]):
        """Re-register a replaced timer after a failed arm, so the untouched record stays honest."""
        if previous is None:
            return
        if self.wake.arm(previous.fire_at_epoch_ms, previous.token) is not ArmOutcome.OK:
            self.logger.warning(
                f"Could not restore replaced timer {previous!r}; recovery will clear it on next start"
            )

    def _record(self, event_name: str, attributes: Dict[str, Any]):
        if not self.events:
            return
        try:
            self.events.record(event_name, attributes)
        except Exception as e:
            self.logger.warning(f"Analytics event {event_name} not recorded: {e}")
