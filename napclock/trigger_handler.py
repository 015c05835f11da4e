"""
Trigger Handler - Reaction to a Fired Sleep Timer

Runs when the wake scheduler (or the playback layer, for end of content)
delivers a token. Only trusts the durable store, never in-memory state:

    token matches stored record?
        no  -> stale/duplicate delivery, log and ignore
        yes -> FixedDuration: pause playback (if a session is active)
               EndOfContent:  signal "advance to next content"
               then clear the record, whatever the side effect did

Never raises: by the time it runs the deadline has passed, and refusing
to clear would leave a timer armed forever.
"""

from typing import Any, Callable, Dict, Optional

from napclock.base_module import BaseModule
from napclock.control_events import EVENT_TIMER_COMPLETED, TIMER_TYPE_END_OF_CONTENT, TIMER_TYPE_FIXED_DURATION
from napclock.interfaces import ContentAdvanceSink, EventSink, PlaybackController
from napclock.logging_utils import log_error, log_timer
from napclock.timer_models import EndOfContent, FixedDuration, ScheduledTimer
from napclock.timer_store import TimerStore
from napclock.wake_scheduler import WakeSchedulerAdapter


class TriggerHandler(BaseModule):
    """Performs the timer's side effect and clears the record."""

    def __init__(
        self,
        store: TimerStore,
        playback: Optional[PlaybackController] = None,
        advance_sink: Optional[ContentAdvanceSink] = None,
        events: Optional[EventSink] = None,
        wake: Optional[WakeSchedulerAdapter] = None,
        on_completed: Optional[Callable[[ScheduledTimer], None]] = None,
        debug: bool = False,
        verbose: bool = True,
    ):
        """
        Initialize Trigger Handler.

        Args:
            store: Durable timer store
            playback: Transport paused by fixed-duration timers
            advance_sink: Consumer of the end-of-content signal
            events: Analytics sink
            wake: Wake adapter; fired tokens are disarmed after handling
            on_completed: Optional host hook (e.g. show "playback paused")
            debug: Enable debug logging
        """
        super().__init__(__name__, debug=debug, verbose=verbose)
        self.store = store
        self.playback = playback
        self.advance_sink = advance_sink
        self.events = events
        self.wake = wake
        self.on_completed = on_completed

    def handle(self, token: str) -> bool:
        """
        Handle one fire delivery.

        Args:
            token: Token carried by the wake event

        Returns:
            True if the delivery matched the armed timer and was handled
        """
        try:
            return self._handle(token)
        except Exception as e:
            log_error(self.logger, f"Sleep timer trigger failed for token={token[:8]}: {e}")
            return False

    def _handle(self, token: str) -> bool:
        with self.store.lock():
            timer = self.store.current()
            if timer is None:
                self.logger.info(f"Ignoring fire for token={token[:8]}: no timer armed")
                return False
            if timer.token != token:
                self.logger.info(
                    f"Ignoring stale fire for token={token[:8]}: armed token is {timer.token[:8]}"
                )
                return False

            try:
                if isinstance(timer.mode, FixedDuration):
                    self._stop_playback(timer.mode)
                elif isinstance(timer.mode, EndOfContent):
                    self._advance_content()
            finally:
                self._clear(timer)

        log_timer(self.logger, f"Timer completed: {timer!r}")
        self._notify(timer)
        return True

    def _stop_playback(self, mode: FixedDuration):
        did_stop = False
        try:
            if self.playback and self.playback.has_active_session():
                self.playback.pause()
                did_stop = True
                self.logger.info(f"Sleep timer ({mode.minutes} min) paused playback")
            else:
                self.logger.info("Sleep timer fired with no active playback session")
        except Exception as e:
            self.logger.error(f"Sleep timer could not pause playback: {e}")

        self._record({
            'duration_minutes': mode.minutes,
            'timer_type': TIMER_TYPE_FIXED_DURATION,
            'did_stop_playback': did_stop,
        })

    def _advance_content(self):
        self._record({
            'duration_minutes': 0,
            'timer_type': TIMER_TYPE_END_OF_CONTENT,
            'did_stop_playback': False,
        })
        try:
            if self.advance_sink:
                self.advance_sink.signal_advance()
                self.logger.info("End of content timer: advance to next content signalled")
            else:
                self.logger.warning("End of content timer fired with no advance sink")
        except Exception as e:
            self.logger.error(f"Advance-content signal failed: {e}")

    def _clear(self, timer: ScheduledTimer):
        try:
            self.store.clear()
        except Exception as e:
            self.logger.error(f"Could not clear fired timer record: {e}")
        if self.wake:
            self.wake.disarm(timer.token)

    def _record(self, attributes: Dict[str, Any]):
        if not self.events:
            return
        try:
            self.events.record(EVENT_TIMER_COMPLETED, attributes)
        except Exception as e:
            self.logger.warning(f"Analytics event {EVENT_TIMER_COMPLETED} not recorded: {e}")

    def _notify(self, timer: ScheduledTimer):
        if not self.on_completed:
            return
        try:
            self.on_completed(timer)
        except Exception as e:
            self.logger.warning(f"Timer completion hook failed: {e}")
