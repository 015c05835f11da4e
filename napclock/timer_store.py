"""
Timer Store - Durable "Is a Timer Armed" Record

Typed layer over a DurableStore. Owns no timer logic:
- The armed record (ScheduledTimer) under config.TIMER_STATE_KEY
- The last selection (TimerConfiguration) under config.TIMER_SETTINGS_KEY

Every transition is a full replace (save) or a clear; the record is never
patched field by field. Callers that read-then-write hold lock().
"""

import threading
from contextlib import contextmanager, nullcontext
from typing import Optional

import config
from napclock.base_module import BaseModule
from napclock.interfaces import DurableStore
from napclock.timer_models import InvalidTimerMode, ScheduledTimer, TimerConfiguration


class TimerStore(BaseModule):
    """Durable Timer Store."""

    def __init__(
        self,
        store: DurableStore,
        state_key: str = None,
        settings_key: str = None,
        debug: bool = False,
        verbose: bool = True,
    ):
        super().__init__(__name__, debug=debug, verbose=verbose)
        self._store = store
        self.state_key = state_key or config.TIMER_STATE_KEY
        self.settings_key = settings_key or config.TIMER_SETTINGS_KEY
        self._lock = threading.RLock()

    @contextmanager
    def lock(self):
        """Single-writer section across threads (and processes, if the store supports it)."""
        transaction = getattr(self._store, "transaction", None)
        with self._lock:
            with (transaction() if transaction else nullcontext()):
                yield

    # Armed record

    def load(self) -> Optional[ScheduledTimer]:
        """Stored record, or None if absent or unreadable."""
        data = self._store.get(self.state_key)
        if data is None:
            return None
        try:
            return ScheduledTimer.from_dict(data)
        except (InvalidTimerMode, KeyError, TypeError, ValueError) as e:
            self.logger.warning(f"Discarding malformed timer record: {e}")
            return None

    def current(self) -> Optional[ScheduledTimer]:
        """Stored record if it describes a live timer."""
        timer = self.load()
        if timer is None or not timer.is_active:
            return None
        return timer

    def is_active(self) -> bool:
        return self.current() is not None

    def save(self, timer: ScheduledTimer) -> None:
        self._store.put(self.state_key, timer.to_dict())
        self.logger.debug(f"Saved {timer!r}")

    def clear(self) -> None:
        self._store.delete(self.state_key)
        self.logger.debug("Cleared timer record")

    # Last selection

    def load_configuration(self) -> TimerConfiguration:
        data = self._store.get(self.settings_key)
        if data is None:
            return TimerConfiguration()
        try:
            return TimerConfiguration.from_dict(data)
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Discarding malformed timer settings: {e}")
            return TimerConfiguration()

    def save_configuration(self, configuration: TimerConfiguration) -> None:
        self._store.put(self.settings_key, configuration.to_dict())

    def reset_configuration(self) -> None:
        self._store.delete(self.settings_key)

    def clear_all(self) -> None:
        with self.lock():
            self.clear()
            self.reset_configuration()
