"""Shared test fixtures for Napclock tests

Fakes for every external collaborator plus a helper that wires the real
components around them.

Usage:
    from tests.fixtures import build_components

    parts = build_components()
    parts.scheduler.arm(FixedDuration(5))
    parts.handler.handle(parts.wake_scheduler.armed_token())
"""

import itertools
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from napclock.durable_store import MemoryStore
from napclock.recovery import RecoveryReconciler
from napclock.sleep_timer_service import SleepTimerService
from napclock.timer_scheduler import TimerScheduler
from napclock.timer_store import TimerStore
from napclock.trigger_handler import TriggerHandler
from napclock.wake_scheduler import WakeSchedulerAdapter

SENTINEL_MS = 2 ** 63 - 1


class FakeClock:
    """Manually advanced epoch-milliseconds clock."""

    def __init__(self, now_ms: int = 0):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int):
        self.now_ms += ms


class FakeWakeScheduler:
    """Records every call; registrations live in a dict."""

    def __init__(self, permission: bool = True):
        self.permission = permission
        self.registrations: Dict[str, int] = {}
        self.arm_calls: List[Tuple[int, str]] = []
        self.disarm_calls: List[str] = []
        self.permission_requests = 0
        self.fail_with: Optional[Exception] = None
        self.query_error: Optional[Exception] = None

    def arm(self, fire_at_epoch_ms: int, token: str) -> None:
        self.arm_calls.append((fire_at_epoch_ms, token))
        if self.fail_with is not None:
            raise self.fail_with
        self.registrations[token] = fire_at_epoch_ms

    def disarm(self, token: str) -> bool:
        self.disarm_calls.append(token)
        return self.registrations.pop(token, None) is not None

    def is_armed(self, token: str) -> bool:
        if self.query_error is not None:
            raise self.query_error
        return token in self.registrations

    def has_permission(self) -> bool:
        return self.permission

    def request_permission(self) -> None:
        self.permission_requests += 1

    def armed_token(self) -> Optional[str]:
        tokens = list(self.registrations)
        return tokens[-1] if tokens else None

    def lose_registrations(self):
        """Simulate a reboot wiping non-persistent wake registrations."""
        self.registrations.clear()


class FakePlayback:
    def __init__(self, active: bool = True, fail: bool = False):
        self.active = active
        self.fail = fail
        self.pause_calls = 0

    def has_active_session(self) -> bool:
        return self.active

    def pause(self) -> None:
        self.pause_calls += 1
        if self.fail:
            raise RuntimeError("transport unavailable")
        self.active = False


class FakeAdvanceSink:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.signals = 0

    def signal_advance(self) -> None:
        self.signals += 1
        if self.fail:
            raise RuntimeError("consumer gone")


class RecordingEvents:
    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def record(self, event_name: str, attributes: Dict[str, Any]) -> None:
        self.events.append((event_name, dict(attributes)))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


_TOKEN_COUNTER = itertools.count(1)


class TokenSequence:
    """Readable tokens (tok-1, tok-2, ...), unique across simulated restarts."""

    def __call__(self) -> str:
        return f"tok-{next(_TOKEN_COUNTER)}"


@dataclass
class Components:
    clock: FakeClock
    durable: MemoryStore
    store: TimerStore
    wake_scheduler: FakeWakeScheduler
    wake: WakeSchedulerAdapter
    playback: FakePlayback
    advance_sink: FakeAdvanceSink
    events: RecordingEvents
    scheduler: TimerScheduler
    handler: TriggerHandler
    reconciler: RecoveryReconciler
    service: SleepTimerService


def build_components(
    durable=None,
    wake_scheduler: Optional[FakeWakeScheduler] = None,
    now_ms: int = 0,
    playback: Optional[FakePlayback] = None,
    advance_sink: Optional[FakeAdvanceSink] = None,
) -> Components:
    """Wire real napclock components around fakes (one simulated process)."""
    clock = FakeClock(now_ms)
    durable = durable if durable is not None else MemoryStore()
    wake_scheduler = wake_scheduler or FakeWakeScheduler()
    playback = playback or FakePlayback()
    advance_sink = advance_sink or FakeAdvanceSink()
    events = RecordingEvents()

    store = TimerStore(durable, verbose=False)
    wake = WakeSchedulerAdapter(wake_scheduler, clock=clock, sentinel_ms=SENTINEL_MS, verbose=False)
    scheduler = TimerScheduler(
        store, wake, events=events, clock=clock, token_factory=TokenSequence(),
        sentinel_ms=SENTINEL_MS, verbose=False,
    )
    handler = TriggerHandler(
        store, playback=playback, advance_sink=advance_sink, events=events, wake=wake, verbose=False,
    )
    reconciler = RecoveryReconciler(store, wake, events=events, verbose=False)
    service = SleepTimerService(scheduler, handler, reconciler, wake, clock=clock, verbose=False)

    return Components(
        clock=clock,
        durable=durable,
        store=store,
        wake_scheduler=wake_scheduler,
        wake=wake,
        playback=playback,
        advance_sink=advance_sink,
        events=events,
        scheduler=scheduler,
        handler=handler,
        reconciler=reconciler,
        service=service,
    )
