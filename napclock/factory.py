"""
Factory Module - Dependency Injection for Napclock

Provides factory functions to create properly configured instances:
- Production setup (file store, MPD playback, jsonl analytics)
- Test setup (memory store, fakes passed in)

Following KISS principle: Simple factory functions, no complex frameworks.
"""

from typing import Callable, Optional

import config
from napclock.durable_store import JsonFileStore
from napclock.event_bus import EventBus, EventBusAdvanceSink
from napclock.event_logger import EventLogger
from napclock.interfaces import ContentAdvanceSink, DurableStore, EventSink, PlaybackController, WakeScheduler
from napclock.mpd_playback import MPDPlayback
from napclock.recovery import RecoveryReconciler
from napclock.sleep_timer_service import SleepTimerService
from napclock.timer_scheduler import TimerScheduler
from napclock.timer_store import TimerStore
from napclock.trigger_handler import TriggerHandler
from napclock.wake_scheduler import ThreadingWakeScheduler, WakeSchedulerAdapter


def create_durable_store(path: str = None, debug: bool = False) -> JsonFileStore:
    """
    Create file-backed store with config defaults.

    Args:
        path: State file path (None for config default)
        debug: Enable debug logging

    Returns:
        Configured JsonFileStore instance
    """
    return JsonFileStore(path=path or config.NAPCLOCK_STATE_PATH, debug=debug)


def create_event_logger(path: str = None, enabled: bool = None) -> EventLogger:
    return EventLogger(path=path, enabled=enabled)


def create_mpd_playback(
    host: str = None,
    port: int = None,
    timeout: int = None,
    debug: bool = False
) -> MPDPlayback:
    """
    Create MPD playback collaborator with config defaults.

    Args:
        host: MPD host (None for config default)
        port: MPD port (None for config default)
        timeout: Connection timeout in seconds (None for config default)
        debug: Enable debug logging

    Returns:
        MPDPlayback usable as PlaybackController and ContentAdvanceSink
    """
    return MPDPlayback(
        host=host or config.MPD_HOST,
        port=port or config.MPD_PORT,
        timeout=timeout or config.MPD_TIMEOUT,
        debug=debug,
    )


def create_sleep_timer_service(
    store: Optional[DurableStore] = None,
    wake_scheduler: Optional[WakeScheduler] = None,
    playback: Optional[PlaybackController] = None,
    advance_sink: Optional[ContentAdvanceSink] = None,
    events: Optional[EventSink] = None,
    event_bus: Optional[EventBus] = None,
    clock: Callable[[], int] = None,
    use_mpd: bool = False,
    debug: bool = False,
) -> SleepTimerService:
    """
    Wire a complete sleep timer service.

    Args:
        store: Durable store (None for JsonFileStore at config path)
        wake_scheduler: Wake primitive (None for in-process ThreadingWakeScheduler)
        playback: Transport to pause (None: MPD if use_mpd, else nothing)
        advance_sink: End-of-content consumer (None: event bus, MPD, or nothing)
        events: Analytics sink (None for jsonl EventLogger)
        event_bus: Bus receiving content-advance requests
        clock: Epoch-milliseconds clock (None for wall clock)
        use_mpd: Build MPD playback for missing collaborators
        debug: Enable debug logging

    Returns:
        SleepTimerService (call start() before use)
    """
    store = store if store is not None else create_durable_store(debug=debug)
    events = events if events is not None else create_event_logger()

    if use_mpd and (playback is None or advance_sink is None):
        mpd_playback = create_mpd_playback(debug=debug)
        playback = playback or mpd_playback
        if advance_sink is None and event_bus is None:
            advance_sink = mpd_playback
    if advance_sink is None and event_bus is not None:
        advance_sink = EventBusAdvanceSink(event_bus)

    in_process_scheduler = None
    if wake_scheduler is None:
        in_process_scheduler = ThreadingWakeScheduler(clock=clock, debug=debug)
        wake_scheduler = in_process_scheduler

    timer_store = TimerStore(store, debug=debug)
    wake = WakeSchedulerAdapter(wake_scheduler, clock=clock, debug=debug)

    scheduler = TimerScheduler(timer_store, wake, events=events, clock=clock, debug=debug)
    trigger_handler = TriggerHandler(
        timer_store,
        playback=playback,
        advance_sink=advance_sink,
        events=events,
        wake=wake,
        debug=debug,
    )
    reconciler = RecoveryReconciler(timer_store, wake, events=events, debug=debug)

    service = SleepTimerService(scheduler, trigger_handler, reconciler, wake, clock=clock, debug=debug)

    if in_process_scheduler is not None:
        in_process_scheduler.set_callback(service.on_wake)

    return service
