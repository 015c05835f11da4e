"""
Event Bus - Where Sleep Timer Signals Leave the Core

End-of-content timers never touch the player: the trigger handler signals
"advance", EventBusAdvanceSink turns that into a content_advance_requested
event, and whatever drives playback subscribes to it.

The timer must never wait on a subscriber: publish() only enqueues, a
dispatcher thread delivers, and a full queue drops the new event (logged
and counted).

Example Usage:
    bus = EventBus()
    bus.subscribe(EVENT_CONTENT_ADVANCE_REQUESTED, lambda event: player.next())
    bus.start()

    service = create_sleep_timer_service(event_bus=bus)
"""

import queue
import threading
from typing import Callable, Dict, List, Optional

import config
from napclock.control_events import ControlEvent, ALLOWED_EVENTS, EVENT_CONTENT_ADVANCE_REQUESTED, new_event
from napclock.logging_utils import setup_logger, log_debug, log_warning

EventHandler = Callable[[ControlEvent], None]


class EventBus:
    """In-process bus for timer events, delivered from one dispatcher thread."""

    def __init__(self, max_queue: Optional[int] = None, whitelist_only: Optional[bool] = None, debug: bool = False):
        """
        Args:
            max_queue: Pending events kept before dropping (default: from config)
            whitelist_only: Reject names outside ALLOWED_EVENTS (default: from config)
            debug: Enable debug logging
        """
        max_queue = max_queue if max_queue is not None else config.EVENT_BUS_MAX_QUEUE
        self.whitelist_only = whitelist_only if whitelist_only is not None else config.EVENT_BUS_ENFORCE_WHITELIST
        self._queue: "queue.Queue[ControlEvent]" = queue.Queue(maxsize=max_queue)
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self.dropped = 0
        self.debug = debug
        self.logger = setup_logger(__name__, debug=debug)

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self):
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._dispatch_loop, daemon=True, name="TimerEventDispatcher")
        self._thread.start()
        log_debug(self.logger, "Timer event dispatcher started")

    def stop(self, timeout: float = 1.0):
        """Stop after delivering what is already queued."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

    def subscribe(self, event_name: str, handler: EventHandler):
        with self._lock:
            self._handlers.setdefault(event_name, []).append(handler)

    def publish(self, event: ControlEvent) -> bool:
        """
        Queue an event for delivery.

        Returns:
            False if the bus is stopped, the name is not allowed, or the queue is full
        """
        if not self._running:
            log_warning(self.logger, f"Timer event {event.name} dropped: bus not running")
            return False
        if self.whitelist_only and event.name not in ALLOWED_EVENTS:
            log_warning(self.logger, f"Timer event {event.name} rejected: unknown name")
            return False
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            log_warning(self.logger, f"Timer event {event.name} dropped: queue full ({self.dropped} so far)")
            return False
        return True

    def _dispatch_loop(self):
        while self._running or not self._queue.empty():
            try:
                event = self._queue.get(timeout=0.2)
            except queue.Empty:
                continue

            with self._lock:
                handlers = list(self._handlers.get(event.name, []))
            if self.debug:
                log_debug(self.logger, f"Delivering {event.name} to {len(handlers)} handler(s)")

            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    log_warning(self.logger, f"Handler for {event.name} failed: {e}")


class EventBusAdvanceSink:
    """ContentAdvanceSink that publishes the advance request on the bus."""

    def __init__(self, event_bus: EventBus, source: str = "sleep_timer"):
        self.event_bus = event_bus
        self.source = source

    def signal_advance(self) -> None:
        self.event_bus.publish(new_event(EVENT_CONTENT_ADVANCE_REQUESTED, source=self.source))
