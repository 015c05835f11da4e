import threading

from napclock.control_events import EVENT_CONTENT_ADVANCE_REQUESTED, EVENT_TIMER_ARMED, ControlEvent
from napclock.event_bus import EventBus, EventBusAdvanceSink


def test_full_queue_drops_new_events():
    bus = EventBus(max_queue=1, debug=False)
    entered = threading.Event()
    release = threading.Event()

    def slow_handler(event):
        entered.set()
        release.wait(timeout=1.0)

    bus.subscribe(EVENT_TIMER_ARMED, slow_handler)
    bus.start()
    try:
        assert bus.publish(ControlEvent.now(EVENT_TIMER_ARMED, source="test")) is True
        assert entered.wait(timeout=1.0)

        assert bus.publish(ControlEvent.now(EVENT_TIMER_ARMED, source="test")) is True
        assert bus.publish(ControlEvent.now(EVENT_TIMER_ARMED, source="test")) is False
        assert bus.publish(ControlEvent.now(EVENT_TIMER_ARMED, source="test")) is False
        assert bus.dropped == 2
    finally:
        release.set()
        bus.stop()


def test_event_bus_rejects_unknown_events():
    bus = EventBus(debug=False)
    bus.start()
    try:
        assert bus.publish(ControlEvent.now("volume_up", source="test")) is False
        assert bus.publish(ControlEvent.now(EVENT_TIMER_ARMED, source="test")) is True
    finally:
        bus.stop()


def test_custom_names_allowed_without_whitelist():
    bus = EventBus(whitelist_only=False, debug=False)
    delivered = threading.Event()
    bus.subscribe("bedtime_story_finished", lambda event: delivered.set())
    bus.start()
    try:
        assert bus.publish(ControlEvent.now("bedtime_story_finished", source="test")) is True
        assert delivered.wait(timeout=1.0)
    finally:
        bus.stop()


def test_event_bus_not_running_drops():
    bus = EventBus(debug=False)

    assert bus.is_running is False
    assert bus.publish(ControlEvent.now(EVENT_TIMER_ARMED)) is False
    assert bus.dropped == 0


def test_handler_errors_do_not_stop_dispatch():
    bus = EventBus(debug=False)
    delivered = threading.Event()

    def broken(event):
        raise RuntimeError("handler crashed")

    bus.subscribe(EVENT_TIMER_ARMED, broken)
    bus.subscribe(EVENT_TIMER_ARMED, lambda event: delivered.set())
    bus.start()
    try:
        bus.publish(ControlEvent.now(EVENT_TIMER_ARMED, source="test"))
        assert delivered.wait(timeout=1.0)
    finally:
        bus.stop()


def test_stop_delivers_queued_events():
    bus = EventBus(debug=False)
    received = []
    bus.subscribe(EVENT_TIMER_ARMED, lambda event: received.append(event.name))
    bus.start()

    bus.publish(ControlEvent.now(EVENT_TIMER_ARMED, source="test"))
    bus.stop()

    assert received == [EVENT_TIMER_ARMED]
    assert bus.is_running is False


def test_advance_sink_publishes_request():
    bus = EventBus(debug=False)
    received = []
    delivered = threading.Event()

    def handler(event):
        received.append(event)
        delivered.set()

    bus.subscribe(EVENT_CONTENT_ADVANCE_REQUESTED, handler)
    bus.start()
    try:
        EventBusAdvanceSink(bus).signal_advance()
        assert delivered.wait(timeout=1.0)
    finally:
        bus.stop()

    assert received[0].name == EVENT_CONTENT_ADVANCE_REQUESTED
    assert received[0].source == "sleep_timer"
