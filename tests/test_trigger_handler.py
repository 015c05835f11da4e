"""
Tests for the trigger handler (reaction to a fired timer).
"""

from napclock.control_events import EVENT_TIMER_COMPLETED
from napclock.timer_models import EndOfContent, FixedDuration
from tests.fixtures import FakeAdvanceSink, FakePlayback, build_components


class TestFixedDurationFire:
    """FixedDuration fires pause playback"""

    def test_end_to_end_five_minutes(self):
        """Arm 5 min at t=0, fire at t=300000: one pause, store cleared"""
        parts = build_components(now_ms=0)
        timer = parts.scheduler.arm(FixedDuration(5)).timer
        assert timer.fire_at_epoch_ms == 300000

        parts.clock.now_ms = 300000
        assert parts.handler.handle(timer.token) is True

        assert parts.playback.pause_calls == 1
        assert parts.advance_sink.signals == 0
        assert parts.store.load() is None
        assert parts.events.events[-1] == (
            EVENT_TIMER_COMPLETED,
            {'duration_minutes': 5, 'timer_type': 'fixed_duration', 'did_stop_playback': True},
        )

    def test_no_active_session_skips_pause(self):
        """Nothing playing: no pause, still cleared"""
        parts = build_components(playback=FakePlayback(active=False))
        timer = parts.scheduler.arm(FixedDuration(10)).timer

        assert parts.handler.handle(timer.token) is True

        assert parts.playback.pause_calls == 0
        assert parts.store.load() is None
        assert parts.events.events[-1][1]['did_stop_playback'] is False

    def test_pause_failure_still_clears(self):
        """A failing transport never leaves the timer armed"""
        parts = build_components(playback=FakePlayback(fail=True))
        timer = parts.scheduler.arm(FixedDuration(10)).timer

        assert parts.handler.handle(timer.token) is True

        assert parts.playback.pause_calls == 1
        assert parts.store.load() is None

    def test_fired_token_is_disarmed(self):
        """Handled token is dropped from the wake scheduler"""
        parts = build_components()
        timer = parts.scheduler.arm(FixedDuration(10)).timer

        parts.handler.handle(timer.token)

        assert not parts.wake_scheduler.is_armed(timer.token)

    def test_duplicate_delivery_is_noop(self):
        """Second delivery of the same token does nothing"""
        parts = build_components()
        timer = parts.scheduler.arm(FixedDuration(5)).timer

        assert parts.handler.handle(timer.token) is True
        assert parts.handler.handle(timer.token) is False

        assert parts.playback.pause_calls == 1


class TestEndOfContentFire:
    """EndOfContent fires signal advance"""

    def test_signals_advance_without_pause(self):
        parts = build_components()
        timer = parts.scheduler.arm(EndOfContent()).timer

        assert parts.handler.handle(timer.token) is True

        assert parts.advance_sink.signals == 1
        assert parts.playback.pause_calls == 0
        assert parts.store.load() is None
        assert not parts.wake_scheduler.is_armed(timer.token)
        assert parts.events.events[-1][1]['timer_type'] == 'end_of_content'

    def test_advance_failure_still_clears(self):
        parts = build_components(advance_sink=FakeAdvanceSink(fail=True))
        timer = parts.scheduler.arm(EndOfContent()).timer

        assert parts.handler.handle(timer.token) is True
        assert parts.store.load() is None


class TestStaleDelivery:
    """Token mismatch makes fire/cancel races safe"""

    def test_no_timer_armed(self):
        parts = build_components()

        assert parts.handler.handle("tok-unknown") is False
        assert parts.playback.pause_calls == 0

    def test_old_token_after_rearm(self):
        """arm -> cancel -> arm(new) -> old fire: new timer unaffected"""
        parts = build_components()
        old = parts.scheduler.arm(FixedDuration(5)).timer
        parts.scheduler.cancel()
        new = parts.scheduler.arm(FixedDuration(30)).timer

        assert parts.handler.handle(old.token) is False

        assert parts.store.current() == new
        assert parts.wake_scheduler.is_armed(new.token)
        assert parts.playback.pause_calls == 0

    def test_cancel_wins_over_late_fire(self):
        """Fire delivered after cancel is a no-op"""
        parts = build_components()
        timer = parts.scheduler.arm(EndOfContent()).timer
        parts.scheduler.cancel()

        assert parts.handler.handle(timer.token) is False
        assert parts.advance_sink.signals == 0


class TestNeverRaises:
    """Handler swallows collaborator failures"""

    def test_broken_event_sink(self):
        parts = build_components()

        def explode(name, attributes):
            raise RuntimeError("analytics down")

        parts.handler.events.record = explode
        timer = parts.scheduler.arm(FixedDuration(5)).timer

        assert parts.handler.handle(timer.token) is True
        assert parts.store.load() is None

    def test_completion_hook_errors_ignored(self):
        parts = build_components()
        seen = []

        def hook(timer):
            seen.append(timer)
            raise RuntimeError("ui gone")

        parts.handler.on_completed = hook
        timer = parts.scheduler.arm(FixedDuration(5)).timer

        assert parts.handler.handle(timer.token) is True
        assert seen == [timer]

    def test_broken_store_read(self):
        parts = build_components()

        def explode(key):
            raise OSError("disk gone")

        parts.durable.get = explode

        assert parts.handler.handle("tok-x") is False
