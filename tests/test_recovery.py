"""
Tests for cold-start recovery.

Each "process" is a fresh build_components() sharing one durable store and
one wake scheduler; lose_registrations() simulates a reboot.
"""

import pytest

from napclock.control_events import EVENT_TIMER_ORPHAN_CLEARED
from napclock.durable_store import MemoryStore
from napclock.recovery import ReconcileResult
from napclock.timer_models import EndOfContent, FixedDuration
from tests.fixtures import FakeWakeScheduler, build_components


def restart(durable, wake_scheduler, reboot=False):
    if reboot:
        wake_scheduler.lose_registrations()
    return build_components(durable=durable, wake_scheduler=wake_scheduler)


class TestReconcile:
    """Test RecoveryReconciler.reconcile()"""

    def test_no_timer(self):
        parts = build_components()

        assert parts.reconciler.reconcile() is ReconcileResult.NO_TIMER

    def test_pending_timer_kept(self):
        durable, wake_scheduler = MemoryStore(), FakeWakeScheduler()
        timer = build_components(durable, wake_scheduler).scheduler.arm(FixedDuration(30)).timer

        parts = restart(durable, wake_scheduler)

        assert parts.reconciler.reconcile() is ReconcileResult.CONSISTENT
        assert parts.store.current() == timer

    def test_orphan_cleared_after_reboot(self):
        """Record survives, registration does not: cleared, never re-armed"""
        durable, wake_scheduler = MemoryStore(), FakeWakeScheduler()
        build_components(durable, wake_scheduler).scheduler.arm(FixedDuration(30))
        arm_calls = len(wake_scheduler.arm_calls)

        parts = restart(durable, wake_scheduler, reboot=True)

        assert parts.reconciler.reconcile() is ReconcileResult.ORPHAN_CLEARED
        assert not parts.store.is_active()
        assert parts.store.load() is None
        assert len(wake_scheduler.arm_calls) == arm_calls
        assert parts.events.events == [(EVENT_TIMER_ORPHAN_CLEARED, {'timer_type': 'fixed_duration'})]

    def test_end_of_content_orphan_cleared(self):
        durable, wake_scheduler = MemoryStore(), FakeWakeScheduler()
        build_components(durable, wake_scheduler).scheduler.arm(EndOfContent())

        parts = restart(durable, wake_scheduler, reboot=True)

        assert parts.reconciler.reconcile() is ReconcileResult.ORPHAN_CLEARED
        assert parts.store.load() is None

    def test_query_failure_keeps_record(self):
        """Unanswerable query is not proof of an orphan"""
        durable, wake_scheduler = MemoryStore(), FakeWakeScheduler()
        timer = build_components(durable, wake_scheduler).scheduler.arm(FixedDuration(5)).timer
        wake_scheduler.query_error = RuntimeError("scheduler service unavailable")

        parts = restart(durable, wake_scheduler)

        assert parts.reconciler.reconcile() is ReconcileResult.UNKNOWN
        assert parts.store.current() == timer

    def test_runs_once_per_process(self):
        durable, wake_scheduler = MemoryStore(), FakeWakeScheduler()
        build_components(durable, wake_scheduler).scheduler.arm(FixedDuration(5))
        parts = restart(durable, wake_scheduler)

        assert parts.reconciler.has_run is False
        assert parts.reconciler.reconcile() is ReconcileResult.CONSISTENT
        assert parts.reconciler.has_run is True

        wake_scheduler.lose_registrations()
        assert parts.reconciler.reconcile() is ReconcileResult.SKIPPED
        assert parts.store.is_active()


class TestStoreAgreesWithScheduler:
    """After recovery, is_active matches whether a registration exists"""

    @pytest.mark.parametrize("operations, reboot", [
        (["arm5"], False),
        (["arm5"], True),
        (["arm5", "cancel"], True),
        (["arm5", "arm10", "eoc"], False),
        (["arm5", "arm10", "eoc"], True),
        (["eoc", "cancel", "arm15"], False),
        (["arm5", "fire"], False),
        (["arm5", "fire", "arm30"], True),
    ])
    def test_operation_sequences(self, operations, reboot):
        durable, wake_scheduler = MemoryStore(), FakeWakeScheduler()
        parts = build_components(durable, wake_scheduler)
        for operation in operations:
            if operation == "cancel":
                parts.scheduler.cancel()
            elif operation == "fire":
                parts.handler.handle(wake_scheduler.armed_token())
            elif operation == "eoc":
                parts.scheduler.arm(EndOfContent())
            else:
                parts.scheduler.arm(FixedDuration(int(operation[3:])))

        parts = restart(durable, wake_scheduler, reboot=reboot)
        parts.reconciler.reconcile()

        timer = parts.store.current()
        if timer is None:
            assert not parts.store.is_active()
        else:
            assert wake_scheduler.is_armed(timer.token)
        assert len(wake_scheduler.registrations) <= 1
