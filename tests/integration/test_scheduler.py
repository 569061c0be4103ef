"""Tests for the month-end sweep scheduler thread"""

import threading
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from personal_ledger.domain.models import SweepReport
from personal_ledger.engine.scheduler import SweepScheduler


def make_savings() -> MagicMock:
    savings = MagicMock()
    savings.sweep_all.return_value = SweepReport(swept=["alice@example.com"], total_amount=Decimal("10"))
    return savings


def test_tick_sweeps_only_on_last_day_of_month():
    savings = make_savings()

    mid_month = SweepScheduler(savings, clock=lambda: date(2026, 10, 19))
    assert mid_month.tick() is None
    savings.sweep_all.assert_not_called()

    month_end = SweepScheduler(savings, clock=lambda: date(2026, 10, 31))
    report = month_end.tick()
    assert report.swept == ["alice@example.com"]
    savings.sweep_all.assert_called_once()


def test_tick_survives_sweep_failure():
    savings = MagicMock()
    savings.sweep_all.side_effect = RuntimeError("store offline")
    scheduler = SweepScheduler(savings, clock=lambda: date(2026, 2, 28))

    assert scheduler.tick() is None


def test_initial_delay_counts_days_to_month_end():
    scheduler = SweepScheduler(make_savings(), clock=lambda: date(2026, 2, 10), interval_seconds=2.0)
    assert scheduler.initial_delay_seconds() == 36.0

    on_last_day = SweepScheduler(make_savings(), clock=lambda: date(2026, 2, 28), interval_seconds=2.0)
    assert on_last_day.initial_delay_seconds() == 0


def test_started_scheduler_sweeps_on_month_end_and_stops_cleanly():
    swept = threading.Event()
    savings = make_savings()
    savings.sweep_all.side_effect = lambda: swept.set()
    scheduler = SweepScheduler(savings, clock=lambda: date(2026, 1, 31), interval_seconds=0.05, grace_seconds=2.0)

    scheduler.start()
    try:
        assert swept.wait(timeout=5)
        assert scheduler.is_running
    finally:
        stopped = scheduler.stop()

    assert stopped is True
    assert scheduler.is_running is False


def test_stop_interrupts_long_initial_delay():
    savings = make_savings()
    # 30 days until month end with a one-hour interval: the thread would sleep for weeks
    scheduler = SweepScheduler(savings, clock=lambda: date(2026, 1, 1), interval_seconds=3600, grace_seconds=2.0)

    scheduler.start()
    assert scheduler.stop() is True
    savings.sweep_all.assert_not_called()


def test_stop_without_start_is_noop():
    assert SweepScheduler(make_savings()).stop() is True


def test_stop_abandons_sweep_exceeding_grace_period():
    release = threading.Event()
    entered = threading.Event()
    savings = MagicMock()

    def slow_sweep():
        entered.set()
        release.wait(timeout=5)

    savings.sweep_all.side_effect = slow_sweep
    scheduler = SweepScheduler(savings, clock=lambda: date(2026, 3, 31), interval_seconds=0.05, grace_seconds=0.05)

    scheduler.start()
    assert entered.wait(timeout=5)
    try:
        assert scheduler.stop() is False
    finally:
        release.set()
