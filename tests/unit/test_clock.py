"""Tests for the injectable clocks."""

from datetime import date, datetime, timezone

from ledger_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_pinned_until_moved(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()
        assert clock.today() == date(2024, 12, 31)

    def test_advance_crosses_midnight(self):
        clock = DeterministicClock(datetime(2024, 3, 31, 23, 59, 30, tzinfo=timezone.utc))
        clock.advance(seconds=45)
        assert clock.today() == date(2024, 4, 1)
        clock.advance(days=30, seconds=0)
        assert clock.today() == date(2024, 5, 1)

    def test_naive_time_is_utc(self):
        clock = DeterministicClock(datetime(2024, 6, 1, 8, 0))
        assert clock.now().tzinfo is timezone.utc
        clock.set_time(datetime(2025, 1, 1))
        assert clock.now() == datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestSystemClock:
    def test_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None
