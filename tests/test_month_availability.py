"""Tests for the month calendar view."""

import pytest

from shoot_scheduler.schemas.booking_schema import DayStatus, TimeInterval
from shoot_scheduler.tools.availability import (
    classify_day,
    has_free_gap,
    month_overview,
    unavailable_dates,
)
from tests.conftest import make_record


class TestFreeGap:
    def test_empty_day_has_gap(self, working_day):
        assert has_free_gap([], working_day)

    def test_single_midday_booking_leaves_gap(self, working_day):
        assert has_free_gap([TimeInterval.from_times("12:00", "13:00")], working_day)

    def test_wall_to_wall_has_no_gap(self, working_day):
        assert not has_free_gap([TimeInterval.from_times("09:00", "17:30")], working_day)

    def test_gap_must_clear_both_buffers(self, working_day):
        # 10:00-10:30 free, but buffers on both sides eat all of it
        bookings = [
            TimeInterval.from_times("09:00", "10:00"),
            TimeInterval.from_times("10:30", "17:30"),
        ]
        assert not has_free_gap(bookings, working_day)

    def test_tail_gap_counts(self, working_day):
        assert has_free_gap([TimeInterval.from_times("09:00", "17:00")], working_day)

    def test_unsorted_input(self, working_day):
        bookings = [
            TimeInterval.from_times("13:30", "17:30"),
            TimeInterval.from_times("09:00", "12:00"),
        ]
        # 12:30-13:00 free after buffers, exactly the minimum gap
        assert has_free_gap(bookings, working_day)


class TestClassifyDay:
    def test_open(self, working_day):
        assert classify_day([], working_day=working_day) == DayStatus.OPEN

    def test_partial(self, working_day):
        intervals = [TimeInterval.from_times("12:00", "13:00")]
        assert classify_day(intervals, working_day=working_day) == DayStatus.PARTIAL

    def test_full(self, working_day):
        intervals = [TimeInterval.from_times("09:00", "17:30")]
        assert classify_day(intervals, working_day=working_day) == DayStatus.FULL

    def test_block_overrides_load(self, working_day):
        assert classify_day([], blocked=True, working_day=working_day) == DayStatus.BLOCKED


class TestMonthOverview:
    def test_every_day_present(self, store):
        overview = month_overview("2026-03", store)
        assert len(overview) == 31
        assert list(overview)[0] == "2026-03-01"

    def test_sundays_closed(self, store):
        overview = month_overview("2026-03", store)
        sundays = [day for day, status in overview.items() if status == DayStatus.CLOSED]
        assert sundays == ["2026-03-01", "2026-03-08", "2026-03-15", "2026-03-22", "2026-03-29"]

    def test_statuses_from_store(self, store):
        store.add_booking(make_record("2026-03-02", "12:00", "13:00"))
        store.add_booking(make_record("2026-03-03", "09:00", "17:30"))
        store.block_day("2026-03-04", "Holiday")

        overview = month_overview("2026-03", store)
        assert overview["2026-03-02"] == DayStatus.PARTIAL
        assert overview["2026-03-03"] == DayStatus.FULL
        assert overview["2026-03-04"] == DayStatus.BLOCKED
        assert overview["2026-03-05"] == DayStatus.OPEN

    def test_other_months_ignored(self, store):
        store.block_day("2026-04-01")
        assert DayStatus.BLOCKED not in month_overview("2026-03", store).values()

    def test_malformed_month(self, store):
        with pytest.raises(ValueError):
            month_overview("2026-3", store)


class TestUnavailableDates:
    def test_blocked_and_full_sorted(self, store):
        store.block_day("2026-03-20")
        store.add_booking(make_record("2026-03-10", "09:00", "17:30"))
        store.add_booking(make_record("2026-03-11", "12:00", "13:00"))
        assert unavailable_dates("2026-03", store) == ["2026-03-10", "2026-03-20"]

    def test_empty_month(self, store):
        assert unavailable_dates("2026-03", store) == []
