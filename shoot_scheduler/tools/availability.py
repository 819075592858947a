"""
Slot generation and calendar availability.

Candidate start times are enumerated at a fixed step across the working
day and rejected when they overlap any committed interval widened by the
travel buffer. The month view asks a coarser question of the same data:
does any gap of the minimum size survive at all.

Storage is reached through the ``BookingStore`` protocol; the interval
logic itself is pure.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from shoot_scheduler.config import settings
from shoot_scheduler.schemas.booking_schema import (
    AvailabilityResponse,
    DayStatus,
    TimeInterval,
    UnavailableReason,
    WorkingDay,
)
from shoot_scheduler.utils import month_bounds, parse_date

if TYPE_CHECKING:
    from shoot_scheduler.tools.booking import BookingStore

logger = logging.getLogger(__name__)

DEFAULT_WORKING_DAY = WorkingDay()

CLOSED_DAY_MESSAGE = "We only operate Monday to Saturday"
BLOCKED_DAY_MESSAGE = "This date is unavailable"
FULLY_BOOKED_MESSAGE = "This date is fully booked"
NO_FIT_MESSAGE = "No time slot on this date fits the selected services"


def blocked_intervals(
    existing: Iterable[TimeInterval],
    buffer_minutes: Optional[int] = None,
) -> list[TimeInterval]:
    """Widen committed intervals by the travel buffer, sorted by start."""
    buffer = settings.schedule.travel_buffer_minutes if buffer_minutes is None else buffer_minutes
    return sorted((interval.expanded(buffer) for interval in existing), key=lambda i: i.start)


def available_slots(
    duration_minutes: int,
    existing_intervals: Iterable[TimeInterval],
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> list[TimeInterval]:
    """
    Enumerate every start time that fits the working day without clashing.

    Args:
        duration_minutes: On-site time the shoot needs.
        existing_intervals: Committed intervals for the date, unbuffered.
        working_day: Window the shoot must fall inside.

    Returns:
        Non-overlapping candidates in ascending start order. Empty when
        the duration is zero or longer than the working window.
    """
    if duration_minutes <= 0:
        return []

    blocked = blocked_intervals(existing_intervals)
    step = settings.schedule.slot_step_minutes
    slots: list[TimeInterval] = []

    start = working_day.start
    while start + duration_minutes <= working_day.end:
        candidate = TimeInterval(start=start, end=start + duration_minutes)
        if any(candidate.overlaps(b) for b in blocked):
            logger.debug("Rejected %s: overlaps a committed interval", candidate)
        else:
            slots.append(candidate)
        start += step

    return slots


def is_working_day(day: date | str, working_day: WorkingDay = DEFAULT_WORKING_DAY) -> bool:
    """True when the date falls on an operating weekday."""
    if isinstance(day, str):
        day = parse_date(day)
    return working_day.is_operating_day(day)


def is_bookable_date(
    day: date | str,
    today: Optional[date] = None,
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> bool:
    """True when the date is an operating day far enough in the future."""
    if isinstance(day, str):
        day = parse_date(day)
    today = today or date.today()
    earliest = today + timedelta(days=settings.schedule.min_lead_days)
    return day >= earliest and working_day.is_operating_day(day)


def has_free_gap(
    intervals: Sequence[TimeInterval],
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> bool:
    """
    Whether a gap of at least the minimum slot size remains in the day.

    Walks bookings left to right; each gap must leave room for the travel
    buffer before the next booking, and the cursor jumps past each booking
    plus its buffer. The tail up to day end is checked last.
    """
    buffer = settings.schedule.travel_buffer_minutes
    min_gap = settings.schedule.min_gap_minutes
    cursor = working_day.start

    for interval in sorted(intervals, key=lambda i: i.start):
        if (interval.start - buffer) - cursor >= min_gap:
            return True
        cursor = max(cursor, interval.end + buffer)

    return working_day.end - cursor >= min_gap


def classify_day(
    intervals: Sequence[TimeInterval],
    blocked: bool = False,
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> DayStatus:
    """Load status of a date; an explicit block overrides any load."""
    if blocked:
        return DayStatus.BLOCKED
    if not intervals:
        return DayStatus.OPEN
    if has_free_gap(intervals, working_day):
        return DayStatus.PARTIAL
    return DayStatus.FULL


def check_availability(
    day: str,
    duration_minutes: int,
    store: BookingStore,
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> AvailabilityResponse:
    """
    Availability for one date and one required duration.

    Closed weekdays and blocked dates short-circuit before any interval
    work. A duration of 0 checks the date only: it is available unless
    blocked or closed, and no slots are listed.
    """
    parsed = parse_date(day)

    if not working_day.is_operating_day(parsed):
        return AvailabilityResponse(
            date=day,
            available=False,
            reason=UnavailableReason.CLOSED_DAY,
            message=CLOSED_DAY_MESSAGE,
        )

    blocked = store.get_blocked_day(day)
    if blocked is not None:
        return AvailabilityResponse(
            date=day,
            available=False,
            reason=UnavailableReason.BLOCKED,
            message=blocked.reason or BLOCKED_DAY_MESSAGE,
        )

    existing = [booking.interval for booking in store.get_confirmed_bookings(day)]

    if duration_minutes <= 0:
        return AvailabilityResponse(
            date=day,
            available=True,
            existing_bookings=len(existing),
        )

    slots = available_slots(duration_minutes, existing, working_day)
    if slots:
        return AvailabilityResponse(
            date=day,
            available=True,
            slots=slots,
            message=f"{len(slots)} time slots available on {day}.",
            existing_bookings=len(existing),
        )

    if existing and not has_free_gap(existing, working_day):
        reason, message = UnavailableReason.FULLY_BOOKED, FULLY_BOOKED_MESSAGE
    else:
        reason, message = UnavailableReason.DURATION_DOES_NOT_FIT, NO_FIT_MESSAGE
    logger.info("No slots on %s for %d minutes (%s)", day, duration_minutes, reason.value)

    return AvailabilityResponse(
        date=day,
        available=False,
        reason=reason,
        message=message,
        existing_bookings=len(existing),
    )


def _month_load(
    month: str, store: BookingStore
) -> tuple[date, date, set[str], dict[str, list[TimeInterval]]]:
    first, last = month_bounds(month)
    blocked = {b.date for b in store.get_blocked_days_in_range(first.isoformat(), last.isoformat())}

    by_date: dict[str, list[TimeInterval]] = {}
    for booking in store.get_confirmed_bookings_in_range(first.isoformat(), last.isoformat()):
        by_date.setdefault(booking.booking_date, []).append(booking.interval)

    return first, last, blocked, by_date


def unavailable_dates(
    month: str,
    store: BookingStore,
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> list[str]:
    """Blocked and fully booked dates in a ``YYYY-MM`` month, sorted."""
    _, _, blocked, by_date = _month_load(month, store)
    full = {
        day for day, intervals in by_date.items()
        if not has_free_gap(intervals, working_day)
    }
    return sorted(blocked | full)


def month_overview(
    month: str,
    store: BookingStore,
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> dict[str, DayStatus]:
    """Status of every date in a month, for calendar rendering."""
    first, last, blocked, by_date = _month_load(month, store)
    overview: dict[str, DayStatus] = {}

    day = first
    while day <= last:
        key = day.isoformat()
        if key in blocked:
            overview[key] = DayStatus.BLOCKED
        elif not working_day.is_operating_day(day):
            overview[key] = DayStatus.CLOSED
        else:
            overview[key] = classify_day(by_date.get(key, []), working_day=working_day)
        day += timedelta(days=1)

    return overview
