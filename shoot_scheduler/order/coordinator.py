"""
Multi-property slot coordination.

Properties booked in the same order must not collide with each other any
more than with confirmed bookings. Given each property's slot list for
its own date and duration, the coordinator removes every slot that
overlaps a sibling's chosen interval (widened by the travel buffer) on
the same date, and clears choices that no longer fit.

Earlier properties win: when two siblings already hold overlapping
choices, the later one loses its choice.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from shoot_scheduler.config import settings
from shoot_scheduler.logging_context import get_order_logger
from shoot_scheduler.order.draft import BookingDraft, SelectSlot, reduce
from shoot_scheduler.schemas.booking_schema import (
    AvailabilityResponse,
    PropertyDraft,
    TimeInterval,
    WorkingDay,
)
from shoot_scheduler.tools.availability import DEFAULT_WORKING_DAY, check_availability
from shoot_scheduler.tools.booking import BookingStore
from shoot_scheduler.tools.duration import duration_minutes

logger = get_order_logger(__name__)


@dataclass(frozen=True)
class SiblingBooking:
    """A same-order choice that is not persisted yet."""

    property_id: str
    booking_date: str
    interval: TimeInterval


@dataclass(frozen=True)
class PropertySchedule:
    """Coordinated slot list for one property."""

    property_id: str
    slots: list[TimeInterval] = field(default_factory=list)
    selected_slot: Optional[str] = None
    cleared: bool = False
    conflicted: bool = False

    @property
    def start_times(self) -> list[str]:
        return [slot.start_time for slot in self.slots]


def chosen_interval(prop: PropertyDraft) -> Optional[TimeInterval]:
    """The interval a property currently occupies, if it has a date and slot."""
    if not prop.preferred_date or not prop.time_slot:
        return None
    minutes = duration_minutes(prop.services)
    if minutes <= 0:
        return None
    return TimeInterval.starting_at(prop.time_slot, minutes)


def _conflicts(interval: TimeInterval, others: Sequence[TimeInterval], buffer: int) -> bool:
    return any(interval.overlaps(other.expanded(buffer)) for other in others)


def resolve_siblings(properties: Sequence[PropertyDraft]) -> list[SiblingBooking]:
    """
    Choices that stand once sibling collisions are resolved.

    Walks properties in order; a choice survives only if it does not
    collide with an earlier surviving choice on the same date.
    """
    buffer = settings.schedule.travel_buffer_minutes
    surviving: list[SiblingBooking] = []

    for prop in properties:
        interval = chosen_interval(prop)
        if interval is None:
            continue
        same_day = [s.interval for s in surviving if s.booking_date == prop.preferred_date]
        if _conflicts(interval, same_day, buffer):
            logger.debug("Choice %s for %s collides with an earlier sibling", interval, prop.id)
            continue
        surviving.append(SiblingBooking(prop.id, prop.preferred_date, interval))

    return surviving


def _still_offered(
    prop: PropertyDraft, availability: Mapping[str, Sequence[TimeInterval]]
) -> bool:
    if not prop.time_slot:
        return False
    return any(slot.start_time == prop.time_slot for slot in availability.get(prop.id, []))


def filter_sibling_conflicts(
    slots: Sequence[TimeInterval],
    siblings: Sequence[TimeInterval],
    buffer_minutes: Optional[int] = None,
) -> list[TimeInterval]:
    """Drop slots overlapping any sibling interval widened by the buffer."""
    buffer = settings.schedule.travel_buffer_minutes if buffer_minutes is None else buffer_minutes
    return [slot for slot in slots if not _conflicts(slot, siblings, buffer)]


def coordinate(
    properties: Sequence[PropertyDraft],
    availability: Mapping[str, Sequence[TimeInterval]],
) -> dict[str, PropertySchedule]:
    """
    Coordinate slot lists across every property of one order.

    Args:
        properties: Property drafts in form order.
        availability: Slot lists already fetched for each property's own
            date and duration, keyed by property id.

    Returns:
        One ``PropertySchedule`` per property. A choice missing from the
        filtered list is cleared when alternatives exist; when none exist
        it is kept but flagged ``conflicted``.

    Only choices still present in their own fetched list take part in
    sibling resolution, so a choice lost to a confirmed booking never
    filters its siblings. Surviving choices never collide with each
    other, so coordinating the returned choices again yields the same
    schedules.
    """
    standing = [prop for prop in properties if _still_offered(prop, availability)]
    siblings = resolve_siblings(standing)
    schedules: dict[str, PropertySchedule] = {}

    for prop in properties:
        own_slots = availability.get(prop.id, [])
        others = [
            s.interval for s in siblings
            if s.property_id != prop.id and s.booking_date == prop.preferred_date
        ]
        slots = filter_sibling_conflicts(own_slots, others) if prop.preferred_date else []

        selected = prop.time_slot
        cleared = conflicted = False
        if selected and selected not in {slot.start_time for slot in slots}:
            if slots:
                logger.info(
                    "Cleared slot %s for property %s; it must be re-selected", selected, prop.id
                )
                selected, cleared = None, True
            else:
                conflicted = True

        schedules[prop.id] = PropertySchedule(
            property_id=prop.id,
            slots=slots,
            selected_slot=selected,
            cleared=cleared,
            conflicted=conflicted,
        )

    return schedules


def fetch_availability(
    draft: BookingDraft,
    store: BookingStore,
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> dict[str, AvailabilityResponse]:
    """Check each dated property against storage for its own duration."""
    return {
        prop.id: check_availability(
            prop.preferred_date, duration_minutes(prop.services), store, working_day
        )
        for prop in draft.properties
        if prop.preferred_date
    }


def reconcile(
    draft: BookingDraft,
    store: BookingStore,
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> tuple[BookingDraft, dict[str, PropertySchedule]]:
    """
    Recompute every property's slots and apply any cleared choices.

    Run after every change to a date, slot or service selection; the
    returned draft and schedules are consistent with each other.
    """
    responses = fetch_availability(draft, store, working_day)
    availability = {pid: response.slots for pid, response in responses.items()}
    schedules = coordinate(draft.properties, availability)

    for prop in draft.properties:
        if schedules[prop.id].cleared:
            draft = reduce(draft, SelectSlot(prop.id, None))
    return draft, schedules
