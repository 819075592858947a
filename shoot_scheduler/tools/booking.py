"""
Booking storage and order confirmation.

``BookingStore`` is the contract the scheduling code reads and writes
through. ``InMemoryBookingStore`` implements it for tests, demos and
single-process deployments; a database-backed store must give the same
guarantee that ``add_booking`` is one atomic write which refuses to
overlap a confirmed booking.
"""

import threading
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from pydantic import BaseModel, Field

from shoot_scheduler.config import settings
from shoot_scheduler.logging_context import get_order_logger, order_context
from shoot_scheduler.schemas.booking_schema import (
    AgentDetails,
    BlockedDay,
    BookingRecord,
    ExistingBooking,
    PropertyDraft,
    TimeInterval,
    WorkingDay,
)
from shoot_scheduler.tools.availability import (
    BLOCKED_DAY_MESSAGE,
    CLOSED_DAY_MESSAGE,
    DEFAULT_WORKING_DAY,
)
from shoot_scheduler.tools.discounts import DiscountRegistry
from shoot_scheduler.tools.duration import duration_minutes, work_hours
from shoot_scheduler.tools.pricing import price
from shoot_scheduler.utils import parse_date, to_minor_units

logger = get_order_logger(__name__)


class BookingStoreError(Exception):
    """Base class for storage failures surfaced to callers."""


class SlotConflictError(BookingStoreError):
    """Raised when a commit would overlap a confirmed booking."""

    def __init__(self, booking_date: str, interval: TimeInterval) -> None:
        self.booking_date = booking_date
        self.interval = interval
        super().__init__(f"{booking_date} {interval} is no longer available")


class DuplicateBlockedDayError(BookingStoreError):
    """Raised when blocking a date that is already blocked."""


class BookingNotFoundError(BookingStoreError):
    """Raised when a booking or blocked day id is unknown."""


class BookingStore(Protocol):
    """Storage contract used by availability checks and order confirmation."""

    def get_confirmed_bookings(self, booking_date: str) -> list[ExistingBooking]: ...

    def get_blocked_day(self, booking_date: str) -> Optional[BlockedDay]: ...

    def get_confirmed_bookings_in_range(
        self, date_from: str, date_to: str
    ) -> list[ExistingBooking]: ...

    def get_blocked_days_in_range(self, date_from: str, date_to: str) -> list[BlockedDay]: ...

    def add_booking(self, record: BookingRecord) -> BookingRecord: ...


class InMemoryBookingStore:
    """Thread-safe in-process booking store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bookings: dict[str, BookingRecord] = {}
        self._blocked: dict[str, BlockedDay] = {}

    # --- reads ---

    def get_confirmed_bookings(self, booking_date: str) -> list[ExistingBooking]:
        return self.get_confirmed_bookings_in_range(booking_date, booking_date)

    def get_confirmed_bookings_in_range(
        self, date_from: str, date_to: str
    ) -> list[ExistingBooking]:
        with self._lock:
            records = list(self._bookings.values())
        return [
            ExistingBooking(
                booking_date=r.preferred_date,
                start_time=r.start_time,
                end_time=r.end_time,
            )
            for r in records
            if r.status == "confirmed"
            and r.start_time
            and r.end_time
            and date_from <= r.preferred_date <= date_to
        ]

    def get_blocked_day(self, booking_date: str) -> Optional[BlockedDay]:
        with self._lock:
            return self._blocked.get(booking_date)

    def get_blocked_days_in_range(self, date_from: str, date_to: str) -> list[BlockedDay]:
        with self._lock:
            days = list(self._blocked.values())
        return sorted(
            (d for d in days if date_from <= d.date <= date_to),
            key=lambda d: d.date,
        )

    def get_booking(self, booking_id: str) -> Optional[BookingRecord]:
        with self._lock:
            return self._bookings.get(booking_id)

    def list_bookings(self, booking_date: Optional[str] = None) -> list[BookingRecord]:
        with self._lock:
            records = list(self._bookings.values())
        if booking_date is not None:
            records = [r for r in records if r.preferred_date == booking_date]
        return sorted(records, key=lambda r: (r.preferred_date, r.start_time or ""))

    def list_blocked_days(self) -> list[BlockedDay]:
        with self._lock:
            return sorted(self._blocked.values(), key=lambda d: d.date)

    # --- writes ---

    def add_booking(self, record: BookingRecord) -> BookingRecord:
        """Persist a booking, refusing any overlap with a confirmed one."""
        interval = record.interval
        buffer = settings.schedule.travel_buffer_minutes

        with self._lock:
            if interval is not None and record.status == "confirmed":
                for other in self._bookings.values():
                    other_interval = other.interval
                    if (
                        other.status == "confirmed"
                        and other.preferred_date == record.preferred_date
                        and other_interval is not None
                        and interval.overlaps(other_interval.expanded(buffer))
                    ):
                        logger.warning(
                            "Slot conflict on %s: %s overlaps booking %s (%s)",
                            record.preferred_date, interval, other.id, other_interval,
                        )
                        raise SlotConflictError(record.preferred_date, interval)
            self._bookings[record.id] = record

        logger.info(
            "Booking created: %s at %s on %s %s",
            record.id, record.address, record.preferred_date, interval or "(no slot)",
        )
        return record

    def cancel_booking(self, booking_id: str) -> BookingRecord:
        with self._lock:
            record = self._bookings.get(booking_id)
            if record is None:
                raise BookingNotFoundError(f"Booking {booking_id} not found")
            cancelled = record.model_copy(update={"status": "cancelled"})
            self._bookings[booking_id] = cancelled
        logger.info("Booking cancelled: %s", booking_id)
        return cancelled

    def block_day(self, booking_date: str, reason: Optional[str] = None) -> BlockedDay:
        parse_date(booking_date)
        with self._lock:
            if booking_date in self._blocked:
                raise DuplicateBlockedDayError(f"{booking_date} is already blocked")
            blocked = BlockedDay(
                id=str(uuid.uuid4()),
                date=booking_date,
                reason=reason or None,
                created_at=datetime.now(timezone.utc),
            )
            self._blocked[booking_date] = blocked
        logger.info("Blocked %s (%s)", booking_date, reason or "no reason given")
        return blocked

    def unblock_day(self, block_id: str) -> None:
        with self._lock:
            match = next((d for d in self._blocked.values() if d.id == block_id), None)
            if match is None:
                raise BookingNotFoundError(f"Blocked day {block_id} not found")
            del self._blocked[match.date]
        logger.info("Unblocked %s", match.date)

    def reset(self) -> None:
        """Clear all bookings and blocked days."""
        with self._lock:
            self._bookings.clear()
            self._blocked.clear()


class PropertyConflict(BaseModel):
    """A property whose chosen slot was taken before payment completed."""

    property_id: str
    address: str
    preferred_date: str
    time_slot: str
    message: str


class ConfirmationResult(BaseModel):
    """Outcome of confirming a paid order."""

    order_ref: str
    success: bool
    bookings: list[BookingRecord] = Field(default_factory=list)
    conflicts: list[PropertyConflict] = Field(default_factory=list)
    message: str = ""


def build_booking_record(
    prop: PropertyDraft,
    agent: AgentDetails,
    order_ref: str,
    discount_code: Optional[str] = None,
    discount_percentage: int = 0,
) -> BookingRecord:
    """
    Derive the persisted record for one property.

    Duration and price are recomputed from the services; the start time
    is taken verbatim from the client's selection and the end time is
    start plus the recomputed duration.

    The code discount is taken from this property's own subtotal. The
    multi-property discount exists only on the order quote, so the records
    of a multi-property order sum to more than the amount charged.
    """
    services = prop.services
    minutes = duration_minutes(services)
    subtotal = to_minor_units(price(services))
    discount_amount = 0
    if discount_code and discount_percentage > 0:
        discount_amount = to_minor_units(Decimal(subtotal) * discount_percentage / 10000)

    start_time = prop.time_slot or None
    end_time = None
    if start_time:
        end_time = TimeInterval.starting_at(start_time, minutes).end_time

    return BookingRecord(
        id=str(uuid.uuid4()),
        order_ref=order_ref,
        address=prop.address,
        postcode=prop.postcode,
        bedrooms=services.bedrooms,
        preferred_date=prop.preferred_date or "",
        start_time=start_time,
        end_time=end_time,
        notes=prop.notes,
        agent=agent,
        services=services,
        work_minutes=minutes,
        work_hours=work_hours(services),
        subtotal=subtotal,
        discount_code=discount_code,
        discount_amount=discount_amount,
        total=subtotal - discount_amount,
        created_at=datetime.now(timezone.utc),
    )


def placement_problem(
    prop: PropertyDraft,
    store: BookingStore,
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> Optional[str]:
    """
    Why a property's date and slot cannot be committed, or None if they can.

    The client's start time is not trusted: the interval is rebuilt from
    the recomputed duration and must sit inside the working day on an
    open, unblocked date.
    """
    if not working_day.is_operating_day(parse_date(prop.preferred_date or "")):
        return CLOSED_DAY_MESSAGE

    blocked = store.get_blocked_day(prop.preferred_date or "")
    if blocked is not None:
        return blocked.reason or BLOCKED_DAY_MESSAGE

    if not prop.time_slot:
        return None
    interval = TimeInterval.starting_at(prop.time_slot, duration_minutes(prop.services))
    if interval.start < working_day.start or interval.end > working_day.end:
        return f"{interval.start_time} does not fit inside working hours"
    return None


def confirm_order(
    properties: Sequence[PropertyDraft],
    agent: AgentDetails,
    store: BookingStore,
    discount_code: Optional[str] = None,
    discount_percentage: int = 0,
    discounts: Optional[DiscountRegistry] = None,
    order_ref: Optional[str] = None,
    working_day: WorkingDay = DEFAULT_WORKING_DAY,
) -> ConfirmationResult:
    """
    Persist every property of a paid order, one atomic write each.

    Properties with no services are skipped. A property whose slot was
    taken by another order, or whose slot no longer fits its date, is
    reported in ``conflicts`` and the rest of the order still commits.
    The discount code's use is recorded once.
    """
    order_ref = order_ref or f"ORD-{uuid.uuid4().hex[:6].upper()}"

    with order_context(order_ref):
        bookings: list[BookingRecord] = []
        conflicts: list[PropertyConflict] = []

        for prop in properties:
            if not prop.services.has_services():
                logger.debug("Skipping property %s: no services selected", prop.id)
                continue
            if not prop.preferred_date:
                logger.warning("Property %s has no preferred date; skipping", prop.id)
                continue

            problem = placement_problem(prop, store, working_day)
            if problem is None:
                record = build_booking_record(
                    prop, agent, order_ref, discount_code, discount_percentage
                )
                try:
                    bookings.append(store.add_booking(record))
                    continue
                except SlotConflictError as exc:
                    problem = str(exc)
            else:
                logger.warning("Rejected slot for property %s: %s", prop.id, problem)

            conflicts.append(
                PropertyConflict(
                    property_id=prop.id,
                    address=prop.address,
                    preferred_date=prop.preferred_date,
                    time_slot=prop.time_slot or "",
                    message=problem,
                )
            )

        if discount_code and bookings and discounts is not None:
            discounts.record_use(discount_code)

        if conflicts:
            message = (
                f"{len(conflicts)} of {len(conflicts) + len(bookings)} "
                "properties need a new time slot."
            )
        else:
            message = f"Order {order_ref} confirmed: {len(bookings)} booking(s)."
        logger.info("%s", message)

    return ConfirmationResult(
        order_ref=order_ref,
        success=not conflicts,
        bookings=bookings,
        conflicts=conflicts,
        message=message,
    )
