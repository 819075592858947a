"""Shared test fixtures and helpers."""

import uuid
from datetime import datetime, timezone
from typing import Optional

import pytest

from shoot_scheduler.order.draft import BookingDraft, new_draft
from shoot_scheduler.schemas.booking_schema import (
    AgentDetails,
    BookingRecord,
    PropertyDraft,
    TimeInterval,
    WorkingDay,
)
from shoot_scheduler.schemas.service_schema import ServiceSelection
from shoot_scheduler.tools.booking import InMemoryBookingStore
from shoot_scheduler.tools.discounts import DiscountRegistry

MONDAY = "2026-02-23"
SATURDAY = "2026-02-28"
SUNDAY = "2026-02-22"


@pytest.fixture
def store():
    return InMemoryBookingStore()


@pytest.fixture
def working_day():
    return WorkingDay(start=540, end=1080, closed_weekdays=frozenset({6}))


@pytest.fixture
def draft() -> BookingDraft:
    return new_draft()


@pytest.fixture
def agent():
    return AgentDetails(name="Sam Taylor", email="sam@example.com", phone="01273 555 010")


@pytest.fixture
def registry():
    return DiscountRegistry()


def make_selection(**services) -> ServiceSelection:
    """Helper to build a ServiceSelection from snake or camelCase keys."""
    return ServiceSelection.model_validate(services)


def make_property(
    property_id: str = "p1",
    preferred_date: Optional[str] = MONDAY,
    time_slot: Optional[str] = None,
    address: str = "14 Preston Road, Brighton",
    **services,
) -> PropertyDraft:
    """Helper to create a PropertyDraft with photography as the default service."""
    return PropertyDraft(
        id=property_id,
        address=address,
        services=make_selection(**(services or {"photography": True})),
        preferred_date=preferred_date,
        time_slot=time_slot,
    )


def make_record(
    booking_date: str = MONDAY,
    start_time: str = "12:00",
    end_time: str = "13:00",
    status: str = "confirmed",
    order_ref: str = "ORD-TEST",
) -> BookingRecord:
    """Helper to create a stored booking occupying an exact interval."""
    interval = TimeInterval.from_times(start_time, end_time)
    return BookingRecord(
        id=str(uuid.uuid4()),
        order_ref=order_ref,
        address="1 Marine Parade, Brighton",
        bedrooms=2,
        preferred_date=booking_date,
        start_time=start_time,
        end_time=end_time,
        agent=AgentDetails(name="Other Agent", email="other@example.com"),
        services=ServiceSelection(photography=True),
        work_minutes=interval.minutes,
        work_hours=round(interval.minutes / 60, 2),
        subtotal=13000,
        total=13000,
        status=status,
        created_at=datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc),
    )
