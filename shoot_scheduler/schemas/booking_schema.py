"""Booking, interval and availability data models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shoot_scheduler.config import settings
from shoot_scheduler.schemas.service_schema import ServiceSelection
from shoot_scheduler.utils import normalize_phone, to_hhmm, to_minutes


class TimeInterval(BaseModel):
    """Half-open ``[start, end)`` interval in minutes from midnight."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    @model_validator(mode="after")
    def _check_order(self) -> "TimeInterval":
        if self.start >= self.end:
            raise ValueError(f"Interval start must precede end, got {self.start}-{self.end}")
        return self

    @classmethod
    def from_times(cls, start_time: str, end_time: str) -> "TimeInterval":
        return cls(start=to_minutes(start_time), end=to_minutes(end_time))

    @classmethod
    def starting_at(cls, start_time: str, duration_minutes: int) -> "TimeInterval":
        start = to_minutes(start_time)
        return cls(start=start, end=start + duration_minutes)

    @property
    def start_time(self) -> str:
        return to_hhmm(self.start)

    @property
    def end_time(self) -> str:
        return to_hhmm(self.end)

    @property
    def minutes(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and self.end > other.start

    def expanded(self, buffer_minutes: int) -> "TimeInterval":
        """Widen both ends by a travel buffer."""
        return TimeInterval(start=self.start - buffer_minutes, end=self.end + buffer_minutes)

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


class WorkingDay(BaseModel):
    """Fixed daily schedule shared by every operating date."""

    model_config = ConfigDict(frozen=True)

    start: int = settings.schedule.day_start_minutes
    end: int = settings.schedule.day_end_minutes
    closed_weekdays: frozenset[int] = frozenset({settings.schedule.closed_weekday})

    @property
    def window_minutes(self) -> int:
        return self.end - self.start

    def is_operating_day(self, day: date) -> bool:
        return day.weekday() not in self.closed_weekdays


class ExistingBooking(BaseModel):
    """A confirmed on-site interval as read back from storage."""

    booking_date: str
    start_time: str
    end_time: str

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval.from_times(self.start_time, self.end_time)


class BlockedDay(BaseModel):
    """A date an administrator has closed for booking."""

    id: str
    date: str
    reason: Optional[str] = None
    created_at: Optional[datetime] = None


class DayStatus(str, Enum):
    """Calendar status for a single date."""

    OPEN = "open"
    PARTIAL = "partial"
    FULL = "full"
    BLOCKED = "blocked"
    CLOSED = "closed"


class UnavailableReason(str, Enum):
    """Why a date produced no slots."""

    BLOCKED = "blocked"
    CLOSED_DAY = "closed_day"
    FULLY_BOOKED = "fully_booked"
    DURATION_DOES_NOT_FIT = "duration_does_not_fit"


class AvailabilityResponse(BaseModel):
    """Day availability check result."""

    date: str
    available: bool
    slots: list[TimeInterval] = Field(default_factory=list)
    reason: Optional[UnavailableReason] = None
    message: str = ""
    existing_bookings: int = 0


class AgentDetails(BaseModel):
    """The estate agent placing the order."""

    name: str = ""
    company: Optional[str] = None
    email: str = ""
    phone: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def _normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return normalize_phone(value)


class PropertyDraft(BaseModel):
    """One property as entered on the booking form."""

    model_config = ConfigDict(frozen=True)

    id: str
    address: str = ""
    postcode: Optional[str] = None
    notes: Optional[str] = None
    services: ServiceSelection = Field(default_factory=ServiceSelection)
    preferred_date: Optional[str] = None
    time_slot: Optional[str] = None  # chosen start, HH:MM


class LineItem(BaseModel):
    """One priced row of a basket or invoice."""

    name: str
    amount: Decimal
    description: Optional[str] = None


class OrderQuote(BaseModel):
    """Order-level price breakdown."""

    property_totals: list[Decimal] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    multi_property_discount: Decimal = Decimal("0")
    discount_percentage: int = 0
    code_discount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    currency: str = settings.pricing.currency


class BookingRecord(BaseModel):
    """A persisted property booking; amounts are in minor units."""

    id: str
    order_ref: str
    address: str
    postcode: Optional[str] = None
    bedrooms: int
    preferred_date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[str] = None
    agent: AgentDetails
    services: ServiceSelection
    work_minutes: int
    work_hours: float
    subtotal: int
    discount_code: Optional[str] = None
    discount_amount: int = 0
    total: int
    status: str = "confirmed"
    created_at: datetime

    @property
    def interval(self) -> Optional[TimeInterval]:
        if not self.start_time or not self.end_time:
            return None
        return TimeInterval.from_times(self.start_time, self.end_time)


class DiscountCode(BaseModel):
    """A percentage discount code managed by the business."""

    code: str
    percentage: int
    active: bool = True
    max_uses: Optional[int] = None
    times_used: int = 0
    expires_at: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("percentage")
    @classmethod
    def _clamp_percentage(cls, value: int) -> int:
        return min(max(value, 0), 100)
