from shoot_scheduler.order.coordinator import (
    PropertySchedule,
    SiblingBooking,
    coordinate,
    reconcile,
)
from shoot_scheduler.order.draft import BookingDraft, OrderLockedError, new_draft, reduce
from shoot_scheduler.order.lifecycle import (
    InvalidTransitionError,
    OrderState,
    OrderTrigger,
    next_state,
)

__all__ = [
    "BookingDraft",
    "OrderLockedError",
    "new_draft",
    "reduce",
    "PropertySchedule",
    "SiblingBooking",
    "coordinate",
    "reconcile",
    "next_state",
    "OrderState",
    "OrderTrigger",
    "InvalidTransitionError",
]
