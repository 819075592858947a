"""
Finite state machine for an order's lifecycle.

An order is editable only while it is a draft. Starting checkout freezes
it; payment confirmation commits it. A slot taken by another order
between checkout and commit sends it to slot reselection rather than
silently keeping or moving the booking.

The draft carries its status and advances it through ``next_state``.

Usage:
    state = next_state(OrderState.DRAFT, OrderTrigger.CHECKOUT_STARTED)
    assert state == OrderState.AWAITING_PAYMENT
"""

from dataclasses import dataclass
from enum import Enum


class OrderState(str, Enum):
    """All possible states in an order lifecycle."""
    DRAFT = "draft"
    AWAITING_PAYMENT = "awaiting_payment"
    RESELECT_SLOT = "reselect_slot"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class OrderTrigger(str, Enum):
    """Events that cause state transitions."""
    CHECKOUT_STARTED = "checkout_started"
    CHECKOUT_ABANDONED = "checkout_abandoned"
    PAYMENT_CONFIRMED = "payment_confirmed"
    SLOT_CONFLICT = "slot_conflict"
    SLOT_RESELECTED = "slot_reselected"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Transition:
    """A single valid state transition."""
    from_state: OrderState
    to_state: OrderState
    trigger: OrderTrigger


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


TRANSITIONS: list[Transition] = [
    # --- Checkout ---
    Transition(OrderState.DRAFT, OrderState.AWAITING_PAYMENT, OrderTrigger.CHECKOUT_STARTED),
    Transition(OrderState.AWAITING_PAYMENT, OrderState.DRAFT, OrderTrigger.CHECKOUT_ABANDONED),

    # --- Commit ---
    Transition(OrderState.AWAITING_PAYMENT, OrderState.CONFIRMED, OrderTrigger.PAYMENT_CONFIRMED),
    Transition(OrderState.AWAITING_PAYMENT, OrderState.RESELECT_SLOT, OrderTrigger.SLOT_CONFLICT),
    Transition(OrderState.RESELECT_SLOT, OrderState.AWAITING_PAYMENT, OrderTrigger.SLOT_RESELECTED),

    # --- After commit ---
    Transition(OrderState.CONFIRMED, OrderState.CANCELLED, OrderTrigger.CANCELLED),
]


def next_state(state: OrderState, trigger: OrderTrigger) -> OrderState:
    """
    Resolve a transition without side effects.

    Raises:
        InvalidTransitionError: If no transition exists for the pair.
    """
    for t in TRANSITIONS:
        if t.from_state == state and t.trigger == trigger:
            return t.to_state

    valid = [t.value for t in valid_triggers(state)]
    raise InvalidTransitionError(
        f"No valid transition from '{state.value}' "
        f"with trigger '{trigger.value}'. Valid triggers: {valid}"
    )


def valid_triggers(state: OrderState) -> list[OrderTrigger]:
    """Return all triggers valid from a state."""
    return [t.trigger for t in TRANSITIONS if t.from_state == state]

