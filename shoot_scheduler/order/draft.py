"""
Immutable booking draft and its reducer.

The booking form is one aggregate: the agent's details, an ordered list of
property drafts and an optional discount code. Every edit goes through
``reduce(draft, action)`` and produces a new draft; durations, prices and
sibling conflicts are derived from the current draft on demand rather
than cached alongside it.

Usage:
    draft = new_draft()
    pid = draft.properties[0].id
    draft = reduce(draft, UpdateServices(pid, {"photography": True, "photoCount": 30}))
    draft = reduce(draft, SelectDate(pid, "2026-03-02"))
    quote = draft_quote(draft)
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

from pydantic.alias_generators import to_snake

from shoot_scheduler.order.lifecycle import OrderState, OrderTrigger, next_state
from shoot_scheduler.schemas.booking_schema import AgentDetails, OrderQuote, PropertyDraft
from shoot_scheduler.schemas.service_schema import ServiceSelection
from shoot_scheduler.tools.duration import duration_minutes
from shoot_scheduler.tools.pricing import quote_order
from shoot_scheduler.utils import parse_date, to_minutes

logger = logging.getLogger(__name__)


class OrderLockedError(Exception):
    """Raised when an edit is attempted on an order that is not editable."""


@dataclass(frozen=True)
class BookingDraft:
    """Snapshot of the whole booking form."""

    agent: AgentDetails = field(default_factory=AgentDetails)
    properties: tuple[PropertyDraft, ...] = ()
    discount_code: Optional[str] = None
    discount_percentage: int = 0
    status: OrderState = OrderState.DRAFT

    def get_property(self, property_id: str) -> PropertyDraft:
        for prop in self.properties:
            if prop.id == property_id:
                return prop
        raise KeyError(f"Unknown property: {property_id}")


# --- Actions ---

@dataclass(frozen=True)
class AddProperty:
    property_id: Optional[str] = None


@dataclass(frozen=True)
class RemoveProperty:
    property_id: str


@dataclass(frozen=True)
class EditDetails:
    property_id: str
    address: Optional[str] = None
    postcode: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class UpdateServices:
    property_id: str
    changes: dict[str, Any]


@dataclass(frozen=True)
class SelectDate:
    property_id: str
    preferred_date: Optional[str]


@dataclass(frozen=True)
class SelectSlot:
    property_id: str
    time_slot: Optional[str]


@dataclass(frozen=True)
class UpdateAgent:
    changes: dict[str, Any]


@dataclass(frozen=True)
class ApplyDiscount:
    code: Optional[str]
    percentage: int = 0


@dataclass(frozen=True)
class AdvanceLifecycle:
    trigger: OrderTrigger


Action = Union[
    AddProperty,
    RemoveProperty,
    EditDetails,
    UpdateServices,
    SelectDate,
    SelectSlot,
    UpdateAgent,
    ApplyDiscount,
    AdvanceLifecycle,
]

# Slot choices may still change while reselecting after a commit conflict.
_SLOT_EDIT_STATES = {OrderState.DRAFT, OrderState.RESELECT_SLOT}


def _new_property_id() -> str:
    return f"prop-{uuid.uuid4().hex[:8]}"


def new_draft() -> BookingDraft:
    """A blank draft with one empty property, as the form opens."""
    return BookingDraft(properties=(PropertyDraft(id=_new_property_id()),))


def _replace_property(draft: BookingDraft, updated: PropertyDraft) -> BookingDraft:
    draft.get_property(updated.id)
    return replace(
        draft,
        properties=tuple(updated if p.id == updated.id else p for p in draft.properties),
    )


def _merge_services(current: ServiceSelection, changes: dict[str, Any]) -> ServiceSelection:
    normalized = {to_snake(key): value for key, value in changes.items()}
    unknown = set(normalized) - set(ServiceSelection.model_fields)
    if unknown:
        raise ValueError(f"Unknown service fields: {sorted(unknown)}")
    return ServiceSelection.model_validate({**current.model_dump(), **normalized})


def _check_editable(draft: BookingDraft, action: Action) -> None:
    if isinstance(action, AdvanceLifecycle):
        return
    allowed = _SLOT_EDIT_STATES if isinstance(action, SelectSlot) else {OrderState.DRAFT}
    if draft.status not in allowed:
        raise OrderLockedError(
            f"Cannot apply {type(action).__name__} while order is '{draft.status.value}'"
        )


def reduce(draft: BookingDraft, action: Action) -> BookingDraft:
    """Apply one form action and return the next draft."""
    _check_editable(draft, action)

    if isinstance(action, AddProperty):
        prop = PropertyDraft(id=action.property_id or _new_property_id())
        return replace(draft, properties=draft.properties + (prop,))

    if isinstance(action, RemoveProperty):
        draft.get_property(action.property_id)
        remaining = tuple(p for p in draft.properties if p.id != action.property_id)
        return replace(draft, properties=remaining)

    if isinstance(action, EditDetails):
        prop = draft.get_property(action.property_id)
        changes = {
            key: value
            for key, value in (
                ("address", action.address),
                ("postcode", action.postcode),
                ("notes", action.notes),
            )
            if value is not None
        }
        return _replace_property(draft, prop.model_copy(update=changes))

    if isinstance(action, UpdateServices):
        prop = draft.get_property(action.property_id)
        services = _merge_services(prop.services, action.changes)
        return _replace_property(draft, prop.model_copy(update={"services": services}))

    if isinstance(action, SelectDate):
        prop = draft.get_property(action.property_id)
        if action.preferred_date:
            parse_date(action.preferred_date)
        # A new date invalidates whatever time was chosen on the old one.
        return _replace_property(
            draft,
            prop.model_copy(update={"preferred_date": action.preferred_date, "time_slot": None}),
        )

    if isinstance(action, SelectSlot):
        prop = draft.get_property(action.property_id)
        if action.time_slot:
            to_minutes(action.time_slot)
        return _replace_property(draft, prop.model_copy(update={"time_slot": action.time_slot}))

    if isinstance(action, UpdateAgent):
        agent = AgentDetails.model_validate({**draft.agent.model_dump(), **action.changes})
        return replace(draft, agent=agent)

    if isinstance(action, ApplyDiscount):
        if not action.code:
            return replace(draft, discount_code=None, discount_percentage=0)
        return replace(
            draft,
            discount_code=action.code.strip().upper(),
            discount_percentage=min(max(action.percentage, 0), 100),
        )

    if isinstance(action, AdvanceLifecycle):
        status = next_state(draft.status, action.trigger)
        logger.debug("Draft status %s -> %s", draft.status.value, status.value)
        return replace(draft, status=status)

    raise TypeError(f"Unsupported action: {action!r}")


# --- Derived values ---

def property_durations(draft: BookingDraft) -> dict[str, int]:
    """On-site minutes per property, keyed by property id."""
    return {p.id: duration_minutes(p.services) for p in draft.properties}


def draft_quote(draft: BookingDraft) -> OrderQuote:
    """Price the draft as it currently stands."""
    return quote_order(
        [p.services for p in draft.properties],
        draft.discount_percentage if draft.discount_code else 0,
    )
