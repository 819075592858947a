"""Service rule table shared by the duration and pricing calculations.

Each rule states how one service scales (by bedrooms, by photo count, or
not at all), what it costs and how long it takes on site. Mutually
exclusive services share a ``group``; within a group the rule listed first
wins. Add-ons name the service they ``require``.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Optional, TypeVar

from shoot_scheduler.config import settings
from shoot_scheduler.schemas.service_schema import ServiceSelection

logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_BEDROOMS = 2
DRONE_EXTRA_MINUTES = 25


@dataclass(frozen=True)
class ServiceRule:
    """Declarative definition of one bookable service."""

    key: str
    name: str
    base_minutes: int
    base_price: Decimal = Decimal("0")
    unit: Optional[str] = None  # "bedrooms" | "photos" | None
    minutes_per_unit: int = 0
    price_per_unit: Decimal = Decimal("0")
    group: Optional[str] = None
    requires: Optional[str] = None
    tier_field: Optional[str] = None
    tier_prices: dict[int, Decimal] = field(default_factory=dict)


_pricing = settings.pricing

SERVICE_RULES: list[ServiceRule] = [
    ServiceRule(
        key="photography",
        name="Photography",
        base_minutes=40,
        base_price=_pricing.photo_unit_price * _pricing.photo_min,
        unit="photos",
        minutes_per_unit=5,
        price_per_unit=_pricing.photo_unit_price,
    ),
    ServiceRule(
        key="drone_photography",
        name="Drone Photography",
        base_minutes=DRONE_EXTRA_MINUTES,
        tier_field="drone_photo_count",
        tier_prices={8: Decimal("75"), 20: Decimal("140")},
    ),
    ServiceRule(
        key="agent_presented_video",
        name="Agent Presented Video",
        base_minutes=105,
        base_price=Decimal("150"),
        unit="bedrooms",
        minutes_per_unit=10,
        price_per_unit=Decimal("25"),
        group="video",
    ),
    ServiceRule(
        key="agent_presented_video_drone",
        name="Drone Footage (with Agent Presented Video)",
        base_minutes=DRONE_EXTRA_MINUTES,
        base_price=Decimal("65"),
        requires="agent_presented_video",
    ),
    ServiceRule(
        key="standard_video",
        name="Unpresented Property Video",
        base_minutes=40,
        base_price=Decimal("100"),
        unit="bedrooms",
        minutes_per_unit=5,
        price_per_unit=Decimal("25"),
        group="video",
    ),
    ServiceRule(
        key="standard_video_drone",
        name="Drone Footage (with Unpresented Video)",
        base_minutes=DRONE_EXTRA_MINUTES,
        base_price=Decimal("65"),
        requires="standard_video",
    ),
    ServiceRule(
        key="social_media_presented_video",
        name="Social Media Video - Presented",
        base_minutes=60,
        base_price=Decimal("150"),
        unit="bedrooms",
        minutes_per_unit=10,
        price_per_unit=Decimal("25"),
        group="social_media",
    ),
    ServiceRule(
        key="social_media_video",
        name="Social Media Video - Unpresented",
        base_minutes=25,
        base_price=Decimal("100"),
        unit="bedrooms",
        minutes_per_unit=5,
        price_per_unit=Decimal("25"),
        group="social_media",
    ),
    ServiceRule(
        key="floor_plan_virtual_tour",
        name="Floor Plan + Virtual Tour",
        base_minutes=45,
        base_price=Decimal("140"),
        unit="bedrooms",
        minutes_per_unit=10,
        price_per_unit=Decimal("20"),
        group="floor_plan",
    ),
    ServiceRule(
        key="floor_plan",
        name="Floor Plan",
        base_minutes=25,
        base_price=Decimal("60"),
        unit="bedrooms",
        minutes_per_unit=5,
        price_per_unit=Decimal("15"),
        group="floor_plan",
    ),
]

SERVICE_CATALOG: dict[str, ServiceRule] = {rule.key: rule for rule in SERVICE_RULES}


def get_rule(key: str) -> ServiceRule:
    """Look up a rule by its selection flag name."""
    try:
        return SERVICE_CATALOG[key]
    except KeyError:
        raise ValueError(f"Unknown service: {key}") from None


def extra_units(rule: ServiceRule, selection: ServiceSelection) -> int:
    """Units above the rule's included base, never negative."""
    if rule.unit == "bedrooms":
        return max(0, selection.bedrooms - BASE_BEDROOMS)
    if rule.unit == "photos":
        return max(0, selection.photo_count - settings.pricing.photo_min)
    return 0


def active_rules(selection: ServiceSelection) -> list[ServiceRule]:
    """Resolve the selection flags into the rules that actually apply.

    Applies group exclusivity (first listed wins) and drops add-ons whose
    parent service is not active.
    """
    active: list[ServiceRule] = []
    taken_groups: set[str] = set()
    active_keys: set[str] = set()

    for rule in SERVICE_RULES:
        if not getattr(selection, rule.key):
            continue
        if rule.requires and rule.requires not in active_keys:
            logger.debug("Skipping %s: %s not active", rule.key, rule.requires)
            continue
        if rule.group:
            if rule.group in taken_groups:
                logger.debug("Skipping %s: group '%s' already taken", rule.key, rule.group)
                continue
            taken_groups.add(rule.group)
        active.append(rule)
        active_keys.add(rule.key)

    return active


def fold_services(
    selection: ServiceSelection,
    measure: Callable[[ServiceRule, ServiceSelection], T],
    start: T,
) -> T:
    """Sum ``measure`` over every active rule of a selection."""
    total = start
    for rule in active_rules(selection):
        total = total + measure(rule, selection)  # type: ignore[operator]
    return total


def get_all_services() -> list[dict]:
    """Return all services with basic info, for catalogue displays."""
    return [
        {
            "id": rule.key,
            "name": rule.name,
            "base_price": rule.base_price,
            "base_minutes": rule.base_minutes,
            "group": rule.group,
            "requires": rule.requires,
        }
        for rule in SERVICE_RULES
    ]
