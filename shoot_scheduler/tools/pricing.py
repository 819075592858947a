"""
Pricing engine: per-service prices, basket line items and order totals.

All amounts are ``Decimal`` in major currency units. Inputs are clamped
by ``ServiceSelection`` rather than rejected, so every function here is
total over its inputs.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from shoot_scheduler.config import settings
from shoot_scheduler.schemas.booking_schema import LineItem, OrderQuote
from shoot_scheduler.schemas.service_schema import ServiceSelection
from shoot_scheduler.tools.services import (
    ServiceRule,
    active_rules,
    extra_units,
    fold_services,
    get_rule,
)
from shoot_scheduler.utils import round_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _bulk_applies(rule: ServiceRule, selection: ServiceSelection) -> bool:
    return rule.unit == "photos" and selection.photo_count >= settings.pricing.photo_bulk_threshold


def service_price(rule: ServiceRule, selection: ServiceSelection) -> Decimal:
    """Price of one active service for a selection."""
    if rule.tier_field:
        return rule.tier_prices[getattr(selection, rule.tier_field)]

    amount = rule.base_price + extra_units(rule, selection) * rule.price_per_unit
    if _bulk_applies(rule, selection):
        amount = round_money(amount * (1 - settings.pricing.photo_bulk_discount))
    return amount


def price(selection: ServiceSelection) -> Decimal:
    """Total price for one property's bundle."""
    return fold_services(selection, service_price, ZERO)


def price_for(key: str, **services) -> Decimal:
    """Price a single service in isolation, e.g. ``price_for("floor_plan", bedrooms=4)``."""
    selection = ServiceSelection(**{key: True, **services})
    return service_price(get_rule(key), selection)


def multi_property_discount(property_count: int) -> Decimal:
    """Flat discount for every property beyond the first in one order."""
    if property_count <= 1:
        return ZERO
    return (property_count - 1) * settings.pricing.multi_property_discount


def code_discount(amount: Decimal, percentage: int) -> Decimal:
    """Percentage discount on an amount, rounded to the minor unit."""
    if percentage <= 0 or amount <= 0:
        return ZERO
    return round_money(amount * Decimal(percentage) / 100)


def _line_name(rule: ServiceRule, selection: ServiceSelection) -> str:
    if rule.unit == "photos":
        suffix = ""
        if _bulk_applies(rule, selection):
            suffix = f" - {int(settings.pricing.photo_bulk_discount * 100)}% off"
        return f"{rule.name} ({selection.photo_count} photos){suffix}"
    if rule.tier_field:
        return f"{rule.name} ({getattr(selection, rule.tier_field)} photos)"
    if rule.unit == "bedrooms":
        return f"{rule.name} ({selection.bedrooms}-bed)"
    return rule.name


def line_items(selection: ServiceSelection, label: Optional[str] = None) -> list[LineItem]:
    """Basket rows for one property, in display order."""
    return [
        LineItem(
            name=_line_name(rule, selection),
            amount=service_price(rule, selection),
            description=label,
        )
        for rule in active_rules(selection)
    ]


def order_line_items(
    properties: Sequence[tuple[ServiceSelection, Optional[str]]],
) -> list[LineItem]:
    """Line items for a whole order, closed by the multi-property discount row."""
    items: list[LineItem] = []
    for selection, label in properties:
        items.extend(line_items(selection, label or "Property"))

    discount = multi_property_discount(len(properties))
    if discount > 0:
        items.append(
            LineItem(
                name=f"Multi-property discount ({len(properties)} properties)",
                amount=-discount,
            )
        )
    return items


def quote_order(
    selections: Iterable[ServiceSelection],
    discount_percentage: int = 0,
) -> OrderQuote:
    """
    Price a full order.

    The multi-property discount comes off the summed service prices first;
    the percentage code then applies to what remains. The total never
    drops below zero.
    """
    totals = [price(selection) for selection in selections]
    subtotal = sum(totals, ZERO)
    multi = multi_property_discount(len(totals))
    remainder = subtotal - multi
    percentage = max(0, discount_percentage)
    code = code_discount(remainder, percentage)
    total = max(ZERO, remainder - code)

    logger.debug(
        "Quoted %d properties: subtotal=%s multi=%s code=%s total=%s",
        len(totals), subtotal, multi, code, total,
    )
    return OrderQuote(
        property_totals=totals,
        subtotal=subtotal,
        multi_property_discount=multi,
        discount_percentage=percentage,
        code_discount=code,
        total=total,
    )
