"""On-site duration for a property shoot."""

from shoot_scheduler.schemas.service_schema import ServiceSelection
from shoot_scheduler.tools.services import ServiceRule, extra_units, fold_services


def service_minutes(rule: ServiceRule, selection: ServiceSelection) -> int:
    """Minutes one active service adds to the visit."""
    return rule.base_minutes + extra_units(rule, selection) * rule.minutes_per_unit


def duration_minutes(selection: ServiceSelection) -> int:
    """
    Total on-site minutes for a bundle.

    Each active service contributes independently; a bundle with nothing
    ticked needs no slot at all and returns 0.
    """
    return fold_services(selection, service_minutes, 0)


def work_hours(selection: ServiceSelection) -> float:
    """Duration expressed in hours, rounded to two decimals."""
    return round(duration_minutes(selection) / 60, 2)
