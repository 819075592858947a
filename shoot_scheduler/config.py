"""
Centralized configuration with environment variable overrides.

Working hours, travel buffer, slot granularity and pricing scalars live
here and nowhere else, so the availability shown to an agent always uses
the same constants as the duration that is later billed.
"""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_decimal(env_var: str, default: str) -> Decimal:
    """Parse a currency amount from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return Decimal(raw)
    except (InvalidOperation, TypeError):
        raise ValueError(
            f"Invalid amount for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class ScheduleConfig:
    """Working day and slot-generation constants, in minutes from midnight."""

    day_start_minutes: int = _safe_int("DAY_START_MINUTES", "540")
    day_end_minutes: int = _safe_int("DAY_END_MINUTES", "1080")
    # date.weekday() numbering, 6 = Sunday
    closed_weekday: int = _safe_int("CLOSED_WEEKDAY", "6")
    travel_buffer_minutes: int = _safe_int("TRAVEL_BUFFER_MINUTES", "30")
    slot_step_minutes: int = _safe_int("SLOT_STEP_MINUTES", "30")
    min_gap_minutes: int = _safe_int("MIN_GAP_MINUTES", "30")
    min_lead_days: int = _safe_int("MIN_LEAD_DAYS", "1")

    @property
    def window_minutes(self) -> int:
        return self.day_end_minutes - self.day_start_minutes


@dataclass(frozen=True)
class PricingConfig:
    """Pricing scalars that are not tied to a single service rule."""

    currency: str = os.getenv("CURRENCY", "GBP")
    photo_unit_price: Decimal = _safe_decimal("PHOTO_UNIT_PRICE", "6.50")
    photo_min: int = _safe_int("PHOTO_MIN", "20")
    photo_bulk_threshold: int = _safe_int("PHOTO_BULK_THRESHOLD", "100")
    photo_bulk_discount: Decimal = _safe_decimal("PHOTO_BULK_DISCOUNT", "0.10")
    multi_property_discount: Decimal = _safe_decimal("MULTI_PROPERTY_DISCOUNT", "15")
    min_bedrooms: int = _safe_int("MIN_BEDROOMS", "2")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "property-shoot-scheduler")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    schedule = config.schedule
    if not 0 <= schedule.day_start_minutes < schedule.day_end_minutes:
        raise ValueError(
            "DAY_START_MINUTES must be >= 0 and before DAY_END_MINUTES, "
            f"got {schedule.day_start_minutes}-{schedule.day_end_minutes}"
        )
    if schedule.day_end_minutes > 24 * 60:
        raise ValueError(
            f"DAY_END_MINUTES must be <= 1440, got {schedule.day_end_minutes}"
        )
    if not 0 <= schedule.closed_weekday <= 6:
        raise ValueError(
            f"CLOSED_WEEKDAY must be between 0 and 6, got {schedule.closed_weekday}"
        )

    for name, value in [
        ("TRAVEL_BUFFER_MINUTES", schedule.travel_buffer_minutes),
        ("SLOT_STEP_MINUTES", schedule.slot_step_minutes),
        ("MIN_GAP_MINUTES", schedule.min_gap_minutes),
    ]:
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")

    if schedule.min_lead_days < 0:
        raise ValueError(
            f"MIN_LEAD_DAYS must be >= 0, got {schedule.min_lead_days}"
        )

    pricing = config.pricing
    for name, amount in [
        ("PHOTO_UNIT_PRICE", pricing.photo_unit_price),
        ("MULTI_PROPERTY_DISCOUNT", pricing.multi_property_discount),
    ]:
        if amount < 0:
            raise ValueError(f"{name} must be >= 0, got {amount}")

    if not 0 <= pricing.photo_bulk_discount < 1:
        raise ValueError(
            f"PHOTO_BULK_DISCOUNT must be in [0, 1), got {pricing.photo_bulk_discount}"
        )
    if pricing.photo_min < 1:
        raise ValueError(f"PHOTO_MIN must be >= 1, got {pricing.photo_min}")
    if pricing.min_bedrooms < 1:
        raise ValueError(f"MIN_BEDROOMS must be >= 1, got {pricing.min_bedrooms}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
