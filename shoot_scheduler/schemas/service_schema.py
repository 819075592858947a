"""Per-property service selection."""

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from shoot_scheduler.config import settings

DRONE_PHOTO_TIERS: tuple[int, ...] = (8, 20)


class ServiceSelection(BaseModel):
    """
    The bundle of services chosen for one property.

    Accepts both snake_case field names and the camelCase keys sent by the
    booking form (``photoCount``, ``agentPresentedVideo``...). Numeric
    inputs are clamped to their floors instead of being rejected. Mutually
    exclusive flags may both arrive set; precedence is resolved by the
    service rule table, not here.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    bedrooms: int = 2

    photography: bool = False
    photo_count: int = 20

    drone_photography: bool = False
    drone_photo_count: int = 8

    standard_video: bool = False
    standard_video_drone: bool = False
    agent_presented_video: bool = False
    agent_presented_video_drone: bool = False

    social_media_video: bool = False
    social_media_presented_video: bool = False

    floor_plan: bool = False
    floor_plan_virtual_tour: bool = False

    @field_validator("bedrooms", mode="before")
    @classmethod
    def _clamp_bedrooms(cls, value: object) -> int:
        return max(_as_int(value, settings.pricing.min_bedrooms), settings.pricing.min_bedrooms)

    @field_validator("photo_count", mode="before")
    @classmethod
    def _clamp_photo_count(cls, value: object) -> int:
        return max(_as_int(value, settings.pricing.photo_min), settings.pricing.photo_min)

    @field_validator("drone_photo_count", mode="before")
    @classmethod
    def _snap_drone_tier(cls, value: object) -> int:
        count = _as_int(value, DRONE_PHOTO_TIERS[0])
        return min(DRONE_PHOTO_TIERS, key=lambda tier: (abs(tier - count), tier))

    def has_services(self) -> bool:
        """True when at least one billable service is ticked."""
        return any(
            (
                self.photography,
                self.drone_photography,
                self.standard_video,
                self.agent_presented_video,
                self.social_media_video,
                self.social_media_presented_video,
                self.floor_plan,
                self.floor_plan_virtual_tour,
            )
        )


def _as_int(value: object, default: int) -> int:
    """Coerce form input to int, falling back to ``default`` for blanks and junk."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        try:
            return int(float(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return default
