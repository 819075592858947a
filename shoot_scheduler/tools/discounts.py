"""Discount code registry and validation."""

import logging
import threading
from datetime import date
from typing import Optional, TypedDict

from shoot_scheduler.schemas.booking_schema import DiscountCode

logger = logging.getLogger(__name__)


class DiscountValidation(TypedDict, total=False):
    """Result from validate_code."""

    valid: bool
    code: str
    percentage: int
    message: str


class DiscountRegistry:
    """In-process store of discount codes and their usage counts."""

    def __init__(self, codes: Optional[list[DiscountCode]] = None) -> None:
        self._lock = threading.Lock()
        self._codes: dict[str, DiscountCode] = {}
        for code in codes or []:
            self.add(code)

    def add(self, code: DiscountCode) -> DiscountCode:
        with self._lock:
            self._codes[code.code] = code
        return code

    def get(self, code: str) -> Optional[DiscountCode]:
        with self._lock:
            return self._codes.get(code.strip().upper())

    def validate_code(self, code: str, today: Optional[date] = None) -> DiscountValidation:
        """Resolve a user-entered code to its percentage, or say why it can't be used."""
        if not code or not code.strip():
            return {"valid": False, "message": "Code is required"}

        discount = self.get(code)
        if discount is None or not discount.active:
            logger.warning("Rejected discount code %r: unknown or inactive", code)
            return {"valid": False, "message": "Invalid discount code"}

        if discount.max_uses and discount.times_used >= discount.max_uses:
            logger.warning("Rejected discount code %s: usage limit reached", discount.code)
            return {"valid": False, "message": "This code has reached its usage limit"}

        if discount.expires_at:
            today_str = (today or date.today()).isoformat()
            if discount.expires_at < today_str:
                logger.warning("Rejected discount code %s: expired", discount.code)
                return {"valid": False, "message": "This code has expired"}

        return {
            "valid": True,
            "code": discount.code,
            "percentage": discount.percentage,
            "message": f"{discount.percentage}% off applied",
        }

    def record_use(self, code: str) -> None:
        """Count one confirmed order against the code's usage limit."""
        key = code.strip().upper()
        with self._lock:
            discount = self._codes.get(key)
            if discount is None:
                logger.warning("Cannot record use of unknown code %s", key)
                return
            self._codes[key] = discount.model_copy(update={"times_used": discount.times_used + 1})
        logger.info("Discount code %s used (%d so far)", key, discount.times_used + 1)
