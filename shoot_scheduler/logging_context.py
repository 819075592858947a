"""Order reference attached to log records during a checkout.

Confirmation touches the coordinator, the store and the discount registry;
wrapping it in ``order_context`` stamps every record logged inside with the
order reference and restores the previous reference on exit, so lines
logged after the checkout are not attributed to it.

Usage:
    from shoot_scheduler.logging_context import get_order_logger, order_context

    logger = get_order_logger(__name__)
    with order_context("ORD-4F2A9C"):
        logger.info("Confirming order")  # record.order_ref == "ORD-4F2A9C"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

NO_ORDER = "NO_ORDER"

_order_ref: ContextVar[str] = ContextVar("order_ref", default=NO_ORDER)


def set_order_ref(order_ref: str) -> Token:
    """Set the order reference; pass the returned token to ``reset_order_ref``."""
    return _order_ref.set(order_ref)


def reset_order_ref(token: Token) -> None:
    _order_ref.reset(token)


def get_order_ref() -> str:
    return _order_ref.get()


@contextmanager
def order_context(order_ref: str) -> Iterator[str]:
    """Scope log records to one order, restoring the outer reference afterwards."""
    token = set_order_ref(order_ref)
    try:
        yield order_ref
    finally:
        reset_order_ref(token)


class OrderRefFilter(logging.Filter):
    """Stamps ``order_ref`` on records so formats can use ``%(order_ref)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.order_ref = _order_ref.get()  # type: ignore[attr-defined]
        return True


def get_order_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not any(isinstance(f, OrderRefFilter) for f in logger.filters):
        logger.addFilter(OrderRefFilter())
    return logger
