# mfgops/services/order_numbers.py

import logging
import re
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ..models.sales import CustomerOrder
from ..utils.helpers import utcnow

logger = logging.getLogger(__name__)

ORDER_PREFIX = "CO"
_ORDER_NUMBER_RE = re.compile(r"^CO-(\d{4})-(\d+)$")


def format_order_number(year: int, sequence: int) -> str:
    return f"{ORDER_PREFIX}-{year}-{sequence:04d}"


def parse_sequence(order_number: str) -> Optional[int]:
    """Trailing sequence of ``CO-<year>-<seq>``, or None if the number is malformed."""
    m = _ORDER_NUMBER_RE.match(order_number or "")
    if not m:
        return None
    return int(m.group(2))


def next_order_number(session: Session, year: Optional[int] = None) -> str:
    """
    Next customer order number for ``year`` (defaults to the current year).

    Reads issued numbers for the year highest-first and increments the first
    one that parses; malformed rows are skipped with a warning. Starts at
    0001 when the year has no orders yet.

    This is a plain read: two concurrent callers can get the same number.
    The unique constraint on ``CustomerOrder.order_number`` catches that and
    the persister retries (see ``customer_order.create_customer_order``).
    """
    if year is None:
        year = utcnow().year

    prefix = f"{ORDER_PREFIX}-{year}-"
    # Longer sequences sort first so CO-2025-10000 beats CO-2025-9999
    issued = session.exec(
        select(CustomerOrder.order_number)
        .where(CustomerOrder.order_number.startswith(prefix))
        .order_by(func.length(CustomerOrder.order_number).desc(),
                  CustomerOrder.order_number.desc())
    )

    for number in issued:
        seq = parse_sequence(number)
        if seq is not None:
            return format_order_number(year, seq + 1)
        logger.warning("Skipping malformed order number %r", number)

    return format_order_number(year, 1)
