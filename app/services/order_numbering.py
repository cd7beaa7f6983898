"""Human-readable order numbers: ``ORD-{year}-{seq:04d}``."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.repositories.order_repository import OrderRepository


def order_number_prefix(year: int) -> str:
    return f"ORD-{year}-"


def format_order_number(year: int, seq: int) -> str:
    return f"{order_number_prefix(year)}{seq:04d}"


def parse_sequence(order_number: str, year: int) -> int:
    """Sequence part of ``order_number``; 0 if it does not parse."""
    try:
        return int(order_number[len(order_number_prefix(year)):])
    except ValueError:
        return 0


def next_order_number(db: Session, year: Optional[int] = None) -> str:
    """
    Highest persisted sequence for ``year`` plus one.

    Best-effort under concurrency: two callers can read the same maximum.
    The unique constraint on ``orders.order_number`` catches that and the
    caller retries (see ``OrderService.create_order``).
    """
    if year is None:
        year = datetime.now(timezone.utc).year

    last = OrderRepository(db).get_highest_order_number(order_number_prefix(year))
    seq = parse_sequence(last, year) + 1 if last else 1
    return format_order_number(year, seq)
