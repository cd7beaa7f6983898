"""Order repository."""
from typing import List, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.order import Order, OrderStatus, OrderStatusHistory


class OrderRepository:
    """Order data access layer."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, order_number: str, user_id: int, description: str) -> Order:
        """
        Insert a new order in RECEIVED status.

        Raises ``sqlalchemy.exc.IntegrityError`` when ``order_number`` is taken;
        the caller owns rollback and retry.
        """
        order = Order(
            order_number=order_number,
            user_id=user_id,
            description=description,
            status=OrderStatus.RECEIVED,
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_by_id(self, order_id: str) -> Optional[Order]:
        """Get order by ID."""
        return self.db.query(Order).filter(Order.id == order_id).first()

    def get_highest_order_number(self, prefix: str) -> Optional[str]:
        """
        Highest order number starting with ``prefix`` whose suffix is all digits.

        Ordered by length first so that ``...-10000`` sorts above ``...-9999``;
        rows with a non-numeric suffix are skipped.
        """
        candidates = (
            self.db.query(Order.order_number)
            .filter(Order.order_number.like(f"{prefix}%"))
            .order_by(func.length(Order.order_number).desc(), Order.order_number.desc())
        )
        for (order_number,) in candidates:
            suffix = order_number[len(prefix):]
            if suffix.isascii() and suffix.isdigit():
                return order_number
        return None

    def get_all(self, user_id: Optional[int] = None, status: Optional[OrderStatus] = None,
                search: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Order]:
        """List orders, newest first. ``user_id`` restricts to one owner."""
        query = self.db.query(Order)
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        if status is not None:
            query = query.filter(Order.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Order.order_number.ilike(pattern), Order.description.ilike(pattern))
            )
        return query.order_by(Order.created_at.desc()).offset(skip).limit(limit).all()

    def update_status(self, order: Order, new_status: OrderStatus, changed_by: int,
                      note: Optional[str] = None) -> Order:
        """Move the order to ``new_status`` and record the transition in one commit."""
        history = OrderStatusHistory(
            order_id=order.id,
            from_status=order.status,
            to_status=new_status,
            changed_by=changed_by,
            note=note,
        )
        order.status = new_status
        self.db.add(history)
        self.db.commit()
        self.db.refresh(order)
        return order
