"""Order service."""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, OrderNumberConflictError, ValidationFailedError
from app.models.file_record import FileKind
from app.models.order import ORDER_STATUS_FLOW, Order, OrderStatus
from app.repositories.file_repository import FileRepository
from app.repositories.order_repository import OrderRepository
from app.schemas.file import FileSummary
from app.schemas.order import OrderDetailResponse, OrderResponse, StatusHistoryEntry
from app.services.access_policy import Action, authorize, ensure_authorized
from app.services.order_numbering import next_order_number

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 5000


class OrderService:
    """Order business logic."""

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.file_repo = FileRepository(db)

    def create_order(self, principal, description: str) -> Order:
        """
        Create an order in RECEIVED status with the next order number.

        Number generation reads the persisted maximum, so two concurrent
        creations may pick the same number; the unique constraint rejects
        the loser, which re-derives and retries.

        Raises:
            ValidationFailedError: Empty or oversized description
            OrderNumberConflictError: Every attempt collided
        """
        if not description or not description.strip():
            raise ValidationFailedError("Description is required")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationFailedError(
                f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
            )

        attempts = max(settings.ORDER_NUMBER_MAX_ATTEMPTS, 1)
        for attempt in range(1, attempts + 1):
            order_number = next_order_number(self.db)
            try:
                order = self.order_repo.create(
                    order_number=order_number,
                    user_id=principal.id,
                    description=description,
                )
            except IntegrityError:
                self.db.rollback()
                logger.warning(
                    "Order number %s already taken (attempt %d/%d)", order_number, attempt, attempts
                )
                continue
            logger.info("Order %s created by user %s", order.order_number, principal.id)
            return order

        raise OrderNumberConflictError()

    def get_order(self, order_id: str, principal) -> Order:
        """
        Get an order the principal may read.

        Raises:
            NotFoundError: Order does not exist
            ForbiddenError: Not the owner and not staff
        """
        order = self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        ensure_authorized(principal, Action.READ_ORDER, order=order)
        return order

    def get_order_detail(self, order_id: str, principal) -> OrderDetailResponse:
        """Order plus completed files; processed files only when the policy allows listing them."""
        order = self.get_order(order_id, principal)
        files = self.file_repo.list_for_order(order.id, kind=FileKind.CUSTOMER_UPLOAD)
        processed = []
        if authorize(principal, Action.LIST_FILES, order=order, kind=FileKind.STAFF_PROCESSED):
            processed = self.file_repo.list_for_order(order.id, kind=FileKind.STAFF_PROCESSED)

        return OrderDetailResponse(
            **OrderResponse.model_validate(order).model_dump(),
            files=[FileSummary.model_validate(f) for f in files],
            processed_files=[FileSummary.model_validate(f) for f in processed],
            status_history=[StatusHistoryEntry.model_validate(h) for h in order.status_history],
        )

    def list_orders(self, principal, status: Optional[OrderStatus] = None,
                    search: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Order]:
        """Customers see their own orders; staff see every order."""
        owner_id = None if principal.is_staff else principal.id
        return self.order_repo.get_all(
            user_id=owner_id, status=status, search=search, skip=skip, limit=limit
        )

    def update_status(self, order_id: str, principal, new_status: OrderStatus,
                      note: Optional[str] = None) -> Order:
        """
        Advance an order one step along its lifecycle (staff only).

        Raises:
            NotFoundError: Order does not exist
            ForbiddenError: Not staff
            ValidationFailedError: ``new_status`` is not the next status
        """
        order = self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        ensure_authorized(principal, Action.MANAGE_ORDER, order=order)

        expected = ORDER_STATUS_FLOW.get(order.status)
        if new_status != expected:
            raise ValidationFailedError(
                f"Cannot move order from {order.status.value} to {OrderStatus(new_status).value}"
            )

        previous = order.status
        order = self.order_repo.update_status(order, new_status, changed_by=principal.id, note=note)
        logger.info(
            "Order %s: %s -> %s by user %s",
            order.order_number, previous.value, order.status.value, principal.id,
        )
        return order
