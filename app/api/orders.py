"""Orders router."""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.order import OrderStatus
from app.services.order_service import OrderService
from app.schemas.order import OrderCreate, OrderDetailResponse, OrderResponse, OrderStatusUpdate
from app.api.dependencies import AnyUser

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    order_data: OrderCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: AnyUser,
):
    """
    Create an order (status RECEIVED) with the next ``ORD-{year}-{seq}`` number.
    """
    service = OrderService(db)
    return service.create_order(current_user, order_data.description)


@router.get("", response_model=List[OrderResponse])
def list_orders(
    db: Annotated[Session, Depends(get_db)],
    current_user: AnyUser,
    status: Optional[OrderStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
):
    """
    List orders, newest first.

    Customers only see their own orders; staff see all of them.
    """
    service = OrderService(db)
    return service.list_orders(current_user, status=status, search=search, skip=skip, limit=limit)


@router.get("/{order_id}", response_model=OrderDetailResponse)
def get_order(
    order_id: str,
    db: Annotated[Session, Depends(get_db)],
    current_user: AnyUser,
):
    """
    Order detail with its completed files.

    Pending and failed uploads are never listed.
    """
    service = OrderService(db)
    return service.get_order_detail(order_id, current_user)


@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: AnyUser,
):
    """Advance an order to its next status (staff only)."""
    service = OrderService(db)
    return service.update_status(order_id, current_user, body.status, note=body.note)
