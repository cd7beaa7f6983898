"""Order schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from app.models.order import OrderStatus
from app.schemas.file import FileSummary


class OrderCreate(BaseModel):
    """Create order."""
    description: str = Field(..., min_length=1, max_length=5000)


class OrderStatusUpdate(BaseModel):
    """Advance an order to its next status (staff only)."""
    status: OrderStatus
    note: Optional[str] = Field(None, max_length=2000)


class OrderResponse(BaseModel):
    """Order response."""
    id: str
    order_number: str
    user_id: int
    description: str
    status: OrderStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StatusHistoryEntry(BaseModel):
    from_status: Optional[OrderStatus] = None
    to_status: OrderStatus
    changed_by: Optional[int] = None
    note: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderDetailResponse(OrderResponse):
    """
    Order with its visible files.

    ``files``: completed customer uploads. ``processed_files``: completed
    staff files, populated for staff only.
    """
    files: List[FileSummary] = []
    processed_files: List[FileSummary] = []
    status_history: List[StatusHistoryEntry] = []
