"""Database models."""
from app.models.user import User, UserRole
from app.models.order import Order, OrderStatus, OrderStatusHistory, ORDER_STATUS_FLOW
from app.models.file_record import FileRecord, FileKind, UploadStatus

__all__ = [
    "User",
    "UserRole",
    "Order",
    "OrderStatus",
    "OrderStatusHistory",
    "ORDER_STATUS_FLOW",
    "FileRecord",
    "FileKind",
    "UploadStatus",
]
