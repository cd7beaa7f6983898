"""File record model: tracks files exchanged through object storage."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from enum import Enum

from app.core.database import Base


class FileKind(str, Enum):
    """Who produced the file."""
    CUSTOMER_UPLOAD = "customer_upload"
    STAFF_PROCESSED = "staff_processed"


class UploadStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class FileRecord(Base):
    """
    A file slot reserved against an order.

    Lifecycle:
      1. ``POST /orders/{id}/upload-url`` → row created (status = PENDING, storage_url = "")
      2. Client PUTs the bytes straight to the object store
      3. ``POST /orders/{id}/files/{file_id}/confirm`` → existence check against the store
         → COMPLETED (storage_url set) or FAILED

    ``storage_key`` is bound at reservation and never changes or gets reused.
    ``status`` and ``storage_url`` are written only by ``UploadService``.
    """

    __tablename__ = "order_files"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(
        SQLEnum(FileKind, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )

    # Client-declared metadata, not verified against the stored bytes
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)

    storage_key = Column(String(512), unique=True, nullable=False)
    storage_url = Column(Text, nullable=False, default="")

    status = Column(
        SQLEnum(UploadStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=UploadStatus.PENDING,
        index=True,
    )

    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    notes = Column(Text, nullable=True)  # staff annotation, processed files only

    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    confirmed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    order = relationship("Order", back_populates="files")

    def __repr__(self):
        return f"<FileRecord(id={self.id}, order_id={self.order_id}, kind={self.kind}, status={self.status})>"
