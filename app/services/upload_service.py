"""Upload session manager: reserve → client-direct upload → confirm."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    OwnershipMismatchError,
    ValidationFailedError,
)
from app.models.file_record import FileKind, FileRecord, UploadStatus
from app.models.order import Order
from app.repositories.file_repository import FileRepository
from app.repositories.order_repository import OrderRepository
from app.schemas.file import ConfirmUploadResponse, UploadUrlResponse
from app.services.access_policy import Action, ensure_authorized
from app.services.storage_gateway import StorageGateway
from app.services.storage_keys import current_timestamp_ms, derive_storage_key

logger = logging.getLogger(__name__)

MAX_FILE_NAME_LENGTH = 255
MAX_KEY_ATTEMPTS = 3


class UploadService:
    """
    Owns the per-file status machine.

    Both file kinds follow the same transitions:
      PENDING --(object present)--> COMPLETED
      PENDING --(object missing)--> FAILED
      FAILED  --(object present, retry)--> COMPLETED
    A COMPLETED record never moves again.
    """

    def __init__(self, db: Session, storage: StorageGateway):
        self.db = db
        self.storage = storage
        self.order_repo = OrderRepository(db)
        self.file_repo = FileRepository(db)

    def _get_order(self, order_id: str) -> Order:
        order = self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    def _validate_metadata(file_name: str, file_size: int, mime_type: str,
                           kind: FileKind, notes: Optional[str]) -> None:
        if not file_name or not file_name.strip():
            raise ValidationFailedError("File name is required")
        if len(file_name) > MAX_FILE_NAME_LENGTH:
            raise ValidationFailedError(
                f"File name must be at most {MAX_FILE_NAME_LENGTH} characters"
            )
        if file_size is None or file_size <= 0:
            raise ValidationFailedError("File size must be positive")
        if not mime_type or not mime_type.strip():
            raise ValidationFailedError("MIME type is required")
        if notes and kind != FileKind.STAFF_PROCESSED:
            raise ValidationFailedError("Notes are only accepted on processed files")

    def reserve(self, order_id: str, principal, file_name: str, file_size: int,
                mime_type: str, kind: FileKind = FileKind.CUSTOMER_UPLOAD,
                notes: Optional[str] = None) -> UploadUrlResponse:
        """
        Reserve an upload slot and hand back a presigned PUT URL.

        Raises:
            NotFoundError: Order does not exist
            ForbiddenError: Policy denial, or order no longer accepts customer uploads
            ValidationFailedError: Bad file metadata
        """
        kind = FileKind(kind)
        order = self._get_order(order_id)
        ensure_authorized(principal, Action.UPLOAD, order=order, kind=kind)

        if kind == FileKind.CUSTOMER_UPLOAD and not order.accepts_customer_uploads:
            raise ForbiddenError("Cannot upload files to this order")

        self._validate_metadata(file_name, file_size, mime_type, kind, notes)

        ttl = settings.UPLOAD_URL_TTL_SECONDS
        timestamp_ms = current_timestamp_ms()
        for attempt in range(1, MAX_KEY_ATTEMPTS + 1):
            storage_key = derive_storage_key(principal.id, file_name, kind, timestamp_ms)
            upload_url = self.storage.issue_upload_url(storage_key, ttl)
            try:
                record = self.file_repo.create_pending(
                    order_id=order.id,
                    kind=kind,
                    file_name=file_name,
                    file_size=file_size,
                    mime_type=mime_type,
                    storage_key=storage_key,
                    uploaded_by=principal.id,
                    notes=notes,
                )
                break
            except IntegrityError:
                self.db.rollback()
                if attempt == MAX_KEY_ATTEMPTS:
                    raise
                logger.warning("Storage key %s already bound, re-deriving", storage_key)
                timestamp_ms += 1

        logger.info(
            "Reserved %s file %s on order %s (key=%s, by user %s)",
            kind.value, record.id, order.order_number, storage_key, principal.id,
        )
        return UploadUrlResponse(
            file_id=record.id,
            upload_url=upload_url,
            storage_key=storage_key,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=ttl),
        )

    def confirm(self, order_id: str, file_id: str, principal,
                kind: FileKind = FileKind.CUSTOMER_UPLOAD) -> ConfirmUploadResponse:
        """
        Reconcile a reserved slot with the object store.

        The object present moves the record to COMPLETED. The object missing
        moves a PENDING/FAILED record to FAILED (persisted) and reports
        ValidationFailedError; a COMPLETED record is left as is.

        Raises:
            NotFoundError: Order or file does not exist
            ForbiddenError: Policy denial
            OwnershipMismatchError: File belongs to another order
            ValidationFailedError: Declared kind differs from the record, or object missing
            StorageFaultError: Store unreachable or misconfigured (no state change)
        """
        kind = FileKind(kind)
        order = self._get_order(order_id)
        # Strangers are turned away before anything about the file is revealed
        ensure_authorized(principal, Action.READ_ORDER, order=order)

        record = self.file_repo.get_by_id(file_id)
        if not record:
            raise NotFoundError("File not found")
        if record.order_id != order.id:
            raise OwnershipMismatchError()
        # The stored kind decides access, never the declared one
        ensure_authorized(principal, Action.CONFIRM, order=order, kind=record.kind)
        if record.kind != kind:
            raise ValidationFailedError("File type does not match this file")

        if not self.storage.exists(record.storage_key):
            self._record_missing_object(record)
            raise ValidationFailedError("File not found in storage")

        if record.status != UploadStatus.COMPLETED:
            previous = record.status
            record = self.file_repo.mark_completed(record)
            logger.info("File %s on order %s: %s -> completed", record.id, order.order_number, previous.value)

        return self._confirm_result(record)

    def _record_missing_object(self, record: FileRecord) -> None:
        if record.status == UploadStatus.COMPLETED:
            logger.warning(
                "Completed file %s is missing from storage (key=%s); state kept",
                record.id, record.storage_key,
            )
            return
        previous = record.status
        self.file_repo.mark_failed(record)
        logger.info("File %s: %s -> failed (key %s not in storage)", record.id, previous.value, record.storage_key)

    @staticmethod
    def _confirm_result(record: FileRecord) -> ConfirmUploadResponse:
        return ConfirmUploadResponse(
            id=record.id,
            file_name=record.file_name,
            status=record.status,
            kind=record.kind,
        )
