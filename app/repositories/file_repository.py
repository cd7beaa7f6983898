"""File record repository."""
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.orm import Session

from app.models.file_record import FileRecord, FileKind, UploadStatus


class FileRepository:
    """FileRecord data access layer. Every write is a single-row commit."""

    def __init__(self, db: Session):
        self.db = db

    def create_pending(self, order_id: str, kind: FileKind, file_name: str, file_size: int,
                       mime_type: str, storage_key: str, uploaded_by: int,
                       notes: Optional[str] = None) -> FileRecord:
        """
        Insert a PENDING record with an empty ``storage_url``.

        Raises ``sqlalchemy.exc.IntegrityError`` when ``storage_key`` is taken.
        """
        record = FileRecord(
            order_id=order_id,
            kind=kind,
            file_name=file_name,
            file_size=file_size,
            mime_type=mime_type,
            storage_key=storage_key,
            storage_url="",
            status=UploadStatus.PENDING,
            uploaded_by=uploaded_by,
            notes=notes,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def get_by_id(self, file_id: str) -> Optional[FileRecord]:
        """Get file record by ID."""
        return self.db.query(FileRecord).filter(FileRecord.id == file_id).first()

    def list_for_order(self, order_id: str, kind: Optional[FileKind] = None,
                       status: Optional[UploadStatus] = UploadStatus.COMPLETED) -> List[FileRecord]:
        """
        Files of an order, oldest first.

        Defaults to COMPLETED records only; pass ``status=None`` for every record.
        """
        query = self.db.query(FileRecord).filter(FileRecord.order_id == order_id)
        if kind is not None:
            query = query.filter(FileRecord.kind == kind)
        if status is not None:
            query = query.filter(FileRecord.status == status)
        return query.order_by(FileRecord.created_at.asc()).all()

    def mark_completed(self, record: FileRecord) -> FileRecord:
        record.status = UploadStatus.COMPLETED
        record.storage_url = record.storage_key
        if record.confirmed_at is None:
            record.confirmed_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(record)
        return record

    def mark_failed(self, record: FileRecord) -> FileRecord:
        record.status = UploadStatus.FAILED
        self.db.commit()
        self.db.refresh(record)
        return record
