"""File exchange schemas (presigned upload/confirm/download)."""
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

from app.models.file_record import FileKind, UploadStatus


class UploadUrlRequest(BaseModel):
    """
    Reserve an upload slot.

    Field contents are checked by the upload service so that bad metadata
    surfaces as ``validation_failed`` (400).
    """
    file_name: str
    file_size: int
    mime_type: str
    file_type: FileKind = FileKind.CUSTOMER_UPLOAD
    notes: Optional[str] = None


class UploadUrlResponse(BaseModel):
    file_id: str
    upload_url: str
    storage_key: str
    expires_at: datetime


class ConfirmUploadRequest(BaseModel):
    file_type: FileKind = FileKind.CUSTOMER_UPLOAD


class ConfirmUploadResponse(BaseModel):
    id: str
    file_name: str
    status: UploadStatus
    kind: FileKind


class FileSummary(BaseModel):
    id: str
    file_name: str
    file_size: int
    mime_type: str
    kind: FileKind
    status: UploadStatus
    notes: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DownloadLink(BaseModel):
    file_id: str
    file_name: str
    url: str


class DownloadLinksResponse(BaseModel):
    files: List[DownloadLink]


class StorageCheckResponse(BaseModel):
    """Result of the storage diagnostic; never echoes secrets."""
    success: bool
    upload_url_generation: str
    file_verification: str
    bucket: str
    endpoint: str
    region: str
    credentials_set: bool
    test_storage_key: str
