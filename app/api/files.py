"""Order file exchange router: presigned upload, confirm, download links."""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.file_record import FileKind
from app.services.download_service import DownloadService
from app.services.upload_service import UploadService
from app.schemas.file import (
    ConfirmUploadRequest,
    ConfirmUploadResponse,
    DownloadLinksResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from app.api.dependencies import AnyUser, Storage

router = APIRouter(prefix="/orders/{order_id}", tags=["Order Files"])


@router.post("/upload-url", response_model=UploadUrlResponse, status_code=201)
def request_upload_url(
    order_id: str,
    request: UploadUrlRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: AnyUser,
    storage: Storage,
):
    """
    Reserve an upload slot and get a presigned PUT URL.

    **Two-Phase Upload Process:**
    1. **Request upload URL** (this endpoint)
       - Validates file metadata and access to the order
       - Creates a pending file record bound to a fresh storage key
       - Returns the presigned URL (valid for one hour)

    2. **Upload file to URL** (client → object store)
       - Client PUTs the bytes directly; nothing passes through this API

    3. **Confirm** (``POST /orders/{order_id}/files/{file_id}/confirm``)

    Customers upload ``customer_upload`` files to their own orders while the
    order is RECEIVED; staff upload ``staff_processed`` files at any stage.
    """
    service = UploadService(db, storage)
    return service.reserve(
        order_id,
        current_user,
        file_name=request.file_name,
        file_size=request.file_size,
        mime_type=request.mime_type,
        kind=request.file_type,
        notes=request.notes,
    )


@router.post("/files/{file_id}/confirm", response_model=ConfirmUploadResponse)
def confirm_upload(
    order_id: str,
    file_id: str,
    db: Annotated[Session, Depends(get_db)],
    current_user: AnyUser,
    storage: Storage,
    request: Optional[ConfirmUploadRequest] = None,
):
    """
    Confirm a direct upload by checking the object store.

    - Object present → ``COMPLETED``
    - Object missing → ``FAILED`` and 400 ``validation_failed``

    Safe to call again: a completed file stays completed, a failed one is
    re-checked against its original key.
    """
    service = UploadService(db, storage)
    kind = request.file_type if request else FileKind.CUSTOMER_UPLOAD
    return service.confirm(order_id, file_id, current_user, kind=kind)


@router.get("/files/download-urls", response_model=DownloadLinksResponse)
def get_download_urls(
    order_id: str,
    db: Annotated[Session, Depends(get_db)],
    current_user: AnyUser,
    storage: Storage,
    file_type: FileKind = Query(FileKind.CUSTOMER_UPLOAD),
):
    """Presigned GET URLs for every completed file of ``file_type`` on the order."""
    service = DownloadService(db, storage)
    return DownloadLinksResponse(files=service.issue_batch(order_id, file_type, current_user))


@router.get("/processed-files/download-urls", response_model=DownloadLinksResponse)
def get_processed_download_urls(
    order_id: str,
    db: Annotated[Session, Depends(get_db)],
    current_user: AnyUser,
    storage: Storage,
):
    """Presigned GET URLs for the order's processed files (staff only)."""
    service = DownloadService(db, storage)
    return DownloadLinksResponse(
        files=service.issue_batch(order_id, FileKind.STAFF_PROCESSED, current_user)
    )
