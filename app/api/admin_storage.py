"""Storage diagnostics (staff only)."""
import logging

from fastapi import APIRouter

from app.core.exceptions import StorageFaultError
from app.schemas.file import StorageCheckResponse
from app.services.access_policy import Action, ensure_authorized
from app.services.storage_keys import derive_storage_key
from app.models.file_record import FileKind
from app.api.dependencies import StaffUser, Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/storage", tags=["Admin - Storage"])

PROBE_URL_TTL_SECONDS = 300


@router.get("/check", response_model=StorageCheckResponse)
def check_storage(current_user: StaffUser, storage: Storage):
    """
    Exercise the object store end to end without writing anything.

    Signs a short-lived upload URL for a probe key and checks that the probe
    key is reported absent. Configuration values are echoed, secrets are not.
    """
    ensure_authorized(current_user, Action.PROBE_STORAGE)

    config = storage.config
    test_key = derive_storage_key("storage-check", "test-file.txt", FileKind.CUSTOMER_UPLOAD)

    url_result = "PASS"
    verify_result = "SKIPPED"
    try:
        storage.issue_upload_url(test_key, PROBE_URL_TTL_SECONDS)
    except StorageFaultError as e:
        logger.error("Storage check: upload URL generation failed: %s", e.message)
        url_result = f"FAIL ({e.message})"
    else:
        try:
            verify_result = "FAIL (should be false for non-existent file)" if storage.exists(test_key) else "PASS"
        except StorageFaultError as e:
            logger.error("Storage check: existence probe failed: %s", e.message)
            verify_result = f"FAIL ({e.message})"

    return StorageCheckResponse(
        success=url_result == "PASS" and verify_result == "PASS",
        upload_url_generation=url_result,
        file_verification=verify_result,
        bucket=config.bucket,
        endpoint=config.endpoint or "NOT_SET",
        region=config.region,
        credentials_set=bool(config.access_key_id and config.secret_access_key),
        test_storage_key=test_key,
    )
