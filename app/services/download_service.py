"""Batch issuance of presigned download links."""
import concurrent.futures
import logging
from typing import List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.file_record import FileKind, FileRecord
from app.repositories.file_repository import FileRepository
from app.repositories.order_repository import OrderRepository
from app.schemas.file import DownloadLink
from app.services.access_policy import Action, ensure_authorized
from app.services.storage_gateway import StorageGateway

logger = logging.getLogger(__name__)

MAX_SIGNING_WORKERS = 8


class DownloadService:
    """Signed GET URLs for the completed files of one order."""

    def __init__(self, db: Session, storage: StorageGateway):
        self.db = db
        self.storage = storage
        self.order_repo = OrderRepository(db)
        self.file_repo = FileRepository(db)

    def issue_batch(self, order_id: str, kind: FileKind, principal) -> List[DownloadLink]:
        """
        One link per completed file of ``kind``, oldest first.

        All-or-nothing: if any URL cannot be signed the whole call fails.
        Returns an empty list when the order has no matching files.
        """
        kind = FileKind(kind)
        order = self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        ensure_authorized(principal, Action.DOWNLOAD, order=order, kind=kind)

        records = self.file_repo.list_for_order(order.id, kind=kind)
        if not records:
            return []

        ttl = settings.DOWNLOAD_URL_TTL_SECONDS

        def sign(record: FileRecord) -> DownloadLink:
            return DownloadLink(
                file_id=record.id,
                file_name=record.file_name,
                url=self.storage.issue_download_url(record.storage_key, ttl),
            )

        workers = min(MAX_SIGNING_WORKERS, len(records))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in input order and re-raises the first failure
            links = list(executor.map(sign, records))

        logger.info(
            "Issued %d %s download links for order %s to user %s",
            len(links), kind.value, order.order_number, principal.id,
        )
        return links
