"""S3-compatible object storage gateway.

Issues presigned PUT/GET URLs and performs metadata-only existence checks.
The application never proxies file bytes: clients talk to the store directly.
"""
import logging
import threading
from dataclasses import dataclass
from functools import lru_cache

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings, settings
from app.core.exceptions import StorageFaultError, StorageNotConfiguredError

logger = logging.getLogger(__name__)

DEFAULT_URL_TTL_SECONDS = 3600

_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass(frozen=True)
class StorageConfig:
    """Resolved object-store settings; built once at startup."""

    endpoint: str
    bucket: str
    region: str
    access_key_id: str
    secret_access_key: str

    @classmethod
    def from_settings(cls, s: Settings) -> "StorageConfig":
        return cls(
            endpoint=s.STORAGE_ENDPOINT,
            bucket=s.STORAGE_BUCKET,
            region=s.STORAGE_REGION,
            access_key_id=s.STORAGE_ACCESS_KEY_ID,
            secret_access_key=s.STORAGE_SECRET_ACCESS_KEY,
        )

    @property
    def missing_fields(self) -> list:
        return [
            name
            for name in ("endpoint", "bucket", "access_key_id", "secret_access_key")
            if not getattr(self, name)
        ]


class StorageGateway:
    """Narrow wrapper over one bucket: upload URL, download URL, exists."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self._client = None
        self._lock = threading.Lock()

    def _get_client(self):
        missing = self.config.missing_fields
        if missing:
            logger.critical("Object storage is not configured, missing: %s", ", ".join(missing))
            raise StorageNotConfiguredError(
                f"Storage service is not configured (missing: {', '.join(missing)})"
            )

        with self._lock:
            if self._client is None:
                self._client = boto3.client(
                    "s3",
                    endpoint_url=self.config.endpoint,
                    region_name=self.config.region,
                    aws_access_key_id=self.config.access_key_id,
                    aws_secret_access_key=self.config.secret_access_key,
                    # Path-style addressing is required by S3-compatible stores
                    config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
                )
            return self._client

    def _presign(self, operation: str, key: str, ttl_seconds: int) -> str:
        client = self._get_client()
        try:
            return client.generate_presigned_url(
                operation,
                Params={"Bucket": self.config.bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Presigning %s for %s failed: %s", operation, key, e)
            raise StorageFaultError("Could not sign storage URL")

    def issue_upload_url(self, key: str, ttl_seconds: int = DEFAULT_URL_TTL_SECONDS) -> str:
        """Signed URL authorizing one PUT to ``key`` for ``ttl_seconds``."""
        return self._presign("put_object", key, ttl_seconds)

    def issue_download_url(self, key: str, ttl_seconds: int = DEFAULT_URL_TTL_SECONDS) -> str:
        """Signed URL authorizing GET of ``key`` for ``ttl_seconds``."""
        return self._presign("get_object", key, ttl_seconds)

    def exists(self, key: str) -> bool:
        """
        HEAD the object.

        Returns False when the object is absent; raises StorageFaultError for
        anything else (network, credentials, bucket misconfiguration).
        """
        client = self._get_client()
        try:
            client.head_object(Bucket=self.config.bucket, Key=key)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                return False
            logger.error("HEAD %s failed with %s: %s", key, code, e)
            raise StorageFaultError("Could not verify file in storage")
        except BotoCoreError as e:
            logger.error("HEAD %s failed: %s", key, e)
            raise StorageFaultError("Could not verify file in storage")


@lru_cache(maxsize=1)
def get_storage_gateway() -> StorageGateway:
    """Process-wide gateway built from the startup settings."""
    return StorageGateway(StorageConfig.from_settings(settings))
