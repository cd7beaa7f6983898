"""Storage key derivation for object-store uploads."""
import re
import time
from typing import Optional

from app.models.file_record import FileKind

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]")

KEY_PREFIXES = {
    FileKind.CUSTOMER_UPLOAD: "uploads",
    FileKind.STAFF_PROCESSED: "processed",
}


def sanitize_file_name(file_name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9.-]`` with ``_``."""
    return _UNSAFE_CHARS.sub("_", file_name)


def current_timestamp_ms() -> int:
    return time.time_ns() // 1_000_000


def derive_storage_key(principal_id, file_name: str, kind: FileKind,
                       timestamp_ms: Optional[int] = None) -> str:
    """
    Build ``{prefix}/{principal_id}/{timestamp_ms}-{sanitized_name}``.

    Deterministic for identical inputs. The millisecond timestamp keeps
    repeated uploads of the same name apart; it is best-effort uniqueness,
    the unique constraint on ``storage_key`` is the backstop.
    """
    if timestamp_ms is None:
        timestamp_ms = current_timestamp_ms()
    prefix = KEY_PREFIXES[FileKind(kind)]
    return f"{prefix}/{principal_id}/{timestamp_ms}-{sanitize_file_name(file_name)}"
