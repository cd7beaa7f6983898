"""Access decisions for orders and their files. Pure: no I/O, no side effects."""
from enum import Enum
from typing import Optional

from app.core.exceptions import ForbiddenError
from app.models.file_record import FileKind
from app.models.order import Order
from app.models.user import UserRole


class Action(str, Enum):
    READ_ORDER = "read_order"
    UPLOAD = "upload"
    CONFIRM = "confirm"
    LIST_FILES = "list_files"
    DOWNLOAD = "download"
    MANAGE_ORDER = "manage_order"
    PROBE_STORAGE = "probe_storage"


_STAFF_ONLY = {Action.MANAGE_ORDER, Action.PROBE_STORAGE}
_FILE_ACCESS = {Action.CONFIRM, Action.LIST_FILES, Action.DOWNLOAD}


def _is_staff(principal) -> bool:
    return principal.role == UserRole.STAFF


def _is_owner(principal, order: Optional[Order]) -> bool:
    return order is not None and principal.id == order.user_id


def authorize(principal, action: Action, order: Optional[Order] = None,
              kind: Optional[FileKind] = None) -> bool:
    """
    Decide whether ``principal`` (anything with ``id`` and ``role``) may
    perform ``action`` on ``order`` for files of ``kind``.
    """
    if principal is None:
        return False

    if action in _STAFF_ONLY:
        return _is_staff(principal)

    if action == Action.READ_ORDER:
        return _is_owner(principal, order) or _is_staff(principal)

    # Staff-processed files are never reachable by customers, own order or not.
    if kind == FileKind.STAFF_PROCESSED:
        return _is_staff(principal) and order is not None

    if action == Action.UPLOAD:
        return _is_owner(principal, order)

    if action in _FILE_ACCESS:
        return _is_owner(principal, order) or _is_staff(principal)

    return False


def ensure_authorized(principal, action: Action, order: Optional[Order] = None,
                      kind: Optional[FileKind] = None) -> None:
    """Raise ForbiddenError when ``authorize`` denies."""
    if not authorize(principal, action, order=order, kind=kind):
        raise ForbiddenError()
