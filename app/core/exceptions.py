"""Error taxonomy for the order and file-exchange API.

Every error is an ``HTTPException`` whose ``detail`` carries the
``code`` / ``message`` / ``retriable`` triple rendered by the app-wide
handler in ``app.main``.
"""
from typing import Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class: status code + stable machine-readable code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    retriable: bool = False
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, headers: Optional[dict] = None):
        self.message = message or self.default_message
        super().__init__(
            status_code=self.status_code,
            detail={
                "code": self.code,
                "message": self.message,
                "retriable": self.retriable,
            },
            headers=headers,
        )


class UnauthenticatedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_message = "Could not validate credentials"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class ValidationFailedError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_failed"
    default_message = "Invalid request"


class OwnershipMismatchError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ownership_mismatch"
    default_message = "File does not belong to this order"


class OrderNumberConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "order_number_conflict"
    retriable = True
    default_message = "Could not allocate an order number, please retry"


class StorageFaultError(AppError):
    """Object store failure other than a missing object (network, auth, ...)."""

    code = "storage_fault"
    retriable = True
    default_message = "Storage service failure"


class StorageNotConfiguredError(StorageFaultError):
    code = "storage_not_configured"
    retriable = False
    default_message = "Storage service is not configured"
