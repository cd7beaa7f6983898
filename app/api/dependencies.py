"""API dependencies for authentication, authorization and storage."""
from typing import Annotated, Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import ForbiddenError, UnauthenticatedError
from app.core.security import decode_access_token
from app.models.user import User, UserRole
from app.repositories.user_repository import UserRepository
from app.services.storage_gateway import StorageGateway, get_storage_gateway

# Security scheme; missing header is reported as 401 by get_current_user
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[Session, Depends(get_db)]
) -> User:
    """
    Dependency to get the acting principal.

    Extracts the bearer token, validates it, and loads the local user.

    Raises:
        UnauthenticatedError: No token, invalid token, or unknown/inactive user
    """
    if credentials is None:
        raise UnauthenticatedError("Not authenticated")

    payload = decode_access_token(credentials.credentials)

    user_id = payload.get("sub")
    if user_id is None:
        raise UnauthenticatedError()

    try:
        user = UserRepository(db).get_by_id(int(user_id))
    except (TypeError, ValueError):
        raise UnauthenticatedError()

    if user is None or not user.is_active:
        raise UnauthenticatedError("User not found or inactive")

    return user


def require_role(*allowed_roles: UserRole):
    """
    Dependency factory for role-based access control.

    Usage:
        @app.get("/staff-only")
        def staff_endpoint(user: User = Depends(require_role(UserRole.STAFF))):
            ...
    """
    def role_checker(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role not in allowed_roles:
            raise ForbiddenError(
                f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_user

    return role_checker


def get_storage() -> StorageGateway:
    """Storage gateway singleton; overridden in tests."""
    return get_storage_gateway()


# Common dependencies
StaffUser = Annotated[User, Depends(require_role(UserRole.STAFF))]
AnyUser = Annotated[User, Depends(get_current_user)]
Storage = Annotated[StorageGateway, Depends(get_storage)]
