"""User repository."""
from typing import Optional
from sqlalchemy.orm import Session

from app.models.user import User, UserRole


class UserRepository:
    """User data access layer."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, email: str, role: UserRole = UserRole.CUSTOMER,
               full_name: Optional[str] = None) -> User:
        """Create a new user."""
        user = User(email=email, role=role, full_name=full_name)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return self.db.query(User).filter(User.email == email).first()

    def set_role(self, user: User, role: UserRole) -> User:
        user.role = role
        self.db.commit()
        self.db.refresh(user)
        return user
