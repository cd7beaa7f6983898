#!/usr/bin/env python3
"""Create a staff user, or promote an existing one.

Usage:
    python scripts/create_staff.py staff@example.com [more@example.com ...]

Falls back to the comma-separated ``STAFF_EMAILS`` environment variable.
"""
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.database import SessionLocal
from app.models import UserRole
from app.repositories.user_repository import UserRepository


def create_staff_users(emails):
    db = SessionLocal()
    try:
        repo = UserRepository(db)
        for email in emails:
            existing = repo.get_by_email(email)
            if existing is None:
                user = repo.create(email=email, role=UserRole.STAFF, full_name="Staff User")
                print(f"Created staff user {user.email} (id={user.id})")
            elif existing.role != UserRole.STAFF:
                repo.set_role(existing, UserRole.STAFF)
                print(f"Promoted {existing.email} (id={existing.id}) to staff")
            else:
                print(f"{existing.email} (id={existing.id}) is already staff, skipping")
    except Exception as e:
        print(f"Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    emails = sys.argv[1:] or [
        e.strip() for e in os.environ.get("STAFF_EMAILS", "").split(",") if e.strip()
    ]
    if not emails:
        print("No staff emails given (args or STAFF_EMAILS); nothing to do.")
        sys.exit(0)
    create_staff_users(emails)
