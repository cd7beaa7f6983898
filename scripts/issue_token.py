#!/usr/bin/env python3
"""Mint a bearer token for a local user (development only).

Usage:
    python scripts/issue_token.py <user_id> [minutes]
"""
import os
import sys
from datetime import timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.database import SessionLocal
from app.core.security import create_access_token
from app.repositories.user_repository import UserRepository


def issue_token(user_id: int, minutes: int = 60) -> str:
    db = SessionLocal()
    try:
        user = UserRepository(db).get_by_id(user_id)
        if user is None:
            raise SystemExit(f"User {user_id} not found")
        return create_access_token(
            {"sub": str(user.id), "role": user.role.value},
            expires_delta=timedelta(minutes=minutes),
        )
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        raise SystemExit(__doc__)
    minutes = int(sys.argv[2]) if len(sys.argv) > 2 else 60
    print(issue_token(int(sys.argv[1]), minutes))
