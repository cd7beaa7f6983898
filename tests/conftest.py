"""
Pytest configuration and fixtures for testing.
"""
import os

# Settings and the engine are built at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_DIR"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies import get_storage
from app.core.database import Base, get_db
from app.core.exceptions import StorageFaultError
from app.core.security import create_access_token
from app.main import app
from app.models import UserRole
from app.repositories.user_repository import UserRepository
from app.services.order_service import OrderService
from app.services.storage_gateway import StorageConfig


class FakeStorage:
    """In-memory stand-in for StorageGateway; ``objects`` holds uploaded keys."""

    def __init__(self):
        self.config = StorageConfig(
            endpoint="https://storage.test",
            bucket="test-bucket",
            region="us-west-1",
            access_key_id="test-access-key",
            secret_access_key="test-secret",
        )
        self.objects = set()
        self.broken_keys = set()
        self.unreachable = False

    def put(self, key):
        """Simulate the client PUT to a presigned URL."""
        self.objects.add(key)

    def _check(self, key):
        if self.unreachable or key in self.broken_keys:
            raise StorageFaultError("Storage service failure")

    def issue_upload_url(self, key, ttl_seconds=3600):
        self._check(key)
        return f"{self.config.endpoint}/{self.config.bucket}/{key}?X-Amz-Expires={ttl_seconds}&op=put"

    def issue_download_url(self, key, ttl_seconds=3600):
        self._check(key)
        return f"{self.config.endpoint}/{self.config.bucket}/{key}?X-Amz-Expires={ttl_seconds}&op=get"

    def exists(self, key):
        self._check(key)
        return key in self.objects


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    """Database session bound to the test engine."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(db, storage):
    """Test client with the database and object store swapped out."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def customer(db):
    return UserRepository(db).create(email="customer@example.com", full_name="Pat Customer")


@pytest.fixture
def other_customer(db):
    return UserRepository(db).create(email="other@example.com", full_name="Quinn Customer")


@pytest.fixture
def staff(db):
    return UserRepository(db).create(
        email="staff@example.com", role=UserRole.STAFF, full_name="Sam Staff"
    )


@pytest.fixture
def order(db, customer):
    """A RECEIVED order owned by ``customer``."""
    return OrderService(db).create_order(customer, "Business cards, 500 units, matte")


@pytest.fixture
def auth_headers():
    """Build a bearer header for a user."""
    def _headers(user):
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}
    return _headers
