"""
Test configuration and fixtures
"""

import os
import sys
from pathlib import Path
from unittest.mock import patch

# Add parent directory (marketplace-service) to sys.path so 'app' can be imported
service_dir = Path(__file__).parent.parent
sys.path.insert(0, str(service_dir))

# Set test environment variables BEFORE importing app modules
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only-32chars"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["ADMIN_SECRET_KEY"] = "test-admin-secret"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"  # Lower rounds for faster tests
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.app import app  # noqa: E402
from app.database import get_db  # noqa: E402
from app.domain.entities import UserRole  # noqa: E402
from app.models import Base  # noqa: E402
from helpers import create_business, create_user  # noqa: E402

# Create in-memory SQLite database for testing
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Mock init_db to prevent creating the configured database tables
    with patch("app.app.init_db"):
        app.dependency_overrides[get_db] = override_get_db
        with TestClient(app) as test_client:
            yield test_client
        app.dependency_overrides.clear()


# ==================== USERS ====================


@pytest.fixture
def investor(db_session):
    return create_user(db_session, "Ada Obi", UserRole.INVESTOR)


@pytest.fixture
def second_investor(db_session):
    return create_user(db_session, "Bola Ade", UserRole.INVESTOR)


@pytest.fixture
def owner(db_session):
    return create_user(db_session, "Chidi Eze", UserRole.BUSINESS_OWNER)


@pytest.fixture
def other_owner(db_session):
    return create_user(db_session, "Dayo Ola", UserRole.BUSINESS_OWNER)


@pytest.fixture
def admin(db_session):
    return create_user(db_session, "Efe Admin", UserRole.ADMINISTRATOR)


@pytest.fixture
def business(db_session, owner):
    return create_business(db_session, owner)
