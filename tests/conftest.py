import os

# Configure the app for tests before anything imports catalog.config
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ["AUTH_USERNAME"] = "tester"
os.environ["AUTH_PASSWORD"] = "s3cret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catalog.main import app
from catalog.database import Base, get_db
from catalog.utils.cache import InMemoryCacheService, get_cache_service


AUTH = ("tester", "s3cret")

# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def cache():
    """Fresh shared cache for each test."""
    cache = InMemoryCacheService()
    app.dependency_overrides[get_cache_service] = lambda: cache
    yield cache
    app.dependency_overrides.pop(get_cache_service, None)


@pytest.fixture(scope="function")
def anon_client(cache):
    """Test client without credentials, fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(anon_client):
    """Test client sending the configured HTTP Basic credentials."""
    anon_client.auth = AUTH
    return anon_client


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
