"""
Pytest configuration file for backend testing.
"""
import os
import sys
from pathlib import Path

import pytest
from unittest.mock import Mock

# Add the backend directory to Python path so imports work correctly
backend_dir = Path(__file__).parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Settings are read once at import; tests never touch the development database
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from core.database import Base, create_db_engine, get_db  # noqa: E402

# Import all models to register them with SQLAlchemy
from modules.qr_codes.models import qr_models  # noqa: E402,F401
from modules.commissions.models import agent_models, transaction_models  # noqa: E402,F401


@pytest.fixture(scope="function")
def db_engine():
    """Fresh in-memory database per test"""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a fresh database session for each test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""
    from app.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def notifier():
    """Records dispatched notifications as (user_id, type, payload) calls"""
    return Mock()
