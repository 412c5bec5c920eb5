import os

import pytest
from fastapi.testclient import TestClient

# Set test database before any imports
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SCREENSHOTS_PATH", "./.test-data/screenshots")
os.environ.setdefault("STEP_DELAY_S", "0")
os.environ.setdefault("STREAM_TEARDOWN_GRACE_S", "0.1")
os.environ.setdefault("OPENAI_API_KEY", "")

from app.main import create_app
from app.config import get_settings
from app.services.run_events import get_hub
from app.services.run_registry import get_registry
from db.base import Base
from db.session import engine


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create all tables before tests run, drop after all tests complete."""
    # Import models to ensure they are registered with Base
    from db.models import FrictionPoint, Run, RunEvent  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    """Clean tables between tests to ensure isolation."""
    yield
    from db.session import SessionLocal
    from db.models import FrictionPoint, Run, RunEvent

    with SessionLocal() as db:
        db.query(FrictionPoint).delete()
        db.query(RunEvent).delete()
        db.query(Run).delete()
        db.commit()


@pytest.fixture(autouse=True)
def _fresh_process_state():
    get_settings.cache_clear()
    get_registry.cache_clear()
    get_hub.cache_clear()
    yield
    get_registry.cache_clear()
    get_hub.cache_clear()


@pytest.fixture
def db():
    from db.session import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    app = create_app()
    with TestClient(app) as client:
        yield client
