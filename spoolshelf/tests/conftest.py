"""Shared test fixtures for Spoolshelf tests."""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest

# IMPORTANT: Set environment variables BEFORE any app imports
# This must happen before settings/config are loaded
os.environ["LOG_TO_FILE"] = "false"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["EDIT_TOKEN"] = "test-passcode"
os.environ["ALLOWED_ORIGINS"] = ""

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

# Ensure settings use our env vars - import and override before database import
from spoolshelf.app.core.config import settings  # noqa: E402

settings.log_to_file = False

TEST_EDIT_TOKEN = "test-passcode"
settings.edit_token = TEST_EDIT_TOKEN

from spoolshelf.app.core.database import Base  # noqa: E402

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    # Import all models to register them
    from spoolshelf.app.models import filament  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session_maker() as session:
        yield session


@asynccontextmanager
async def _app_bound_to(test_engine):
    """Point the app's session dependency at the test engine for the duration."""
    from spoolshelf.app.core.database import get_db
    from spoolshelf.app.main import app

    test_async_session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with test_async_session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    # Also patch the module-level async_session in case anything opens its own session
    with patch("spoolshelf.app.core.database.async_session", test_async_session):
        try:
            yield app
        finally:
            app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_engine, db_session) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with _app_bound_to(test_engine) as app:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client


@pytest.fixture
async def app_transport(test_engine, db_session) -> AsyncGenerator[ASGITransport, None]:
    """ASGI transport for driving the app through the inventory API client."""
    async with _app_bound_to(test_engine) as app:
        yield ASGITransport(app=app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TEST_EDIT_TOKEN}"}


# ============================================================================
# Factory Fixtures for Test Data
# ============================================================================


@pytest.fixture
def filament_factory(db_session):
    """Factory to create test filaments directly in the store."""

    async def _create_filament(**kwargs):
        from spoolshelf.app.models.filament import Filament

        defaults = {
            "brand": "Bambu",
            "color": "Red",
            "type": "Basic",
            "material": "PLA",
            "amount": 1.0,
        }
        defaults.update(kwargs)

        filament = Filament(**defaults)
        db_session.add(filament)
        await db_session.commit()
        await db_session.refresh(filament)
        return filament

    return _create_filament


@pytest.fixture
def record_factory():
    """Factory for client-side records, as the API would return them."""
    _counter = [0]  # Use list to allow mutation in nested function

    def _create_record(**kwargs):
        from spoolshelf.app.schemas.inventory import FilamentRecord

        _counter[0] += 1
        defaults = {
            "id": _counter[0],
            "brand": "Bambu",
            "color": "Red",
            "type": "Basic",
            "material": "PLA",
            "amount": 1.0,
            "created_at": "2026-01-01T00:00:00",
            "updated_at": "2026-01-01T00:00:00",
        }
        defaults.update(kwargs)
        return FilamentRecord(**defaults)

    return _create_record


# ============================================================================
# Log Capture Fixtures for Error Detection
# ============================================================================


class LogCapture(logging.Handler):
    """Handler that captures log records for testing."""

    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord):
        self.records.append(record)

    def clear(self):
        self.records.clear()

    def get_errors(self) -> list[logging.LogRecord]:
        """Get all ERROR and CRITICAL level records."""
        return [r for r in self.records if r.levelno >= logging.ERROR]

    def get_warnings(self) -> list[logging.LogRecord]:
        """Get all WARNING level records."""
        return [r for r in self.records if r.levelno == logging.WARNING]

    def has_errors(self) -> bool:
        return len(self.get_errors()) > 0

    def format_errors(self) -> str:
        """Format all errors as a string for assertion messages."""
        errors = self.get_errors()
        if not errors:
            return "No errors"
        formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")
        return "\n".join(formatter.format(r) for r in errors)


@pytest.fixture
def capture_logs():
    """Fixture that captures log output during a test.

    Usage:
        def test_something(capture_logs):
            some_function()
            assert not capture_logs.has_errors(), capture_logs.format_errors()
    """
    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    # Attach to root logger to capture all logs
    root_logger = logging.getLogger()
    previous_level = root_logger.level
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(handler)

    yield handler

    root_logger.removeHandler(handler)
    root_logger.setLevel(previous_level)
