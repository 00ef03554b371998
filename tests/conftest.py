"""
DocVault - Shared Test Fixtures
Provides stores, file storage, a stubbed scanner and an ASGI client.
"""

import os
import pytest
from datetime import date, timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool

# Configure test environment BEFORE importing the app
os.environ["APP_ENV"] = "local"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_REMOTE_OCR"] = "false"

from docvault.core.database import create_db_engine, create_session_factory, init_db
from docvault.integrations.storage_client import FileStorage
from docvault.modules.scanner import ExpiryScanner, ScanResult
from docvault.storage.memory_storage import MemoryStorage
from docvault.storage.sql_storage import SQLStorage

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def future_date(days: int) -> date:
    """A calendar date `days` from today; keeps reminder math independent of the run date."""
    return date.today() + timedelta(days=days)


# =============================================================================
# Core Fixtures
# =============================================================================

@pytest.fixture
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
def user_id() -> str:
    return USER_ID


@pytest.fixture
def other_user_id() -> str:
    return OTHER_USER_ID


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def memory_store() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def sql_store():
    """SQLStorage on a private in-memory SQLite database."""
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield SQLStorage(create_session_factory(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Runs a test once per store implementation."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def file_storage(tmp_path) -> FileStorage:
    return FileStorage(str(tmp_path / "uploads"))


# =============================================================================
# Scanner Fixtures
# =============================================================================

def make_scanner(result: ScanResult) -> AsyncMock:
    """Scanner double whose scan() returns `result`; call counts are on scanner.scan."""
    scanner = AsyncMock(spec=ExpiryScanner)
    scanner.scan.return_value = result
    return scanner


@pytest.fixture
def passport_expiry() -> date:
    return future_date(400)


@pytest.fixture
def confident_scanner(passport_expiry) -> AsyncMock:
    return make_scanner(ScanResult(
        expiry_date=passport_expiry.isoformat(),
        document_type="passport",
        confidence=0.92,
    ))


@pytest.fixture
def unsure_scanner(passport_expiry) -> AsyncMock:
    return make_scanner(ScanResult(
        expiry_date=passport_expiry.isoformat(),
        document_type="passport",
        confidence=0.4,
    ))


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def app(memory_store, confident_scanner, file_storage):
    from main import create_app
    return create_app(
        store=memory_store,
        scanner=confident_scanner,
        file_storage=file_storage,
        scanning_enabled=True,
    )


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def headers(user_id) -> dict:
    return {"X-User-ID": user_id}
