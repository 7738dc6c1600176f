import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event

from invoicing.config import settings
from invoicing.database import Base, close_db, get_engine, get_session_factory
from invoicing.main import app


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def engine(tmp_path, monkeypatch):
    """A fresh on-disk SQLite database per test, wired in as the app's engine."""
    await close_db()
    monkeypatch.setattr(
        settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'invoices.db'}"
    )
    engine = get_engine()
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await close_db()


@pytest.fixture
def session_factory(engine):
    return get_session_factory()


@pytest_asyncio.fixture
async def client(engine):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def invoice_payload():
    return {
        "clientName": "Acme Corporation",
        "clientAddress": "1 Market Street\nSan Francisco, CA",
        "issueDate": "2026-03-01",
        "dueDate": "2026-03-31",
        "items": [
            {"description": "Consulting", "quantity": 3, "unitPrice": "150.00"},
            {"description": "Travel", "quantity": 1, "unitPrice": "89.99"},
        ],
    }
