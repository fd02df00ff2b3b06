"""
Shared fixtures.

Environment overrides must be in place before any service module is imported:
both services read their settings (and build their engines) at import time.
"""
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="inventory-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/inventory.db"
os.environ["PRODUCT_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/products.db"
os.environ["REDIS_EVENTS_ENABLED"] = "false"
os.environ["METRICS_ENABLED"] = "false"
os.environ["OPT_LOCK_BASE_DELAY_MS"] = "1"
os.environ["OPT_LOCK_MAX_DELAY_MS"] = "5"
os.environ["OPT_LOCK_JITTER_MS"] = "1"
os.environ["PRODUCT_LOOKUP_BACKOFF_MS"] = "0"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from inventory_service.db.database import Base  # noqa: E402
from inventory_service.models import inventory as _models  # noqa: E402,F401
from tests.fakes import FakeProductLookup, RecordingNotifier  # noqa: E402


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def products():
    return FakeProductLookup()


@pytest.fixture
def notifier():
    return RecordingNotifier()
