import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TENANT_DIRECTORY", "static")
os.environ.setdefault("STATIC_TENANT_IDS", "[1, 2]")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("INTERNAL_API_TOKEN", "")

import pytest
import pytest_asyncio

from salon_booking.core.database import create_engine, create_schema, create_session_factory
from salon_booking.services.booking_service import BookingService
from salon_booking.services.booking_store import SqlBookingStore
from salon_booking.services.tenant_directory import StaticTenantDirectory

from factories import TODAY


@pytest_asyncio.fixture
async def engine():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(engine):
    return SqlBookingStore(create_session_factory(engine))


@pytest.fixture
def tenants():
    return StaticTenantDirectory([1, 2])


@pytest.fixture
def service(store, tenants):
    return BookingService(store, tenants, clock=lambda: TODAY)
