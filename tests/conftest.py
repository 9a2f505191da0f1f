"""Pytest fixtures for consultant portal tests."""

from __future__ import annotations

from decimal import Decimal
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from consultant_portal.config import Settings
from consultant_portal.database import create_session_factory, enable_sqlite_foreign_keys
from consultant_portal.models import Base, Client, Consultant, PayrollCycle
from consultant_portal.services.cycle_service import CycleService

# In-memory SQLite shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="DEBUG",
        invoice_number_seed=198,
        default_invoice_bonus=Decimal("751.96"),
        invoice_due_days=30,
        company_name="Test Staffing LLC",
    )


@pytest.fixture
async def engine():
    """Create a fresh schema per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============================================================================
# Domain fixtures
# ============================================================================


@pytest.fixture
async def test_client(session: AsyncSession) -> Client:
    """Create the billed client."""
    client = Client(
        name="Acme Corp",
        legal_name="Acme Corporation Inc.",
        contact_email="ap@acme.test",
        address="1 Market St",
        city="San Francisco",
        state="CA",
        zip="94105",
        country="USA",
        payment_terms="Net 30",
    )
    session.add(client)
    await session.commit()
    return client


def make_consultant(name: str, **overrides) -> Consultant:
    fields = {
        "name": name,
        "hourly_rate": Decimal("30.00"),
        "role": "Software Engineer",
        "client_invoice_service_name": "Software Development",
        "client_invoice_unit_price": Decimal("5410.77"),
        "client_invoice_service_description": "Full-stack development services",
    }
    fields.update(overrides)
    return Consultant(**fields)


@pytest.fixture
async def test_consultants(session: AsyncSession) -> dict[str, Consultant]:
    """Alice and Bob share a billing group; Carol is billed under another description."""
    consultants = {
        "alice": make_consultant("Alice"),
        "bob": make_consultant("Bob", yearly_bonus=Decimal("100.00")),
        "carol": make_consultant(
            "Carol",
            client_invoice_service_description="QA automation services",
        ),
    }
    session.add_all(consultants.values())
    await session.commit()
    return consultants


@pytest.fixture
async def test_cycle(session: AsyncSession, test_consultants) -> PayrollCycle:
    """A cycle covering every active consultant."""
    return await CycleService(session).create(
        month_label="2024-03",
        global_work_hours=168,
    )
