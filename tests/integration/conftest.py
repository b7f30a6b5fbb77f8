"""Integration test fixtures on an in-memory SQLite database."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from trip_settlement.api.app import create_app
from trip_settlement.api.dependencies import get_db_session
from trip_settlement.database import create_schema, make_session_factory
from trip_settlement.models import Company, Driver, Load, Trip, TripExpense

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@dataclass
class SeededTrip:
    """A completed trip with two companies, a per-mile driver and two expenses.

    Company A: revenue 1000.00, 400.00 collected on delivery, 500 cuft
    Company B: revenue 600.00, fully collected, 300 cuft
    Fuel 80.00 paid in driver cash; tolls 20.00 on the company card
    Driver paid 0.55/mi over 1000 miles
    """

    owner_id: UUID
    trip_id: UUID
    driver_id: UUID
    company_ids: list[UUID] = field(default_factory=list)


async def seed_trip(session: AsyncSession, owner_id: UUID) -> SeededTrip:
    """Insert the standard trip and flush."""
    acme = Company(company_id=uuid4(), owner_id=owner_id, name="Acme Movers")
    beta = Company(company_id=uuid4(), owner_id=owner_id, name="Beta Freight")
    driver = Driver(
        driver_id=uuid4(),
        owner_id=owner_id,
        first_name="Dana",
        last_name="Reyes",
        pay_mode="per_mile",
        rate_per_mile=Decimal("0.5500"),
    )
    trip = Trip(
        trip_id=uuid4(),
        owner_id=owner_id,
        trip_number="T-1001",
        status="completed",
        driver_id=driver.driver_id,
        start_date=date(2026, 3, 2),
        end_date=date(2026, 3, 4),
        odometer_start=Decimal("1000.0"),
        odometer_end=Decimal("2000.0"),
    )
    session.add_all([acme, beta, driver, trip])
    await session.flush()

    session.add_all(
        [
            Load(
                owner_id=owner_id,
                trip_id=trip.trip_id,
                sequence_index=0,
                load_number="L-1",
                company_id=acme.company_id,
                total_revenue=Decimal("1000.00"),
                amount_collected_on_delivery=Decimal("400.00"),
                actual_cuft_loaded=Decimal("500.00"),
            ),
            Load(
                owner_id=owner_id,
                trip_id=trip.trip_id,
                sequence_index=1,
                load_number="L-2",
                company_id=beta.company_id,
                total_revenue=Decimal("600.00"),
                amount_collected_on_delivery=Decimal("600.00"),
                actual_cuft_loaded=Decimal("300.00"),
            ),
            TripExpense(
                owner_id=owner_id,
                trip_id=trip.trip_id,
                category="fuel",
                amount=Decimal("80.00"),
                paid_by="driver_cash",
                incurred_at=date(2026, 3, 2),
            ),
            TripExpense(
                owner_id=owner_id,
                trip_id=trip.trip_id,
                category="tolls",
                amount=Decimal("20.00"),
                paid_by="company_card",
                incurred_at=date(2026, 3, 3),
            ),
        ]
    )
    await session.flush()

    return SeededTrip(
        owner_id=owner_id,
        trip_id=trip.trip_id,
        driver_id=driver.driver_id,
        company_ids=[acme.company_id, beta.company_id],
    )


@pytest_asyncio.fixture
async def engine():
    """Create test database engine with a fresh schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def owner_id() -> UUID:
    return uuid4()


@pytest_asyncio.fixture
async def seeded(session: AsyncSession, owner_id: UUID) -> SeededTrip:
    """Seed the standard trip, then drop cached rows so reads hit the database."""
    seeded = await seed_trip(session, owner_id)
    session.expunge_all()
    return seeded


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, with each request on its own session."""
    app = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def committed(session_factory, owner_id: UUID) -> SeededTrip:
    """Seed the standard trip and commit it for API tests."""
    async with session_factory() as session:
        seeded = await seed_trip(session, owner_id)
        await session.commit()
    return seeded
