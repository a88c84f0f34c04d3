"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory repository that enforces email uniqueness on create()
- Settings isolated from the environment and .env files
- A FastAPI app/test client wired to the in-memory repository
- A PostgreSQL pool for integration and adversarial tests (skipped when
  the database is not reachable)
"""

import asyncio
import dataclasses
from collections.abc import AsyncIterator, Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from roobaroo.adapters.repository import PostgresRegistrationRepository, run_migrations
from roobaroo.api.dependencies import get_optional_repository, get_repository
from roobaroo.api.main import create_app
from roobaroo.config.settings import Settings, get_settings
from roobaroo.domain.exceptions import UniqueConstraintError
from roobaroo.domain.ports import Registration, RegistrationFilter


class InMemoryRegistrationRepository:
    """
    RegistrationRepository test double.

    find_by_email() yields to the event loop after reading, so concurrent
    submissions for the same email all pass the pre-check and only the
    uniqueness check inside create() can stop the second one.
    """

    def __init__(self) -> None:
        self.records: dict[str, Registration] = {}
        self.find_calls = 0
        self.create_calls = 0

    async def find_by_email(self, email: str) -> Registration | None:
        self.find_calls += 1
        found = self.records.get(email)
        await asyncio.sleep(0)
        return found

    async def create(self, registration: Registration) -> Registration:
        self.create_calls += 1
        if registration.email in self.records:
            raise UniqueConstraintError(f"create: {registration.email} already stored")
        stored = dataclasses.replace(
            registration,
            created_at=registration.registration_date,
            updated_at=registration.registration_date,
        )
        self.records[registration.email] = stored
        return stored

    async def count(self, criteria: RegistrationFilter | None = None) -> int:
        records = list(self.records.values())
        if criteria is not None and criteria.status is not None:
            records = [r for r in records if r.status == criteria.status]
        if criteria is not None and criteria.registered_since is not None:
            records = [r for r in records if r.registration_date >= criteria.registered_since]
        return len(records)

    async def ping(self) -> None:
        return None


@pytest.fixture
def repository() -> InMemoryRegistrationRepository:
    return InMemoryRegistrationRepository()


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only; the environment and .env are ignored."""
    return Settings(_env_file=None, environment="test")


@pytest.fixture
def app(settings: Settings, repository: InMemoryRegistrationRepository) -> Iterator[FastAPI]:
    """Application without lifespan (no database) using the in-memory repository."""
    test_app = create_app(settings)
    test_app.dependency_overrides[get_repository] = lambda: repository
    test_app.dependency_overrides[get_optional_repository] = lambda: repository
    yield test_app
    test_app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


@pytest.fixture
def make_payload() -> Callable[..., dict[str, str]]:
    """Factory for valid registration payloads."""

    def _make(email: str = "john@example.com", status: str = "single") -> dict[str, str]:
        return {
            "name": "John Doe",
            "email": email,
            "phone": "9876543210",
            "status": status,
        }

    return _make


@pytest.fixture
async def pg_pool() -> AsyncIterator[AsyncConnectionPool]:
    """Connection pool on DATABASE_URL with migrations applied and an empty table."""
    settings = get_settings()
    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=False,
    )
    try:
        await pool.open(wait=True, timeout=5)
    except PoolTimeout:
        await pool.close()
        pytest.skip("PostgreSQL is not reachable at DATABASE_URL")

    await run_migrations(pool)
    async with pool.connection() as conn:
        await conn.execute("DELETE FROM registrations")

    yield pool
    await pool.close()


@pytest.fixture
def pg_repository(pg_pool: AsyncConnectionPool) -> PostgresRegistrationRepository:
    return PostgresRegistrationRepository(pg_pool)
