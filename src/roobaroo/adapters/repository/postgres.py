"""
PostgreSQL repository adapter - Implements RegistrationRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 (async) with raw SQL.

Duplicate Prevention:
--------------------
The `registrations_email_key` UNIQUE constraint is what guarantees at most
one registration per normalized email. RegistrationService also checks
find_by_email() before writing, but two concurrent submissions can both
pass that check; the constraint rejects the second INSERT, and this
adapter surfaces it as UniqueConstraintError.

Error Classification:
--------------------
Every psycopg error leaving this module is translated:

- UniqueViolation                         -> UniqueConstraintError
- CheckViolation, NotNullViolation,
  DataError (incl. values the driver
  refuses to send, e.g. NUL bytes)        -> SchemaValidationError
- OperationalError (incl. PoolTimeout)    -> StorageConnectionError
- any other psycopg.Error                 -> StorageError
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg import errors
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from roobaroo.domain.exceptions import (
    SchemaValidationError,
    StorageConnectionError,
    StorageError,
    UniqueConstraintError,
)
from roobaroo.domain.ports import (
    AttendanceStatus,
    PaymentStatus,
    Registration,
    RegistrationFilter,
)

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

_COLUMNS = """
    id, name, email, phone, status, payment_status, registration_date,
    source_address, created_at, updated_at
"""

# Constraint name -> message shown to the client when the store rejects a value
_CONSTRAINT_MESSAGES = {
    "registrations_name_check": "Name must be between 2 and 100 characters",
    "registrations_email_check": "Please provide a valid email address",
    "registrations_phone_check": "Phone number must be exactly 10 digits",
    "registrations_status_check": 'Status must be either "single" or "couple"',
    "registrations_payment_status_check": "Payment status is invalid",
}

_SCHEMA_ERRORS = (
    errors.CheckViolation,
    errors.NotNullViolation,
    psycopg.DataError,
)


@asynccontextmanager
async def _storage_errors(operation: str) -> AsyncIterator[None]:
    """Translate psycopg exceptions raised inside the block into the domain taxonomy."""
    try:
        yield
    except errors.UniqueViolation as e:
        raise UniqueConstraintError(
            f"{operation}: unique constraint {e.diag.constraint_name} violated"
        ) from e
    except _SCHEMA_ERRORS as e:
        message = _CONSTRAINT_MESSAGES.get(e.diag.constraint_name or "", "Invalid registration data")
        raise SchemaValidationError(message) from e
    except (psycopg.OperationalError, PoolTimeout) as e:
        logger.error("Database unavailable during %s: %s", operation, e)
        raise StorageConnectionError(f"{operation}: database unavailable") from e
    except psycopg.Error as e:
        logger.error("Database error during %s: %s", operation, e)
        raise StorageError(f"{operation}: database error") from e


def _to_registration(row: dict[str, Any]) -> Registration:
    return Registration(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        phone=row["phone"],
        status=AttendanceStatus(row["status"]),
        payment_status=PaymentStatus(row["payment_status"]),
        registration_date=row["registration_date"],
        source_address=row["source_address"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresRegistrationRepository:
    """
    Implements RegistrationRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 AsyncConnectionPool for database connections
        """
        self._pool = pool

    async def find_by_email(self, email: str) -> Registration | None:
        sql = f"SELECT {_COLUMNS} FROM registrations WHERE email = %s"

        async with (
            _storage_errors("find_by_email"),
            self._pool.connection() as conn,
            conn.cursor(row_factory=dict_row) as cursor,
        ):
            await cursor.execute(sql, (email,))
            row = await cursor.fetchone()

        return _to_registration(row) if row is not None else None

    async def create(self, registration: Registration) -> Registration:
        """
        Insert a registration in a single statement.

        created_at/updated_at come from the database. The INSERT either
        commits completely or raises; there is no partial row.
        """
        sql = f"""
            INSERT INTO registrations (
                id, name, email, phone, status, payment_status,
                registration_date, source_address
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {_COLUMNS}
        """
        params = (
            registration.id,
            registration.name,
            registration.email,
            registration.phone,
            registration.status.value,
            registration.payment_status.value,
            registration.registration_date,
            registration.source_address,
        )

        async with (
            _storage_errors("create"),
            self._pool.connection() as conn,
            conn.cursor(row_factory=dict_row) as cursor,
        ):
            await cursor.execute(sql, params)
            row = await cursor.fetchone()

        if row is None:
            raise StorageError("create: INSERT returned no row")
        return _to_registration(row)

    async def count(self, criteria: RegistrationFilter | None = None) -> int:
        clauses: list[str] = []
        params: list[Any] = []
        if criteria is not None:
            if criteria.status is not None:
                clauses.append("status = %s")
                params.append(criteria.status.value)
            if criteria.registered_since is not None:
                clauses.append("registration_date >= %s")
                params.append(criteria.registered_since)

        sql = "SELECT COUNT(*) FROM registrations"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)

        async with (
            _storage_errors("count"),
            self._pool.connection() as conn,
            conn.cursor() as cursor,
        ):
            await cursor.execute(sql, params)
            row = await cursor.fetchone()

        return int(row[0]) if row is not None else 0

    async def ping(self) -> None:
        async with _storage_errors("ping"), self._pool.connection() as conn:
            await conn.execute("SELECT 1")


async def run_migrations(pool: AsyncConnectionPool) -> None:
    """
    Execute all SQL migration files shipped with this package.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 AsyncConnectionPool instance
    """
    if not MIGRATIONS_DIR.exists():
        logger.warning(f"Migrations directory not found: {MIGRATIONS_DIR}")
        return

    sql_files = sorted(MIGRATIONS_DIR.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            async with pool.connection() as conn:
                await conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
