"""
PostgreSQL Customer Repository.

Customer Store backed by a document-style JSONB table, using asyncpg.
"""

import json
from typing import AsyncIterator, Optional
from uuid import uuid4

import asyncpg
from asyncpg import Pool

from internal.domain.customer import Customer
from internal.domain.errors import CustomerAlreadyExistsError
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class PostgresCustomerRepository:
    """
    PostgreSQL implementation of the Customer Store.

    Each row holds the whole customer snapshot in ``document``; ``dni`` is
    duplicated into its own column to enforce uniqueness.
    """

    def __init__(self, pool: Pool, fetch_batch_size: int = 100) -> None:
        """
        Initialize the repository.

        Args:
            pool: asyncpg connection pool.
            fetch_batch_size: Rows prefetched per cursor round trip.
        """
        self._pool = pool
        self._fetch_batch_size = fetch_batch_size

    async def find_all(self) -> AsyncIterator[Customer]:
        """
        Stream every customer.

        Yields:
            Customers in insertion order.
        """
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                cursor = conn.cursor(
                    """
                    SELECT document
                    FROM customers
                    ORDER BY created_at, id
                    """,
                    prefetch=self._fetch_batch_size,
                )
                async for row in cursor:
                    yield self._row_to_entity(row)

    async def find_by_id(self, customer_id: str) -> Optional[Customer]:
        """
        Get a customer by id.

        Args:
            customer_id: Customer identifier.

        Returns:
            Customer if found, None otherwise.
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT document
                FROM customers
                WHERE id = $1
                """,
                customer_id,
            )

            if not row:
                return None

            return self._row_to_entity(row)

    async def exists_by_dni(self, dni: Optional[str]) -> bool:
        """
        Check whether a national ID is already registered.

        Args:
            dni: National ID.

        Returns:
            True if a customer holds this dni.
        """
        if dni is None:
            return False

        async with self._pool.acquire() as conn:
            return bool(
                await conn.fetchval(
                    "SELECT EXISTS(SELECT 1 FROM customers WHERE dni = $1)",
                    dni,
                )
            )

    async def save(self, customer: Customer) -> Customer:
        """
        Insert or replace a customer by id.

        A customer without id gets a new one.

        Args:
            customer: Customer to persist.

        Returns:
            The persisted customer, id included.

        Raises:
            CustomerAlreadyExistsError: If another customer holds the dni.
        """
        saved = customer.copy()
        if saved.id is None:
            saved.id = str(uuid4())

        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO customers (id, dni, document, created_at, updated_at)
                    VALUES ($1, $2, $3::jsonb, NOW(), NOW())
                    ON CONFLICT (id) DO UPDATE
                    SET dni = EXCLUDED.dni,
                        document = EXCLUDED.document,
                        updated_at = NOW()
                    """,
                    saved.id,
                    saved.dni,
                    json.dumps(saved.to_dict()),
                )
        except asyncpg.UniqueViolationError as e:
            logger.warning("Duplicate dni on save", customer_id=saved.id, error=str(e))
            raise CustomerAlreadyExistsError(saved.dni or "") from e

        return saved

    async def delete_by_id(self, customer_id: str) -> None:
        """
        Hard-delete a customer.

        Args:
            customer_id: Customer identifier.
        """
        async with self._pool.acquire() as conn:
            await conn.execute("DELETE FROM customers WHERE id = $1", customer_id)

    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> Customer:
        document = row["document"]
        if isinstance(document, str):
            document = json.loads(document)
        return Customer.from_dict(document)


async def create_pool(dsn: str, min_size: int = 2, max_size: int = 10) -> Pool:
    """
    Create an asyncpg connection pool.

    Args:
        dsn: Database connection string.
        min_size: Minimum pool size.
        max_size: Maximum pool size.

    Returns:
        asyncpg connection pool.
    """
    return await asyncpg.create_pool(
        dsn=dsn,
        min_size=min_size,
        max_size=max_size,
    )
