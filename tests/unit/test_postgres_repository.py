"""
Unit tests for the PostgreSQL customer store, against a mocked pool.
"""
import json
from typing import AsyncIterator, Iterable
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from internal.domain.errors import CustomerAlreadyExistsError
from internal.infrastructure.postgres import PostgresCustomerRepository


async def aiter_of(items: Iterable) -> AsyncIterator:
    for item in items:
        yield item


@pytest.fixture
def conn():
    conn = MagicMock()
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=False)
    conn.execute = AsyncMock(return_value="OK")
    return conn


@pytest.fixture
def pool(conn):
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    return pool


@pytest.fixture
def repository(pool) -> PostgresCustomerRepository:
    return PostgresCustomerRepository(pool, fetch_batch_size=10)


class TestPostgresCustomerRepository:
    """Tests for the customer store."""

    @pytest.mark.asyncio
    async def test_save_assigns_id(self, repository, conn, personal_customer):
        personal_customer.id = None

        saved = await repository.save(personal_customer)

        assert saved.id is not None
        assert personal_customer.id is None
        args = conn.execute.await_args.args
        assert args[1] == saved.id
        assert args[2] == "12345678"
        assert json.loads(args[3])["email"] == "ana.torres@example.com"

    @pytest.mark.asyncio
    async def test_save_keeps_existing_id(self, repository, personal_customer):
        saved = await repository.save(personal_customer)
        assert saved.id == "c-1"

    @pytest.mark.asyncio
    async def test_unique_violation_is_duplicate_dni(self, repository, conn, personal_customer):
        conn.execute.side_effect = asyncpg.UniqueViolationError("duplicate key value")

        with pytest.raises(CustomerAlreadyExistsError):
            await repository.save(personal_customer)

    @pytest.mark.asyncio
    async def test_find_by_id_decodes_text_document(self, repository, conn, personal_customer):
        conn.fetchrow.return_value = {"document": json.dumps(personal_customer.to_dict())}

        found = await repository.find_by_id("c-1")

        assert found == personal_customer

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, repository):
        assert await repository.find_by_id("nope") is None

    @pytest.mark.asyncio
    async def test_exists_by_dni(self, repository, conn):
        conn.fetchval.return_value = True
        assert await repository.exists_by_dni("12345678") is True

    @pytest.mark.asyncio
    async def test_exists_by_missing_dni_skips_query(self, repository, conn):
        assert await repository.exists_by_dni(None) is False
        conn.fetchval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_find_all_streams_cursor(self, repository, conn, personal_customer, business_customer):
        rows = [{"document": personal_customer.to_dict()}, {"document": business_customer.to_dict()}]
        conn.cursor = MagicMock(return_value=aiter_of(rows))

        customers = [c async for c in repository.find_all()]

        assert [c.id for c in customers] == ["c-1", "c-2"]
        assert conn.cursor.call_args.kwargs["prefetch"] == 10

    @pytest.mark.asyncio
    async def test_delete_by_id(self, repository, conn):
        await repository.delete_by_id("c-1")
        assert conn.execute.await_args.args[1] == "c-1"
