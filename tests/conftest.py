"""
Pytest configuration and fixtures.
"""
from typing import AsyncIterator, Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest

from internal.domain.customer import Customer
from internal.usecase.customer_service import CustomerService
from pkg.resilience import BackgroundTaskRunner, CircuitBreaker, ResilienceOperator


async def aiter_of(items: Iterable) -> AsyncIterator:
    """Async iterator over a plain iterable."""
    for item in items:
        yield item


@pytest.fixture
def personal_customer() -> Customer:
    """Persisted personal/standard customer."""
    return Customer(
        id="c-1",
        customer_type="PERSONAL",
        profile="STANDARD",
        first_name="Ana",
        last_name="Torres",
        dni="12345678",
        address="Av. Arequipa 123",
        phone="987654321",
        email="ana.torres@example.com",
    )


@pytest.fixture
def business_customer() -> Customer:
    """Persisted business/PYME customer."""
    return Customer(
        id="c-2",
        customer_type="BUSINESS",
        profile="PYME",
        first_name="Luis",
        last_name="Rojas",
        business_name="Rojas SAC",
        dni="87654321",
        ruc="20123456789",
        phone="912345678",
        email="contacto@rojas.pe",
    )


@pytest.fixture
def mock_repository():
    """Customer store mock; save echoes the customer with an id."""
    repo = MagicMock()
    repo.find_by_id = AsyncMock(return_value=None)
    repo.exists_by_dni = AsyncMock(return_value=False)
    repo.delete_by_id = AsyncMock(return_value=None)

    async def save(customer: Customer) -> Customer:
        saved = customer.copy()
        if saved.id is None:
            saved.id = "generated-id"
        return saved

    repo.save = AsyncMock(side_effect=save)
    repo.find_all = MagicMock(return_value=aiter_of([]))
    return repo


@pytest.fixture
def mock_products():
    """Product service client mock with an empty portfolio."""
    client = MagicMock()
    client.get_customer_products = MagicMock(side_effect=lambda customer_id: aiter_of([]))
    client.create_product = AsyncMock(return_value=None)
    client.delete_product = AsyncMock(return_value=None)
    return client


@pytest.fixture
def mock_cache():
    """Customer cache mock that always misses."""
    cache = MagicMock()
    cache.get_customer = AsyncMock(return_value=None)
    cache.set_customer = AsyncMock(return_value=True)
    cache.evict_customer = AsyncMock(return_value=True)
    return cache


@pytest.fixture
def mock_publisher():
    """Event emitter mock."""
    publisher = MagicMock()
    publisher.publish = AsyncMock(return_value=True)
    return publisher


@pytest.fixture
def breaker() -> CircuitBreaker:
    """Breaker evaluated from the second call, opening at 50% failures."""
    return CircuitBreaker(
        name="productService",
        failure_rate_threshold=50,
        sliding_window_size=4,
        minimum_number_of_calls=2,
        wait_duration=30,
    )


@pytest.fixture
def operator() -> ResilienceOperator:
    """Operator with a short timeout."""
    return ResilienceOperator(timeout=0.2)


@pytest.fixture
def runner() -> BackgroundTaskRunner:
    return BackgroundTaskRunner()


@pytest.fixture
def customer_service(
    mock_repository,
    mock_products,
    operator,
    breaker,
    mock_cache,
    mock_publisher,
    runner,
) -> CustomerService:
    """Customer service wired to mocks."""
    return CustomerService(
        repository=mock_repository,
        products=mock_products,
        operator=operator,
        breaker=breaker,
        cache=mock_cache,
        publisher=mock_publisher,
        runner=runner,
    )
