"""
Customer Service Use Case.

Orchestrates customer CRUD and product association: the store is the
ordering anchor, the cache and the event channel are best-effort side
effects, and every product service call goes through the resilience
operator.
"""
from typing import AsyncIterator, Optional, Protocol

from internal.domain.customer import Customer, Product
from internal.domain.errors import (
    BusinessRuleViolationError,
    CustomerAlreadyExistsError,
    CustomerNotFoundError,
    DomainValidationError,
    ProductServiceUnavailableError,
)
from internal.domain.value_objects import CustomerEventType
from internal.infrastructure.metrics import PRODUCT_RULE_REJECTIONS
from internal.usecase.product_eligibility import ProductEligibilityValidator
from pkg.logger.logger import get_logger
from pkg.resilience import (
    BackgroundTaskRunner,
    CircuitBreaker,
    DownstreamUnavailableError,
    ResilienceOperator,
)


logger = get_logger(__name__)


class CustomerRepository(Protocol):
    """Protocol for the customer store."""

    def find_all(self) -> AsyncIterator[Customer]:
        """Stream every customer."""
        ...

    async def find_by_id(self, customer_id: str) -> Optional[Customer]:
        """Get customer by id."""
        ...

    async def save(self, customer: Customer) -> Customer:
        """Upsert by id, assigning one when absent."""
        ...

    async def delete_by_id(self, customer_id: str) -> None:
        """Hard delete."""
        ...

    async def exists_by_dni(self, dni: Optional[str]) -> bool:
        """Check national ID uniqueness."""
        ...


class CustomerCache(Protocol):
    """Protocol for customer cache operations."""

    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        ...

    async def set_customer(self, customer: Customer) -> bool:
        ...

    async def evict_customer(self, customer_id: str) -> bool:
        ...


class EventPublisher(Protocol):
    """Protocol for the lifecycle event emitter."""

    async def publish(self, event_type: CustomerEventType, customer: Customer) -> bool:
        """Publish an event; never raises."""
        ...


class ProductGateway(Protocol):
    """Protocol for the product service operations used here."""

    def get_customer_products(self, customer_id: str) -> AsyncIterator[Product]:
        ...

    async def create_product(self, customer_id: str, product: Product) -> None:
        ...

    async def delete_product(self, product_id: str, customer_id: str) -> None:
        ...


class CustomerService:
    """
    Customer orchestrator.

    Reads go cache first; writes refresh or evict the cache entry before
    returning; lifecycle events are published in the background and their
    failures never reach the caller. Cache and publisher are optional so the
    service keeps working when Redis or Kafka are down at startup.
    """

    def __init__(
        self,
        repository: CustomerRepository,
        products: ProductGateway,
        operator: ResilienceOperator,
        breaker: CircuitBreaker,
        validator: Optional[ProductEligibilityValidator] = None,
        cache: Optional[CustomerCache] = None,
        publisher: Optional[EventPublisher] = None,
        runner: Optional[BackgroundTaskRunner] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            repository: Customer store.
            products: Product service client.
            operator: Resilience operator for product service calls.
            breaker: Breaker guarding the product service.
            validator: Eligibility rules for product additions.
            cache: Customer cache, or None to read the store directly.
            publisher: Lifecycle event emitter, or None to skip events.
            runner: Runner for fire-and-forget side effects.
        """
        self._repository = repository
        self._products = products
        self._operator = operator
        self._breaker = breaker
        self._validator = validator or ProductEligibilityValidator()
        self._cache = cache
        self._publisher = publisher
        self._runner = runner or BackgroundTaskRunner()

    def find_all(self) -> AsyncIterator[Customer]:
        """
        Stream every customer from the store.

        Returns:
            Async iterator over customers.
        """
        return self._repository.find_all()

    async def find_by_id(self, customer_id: str) -> Customer:
        """
        Cache-aside read.

        On a miss the store is read and the cache is populated in the
        background.

        Args:
            customer_id: Customer identifier.

        Returns:
            The customer.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
        """
        if self._cache is not None:
            cached = await self._cache.get_customer(customer_id)
            if cached is not None:
                return cached

        customer = await self._load(customer_id)
        if self._cache is not None:
            self._runner.spawn(
                self._cache.set_customer(customer),
                name=f"cache-populate:{customer_id}",
            )
        return customer

    async def create(self, customer: Customer) -> Customer:
        """
        Register a new customer.

        Args:
            customer: Customer to create; any id it carries is ignored.

        Returns:
            The persisted customer with its assigned id.

        Raises:
            CustomerAlreadyExistsError: If the dni is already registered.
        """
        if await self._repository.exists_by_dni(customer.dni):
            logger.warning("Rejected duplicate dni on create")
            raise CustomerAlreadyExistsError(customer.dni or "")

        candidate = customer.copy()
        candidate.id = None
        saved = await self._repository.save(candidate)
        logger.info("Customer created", customer_id=saved.id)

        self._emit(CustomerEventType.CREATED, saved)
        await self._refresh_cache(saved)
        return saved

    async def update(self, customer_id: str, changes: Customer) -> Customer:
        """
        Update contact and name fields of a customer.

        Id, type, profile, dni, ruc and products are never taken from
        ``changes``.

        Args:
            customer_id: Customer identifier.
            changes: Incoming values; None fields are left untouched.

        Returns:
            The updated customer.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
        """
        existing = await self._load(customer_id)
        existing.apply_update(changes)
        saved = await self._repository.save(existing)
        logger.info("Customer updated", customer_id=customer_id)

        self._emit(CustomerEventType.UPDATED, saved)
        await self._refresh_cache(saved)
        return saved

    async def delete(self, customer_id: str) -> None:
        """
        Hard-delete a customer.

        The DELETED event is dispatched from the pre-delete snapshot before
        the store delete runs.

        Args:
            customer_id: Customer identifier.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
        """
        existing = await self._load(customer_id)
        self._emit(CustomerEventType.DELETED, existing)
        await self._repository.delete_by_id(customer_id)
        if self._cache is not None:
            try:
                await self._cache.evict_customer(customer_id)
            except Exception as e:
                logger.error("Cache eviction failed", customer_id=customer_id, error=str(e))
        logger.info("Customer deleted", customer_id=customer_id)

    async def add_product(self, customer_id: str, product: Optional[Product]) -> None:
        """
        Add a product to a customer through the product service.

        The live portfolio is fetched from the product service and checked
        against the eligibility rules before the product is created there.
        The local product list is left alone.

        Args:
            customer_id: Customer identifier.
            product: Candidate product.

        Raises:
            DomainValidationError: If the product is missing.
            CustomerNotFoundError: If the customer does not exist.
            BusinessRuleViolationError: If an eligibility rule rejects it.
            ProductServiceUnavailableError: If the product service fails.
        """
        if product is None:
            raise DomainValidationError("Product data missing")

        customer = await self._load(customer_id)

        async def fetch_portfolio() -> list[Product]:
            return [p async for p in self._products.get_customer_products(customer_id)]

        existing = await self._guarded(fetch_portfolio, "fetching existing products")

        try:
            self._validator.validate(
                customer.customer_type,
                customer.profile,
                product.type,
                product.sub_type,
                existing or [],
            )
        except BusinessRuleViolationError as e:
            PRODUCT_RULE_REJECTIONS.labels(rule=e.rule).inc()
            logger.warning(
                "Product rejected by eligibility rule",
                customer_id=customer_id,
                rule=e.rule,
                product_type=product.type,
                product_sub_type=product.sub_type,
            )
            raise

        await self._guarded(
            lambda: self._products.create_product(customer_id, product),
            "creating product",
        )
        logger.info(
            "Product added to customer",
            customer_id=customer_id,
            product_type=product.type,
            product_sub_type=product.sub_type,
        )

    async def remove_product(self, customer_id: str, product_id: str) -> None:
        """
        Remove a product from a customer through the product service.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
            ProductServiceUnavailableError: If the product service fails.
        """
        await self._load(customer_id)
        await self._guarded(
            lambda: self._products.delete_product(product_id, customer_id),
            "removing product",
        )
        logger.info("Product removed from customer", customer_id=customer_id, product_id=product_id)

    async def get_products(self, customer_id: str) -> AsyncIterator[Product]:
        """
        Live portfolio of a customer.

        The customer lookup fails closed; the portfolio stream fails open and
        ends empty when the product service misbehaves.

        Args:
            customer_id: Customer identifier.

        Returns:
            Async iterator over the customer's products.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
        """
        await self._load(customer_id)
        return self._operator.stream(
            lambda: self._products.get_customer_products(customer_id),
            self._breaker,
        )

    async def _load(self, customer_id: str) -> Customer:
        customer = await self._repository.find_by_id(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    async def _guarded(self, operation, description: str):
        try:
            return await self._operator.call(operation, self._breaker)
        except DownstreamUnavailableError as e:
            raise ProductServiceUnavailableError(description, breaker=e.breaker_name) from e

    def _emit(self, event_type: CustomerEventType, customer: Customer) -> None:
        if self._publisher is None:
            return
        self._runner.spawn(
            self._publisher.publish(event_type, customer.copy()),
            name=f"customer-event:{event_type.value}:{customer.id}",
        )

    async def _refresh_cache(self, customer: Customer) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set_customer(customer)
        except Exception as e:
            logger.error("Cache refresh failed", customer_id=customer.id, error=str(e))
