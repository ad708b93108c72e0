"""
FastAPI Application Entry Point.

REST API server for Customer Service.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from config.settings import get_settings
from internal.infrastructure.kafka import CustomerEventPublisher, KafkaProducer
from internal.infrastructure.metrics import record_breaker_state, record_downstream_outcome
from internal.infrastructure.postgres import PostgresCustomerRepository, create_pool
from internal.infrastructure.product_client import ProductServiceClient
from internal.infrastructure.redis import CustomerCacheService, RedisCache
from internal.transport.http.app import create_app
from internal.transport.http.v1.banking import set_banking_services
from internal.transport.http.v1.handlers import set_dependencies
from internal.usecase import (
    CustomerService,
    DebitCardService,
    PaymentService,
    ProductEligibilityValidator,
    ReportService,
)
from pkg.logger.logger import get_logger, setup_logging
from pkg.resilience import BackgroundTaskRunner, CircuitBreakerRegistry, ResilienceOperator


# Load environment variables
load_dotenv()

settings = get_settings()

# Setup logging
setup_logging(
    level=settings.log_level,
    json_format=settings.log_format == "json",
    service=settings.app_name,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown of resources.
    """
    logger.info("Starting Customer Service API...")

    # Initialize database pool
    try:
        db_pool = await create_pool(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
        logger.info("Database pool created")
    except Exception as e:
        logger.error("Failed to create database pool", error=str(e))
        raise

    # Initialize Redis cache
    redis_cache = RedisCache(
        redis_url=settings.redis_url,
        default_ttl=settings.cache_ttl_seconds,
        max_jitter=settings.cache_max_jitter_seconds,
    )
    try:
        await redis_cache.connect()
    except Exception as e:
        logger.warning("Failed to connect to Redis, caching disabled", error=str(e))
        redis_cache = None

    # Initialize Kafka producer
    producer = KafkaProducer(
        bootstrap_servers=settings.kafka_bootstrap_servers,
        client_id=settings.kafka_client_id,
    )
    try:
        await producer.start()
    except Exception as e:
        logger.warning("Failed to start Kafka producer, events disabled", error=str(e))
        producer = None

    # Product service client and resilience
    product_client = ProductServiceClient(settings.product_service_base_url)
    await product_client.start()

    breakers = CircuitBreakerRegistry(
        on_state_change=record_breaker_state,
        **settings.circuit_breaker_defaults(),
    )
    breaker = breakers.circuit_breaker(settings.circuit_breaker_name)
    operator = ResilienceOperator(
        timeout=settings.product_service_timeout_seconds,
        on_outcome=record_downstream_outcome,
    )
    runner = BackgroundTaskRunner()

    # Create use cases
    customer_service = CustomerService(
        repository=PostgresCustomerRepository(db_pool),
        products=product_client,
        operator=operator,
        breaker=breaker,
        validator=ProductEligibilityValidator(),
        cache=CustomerCacheService(redis_cache, ttl=settings.cache_ttl_seconds) if redis_cache else None,
        publisher=CustomerEventPublisher(producer, topic=settings.kafka_customer_events_topic) if producer else None,
        runner=runner,
    )

    # Set dependencies for handlers
    set_dependencies(
        customer_service=customer_service,
        db_pool=db_pool,
        cache=redis_cache,
        producer=producer,
        breakers=breakers,
    )
    set_banking_services(
        debit_cards=DebitCardService(product_client, operator, breaker),
        payments=PaymentService(product_client, operator, breaker),
        reports=ReportService(product_client, operator, breaker),
    )

    logger.info("Customer Service API started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Customer Service API...")

    await runner.drain(timeout=5.0)
    await product_client.close()

    if producer:
        await producer.stop()

    if redis_cache:
        await redis_cache.disconnect()

    await db_pool.close()

    logger.info("Customer Service API shutdown complete")


app = create_app(
    lifespan=lifespan,
    cors_origins=settings.get_cors_origins(),
    service_name=settings.app_name,
)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
    )
