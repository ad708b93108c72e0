"""
FastAPI HTTP Handlers for Customer Service API v1.

Implements REST endpoints for customers and their products, plus health
and metrics.
"""

import json
from typing import Any, AsyncIterator, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import JSONResponse, Response, StreamingResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from internal.transport.http.dto import (
    AddProductRequest,
    CustomerCreateRequest,
    CustomerResponse,
    CustomerUpdateRequest,
    ErrorResponse,
    HealthResponse,
    ProductDTO,
)
from internal.usecase.customer_service import CustomerService
from pkg.logger.logger import get_logger
from pkg.resilience import CircuitBreakerRegistry

logger = get_logger(__name__)


router = APIRouter(prefix="/api/v1", tags=["customers"])


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    404: {"model": ErrorResponse, "description": "Customer not found"},
}


# Dependency injection container (simplified)
class Dependencies:
    """Container for handler dependencies."""

    customer_service: Optional[CustomerService] = None
    db_pool = None
    cache = None
    producer = None
    breakers: Optional[CircuitBreakerRegistry] = None


_deps = Dependencies()


def get_customer_service() -> CustomerService:
    """Get CustomerService instance."""
    if _deps.customer_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return _deps.customer_service


def set_dependencies(
    customer_service: CustomerService,
    db_pool=None,
    cache=None,
    producer=None,
    breakers: Optional[CircuitBreakerRegistry] = None,
) -> None:
    """
    Set handler dependencies.

    Called during application startup.
    """
    _deps.customer_service = customer_service
    _deps.db_pool = db_pool
    _deps.cache = cache
    _deps.producer = producer
    _deps.breakers = breakers


def stream_json_array(
    items: AsyncIterator[Any],
    to_dto: Callable[[Any], BaseModel],
) -> StreamingResponse:
    """
    Stream an async iterator as a JSON array without buffering it.

    Args:
        items: Domain objects to send.
        to_dto: Conversion to the response model.

    Returns:
        Streaming JSON response.
    """
    async def body() -> AsyncIterator[bytes]:
        yield b"["
        first = True
        async for item in items:
            payload = to_dto(item).model_dump(mode="json", by_alias=True)
            yield (b"" if first else b",") + json.dumps(payload).encode("utf-8")
            first = False
        yield b"]"

    return StreamingResponse(body(), media_type="application/json")


# Customer handlers
@router.get(
    "/customers",
    response_model=list[CustomerResponse],
    responses={200: {"description": "All customers"}},
)
async def list_customers(
    service: CustomerService = Depends(get_customer_service),
) -> StreamingResponse:
    """
    List every customer.

    The store is read with a cursor and streamed to the client.
    """
    logger.info("Listing customers")
    return stream_json_array(service.find_all(), CustomerResponse.from_domain)


@router.get(
    "/customers/{customer_id}",
    response_model=CustomerResponse,
    responses=ERROR_RESPONSES,
)
async def get_customer(
    customer_id: str = Path(..., min_length=1),
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    """
    Get a customer by id.

    Args:
        customer_id: Customer identifier.
        service: Injected customer service.

    Returns:
        Customer data.
    """
    customer = await service.find_by_id(customer_id)
    return CustomerResponse.from_domain(customer)


@router.post(
    "/customers",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Customer created"},
        400: {"model": ErrorResponse, "description": "Validation error"},
        409: {"model": ErrorResponse, "description": "DNI already exists"},
    },
)
async def create_customer(
    request: CustomerCreateRequest,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    """
    Register a customer.

    Args:
        request: Customer creation request.
        service: Injected customer service.

    Returns:
        Created customer with its assigned id.
    """
    logger.info("Creating customer", customer_type=request.customer_type.value)
    customer = await service.create(request.to_domain())
    return CustomerResponse.from_domain(customer)


@router.put(
    "/customers/{customer_id}",
    response_model=CustomerResponse,
    responses=ERROR_RESPONSES,
)
async def update_customer(
    request: CustomerUpdateRequest,
    customer_id: str = Path(..., min_length=1),
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    """
    Update contact and name fields of a customer.

    Args:
        request: Fields to change.
        customer_id: Customer identifier.
        service: Injected customer service.

    Returns:
        Updated customer.
    """
    logger.info("Updating customer", customer_id=customer_id)
    customer = await service.update(customer_id, request.to_domain())
    return CustomerResponse.from_domain(customer)


@router.delete(
    "/customers/{customer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Customer not found"}},
)
async def delete_customer(
    customer_id: str = Path(..., min_length=1),
    service: CustomerService = Depends(get_customer_service),
) -> Response:
    """Delete a customer."""
    logger.info("Deleting customer", customer_id=customer_id)
    await service.delete(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Product handlers
@router.get(
    "/customers/{customer_id}/products",
    response_model=list[ProductDTO],
    responses={404: {"model": ErrorResponse, "description": "Customer not found"}},
)
async def get_customer_products(
    customer_id: str = Path(..., min_length=1),
    service: CustomerService = Depends(get_customer_service),
) -> StreamingResponse:
    """
    Live product portfolio of a customer.

    An unavailable product service yields an empty list.
    """
    products = await service.get_products(customer_id)
    return stream_json_array(products, ProductDTO.from_domain)


@router.post(
    "/customers/{customer_id}/products",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"model": ErrorResponse, "description": "Rejected by an eligibility rule"},
        404: {"model": ErrorResponse, "description": "Customer not found"},
        424: {"model": ErrorResponse, "description": "Product service unavailable"},
    },
)
async def add_product(
    request: AddProductRequest,
    customer_id: str = Path(..., min_length=1),
    service: CustomerService = Depends(get_customer_service),
) -> Response:
    """
    Add a product to a customer.

    Args:
        request: Candidate product.
        customer_id: Customer identifier.
        service: Injected customer service.
    """
    logger.info(
        "Adding product to customer",
        customer_id=customer_id,
        product_type=request.type.value,
        product_sub_type=request.sub_type.value,
    )
    await service.add_product(customer_id, request.to_domain())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/customers/{customer_id}/products/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Customer not found"},
        424: {"model": ErrorResponse, "description": "Product service unavailable"},
    },
)
async def remove_product(
    customer_id: str = Path(..., min_length=1),
    product_id: str = Path(..., min_length=1),
    service: CustomerService = Depends(get_customer_service),
) -> Response:
    """Remove a product from a customer."""
    logger.info("Removing product from customer", customer_id=customer_id, product_id=product_id)
    await service.remove_product(customer_id, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Operational endpoints
@router.get("/health", response_model=HealthResponse)
async def health_check() -> JSONResponse:
    """
    Health check endpoint.

    The service is unhealthy only when the database is unreachable; cache
    and event channel outages degrade it.

    Returns:
        Health status of each dependency.
    """
    database = "down"
    if _deps.db_pool is not None:
        try:
            async with _deps.db_pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            database = "up"
        except Exception as e:
            logger.warning("Database health check failed", error=str(e))

    cache = "disabled"
    if _deps.cache is not None:
        cache = "up" if await _deps.cache.ping() else "down"

    events = "disabled"
    if _deps.producer is not None:
        events = "up" if _deps.producer.started else "down"

    breakers = {}
    if _deps.breakers is not None:
        breakers = {b.name: b.state.value for b in _deps.breakers.all()}

    if database != "up":
        overall = "unhealthy"
    elif cache == "down" or events == "down":
        overall = "degraded"
    else:
        overall = "healthy"

    body = HealthResponse(
        status=overall,
        database=database,
        cache=cache,
        events=events,
        circuit_breakers=breakers,
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE if overall == "unhealthy" else status.HTTP_200_OK,
        content=body.model_dump(),
    )


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
