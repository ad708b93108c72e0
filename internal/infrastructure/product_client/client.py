"""
HTTP client for the external product service.

Thin JSON-over-HTTP adapter. It raises on transport errors and non-2xx
responses; timeouts, breaker gating and failure translation belong to the
resilience operator wrapping each call.
"""
from datetime import date
from typing import Any, AsyncIterator, Optional

import httpx

from internal.domain.customer import Product
from internal.domain.operations import (
    DebitCardAssociation,
    DebitCardBalance,
    PaymentRequest,
    PaymentResponse,
    ProductReport,
)
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class ProductServiceClient:
    """
    Async client for the product service.

    One ``httpx.AsyncClient`` is shared by every call; open it with
    ``start()`` or pass a prepared client (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Product service root URL.
            client: Pre-built HTTP client, mostly for tests.
        """
        self._base_url = base_url.rstrip("/")
        self._client = client

    async def start(self) -> None:
        """Open the connection pool."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"Accept": "application/json"},
            )
            logger.info("Product service client started", base_url=self._base_url)

    async def close(self) -> None:
        """Close the connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Product service client closed")

    @property
    def http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Product service client not started")
        return self._client

    async def get_customer_products(self, customer_id: str) -> AsyncIterator[Product]:
        """
        Stream the live portfolio of a customer.

        Args:
            customer_id: Customer identifier.

        Yields:
            Products held by the customer.
        """
        for item in await self._get_list(f"/{customer_id}"):
            yield Product.from_dict(item)

    async def create_product(self, customer_id: str, product: Product) -> None:
        """
        Create a product for a customer.

        Args:
            customer_id: Owner of the new product.
            product: Category, type and subtype of the new product.
        """
        response = await self.http.post(
            "/",
            json={
                "customerId": customer_id,
                "category": product.category,
                "type": product.type,
                "subType": product.sub_type,
            },
        )
        response.raise_for_status()
        logger.debug("Product created", customer_id=customer_id, product_type=product.type)

    async def delete_product(self, product_id: str, customer_id: str) -> None:
        """
        Remove a product from a customer.

        Args:
            product_id: Product identifier.
            customer_id: Owner of the product.
        """
        response = await self.http.delete(f"/{product_id}/customers/{customer_id}")
        response.raise_for_status()
        logger.debug("Product removed", customer_id=customer_id, product_id=product_id)

    async def associate_debit_card(
        self,
        customer_id: str,
        association: DebitCardAssociation,
    ) -> str:
        """
        Link a debit card to accounts of a customer.

        Returns:
            Confirmation text from the product service.
        """
        response = await self.http.post(
            f"/customers/{customer_id}/debit-cards/associate",
            json=association.to_dict(),
        )
        response.raise_for_status()
        return response.text

    async def get_main_account_id(self, customer_id: str, card_id: str) -> str:
        """Return the id of the main account behind a debit card."""
        response = await self.http.get(
            f"/products/{customer_id}/debit-cards/{card_id}/main-account"
        )
        response.raise_for_status()
        return response.text.strip().strip('"')

    async def get_debit_card_balance(self, product_id: str, card_id: str) -> DebitCardBalance:
        """Return the balance of the account linked to a debit card."""
        response = await self.http.get(f"/products/{product_id}/debit-cards/{card_id}/balance")
        response.raise_for_status()
        return DebitCardBalance.from_dict(response.json())

    async def pay_credit_product(self, payment: PaymentRequest) -> PaymentResponse:
        """Pay a credit product."""
        response = await self.http.post(
            f"/products/{payment.target_product_id}/pay",
            json=payment.to_dict(),
        )
        response.raise_for_status()
        return PaymentResponse.from_dict(response.json())

    async def product_report(self, date_from: date, date_to: date) -> AsyncIterator[ProductReport]:
        """
        Stream the product report for a date range.

        Args:
            date_from: First day, inclusive.
            date_to: Last day, inclusive.

        Yields:
            Report lines.
        """
        items = await self._get_list(
            "/products/report",
            params={"from": date_from.isoformat(), "to": date_to.isoformat()},
        )
        for item in items:
            yield ProductReport.from_dict(item)

    async def _get_list(self, path: str, params: Optional[dict[str, str]] = None) -> list[dict[str, Any]]:
        response = await self.http.get(path, params=params)
        response.raise_for_status()
        if not response.content:
            return []
        payload = response.json()
        if isinstance(payload, dict):
            payload = [payload]
        return [item for item in payload if isinstance(item, dict)]
