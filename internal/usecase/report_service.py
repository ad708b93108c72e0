"""
Report Use Case.

Product reports relayed from the product service.
"""
from datetime import date
from typing import AsyncIterator, Protocol

from internal.domain.errors import DomainValidationError
from internal.domain.operations import ProductReport
from pkg.resilience import CircuitBreaker, ResilienceOperator


class ReportGateway(Protocol):
    """Protocol for the product service report operation."""

    def product_report(self, date_from: date, date_to: date) -> AsyncIterator[ProductReport]:
        ...


class ReportService:
    """Product reports; the stream fails open."""

    def __init__(
        self,
        products: ReportGateway,
        operator: ResilienceOperator,
        breaker: CircuitBreaker,
    ) -> None:
        self._products = products
        self._operator = operator
        self._breaker = breaker

    def generate_product_report(self, date_from: date, date_to: date) -> AsyncIterator[ProductReport]:
        """
        Stream report lines for a date range.

        Args:
            date_from: First day, inclusive.
            date_to: Last day, inclusive.

        Returns:
            Async iterator over report lines, empty if the product service fails.

        Raises:
            DomainValidationError: If the range is inverted.
        """
        if date_from > date_to:
            raise DomainValidationError("'from' date must not be after 'to' date")
        return self._operator.stream(
            lambda: self._products.product_report(date_from, date_to),
            self._breaker,
        )
