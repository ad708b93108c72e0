"""
Payment Use Case.

Pays credit products through the product service.
"""
from typing import Protocol

from internal.domain.operations import PAYMENT_FAILED, PaymentRequest, PaymentResponse
from pkg.logger.logger import get_logger
from pkg.resilience import CircuitBreaker, DownstreamUnavailableError, ResilienceOperator


logger = get_logger(__name__)


PAYMENT_UNAVAILABLE_MESSAGE = "Payment could not be processed: product service unavailable"


class PaymentGateway(Protocol):
    """Protocol for the product service payment operation."""

    async def pay_credit_product(self, payment: PaymentRequest) -> PaymentResponse:
        ...


class PaymentService:
    """
    Credit product payments.

    A failed downstream call never raises: it degrades to a response with
    status FAILED.
    """

    def __init__(
        self,
        products: PaymentGateway,
        operator: ResilienceOperator,
        breaker: CircuitBreaker,
    ) -> None:
        self._products = products
        self._operator = operator
        self._breaker = breaker

    async def pay_credit_product(self, customer_id: str, payment: PaymentRequest) -> PaymentResponse:
        """
        Pay a credit product on behalf of a customer.

        Args:
            customer_id: Paying customer.
            payment: Target product, amount and optional source account.

        Returns:
            The product service response, or a FAILED response.
        """
        try:
            response = await self._operator.call(
                lambda: self._products.pay_credit_product(payment),
                self._breaker,
            )
        except DownstreamUnavailableError as e:
            logger.error(
                "Payment processing failed",
                customer_id=customer_id,
                target_product_id=payment.target_product_id,
                error=repr(e.cause),
            )
            return PaymentResponse(status=PAYMENT_FAILED, message=PAYMENT_UNAVAILABLE_MESSAGE)

        logger.debug(
            "Payment processed",
            customer_id=customer_id,
            target_product_id=payment.target_product_id,
        )
        return response
