"""
Unit tests for debit card, payment and report use cases.
"""
import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from internal.domain.errors import DomainValidationError, ProductServiceUnavailableError
from internal.domain.operations import (
    PAYMENT_FAILED,
    DebitCardBalance,
    PaymentRequest,
    PaymentResponse,
    ProductReport,
)
from internal.usecase import DebitCardService, PaymentService, ReportService


async def collect(iterator):
    return [item async for item in iterator]


@pytest.fixture
def gateway():
    gateway = MagicMock()
    gateway.associate_debit_card = AsyncMock(return_value="Debit card associated")
    gateway.get_main_account_id = AsyncMock(return_value="acc-1")
    gateway.get_debit_card_balance = AsyncMock(
        return_value=DebitCardBalance(card_id="card-1", product_id="acc-1", balance=99.9)
    )
    gateway.pay_credit_product = AsyncMock(
        return_value=PaymentResponse(status="COMPLETED", transaction_id="t-1")
    )
    return gateway


class TestDebitCardService:
    """Debit card calls fail closed."""

    @pytest.fixture
    def service(self, gateway, operator, breaker) -> DebitCardService:
        return DebitCardService(gateway, operator, breaker)

    @pytest.mark.asyncio
    async def test_associate_builds_association(self, service, gateway):
        message = await service.associate_debit_card("c-1", "card-1", ["acc-1", "acc-2"])

        assert message == "Debit card associated"
        customer_id, association = gateway.associate_debit_card.await_args.args
        assert customer_id == "c-1"
        assert association.account_ids == ["acc-1", "acc-2"]

    @pytest.mark.asyncio
    async def test_main_account_and_balance(self, service):
        assert await service.get_main_account_id("c-1", "card-1") == "acc-1"
        balance = await service.get_main_account_balance("acc-1", "card-1")
        assert balance.balance == 99.9

    @pytest.mark.asyncio
    async def test_failure_names_operation(self, service, gateway):
        gateway.get_main_account_id.side_effect = ConnectionError("refused")

        with pytest.raises(ProductServiceUnavailableError) as exc_info:
            await service.get_main_account_id("c-1", "card-1")

        assert exc_info.value.operation == "resolving main account"

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self, service, gateway):
        async def slow(*args):
            await asyncio.sleep(1)

        gateway.get_debit_card_balance.side_effect = slow

        with pytest.raises(ProductServiceUnavailableError) as exc_info:
            await service.get_main_account_balance("acc-1", "card-1")

        assert exc_info.value.operation == "retrieving balance"


class TestPaymentService:
    """Payments degrade to a FAILED response."""

    @pytest.fixture
    def service(self, gateway, operator, breaker) -> PaymentService:
        return PaymentService(gateway, operator, breaker)

    @pytest.mark.asyncio
    async def test_successful_payment(self, service, gateway):
        payment = PaymentRequest(target_product_id="cc-1", amount=50.0)

        response = await service.pay_credit_product("c-1", payment)

        assert response.status == "COMPLETED"
        gateway.pay_credit_product.assert_awaited_once_with(payment)

    @pytest.mark.asyncio
    async def test_failure_returns_failed_status(self, service, gateway):
        gateway.pay_credit_product.side_effect = ConnectionError("refused")

        response = await service.pay_credit_product("c-1", PaymentRequest("cc-1", 50.0))

        assert response.status == PAYMENT_FAILED
        assert response.failed is True
        assert response.message


class TestReportService:
    """Reports validate the range and fail open."""

    @pytest.fixture
    def service(self, gateway, operator, breaker) -> ReportService:
        return ReportService(gateway, operator, breaker)

    def test_inverted_range_rejected(self, service, gateway):
        with pytest.raises(DomainValidationError):
            service.generate_product_report(date(2024, 2, 1), date(2024, 1, 1))
        gateway.product_report.assert_not_called()

    @pytest.mark.asyncio
    async def test_streams_lines(self, service, gateway):
        async def lines(date_from, date_to):
            yield ProductReport(product_id="p-1")
            yield ProductReport(product_id="p-2")

        gateway.product_report = MagicMock(side_effect=lines)

        reports = await collect(service.generate_product_report(date(2024, 1, 1), date(2024, 1, 1)))

        assert [r.product_id for r in reports] == ["p-1", "p-2"]

    @pytest.mark.asyncio
    async def test_failure_yields_empty(self, service, gateway):
        async def broken(date_from, date_to):
            raise ConnectionError("refused")
            yield  # pragma: no cover

        gateway.product_report = MagicMock(side_effect=broken)

        assert await collect(service.generate_product_report(date(2024, 1, 1), date(2024, 1, 31))) == []
