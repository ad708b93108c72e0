"""
Banking API Handlers.

REST API endpoints relayed to the product service: debit cards, credit
product payments and product reports.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from fastapi.responses import StreamingResponse

from internal.transport.http.dto import (
    DebitCardAssociationRequest,
    DebitCardAssociationResponse,
    DebitCardBalanceResponse,
    ErrorResponse,
    MainAccountResponse,
    PaymentRequestDTO,
    PaymentResponseDTO,
    ProductReportDTO,
)
from internal.transport.http.v1.handlers import stream_json_array
from internal.usecase.debit_card_service import DebitCardService
from internal.usecase.payment_service import PaymentService
from internal.usecase.report_service import ReportService
from pkg.logger.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["banking"])


UNAVAILABLE = {424: {"model": ErrorResponse, "description": "Product service unavailable"}}


class BankingDependencies:
    """Container for banking handler dependencies."""

    debit_cards: Optional[DebitCardService] = None
    payments: Optional[PaymentService] = None
    reports: Optional[ReportService] = None


_deps = BankingDependencies()


def set_banking_services(
    debit_cards: DebitCardService,
    payments: PaymentService,
    reports: ReportService,
) -> None:
    """Set banking handler dependencies. Called during application startup."""
    _deps.debit_cards = debit_cards
    _deps.payments = payments
    _deps.reports = reports


def _require(service, name: str):
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} not initialized",
        )
    return service


def get_debit_card_service() -> DebitCardService:
    return _require(_deps.debit_cards, "Debit card service")


def get_payment_service() -> PaymentService:
    return _require(_deps.payments, "Payment service")


def get_report_service() -> ReportService:
    return _require(_deps.reports, "Report service")


# --- Debit cards ---

@router.post(
    "/customers/{customer_id}/debit-cards/associate",
    response_model=DebitCardAssociationResponse,
    responses=UNAVAILABLE,
)
async def associate_debit_card(
    request: DebitCardAssociationRequest,
    customer_id: str = Path(..., min_length=1),
    service: DebitCardService = Depends(get_debit_card_service),
) -> DebitCardAssociationResponse:
    """Link a debit card to one or more accounts of a customer."""
    logger.info("Associating debit card", customer_id=customer_id, card_id=request.card_id)
    message = await service.associate_debit_card(customer_id, request.card_id, request.account_ids)
    return DebitCardAssociationResponse(
        customer_id=customer_id,
        card_id=request.card_id,
        message=message,
    )


@router.get(
    "/customers/{customer_id}/debit-cards/{card_id}/main-account",
    response_model=MainAccountResponse,
    responses=UNAVAILABLE,
)
async def get_main_account(
    customer_id: str = Path(..., min_length=1),
    card_id: str = Path(..., min_length=1),
    service: DebitCardService = Depends(get_debit_card_service),
) -> MainAccountResponse:
    """Main account behind a customer's debit card."""
    account_id = await service.get_main_account_id(customer_id, card_id)
    return MainAccountResponse(customer_id=customer_id, card_id=card_id, account_id=account_id)


@router.get(
    "/customers/{customer_id}/debit-cards/{card_id}/balance",
    response_model=DebitCardBalanceResponse,
    responses=UNAVAILABLE,
)
async def get_customer_card_balance(
    customer_id: str = Path(..., min_length=1),
    card_id: str = Path(..., min_length=1),
    service: DebitCardService = Depends(get_debit_card_service),
) -> DebitCardBalanceResponse:
    """
    Balance behind a customer's debit card.

    Resolves the card's main account first, then reads its balance.
    """
    logger.info("Getting main account balance", customer_id=customer_id, card_id=card_id)
    product_id = await service.get_main_account_id(customer_id, card_id)
    balance = await service.get_main_account_balance(product_id, card_id)
    return DebitCardBalanceResponse.from_domain(balance)


@router.get(
    "/products/{product_id}/debit-cards/{card_id}/balance",
    response_model=DebitCardBalanceResponse,
    responses=UNAVAILABLE,
)
async def get_product_card_balance(
    product_id: str = Path(..., min_length=1),
    card_id: str = Path(..., min_length=1),
    service: DebitCardService = Depends(get_debit_card_service),
) -> DebitCardBalanceResponse:
    """Balance of a known account linked to a debit card."""
    balance = await service.get_main_account_balance(product_id, card_id)
    return DebitCardBalanceResponse.from_domain(balance)


# --- Payments ---

@router.post(
    "/customers/{customer_id}/payments",
    response_model=PaymentResponseDTO,
)
async def pay_credit_product(
    request: PaymentRequestDTO,
    customer_id: str = Path(..., min_length=1),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentResponseDTO:
    """
    Pay a credit product.

    A product service failure is reported in the body with status FAILED.
    """
    logger.info(
        "Paying credit product",
        customer_id=customer_id,
        target_product_id=request.target_product_id,
    )
    response = await service.pay_credit_product(customer_id, request.to_domain())
    return PaymentResponseDTO.from_domain(response)


# --- Reports ---

@router.get(
    "/reports/products",
    response_model=list[ProductReportDTO],
    responses={400: {"model": ErrorResponse, "description": "Invalid date range"}},
)
async def get_product_report(
    date_from: date = Query(..., alias="from", description="First day, inclusive"),
    date_to: date = Query(..., alias="to", description="Last day, inclusive"),
    service: ReportService = Depends(get_report_service),
) -> StreamingResponse:
    """
    Product report for a date range.

    An unavailable product service yields an empty list.
    """
    logger.info("Generating product report", date_from=date_from.isoformat(), date_to=date_to.isoformat())
    reports = service.generate_product_report(date_from, date_to)
    return stream_json_array(reports, ProductReportDTO.from_domain)
