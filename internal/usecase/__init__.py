"""
Use case package for Customer Service.

Contains business logic and use cases.
"""
from .customer_service import CustomerService
from .debit_card_service import DebitCardService
from .payment_service import PaymentService
from .product_eligibility import PortfolioSummary, ProductEligibilityValidator
from .report_service import ReportService

__all__ = [
    "CustomerService",
    "DebitCardService",
    "PaymentService",
    "PortfolioSummary",
    "ProductEligibilityValidator",
    "ReportService",
]
