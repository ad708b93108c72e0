"""
Product Eligibility Validator.

Decides whether a product may be added to a customer given the
customer's classification and current portfolio.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from internal.domain.customer import Product
from internal.domain.errors import BusinessRuleViolationError, DomainValidationError
from internal.domain.value_objects import (
    CustomerProfile,
    CustomerType,
    ProductSubType,
    ProductType,
)


RawValue = Union[str, None]


@dataclass(frozen=True)
class PortfolioSummary:
    """Counts over the live portfolio that the rules look at."""

    savings_accounts: int
    current_accounts: int
    personal_loans: int
    has_credit_card: bool

    @classmethod
    def of(cls, products: Iterable[Product]) -> "PortfolioSummary":
        """Summarize a portfolio, comparing type/subtype case-insensitively."""
        savings = current = loans = 0
        credit_card = False
        for product in products:
            if ProductType.ACCOUNT.matches(product.type):
                if ProductSubType.SAVINGS.matches(product.sub_type):
                    savings += 1
                elif ProductSubType.CURRENT.matches(product.sub_type):
                    current += 1
            elif ProductType.LOAN.matches(product.type):
                if ProductSubType.PERSONAL_LOAN.matches(product.sub_type):
                    loans += 1
            elif ProductType.CREDIT_CARD.matches(product.type):
                credit_card = True
        return cls(
            savings_accounts=savings,
            current_accounts=current,
            personal_loans=loans,
            has_credit_card=credit_card,
        )


class ProductEligibilityValidator:
    """
    Fixed decision table for adding a product to a customer.

    Rules run in order and the first violation wins:

    1. Business customers cannot open savings or fixed-term accounts.
    2. Personal customers hold at most one savings and one current account.
    3. Personal customers hold at most one personal loan.
    4. VIP customers need a credit card before a savings account.
    5. PYME business customers need a credit card before a current account.

    Missing customer type means PERSONAL and missing profile means STANDARD.
    This is the only place those defaults are applied.
    """

    def resolve_customer_type(self, customer_type: Union[CustomerType, RawValue]) -> CustomerType:
        """Customer type with the PERSONAL default applied."""
        try:
            return CustomerType.parse(customer_type) or CustomerType.PERSONAL
        except ValueError as e:
            raise DomainValidationError(f"Unknown customer type: {customer_type}") from e

    def resolve_profile(self, profile: Union[CustomerProfile, RawValue]) -> CustomerProfile:
        """Profile with the STANDARD default applied."""
        try:
            return CustomerProfile.parse(profile) or CustomerProfile.STANDARD
        except ValueError as e:
            raise DomainValidationError(f"Unknown customer profile: {profile}") from e

    def validate(
        self,
        customer_type: Union[CustomerType, RawValue],
        customer_profile: Union[CustomerProfile, RawValue],
        product_type: RawValue,
        product_sub_type: RawValue,
        existing_products: Iterable[Product],
    ) -> None:
        """
        Check every rule against a candidate product.

        Args:
            customer_type: Customer type, None for the default.
            customer_profile: Customer profile, None for the default.
            product_type: Candidate product type.
            product_sub_type: Candidate product subtype.
            existing_products: Live portfolio from the product service.

        Raises:
            BusinessRuleViolationError: With the reason of the first rule broken.
        """
        ctype = self.resolve_customer_type(customer_type)
        profile = self.resolve_profile(customer_profile)
        portfolio = PortfolioSummary.of(existing_products)

        violation = (
            self._business_account_restriction(ctype, product_type, product_sub_type)
            or self._personal_account_caps(ctype, product_type, product_sub_type, portfolio)
            or self._personal_loan_cap(ctype, product_type, product_sub_type, portfolio)
            or self._vip_prerequisite(profile, product_type, product_sub_type, portfolio)
            or self._pyme_prerequisite(ctype, profile, product_type, product_sub_type, portfolio)
        )
        if violation is not None:
            rule, reason = violation
            raise BusinessRuleViolationError(rule=rule, reason=reason)

    @staticmethod
    def _business_account_restriction(
        ctype: CustomerType,
        product_type: RawValue,
        sub_type: RawValue,
    ) -> Optional[tuple[str, str]]:
        if (
            ctype == CustomerType.BUSINESS
            and ProductType.ACCOUNT.matches(product_type)
            and (ProductSubType.SAVINGS.matches(sub_type) or ProductSubType.FIXED_TERM.matches(sub_type))
        ):
            return (
                "business_account_restriction",
                "Business customers cannot have savings or fixed-term accounts",
            )
        return None

    @staticmethod
    def _personal_account_caps(
        ctype: CustomerType,
        product_type: RawValue,
        sub_type: RawValue,
        portfolio: PortfolioSummary,
    ) -> Optional[tuple[str, str]]:
        if ctype != CustomerType.PERSONAL or not ProductType.ACCOUNT.matches(product_type):
            return None
        if ProductSubType.SAVINGS.matches(sub_type) and portfolio.savings_accounts >= 1:
            return (
                "personal_savings_cap",
                "Personal customer already has a savings account",
            )
        if ProductSubType.CURRENT.matches(sub_type) and portfolio.current_accounts >= 1:
            return (
                "personal_current_cap",
                "Personal customer already has a current account",
            )
        return None

    @staticmethod
    def _personal_loan_cap(
        ctype: CustomerType,
        product_type: RawValue,
        sub_type: RawValue,
        portfolio: PortfolioSummary,
    ) -> Optional[tuple[str, str]]:
        if (
            ProductType.LOAN.matches(product_type)
            and ProductSubType.PERSONAL_LOAN.matches(sub_type)
            and ctype == CustomerType.PERSONAL
            and portfolio.personal_loans >= 1
        ):
            return (
                "personal_loan_cap",
                "Personal customer already has a personal loan",
            )
        return None

    @staticmethod
    def _vip_prerequisite(
        profile: CustomerProfile,
        product_type: RawValue,
        sub_type: RawValue,
        portfolio: PortfolioSummary,
    ) -> Optional[tuple[str, str]]:
        if (
            profile == CustomerProfile.VIP
            and ProductType.ACCOUNT.matches(product_type)
            and ProductSubType.SAVINGS.matches(sub_type)
            and not portfolio.has_credit_card
        ):
            return (
                "vip_credit_card_required",
                "VIP personal must have a credit card to create a VIP savings account",
            )
        return None

    @staticmethod
    def _pyme_prerequisite(
        ctype: CustomerType,
        profile: CustomerProfile,
        product_type: RawValue,
        sub_type: RawValue,
        portfolio: PortfolioSummary,
    ) -> Optional[tuple[str, str]]:
        if (
            profile == CustomerProfile.PYME
            and ctype == CustomerType.BUSINESS
            and ProductType.ACCOUNT.matches(product_type)
            and ProductSubType.CURRENT.matches(sub_type)
            and not portfolio.has_credit_card
        ):
            return (
                "pyme_credit_card_required",
                "PYME must have a credit card to create the PYME current account",
            )
        return None
