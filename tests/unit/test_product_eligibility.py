"""
Unit tests for the product eligibility rules.
"""
import pytest

from internal.domain.customer import Product
from internal.domain.errors import BusinessRuleViolationError, DomainValidationError
from internal.domain.value_objects import CustomerProfile, CustomerType
from internal.usecase.product_eligibility import PortfolioSummary, ProductEligibilityValidator


def product(type_: str, sub_type: str) -> Product:
    return Product(id="p", type=type_, sub_type=sub_type)


@pytest.fixture
def validator() -> ProductEligibilityValidator:
    return ProductEligibilityValidator()


class TestDefaults:
    """Tests for customer type / profile default substitution."""

    def test_missing_type_defaults_to_personal(self, validator):
        assert validator.resolve_customer_type(None) == CustomerType.PERSONAL

    def test_missing_profile_defaults_to_standard(self, validator):
        assert validator.resolve_profile(None) == CustomerProfile.STANDARD

    def test_values_are_case_insensitive(self, validator):
        assert validator.resolve_customer_type("business") == CustomerType.BUSINESS
        assert validator.resolve_profile("vip") == CustomerProfile.VIP

    def test_unknown_type_is_a_validation_error(self, validator):
        with pytest.raises(DomainValidationError):
            validator.resolve_customer_type("GOVERNMENT")

    def test_missing_type_applies_personal_caps(self, validator):
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            validator.validate(None, None, "ACCOUNT", "SAVINGS", [product("ACCOUNT", "SAVINGS")])
        assert exc_info.value.rule == "personal_savings_cap"


class TestBusinessRestriction:
    """Business customers cannot open savings or fixed-term accounts."""

    @pytest.mark.parametrize("sub_type", ["SAVINGS", "FIXED_TERM"])
    def test_rejected(self, validator, sub_type):
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            validator.validate("BUSINESS", "STANDARD", "ACCOUNT", sub_type, [])
        assert exc_info.value.rule == "business_account_restriction"
        assert "Business customers cannot have savings or fixed-term accounts" in exc_info.value.message

    def test_current_account_accepted_with_empty_portfolio(self, validator):
        validator.validate("BUSINESS", "STANDARD", "ACCOUNT", "CURRENT", [])


class TestPersonalCaps:
    """Personal customers hold at most one of each account and one personal loan."""

    def test_second_savings_rejected(self, validator):
        existing = [product("ACCOUNT", "SAVINGS")]
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            validator.validate("PERSONAL", "STANDARD", "ACCOUNT", "SAVINGS", existing)
        assert "savings account" in exc_info.value.reason

    def test_current_accepted_next_to_savings(self, validator):
        validator.validate("PERSONAL", "STANDARD", "ACCOUNT", "CURRENT", [product("ACCOUNT", "SAVINGS")])

    def test_second_current_rejected(self, validator):
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            validator.validate("PERSONAL", "STANDARD", "ACCOUNT", "CURRENT", [product("ACCOUNT", "CURRENT")])
        assert exc_info.value.rule == "personal_current_cap"

    def test_counting_ignores_casing(self, validator):
        with pytest.raises(BusinessRuleViolationError):
            validator.validate("PERSONAL", "STANDARD", "account", "savings", [product("Account", "Savings")])

    def test_second_personal_loan_rejected(self, validator):
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            validator.validate(
                "PERSONAL", "STANDARD", "LOAN", "PERSONAL_LOAN", [product("LOAN", "PERSONAL_LOAN")]
            )
        assert exc_info.value.reason == "Personal customer already has a personal loan"

    def test_other_loans_do_not_count(self, validator):
        validator.validate("PERSONAL", "STANDARD", "LOAN", "PERSONAL_LOAN", [product("LOAN", "MORTGAGE")])

    def test_business_customers_have_no_loan_cap(self, validator):
        validator.validate(
            "BUSINESS", "STANDARD", "LOAN", "PERSONAL_LOAN", [product("LOAN", "PERSONAL_LOAN")]
        )


class TestPrerequisites:
    """VIP and PYME accounts need a credit card first."""

    def test_vip_savings_needs_credit_card(self, validator):
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            validator.validate("PERSONAL", "VIP", "ACCOUNT", "SAVINGS", [])
        assert exc_info.value.rule == "vip_credit_card_required"

    def test_vip_savings_accepted_with_any_credit_card(self, validator):
        validator.validate("PERSONAL", "VIP", "ACCOUNT", "SAVINGS", [product("CREDIT_CARD", "GOLD_CARD")])

    def test_pyme_current_needs_credit_card(self, validator):
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            validator.validate("BUSINESS", "PYME", "ACCOUNT", "CURRENT", [])
        assert exc_info.value.reason == "PYME must have a credit card to create the PYME current account"

    def test_pyme_current_accepted_with_credit_card(self, validator):
        validator.validate("BUSINESS", "PYME", "ACCOUNT", "CURRENT", [product("CREDIT_CARD", "BUSINESS_CARD")])

    def test_business_restriction_wins_over_vip_rule(self, validator):
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            validator.validate("BUSINESS", "VIP", "ACCOUNT", "SAVINGS", [])
        assert exc_info.value.rule == "business_account_restriction"


class TestDeterminism:
    """Same inputs, same verdict."""

    def test_repeated_validation_gives_same_verdict(self, validator):
        existing = [product("ACCOUNT", "SAVINGS")]
        verdicts = []
        for _ in range(3):
            try:
                validator.validate("PERSONAL", "STANDARD", "ACCOUNT", "SAVINGS", existing)
                verdicts.append(None)
            except BusinessRuleViolationError as e:
                verdicts.append(e.rule)
        assert verdicts == ["personal_savings_cap"] * 3


class TestPortfolioSummary:
    """Tests for PortfolioSummary."""

    def test_counts(self):
        summary = PortfolioSummary.of([
            product("ACCOUNT", "SAVINGS"),
            product("account", "current"),
            product("LOAN", "PERSONAL_LOAN"),
            product("LOAN", "AUTO_LOAN"),
            product("CREDIT_CARD", "STANDARD_CARD"),
        ])
        assert summary.savings_accounts == 1
        assert summary.current_accounts == 1
        assert summary.personal_loans == 1
        assert summary.has_credit_card is True

    def test_tolerates_missing_fields(self):
        summary = PortfolioSummary.of([Product(id="x")])
        assert summary == PortfolioSummary(0, 0, 0, False)
