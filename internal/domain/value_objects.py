"""
Value Objects for the Customer domain.

Closed sets used by customers, products and lifecycle events.
"""
from enum import Enum
from typing import Optional


class _ValueEnum(str, Enum):
    """String enum that parses case-insensitively."""

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["_ValueEnum"]:
        """
        Parse a raw value into a member.

        Args:
            value: Raw string, member, or None.

        Returns:
            Matching member, or None for a missing/blank value.

        Raises:
            ValueError: If the value is not a member name.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper()
        if not normalized:
            return None
        return cls(normalized)

    def matches(self, raw: Optional[str]) -> bool:
        """Case-insensitive comparison against a raw string."""
        return raw is not None and self.value == str(raw).strip().upper()

    def __str__(self) -> str:
        return self.value


class CustomerType(_ValueEnum):
    """Kind of customer."""

    PERSONAL = "PERSONAL"
    BUSINESS = "BUSINESS"


class CustomerProfile(_ValueEnum):
    """Commercial profile of a customer."""

    STANDARD = "STANDARD"
    VIP = "VIP"
    PYME = "PYME"


class ProductCategory(_ValueEnum):
    """Balance-sheet side of a product."""

    LIABILITY = "LIABILITY"
    ASSET = "ASSET"


class ProductType(_ValueEnum):
    """Product family."""

    ACCOUNT = "ACCOUNT"
    LOAN = "LOAN"
    CREDIT_CARD = "CREDIT_CARD"


class ProductSubType(_ValueEnum):
    """Product variant, only valid for its own product type."""

    # ACCOUNT
    SAVINGS = "SAVINGS"
    CURRENT = "CURRENT"
    FIXED_TERM = "FIXED_TERM"
    SALARY = "SALARY"
    FOREIGN_CURRENCY = "FOREIGN_CURRENCY"

    # LOAN
    PERSONAL_LOAN = "PERSONAL_LOAN"
    BUSINESS_LOAN = "BUSINESS_LOAN"
    MORTGAGE = "MORTGAGE"
    AUTO_LOAN = "AUTO_LOAN"

    # CREDIT_CARD
    STANDARD_CARD = "STANDARD_CARD"
    GOLD_CARD = "GOLD_CARD"
    PLATINUM_CARD = "PLATINUM_CARD"
    BUSINESS_CARD = "BUSINESS_CARD"


SUBTYPES_BY_TYPE: dict[ProductType, frozenset[ProductSubType]] = {
    ProductType.ACCOUNT: frozenset({
        ProductSubType.SAVINGS,
        ProductSubType.CURRENT,
        ProductSubType.FIXED_TERM,
        ProductSubType.SALARY,
        ProductSubType.FOREIGN_CURRENCY,
    }),
    ProductType.LOAN: frozenset({
        ProductSubType.PERSONAL_LOAN,
        ProductSubType.BUSINESS_LOAN,
        ProductSubType.MORTGAGE,
        ProductSubType.AUTO_LOAN,
    }),
    ProductType.CREDIT_CARD: frozenset({
        ProductSubType.STANDARD_CARD,
        ProductSubType.GOLD_CARD,
        ProductSubType.PLATINUM_CARD,
        ProductSubType.BUSINESS_CARD,
    }),
}


def is_valid_subtype(product_type: ProductType, sub_type: ProductSubType) -> bool:
    """Whether ``sub_type`` belongs to ``product_type``."""
    return sub_type in SUBTYPES_BY_TYPE[product_type]


class CustomerEventType(_ValueEnum):
    """Lifecycle event kinds."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"
