"""
Domain models for debit card, payment and report operations.

These records belong to the product service; the customer service only
relays them.
"""
from dataclasses import dataclass, field
from typing import Any, Optional


PAYMENT_FAILED = "FAILED"


@dataclass
class DebitCardAssociation:
    """Request to link a debit card to one or more accounts."""
    card_id: str
    account_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"cardId": self.card_id, "accountIds": list(self.account_ids)}


@dataclass
class DebitCardBalance:
    """Balance of the main account behind a debit card."""
    card_id: Optional[str]
    product_id: Optional[str]
    balance: Optional[float]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DebitCardBalance":
        balance = data.get("balance")
        return cls(
            card_id=data.get("cardId"),
            product_id=data.get("productId"),
            balance=float(balance) if balance is not None else None,
        )


@dataclass
class PaymentRequest:
    """
    Payment of a credit product.

    Attributes:
        target_product_id: Credit product being paid.
        amount: Amount to pay, positive.
        source_product_id: Account to debit, when not the default one.
    """
    target_product_id: str
    amount: float
    source_product_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "targetProductId": self.target_product_id,
            "amount": self.amount,
        }
        if self.source_product_id is not None:
            data["sourceProductId"] = self.source_product_id
        return data


@dataclass
class PaymentResponse:
    """Outcome of a payment as reported by the product service."""
    status: Optional[str] = None
    message: Optional[str] = None
    transaction_id: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == PAYMENT_FAILED

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaymentResponse":
        return cls(
            status=data.get("status"),
            message=data.get("message"),
            transaction_id=data.get("transactionId"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "message": self.message,
            "transactionId": self.transaction_id,
        }


@dataclass
class ProductReport:
    """One line of the product report."""
    product_id: Optional[str] = None
    customer_id: Optional[str] = None
    type: Optional[str] = None
    sub_type: Optional[str] = None
    balance: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductReport":
        balance = data.get("balance")
        return cls(
            product_id=data.get("productId"),
            customer_id=data.get("customerId"),
            type=data.get("type"),
            sub_type=data.get("subType"),
            balance=float(balance) if balance is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "customerId": self.customer_id,
            "type": self.type,
            "subType": self.sub_type,
            "balance": self.balance,
        }
