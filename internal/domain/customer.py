"""
Domain model for Customer.

This module contains the core domain entities following DDD principles.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional

from .errors import DomainValidationError
from .value_objects import CustomerEventType, CustomerProfile, CustomerType


# Fields an update may touch; type, dni, ruc and products are fixed after creation.
MUTABLE_FIELDS = (
    "first_name",
    "last_name",
    "business_name",
    "address",
    "phone",
    "email",
)


@dataclass
class Product:
    """
    Product as held by the product service.

    Type and subtype stay raw strings: records come from an external system
    whose casing is not guaranteed.

    Attributes:
        id: Product identifier in the product service.
        category: LIABILITY or ASSET, optional.
        type: ACCOUNT, LOAN or CREDIT_CARD.
        sub_type: Variant within the type.
        customer_id: Owner, when the record carries it.
    """
    id: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    sub_type: Optional[str] = None
    customer_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        """Build from a camelCase or snake_case mapping."""
        return cls(
            id=_str_or_none(data.get("id")),
            category=data.get("category"),
            type=data.get("type"),
            sub_type=data.get("subType", data.get("sub_type")),
            customer_id=data.get("customerId", data.get("customer_id")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire representation."""
        data: dict[str, Any] = {
            "id": self.id,
            "category": self.category,
            "type": self.type,
            "subType": self.sub_type,
        }
        if self.customer_id is not None:
            data["customerId"] = self.customer_id
        return data


@dataclass
class Customer:
    """
    Customer is the aggregate root of the service.

    Attributes:
        id: Server-assigned identifier, None until first persisted.
        customer_type: PERSONAL or BUSINESS.
        profile: STANDARD, VIP or PYME.
        first_name: Given name (personal customers).
        last_name: Family name (personal customers).
        business_name: Legal name (business customers).
        dni: National ID, unique across customers.
        ruc: Business tax ID.
        address: Postal address.
        phone: Contact phone.
        email: Contact email.
        products: Product references attached to the customer.
    """
    id: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    profile: Optional[CustomerProfile] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_name: Optional[str] = None
    dni: Optional[str] = None
    ruc: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    products: list[Product] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Coerce raw enum values."""
        try:
            self.customer_type = CustomerType.parse(self.customer_type)
            self.profile = CustomerProfile.parse(self.profile)
        except ValueError as e:
            raise DomainValidationError(f"Invalid customer classification: {e}") from e

    def apply_update(self, changes: "Customer") -> None:
        """
        Copy the mutable contact and name fields from ``changes``.

        Fields left as None in ``changes`` keep their current value. The id,
        customer type, profile, dni, ruc and product list are never touched.

        Args:
            changes: Incoming update payload.
        """
        for name in MUTABLE_FIELDS:
            value = getattr(changes, name)
            if value is not None:
                setattr(self, name, value)

    def copy(self) -> "Customer":
        """Detached copy, products included."""
        return replace(self, products=[replace(p) for p in self.products])

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary representation.

        Used for the cache, the store document and event payloads.

        Returns:
            Dictionary with all customer data.
        """
        return {
            "id": self.id,
            "customerType": self.customer_type.value if self.customer_type else None,
            "profile": self.profile.value if self.profile else None,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "businessName": self.business_name,
            "dni": self.dni,
            "ruc": self.ruc,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "products": [p.to_dict() for p in self.products],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Customer":
        """
        Build a customer from its dictionary representation.

        Args:
            data: Mapping produced by ``to_dict``.

        Returns:
            Customer instance.
        """
        return cls(
            id=_str_or_none(data.get("id")),
            customer_type=data.get("customerType"),
            profile=data.get("profile"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            business_name=data.get("businessName"),
            dni=data.get("dni"),
            ruc=data.get("ruc"),
            address=data.get("address"),
            phone=data.get("phone"),
            email=data.get("email"),
            products=[Product.from_dict(p) for p in data.get("products") or []],
        )


@dataclass
class CustomerEvent:
    """
    Customer lifecycle event published to Kafka.

    Attributes:
        event_type: CREATED, UPDATED or DELETED.
        customer: Snapshot of the customer at emission time.
        timestamp: Emission time (UTC).
    """
    event_type: CustomerEventType
    customer: Customer
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the message payload."""
        return {
            "eventType": self.event_type.value,
            "customer": self.customer.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomerEvent":
        """
        Parse a message payload.

        Raises:
            DomainValidationError: If the payload is malformed.
        """
        try:
            event_type = CustomerEventType.parse(data["eventType"])
            customer = Customer.from_dict(data["customer"])
            raw_ts = data.get("timestamp")
            timestamp = datetime.fromisoformat(raw_ts) if raw_ts else datetime.now(timezone.utc)
        except (KeyError, TypeError, ValueError) as e:
            raise DomainValidationError(f"Malformed customer event: {e}") from e
        if event_type is None:
            raise DomainValidationError("Malformed customer event: missing eventType")
        return cls(event_type=event_type, customer=customer, timestamp=timestamp)


def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)
