"""
Data Transfer Objects for Customer Service API.

Contains Pydantic models for request/response validation.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from internal.domain.customer import Customer, Product
from internal.domain.operations import DebitCardBalance, PaymentRequest, PaymentResponse, ProductReport
from internal.domain.value_objects import (
    CustomerProfile,
    CustomerType,
    ProductCategory,
    ProductSubType,
    ProductType,
    is_valid_subtype,
)


DNI_PATTERN = re.compile(r"^[0-9]{8}$")
RUC_PATTERN = re.compile(r"^[0-9]{11}$")
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@(.+)$")


class CamelModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)


def _not_blank(value: Optional[str], label: str) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError(f"{label} cannot be empty")
    return value


def _valid_email(value: Optional[str]) -> Optional[str]:
    if value is not None and not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value


# Product DTOs
class ProductDTO(CamelModel):
    """Product held by a customer."""

    id: Optional[str] = Field(None, description="Product ID in the product service")
    category: Optional[str] = Field(None, description="LIABILITY or ASSET")
    type: Optional[str] = Field(None, description="ACCOUNT, LOAN or CREDIT_CARD")
    sub_type: Optional[str] = Field(None, alias="subType", description="Product subtype")
    customer_id: Optional[str] = Field(None, alias="customerId", description="Owner")

    @classmethod
    def from_domain(cls, product: Product) -> "ProductDTO":
        return cls(
            id=product.id,
            category=product.category,
            type=product.type,
            sub_type=product.sub_type,
            customer_id=product.customer_id,
        )


class AddProductRequest(CamelModel):
    """Request to add a product to a customer."""

    category: Optional[ProductCategory] = Field(None, description="LIABILITY or ASSET")
    type: ProductType = Field(..., description="Product type")
    sub_type: ProductSubType = Field(..., alias="subType", description="Product subtype")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"category": "LIABILITY", "type": "ACCOUNT", "subType": "SAVINGS"}
        },
    )

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, value: Any) -> Optional[ProductCategory]:
        try:
            return ProductCategory.parse(value)
        except ValueError:
            raise ValueError("Invalid product category")

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, value: Any) -> Optional[ProductType]:
        try:
            return ProductType.parse(value)
        except ValueError:
            raise ValueError("Invalid product type")

    @field_validator("sub_type", mode="before")
    @classmethod
    def parse_sub_type(cls, value: Any) -> Optional[ProductSubType]:
        try:
            return ProductSubType.parse(value)
        except ValueError:
            raise ValueError("Invalid product subtype")

    @model_validator(mode="after")
    def check_subtype_belongs_to_type(self) -> "AddProductRequest":
        if not is_valid_subtype(self.type, self.sub_type):
            raise ValueError(f"Subtype {self.sub_type.value} is not valid for product type {self.type.value}")
        return self

    def to_domain(self) -> Product:
        return Product(
            category=self.category.value if self.category else None,
            type=self.type.value,
            sub_type=self.sub_type.value,
        )


# Customer DTOs
class CustomerCreateRequest(CamelModel):
    """Request to register a customer."""

    customer_type: CustomerType = Field(..., alias="customerType", description="PERSONAL or BUSINESS")
    profile: CustomerProfile = Field(..., description="STANDARD, VIP or PYME")
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    business_name: Optional[str] = Field(None, alias="businessName")
    dni: str = Field(..., description="National ID, 8 digits")
    ruc: Optional[str] = Field(None, description="Business tax ID, 11 digits")
    address: Optional[str] = None
    phone: str
    email: str

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "customerType": "PERSONAL",
                "profile": "STANDARD",
                "firstName": "Ana",
                "lastName": "Torres",
                "dni": "12345678",
                "address": "Av. Arequipa 123",
                "phone": "987654321",
                "email": "ana.torres@example.com",
            }
        },
    )

    @field_validator("customer_type", mode="before")
    @classmethod
    def parse_customer_type(cls, value: Any) -> CustomerType:
        try:
            parsed = CustomerType.parse(value)
        except ValueError:
            raise ValueError("Invalid customer type")
        if parsed is None:
            raise ValueError("Customer type cannot be empty")
        return parsed

    @field_validator("profile", mode="before")
    @classmethod
    def parse_profile(cls, value: Any) -> CustomerProfile:
        try:
            parsed = CustomerProfile.parse(value)
        except ValueError:
            raise ValueError("Invalid profile")
        if parsed is None:
            raise ValueError("Profile cannot be empty")
        return parsed

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, value: str) -> str:
        return _not_blank(value, "First name")

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, value: str) -> str:
        return _not_blank(value, "Last name")

    @field_validator("business_name")
    @classmethod
    def check_business_name(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value, "Business name")

    @field_validator("dni")
    @classmethod
    def check_dni(cls, value: str) -> str:
        if not DNI_PATTERN.match(value):
            raise ValueError("Invalid DNI format")
        return value

    @field_validator("ruc")
    @classmethod
    def check_ruc(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value.strip() and not RUC_PATTERN.match(value):
            raise ValueError("Invalid RUC format")
        return value

    @field_validator("address")
    @classmethod
    def check_address(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value, "Address")

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return _not_blank(value, "Phone")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _valid_email(value)

    def to_domain(self) -> Customer:
        return Customer(
            customer_type=self.customer_type,
            profile=self.profile,
            first_name=self.first_name,
            last_name=self.last_name,
            business_name=self.business_name,
            dni=self.dni,
            ruc=self.ruc,
            address=self.address,
            phone=self.phone,
            email=self.email,
        )


class CustomerUpdateRequest(CamelModel):
    """
    Request to update a customer.

    Only contact and name fields are accepted; anything else in the body is
    ignored.
    """

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    business_name: Optional[str] = Field(None, alias="businessName")
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value, "First name")

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value, "Last name")

    @field_validator("business_name")
    @classmethod
    def check_business_name(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value, "Business name")

    @field_validator("address")
    @classmethod
    def check_address(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value, "Address")

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value, "Phone")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        return _valid_email(value)

    def to_domain(self) -> Customer:
        return Customer(
            first_name=self.first_name,
            last_name=self.last_name,
            business_name=self.business_name,
            address=self.address,
            phone=self.phone,
            email=self.email,
        )


class CustomerResponse(CamelModel):
    """Customer as returned by the API."""

    id: str = Field(..., description="Customer ID")
    customer_type: Optional[CustomerType] = Field(None, alias="customerType")
    profile: Optional[CustomerProfile] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    business_name: Optional[str] = Field(None, alias="businessName")
    dni: Optional[str] = None
    ruc: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    products: List[ProductDTO] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            customer_type=customer.customer_type,
            profile=customer.profile,
            first_name=customer.first_name,
            last_name=customer.last_name,
            business_name=customer.business_name,
            dni=customer.dni,
            ruc=customer.ruc,
            address=customer.address,
            phone=customer.phone,
            email=customer.email,
            products=[ProductDTO.from_domain(p) for p in customer.products],
        )


# Debit card DTOs
class DebitCardAssociationRequest(CamelModel):
    """Request to link a debit card to accounts."""

    card_id: str = Field(..., alias="cardId", min_length=1)
    account_ids: List[str] = Field(..., alias="accountIds", min_length=1)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"cardId": "card-1", "accountIds": ["acc-1", "acc-2"]}},
    )


class DebitCardAssociationResponse(CamelModel):
    """Confirmation of a debit card association."""

    customer_id: str = Field(..., alias="customerId")
    card_id: str = Field(..., alias="cardId")
    message: str


class MainAccountResponse(CamelModel):
    """Main account behind a debit card."""

    customer_id: str = Field(..., alias="customerId")
    card_id: str = Field(..., alias="cardId")
    account_id: str = Field(..., alias="accountId")


class DebitCardBalanceResponse(CamelModel):
    """Balance of the account behind a debit card."""

    card_id: Optional[str] = Field(None, alias="cardId")
    product_id: Optional[str] = Field(None, alias="productId")
    balance: Optional[float] = None

    @classmethod
    def from_domain(cls, balance: DebitCardBalance) -> "DebitCardBalanceResponse":
        return cls(card_id=balance.card_id, product_id=balance.product_id, balance=balance.balance)


# Payment DTOs
class PaymentRequestDTO(CamelModel):
    """Request to pay a credit product."""

    target_product_id: str = Field(..., alias="targetProductId", min_length=1)
    amount: float = Field(..., gt=0)
    source_product_id: Optional[str] = Field(None, alias="sourceProductId")

    def to_domain(self) -> PaymentRequest:
        return PaymentRequest(
            target_product_id=self.target_product_id,
            amount=self.amount,
            source_product_id=self.source_product_id,
        )


class PaymentResponseDTO(CamelModel):
    """Outcome of a payment."""

    status: Optional[str] = None
    message: Optional[str] = None
    transaction_id: Optional[str] = Field(None, alias="transactionId")

    @classmethod
    def from_domain(cls, response: PaymentResponse) -> "PaymentResponseDTO":
        return cls(
            status=response.status,
            message=response.message,
            transaction_id=response.transaction_id,
        )


# Report DTOs
class ProductReportDTO(CamelModel):
    """One product report line."""

    product_id: Optional[str] = Field(None, alias="productId")
    customer_id: Optional[str] = Field(None, alias="customerId")
    type: Optional[str] = None
    sub_type: Optional[str] = Field(None, alias="subType")
    balance: Optional[float] = None

    @classmethod
    def from_domain(cls, report: ProductReport) -> "ProductReportDTO":
        return cls(
            product_id=report.product_id,
            customer_id=report.customer_id,
            type=report.type,
            sub_type=report.sub_type,
            balance=report.balance,
        )


# Error and health DTOs
class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    timestamp: datetime = Field(..., description="When the error occurred (UTC)")
    status: int = Field(..., description="HTTP status code")
    error: str = Field(..., description="HTTP reason phrase")
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable message")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "timestamp": "2024-01-15T10:30:00Z",
                "status": 404,
                "error": "Not Found",
                "code": "RESOURCE_NOT_FOUND",
                "message": "Customer with id 42 not found",
            }
        }
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    events: str = Field(..., description="Event channel status")
    circuit_breakers: dict[str, str] = Field(default_factory=dict, description="Breaker states")
