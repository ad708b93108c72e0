"""
Domain package for Customer Service.

Contains domain entities, value objects, and domain errors.
"""
from .customer import Customer, CustomerEvent, Product, MUTABLE_FIELDS
from .operations import (
    DebitCardAssociation,
    DebitCardBalance,
    PaymentRequest,
    PaymentResponse,
    ProductReport,
    PAYMENT_FAILED,
)
from .value_objects import (
    CustomerEventType,
    CustomerProfile,
    CustomerType,
    ProductCategory,
    ProductSubType,
    ProductType,
    SUBTYPES_BY_TYPE,
    is_valid_subtype,
)
from .errors import (
    DomainError,
    DomainValidationError,
    BusinessRuleViolationError,
    CustomerAlreadyExistsError,
    ResourceNotFoundError,
    CustomerNotFoundError,
    ProductServiceUnavailableError,
    CacheError,
    EventPublishError,
)

__all__ = [
    "Customer",
    "CustomerEvent",
    "Product",
    "MUTABLE_FIELDS",
    "DebitCardAssociation",
    "DebitCardBalance",
    "PaymentRequest",
    "PaymentResponse",
    "ProductReport",
    "PAYMENT_FAILED",
    "CustomerEventType",
    "CustomerProfile",
    "CustomerType",
    "ProductCategory",
    "ProductSubType",
    "ProductType",
    "SUBTYPES_BY_TYPE",
    "is_valid_subtype",
    "DomainError",
    "DomainValidationError",
    "BusinessRuleViolationError",
    "CustomerAlreadyExistsError",
    "ResourceNotFoundError",
    "CustomerNotFoundError",
    "ProductServiceUnavailableError",
    "CacheError",
    "EventPublishError",
]
