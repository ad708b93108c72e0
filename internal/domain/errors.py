"""
Domain-specific exceptions.

Custom exceptions for validation, business rule violations and
unavailable dependencies.
"""
from typing import Optional


class DomainError(Exception):
    """Base exception for domain errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize domain error.

        Args:
            message: Error message describing the issue.
        """
        self.message = message
        super().__init__(self.message)


class DomainValidationError(DomainError):
    """Exception raised when input or state rejects an operation."""
    pass


class BusinessRuleViolationError(DomainValidationError):
    """Exception raised when a product may not be added to a customer."""

    def __init__(self, rule: str, reason: str) -> None:
        """
        Initialize business rule violation.

        Args:
            rule: Identifier of the violated rule.
            reason: Human-readable reason, exposed to the caller.
        """
        super().__init__(reason)
        self.rule = rule
        self.reason = reason


class CustomerAlreadyExistsError(DomainValidationError):
    """Exception raised when a national ID is already registered."""

    def __init__(self, dni: str) -> None:
        """
        Initialize customer already exists error.

        Args:
            dni: The duplicated national ID.
        """
        super().__init__("DNI already exists")
        self.dni = dni


class ResourceNotFoundError(DomainError):
    """Exception raised when an entity does not exist."""

    def __init__(self, resource: str, identifier: str) -> None:
        """
        Initialize resource not found error.

        Args:
            resource: Kind of resource, e.g. "Customer".
            identifier: Identifier that was looked up.
        """
        super().__init__(f"{resource} with id {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class CustomerNotFoundError(ResourceNotFoundError):
    """Exception raised when a customer is not found."""

    def __init__(self, customer_id: str) -> None:
        super().__init__("Customer", customer_id)
        self.customer_id = customer_id


class ProductServiceUnavailableError(DomainError):
    """Exception raised when the product service cannot complete an operation."""

    def __init__(self, operation: str, breaker: Optional[str] = None) -> None:
        """
        Initialize product service unavailable error.

        Args:
            operation: What was being attempted, e.g. "fetching existing products".
            breaker: Name of the circuit breaker guarding the call.
        """
        super().__init__(f"Product service unavailable or timed out while {operation}")
        self.operation = operation
        self.breaker = breaker


class CacheError(DomainError):
    """Exception raised when cache operations fail."""
    pass


class EventPublishError(DomainError):
    """Exception raised when event publishing fails."""

    def __init__(self, event_type: str, reason: str) -> None:
        """
        Initialize event publish error.

        Args:
            event_type: Type of event that failed to publish.
            reason: The reason for the failure.
        """
        super().__init__(f"Failed to publish event '{event_type}': {reason}")
        self.event_type = event_type
        self.reason = reason
