"""
Metrics infrastructure package.
"""
from .prometheus import (
    CACHE_LOOKUPS,
    CIRCUIT_BREAKER_STATE,
    CUSTOMER_EVENTS_CONSUMED,
    CUSTOMER_EVENTS_PUBLISHED,
    DOWNSTREAM_CALLS,
    HTTP_REQUEST_DURATION,
    HTTP_REQUESTS_TOTAL,
    PRODUCT_RULE_REJECTIONS,
    record_breaker_state,
    record_downstream_outcome,
)

__all__ = [
    "CACHE_LOOKUPS",
    "CIRCUIT_BREAKER_STATE",
    "CUSTOMER_EVENTS_CONSUMED",
    "CUSTOMER_EVENTS_PUBLISHED",
    "DOWNSTREAM_CALLS",
    "HTTP_REQUEST_DURATION",
    "HTTP_REQUESTS_TOTAL",
    "PRODUCT_RULE_REJECTIONS",
    "record_breaker_state",
    "record_downstream_outcome",
]
