"""
Resilience package.
"""
from .background import BackgroundTaskRunner
from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerError,
    CircuitBreakerRegistry,
    CircuitState,
)
from .operator import DEFAULT_TIMEOUT, DownstreamUnavailableError, ResilienceOperator

__all__ = [
    "BackgroundTaskRunner",
    "CircuitBreaker",
    "CircuitBreakerError",
    "CircuitBreakerRegistry",
    "CircuitState",
    "DEFAULT_TIMEOUT",
    "DownstreamUnavailableError",
    "ResilienceOperator",
]
