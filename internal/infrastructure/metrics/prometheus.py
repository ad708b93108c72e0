"""
Prometheus Metrics for Customer Service.

Defines all metrics for monitoring Customer Service performance and health.
"""

from prometheus_client import Counter, Gauge, Histogram

from pkg.resilience.circuit_breaker import CircuitState

# API
HTTP_REQUESTS_TOTAL = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

HTTP_REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Product service (downstream)
CIRCUIT_BREAKER_STATE = Gauge(
    'circuit_breaker_state',
    'Circuit breaker state (0=closed, 1=half_open, 2=open)',
    ['breaker']
)

DOWNSTREAM_CALLS = Counter(
    'downstream_calls_total',
    'Calls to downstream services through the resilience operator',
    ['breaker', 'outcome']  # outcome: success, failure, timeout, rejected
)

# Cache
CACHE_LOOKUPS = Counter(
    'customer_cache_lookups_total',
    'Customer cache lookups',
    ['result']  # hit, miss
)

# Events
CUSTOMER_EVENTS_PUBLISHED = Counter(
    'customer_events_published_total',
    'Customer lifecycle events handed to Kafka',
    ['event_type', 'status']  # status: success, error
)

CUSTOMER_EVENTS_CONSUMED = Counter(
    'customer_events_consumed_total',
    'Customer lifecycle events consumed',
    ['event_type', 'status']  # status: success, error, skipped
)

# Business rules
PRODUCT_RULE_REJECTIONS = Counter(
    'product_rule_rejections_total',
    'Product additions rejected by eligibility rules',
    ['rule']
)


BREAKER_STATE_VALUES = {
    CircuitState.CLOSED: 0,
    CircuitState.HALF_OPEN: 1,
    CircuitState.OPEN: 2,
}


def record_breaker_state(breaker: str, state: CircuitState) -> None:
    """State listener for circuit breakers."""
    CIRCUIT_BREAKER_STATE.labels(breaker=breaker).set(BREAKER_STATE_VALUES[state])


def record_downstream_outcome(breaker: str, outcome: str) -> None:
    """Outcome listener for the resilience operator."""
    DOWNSTREAM_CALLS.labels(breaker=breaker, outcome=outcome).inc()
