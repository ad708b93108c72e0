"""
Circuit Breaker implementation.

Provides resilience pattern for calls to downstream services.
"""
import asyncio
import time
from collections import deque
from enum import Enum
from typing import Any, Callable, Optional

from pkg.logger.logger import get_logger


logger = get_logger(__name__)


StateListener = Callable[[str, "CircuitState"], None]


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, rejecting calls
    HALF_OPEN = "half_open"  # Probing whether the downstream recovered


class CircuitBreakerError(Exception):
    """Exception raised when the breaker rejects a call."""

    def __init__(self, name: str, message: Optional[str] = None) -> None:
        """
        Initialize circuit breaker error.

        Args:
            name: Name of the breaker that rejected the call.
            message: Error message.
        """
        self.name = name
        self.message = message or f"Circuit breaker '{name}' is open"
        super().__init__(self.message)


class CircuitBreaker:
    """
    Count-based sliding window circuit breaker.

    States:
    - CLOSED: calls pass through; outcomes are recorded in a window of the
      last ``sliding_window_size`` calls. Once at least
      ``minimum_number_of_calls`` outcomes are recorded and the failure rate
      reaches ``failure_rate_threshold`` percent, the breaker opens.
    - OPEN: calls are rejected until ``wait_duration`` seconds have passed.
    - HALF_OPEN: up to ``permitted_calls_in_half_open`` probes are let
      through. A successful probe closes the breaker, a failed one reopens it.

    One instance is shared by every caller of a downstream service, so all
    state changes happen under an asyncio lock.
    """

    def __init__(
        self,
        name: str = "default",
        failure_rate_threshold: float = 50.0,
        sliding_window_size: int = 10,
        minimum_number_of_calls: int = 5,
        wait_duration: float = 10.0,
        permitted_calls_in_half_open: int = 1,
        clock: Callable[[], float] = time.monotonic,
        on_state_change: Optional[StateListener] = None,
    ) -> None:
        """
        Initialize the circuit breaker.

        Args:
            name: Breaker name, used in logs and errors.
            failure_rate_threshold: Failure percentage that opens the circuit.
            sliding_window_size: Number of recent calls considered.
            minimum_number_of_calls: Calls needed before the rate is evaluated.
            wait_duration: Seconds to stay open before probing.
            permitted_calls_in_half_open: Probe calls allowed while half-open.
            clock: Monotonic time source.
            on_state_change: Called with (name, new_state) on every transition.
        """
        if not 0 < failure_rate_threshold <= 100:
            raise ValueError("failure_rate_threshold must be in (0, 100]")
        if sliding_window_size < 1 or permitted_calls_in_half_open < 1:
            raise ValueError("window size and half-open calls must be positive")

        self._name = name
        self._failure_rate_threshold = failure_rate_threshold
        self._minimum_number_of_calls = max(1, min(minimum_number_of_calls, sliding_window_size))
        self._wait_duration = wait_duration
        self._permitted_calls_in_half_open = permitted_calls_in_half_open
        self._clock = clock
        self._on_state_change = on_state_change

        self._state = CircuitState.CLOSED
        self._outcomes: deque[bool] = deque(maxlen=sliding_window_size)
        self._opened_at: Optional[float] = None
        self._half_open_calls = 0
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        """Breaker name."""
        return self._name

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        return self._state

    @property
    def failure_count(self) -> int:
        """Failures inside the current window."""
        return sum(1 for ok in self._outcomes if not ok)

    @property
    def failure_rate(self) -> float:
        """Failure percentage of the current window, -1 while under the minimum."""
        if len(self._outcomes) < self._minimum_number_of_calls:
            return -1.0
        return self.failure_count * 100.0 / len(self._outcomes)

    async def allow(self) -> bool:
        """
        Ask permission to issue a call.

        Returns:
            True if the call may proceed. Every permitted call must be
            followed by exactly one ``record_success``, ``record_failure``
            or ``release``.
        """
        async with self._lock:
            if self._state == CircuitState.OPEN:
                if self._opened_at is not None and self._clock() - self._opened_at >= self._wait_duration:
                    self._transition(CircuitState.HALF_OPEN)
                else:
                    return False

            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_calls >= self._permitted_calls_in_half_open:
                    return False
                self._half_open_calls += 1

            return True

    async def record_success(self) -> None:
        """Record a successful call."""
        async with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                logger.info("Circuit breaker closing after successful probe", circuit=self._name)
                self._transition(CircuitState.CLOSED)
                return
            self._outcomes.append(True)

    async def record_failure(self) -> None:
        """Record a failed call."""
        async with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                logger.warning("Circuit breaker reopening after failed probe", circuit=self._name)
                self._transition(CircuitState.OPEN)
                return
            if self._state == CircuitState.OPEN:
                return

            self._outcomes.append(False)
            rate = self.failure_rate
            if rate >= self._failure_rate_threshold:
                logger.warning(
                    "Circuit breaker opening after failure rate exceeded",
                    circuit=self._name,
                    failure_rate=rate,
                    threshold=self._failure_rate_threshold,
                )
                self._transition(CircuitState.OPEN)

    def release(self) -> None:
        """
        Return a permit whose call was abandoned without an outcome.

        Used when a permitted call is cancelled: nothing is recorded, and a
        half-open probe slot becomes available again.
        """
        if self._state == CircuitState.HALF_OPEN and self._half_open_calls > 0:
            self._half_open_calls -= 1

    async def call(
        self,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """
        Execute an async function through the circuit breaker.

        Args:
            func: Async function to execute.
            *args: Function arguments.
            **kwargs: Function keyword arguments.

        Returns:
            Function result.

        Raises:
            CircuitBreakerError: If the breaker rejects the call.
        """
        if not await self.allow():
            logger.warning("Circuit breaker rejecting call", circuit=self._name, state=self._state.value)
            raise CircuitBreakerError(self._name)

        try:
            result = await func(*args, **kwargs)
        except asyncio.CancelledError:
            self.release()
            raise
        except Exception:
            await self.record_failure()
            raise
        await self.record_success()
        return result

    def reset(self) -> None:
        """Force the breaker back to a clean closed state."""
        self._transition(CircuitState.CLOSED)
        logger.info("Circuit breaker reset", circuit=self._name)

    def _transition(self, new_state: CircuitState) -> None:
        self._state = new_state
        self._outcomes.clear()
        self._half_open_calls = 0
        self._opened_at = self._clock() if new_state == CircuitState.OPEN else None
        if new_state == CircuitState.HALF_OPEN:
            logger.info("Circuit breaker transitioning to half-open", circuit=self._name)
        if self._on_state_change is not None:
            self._on_state_change(self._name, new_state)


class CircuitBreakerRegistry:
    """
    Process-wide set of breakers, one per downstream service name.

    Built once at startup and handed to every collaborator that talks to a
    downstream service.
    """

    def __init__(
        self,
        on_state_change: Optional[StateListener] = None,
        **defaults: Any,
    ) -> None:
        """
        Initialize the registry.

        Args:
            on_state_change: Listener attached to every breaker created here.
            **defaults: Keyword arguments passed to each new CircuitBreaker.
        """
        self._defaults = defaults
        self._on_state_change = on_state_change
        self._breakers: dict[str, CircuitBreaker] = {}

    def circuit_breaker(self, name: str) -> CircuitBreaker:
        """Return the breaker for ``name``, creating it on first use."""
        breaker = self._breakers.get(name)
        if breaker is None:
            breaker = CircuitBreaker(
                name=name,
                on_state_change=self._on_state_change,
                **self._defaults,
            )
            self._breakers[name] = breaker
            if self._on_state_change is not None:
                self._on_state_change(name, breaker.state)
        return breaker

    def all(self) -> list[CircuitBreaker]:
        """All breakers created so far."""
        return list(self._breakers.values())
