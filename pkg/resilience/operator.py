"""
Resilience operator.

Wraps calls to a downstream service with a timeout and a circuit breaker,
and translates every failure into one error type.
"""
import asyncio
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

from pkg.logger.logger import get_logger

from .circuit_breaker import CircuitBreaker, CircuitBreakerError


logger = get_logger(__name__)


T = TypeVar("T")

DEFAULT_TIMEOUT = 2.0

Outcome = Callable[[str, str], None]


class DownstreamUnavailableError(Exception):
    """Raised when a downstream call times out, fails, or is rejected by its breaker."""

    def __init__(self, breaker_name: str, cause: Optional[BaseException] = None) -> None:
        """
        Initialize downstream unavailable error.

        Args:
            breaker_name: Breaker guarding the downstream service.
            cause: Original failure.
        """
        self.breaker_name = breaker_name
        self.cause = cause
        self.message = "Downstream service unavailable or timed out"
        super().__init__(self.message)


class ResilienceOperator:
    """
    Applies timeout + circuit breaker to single-result and streaming calls.

    Single-result calls fail closed: any failure raises
    ``DownstreamUnavailableError``. Streaming calls fail open: on failure the
    stream just ends, so callers see it the same as an empty result.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        on_outcome: Optional[Outcome] = None,
    ) -> None:
        """
        Initialize the operator.

        Args:
            timeout: Seconds allowed for a single call, or between two
                consecutive items of a stream.
            on_outcome: Called with (breaker_name, outcome) after every call;
                outcome is one of success, failure, timeout, rejected.
        """
        self._timeout = timeout
        self._on_outcome = on_outcome

    @property
    def timeout(self) -> float:
        return self._timeout

    async def call(
        self,
        operation: Optional[Callable[[], Awaitable[T]]],
        breaker: CircuitBreaker,
    ) -> Optional[T]:
        """
        Run a single-result downstream call.

        Args:
            operation: Zero-argument factory producing the awaitable. ``None``
                is a no-op and yields ``None``.
            breaker: Breaker for the downstream service.

        Returns:
            The call result.

        Raises:
            DownstreamUnavailableError: On timeout, failure, or open breaker.
        """
        if operation is None:
            return None

        if not await breaker.allow():
            cause = CircuitBreakerError(breaker.name)
            self._report(breaker.name, "rejected", cause)
            raise DownstreamUnavailableError(breaker.name, cause) from cause

        try:
            result = await asyncio.wait_for(operation(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            await breaker.record_failure()
            self._report(breaker.name, "timeout", e)
            raise DownstreamUnavailableError(breaker.name, e) from e
        except asyncio.CancelledError:
            breaker.release()
            raise
        except Exception as e:
            await breaker.record_failure()
            self._report(breaker.name, "failure", e)
            raise DownstreamUnavailableError(breaker.name, e) from e

        await breaker.record_success()
        self._report(breaker.name, "success")
        return result

    async def stream(
        self,
        operation: Optional[Callable[[], AsyncIterator[T]]],
        breaker: CircuitBreaker,
    ) -> AsyncIterator[T]:
        """
        Run a streaming downstream call.

        The timeout applies to the first item and to the gap between items.
        Failures end the stream silently after being logged. A stream that
        is exhausted or closed early by its consumer counts as a success; a
        cancelled one records nothing.

        Args:
            operation: Zero-argument factory producing an async iterator.
                ``None`` yields nothing.
            breaker: Breaker for the downstream service.

        Yields:
            Items produced by the downstream call.
        """
        if operation is None:
            return

        if not await breaker.allow():
            self._report(breaker.name, "rejected", CircuitBreakerError(breaker.name), fallback=True)
            return

        iterator = None
        # None until the stream settles: "success" or "failure".
        outcome: Optional[str] = None
        try:
            try:
                iterator = operation().__aiter__()
            except Exception as e:
                outcome = "failure"
                await breaker.record_failure()
                self._report(breaker.name, "failure", e, fallback=True)
                return

            while True:
                try:
                    item = await asyncio.wait_for(iterator.__anext__(), timeout=self._timeout)
                except StopAsyncIteration:
                    outcome = "success"
                    break
                except asyncio.TimeoutError as e:
                    outcome = "failure"
                    await breaker.record_failure()
                    self._report(breaker.name, "timeout", e, fallback=True)
                    return
                except Exception as e:
                    outcome = "failure"
                    await breaker.record_failure()
                    self._report(breaker.name, "failure", e, fallback=True)
                    return
                try:
                    yield item
                except GeneratorExit:
                    outcome = "success"
                    raise
        finally:
            if outcome is None:
                breaker.release()
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()
            if outcome == "success":
                await breaker.record_success()
                self._report(breaker.name, "success")

    def _report(
        self,
        breaker_name: str,
        outcome: str,
        error: Optional[BaseException] = None,
        fallback: bool = False,
    ) -> None:
        if error is not None:
            logger.warning(
                "Stream fallback after downstream failure" if fallback
                else "Downstream call failed",
                circuit=breaker_name,
                outcome=outcome,
                error=repr(error),
            )
        if self._on_outcome is not None:
            self._on_outcome(breaker_name, outcome)
