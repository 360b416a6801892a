"""Core circuit breaker implementation."""

import asyncio
import dataclasses
import threading
import time
from collections import deque
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any, NamedTuple, ParamSpec, TypeVar

from tripwire.circuit_breaker.classifier import ClassifierLike, as_classifier
from tripwire.circuit_breaker.exceptions import CircuitOpenError
from tripwire.circuit_breaker.metrics import BreakerListener
from tripwire.circuit_breaker.state import BreakerSnapshot, CircuitState
from tripwire.logging import (
    LoggerLike,
    get_logger,
    log_exception,
    log_info,
    log_warning,
)

T = TypeVar("T")
P = ParamSpec("P")

Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration values.

    Attributes:
        name: Breaker name used in errors, logs and listener events.
        group: Optional group name, e.g. the owning registry.
        recovery_timeout: Seconds to stay ``OPEN`` before allowing a trial call.
        max_failures: Failures inside ``rolling_window`` needed to trip.
            Negative values are clamped to 0, which trips on every failure.
        rolling_window: Seconds the tracked failures must fall within.
        trip_on_cancellation: Offer ``asyncio.CancelledError`` to the
            classifier instead of always ignoring it.
    """

    name: str
    group: str | None = None
    recovery_timeout: float = 30.0
    max_failures: int = 5
    rolling_window: float = 15.0
    trip_on_cancellation: bool = False

    def __post_init__(self) -> None:
        if self.recovery_timeout < 0:
            raise ValueError("recovery_timeout must be >= 0")
        if self.rolling_window < 0:
            raise ValueError("rolling_window must be >= 0")
        if self.max_failures < 0:
            object.__setattr__(self, "max_failures", 0)

    def replace(self, **changes: Any) -> "CircuitBreakerConfig":
        """Return a copy of this config with ``changes`` applied."""
        return dataclasses.replace(self, **changes)


class _Transition(NamedTuple):
    old: CircuitState
    new: CircuitState
    failure_count: int


class CircuitBreaker:
    """Stateful proxy around a dangerous async operation.

    All reads and writes of breaker state happen under one lock that is never
    held across an ``await``: the protected operation runs outside of it, only
    the admission decision and the bookkeeping afterwards are serialized.
    Listener hooks and log events are emitted once the lock is released.
    """

    def __init__(
        self,
        config: CircuitBreakerConfig,
        *,
        classifier: ClassifierLike | None = None,
        clock: Clock | None = None,
        listeners: Sequence[BreakerListener] | None = None,
        logger: LoggerLike | None = None,
    ) -> None:
        """Build a circuit breaker with optional custom dependencies.

        Args:
            config: Breaker behavior configuration.
            classifier: Decides which errors count as failures. Defaults to
                counting every error.
            clock: Returns the current time in seconds. Defaults to
                ``time.monotonic``.
            listeners: Optional listener hooks for breaker events.
            logger: Structured logger. Defaults to a structlog logger.
        """
        self._config = config
        self._classifier = as_classifier(classifier)
        self._clock = time.monotonic if clock is None else clock
        self._listeners = tuple(listeners) if listeners is not None else ()
        self._logger = get_logger(__name__) if logger is None else logger
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures: deque[float] = deque(maxlen=config.max_failures)
        self._opened_at: float | None = None
        self._last_error: BaseException | None = None

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def group(self) -> str | None:
        return self._config.group

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def state(self) -> CircuitState:
        """Return the current state, applying any due ``OPEN`` recovery first."""
        with self._lock:
            transitions = self._recover_if_due_locked(self._clock())
            state = self._state
        self._publish(transitions)
        return state

    def snapshot(self) -> BreakerSnapshot:
        """Return a consistent point-in-time view of the breaker."""
        with self._lock:
            transitions = self._recover_if_due_locked(self._clock())
            snapshot = BreakerSnapshot(
                name=self.name,
                group=self.group,
                state=self._state,
                failure_count=len(self._failures),
                failure_timestamps=tuple(self._failures),
                opened_at=self._opened_at,
                last_error=self._last_error,
            )
        self._publish(transitions)
        return snapshot

    def open(self) -> None:
        """Force the circuit open and restart the recovery timeout."""
        with self._lock:
            transitions = self._open_locked(self._clock())
        self._publish(transitions)

    def close(self) -> None:
        """Force the circuit closed and forget tracked failures."""
        with self._lock:
            transitions = self._close_locked()
        self._publish(transitions)

    async def call(
        self,
        func: Callable[P, Awaitable[T]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Invoke ``func(*args, **kwargs)`` under circuit breaker protection."""
        return await self.run(partial(func, *args, **kwargs))

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` unless the circuit is open.

        Args:
            operation: Zero-argument callable returning the awaitable to run.

        Returns:
            The result of ``operation`` when allowed and successful.

        Raises:
            CircuitOpenError: When the circuit is open and the call is rejected.
            BaseException: The original error from ``operation`` when it is
                attempted and fails, whether or not it counted as a failure.
        """
        with self._lock:
            now = self._clock()
            transitions = self._recover_if_due_locked(now)
            rejected: CircuitOpenError | None = None
            if self._state == CircuitState.OPEN:
                rejected = CircuitOpenError(
                    self.name,
                    group=self.group,
                    retry_after=self._retry_after_locked(now),
                    last_error=self._last_error,
                )
        self._publish(transitions)

        if rejected is not None:
            self._emit("on_call_rejected")
            raise rejected

        start = time.monotonic()
        try:
            result = await operation()
        except asyncio.CancelledError as exc:
            if self._config.trip_on_cancellation and self._should_trip(exc):
                self._record_failure(exc, max(time.monotonic() - start, 0.0))
            raise
        except Exception as exc:
            if self._should_trip(exc):
                self._record_failure(exc, max(time.monotonic() - start, 0.0))
            raise

        self._record_success(max(time.monotonic() - start, 0.0))
        return result

    def _should_trip(self, exc: BaseException) -> bool:
        # A failing classifier counts the error and never replaces it.
        try:
            return bool(self._classifier.should_trip(exc))
        except Exception:
            log_exception(
                self._logger,
                "circuit_breaker.classifier_failed",
                breaker=self.name,
                group=self.group,
                error_type=type(exc).__name__,
            )
            return True

    def _record_success(self, elapsed: float) -> None:
        with self._lock:
            transitions: list[_Transition] = []
            if self._state == CircuitState.HALF_OPEN:
                transitions = self._close_locked()
        self._emit("on_call_succeeded", elapsed)
        self._publish(transitions)

    def _record_failure(self, exc: BaseException, elapsed: float) -> None:
        with self._lock:
            now = self._clock()
            self._failures.append(now)
            self._last_error = exc
            transitions: list[_Transition] = []
            if self._state == CircuitState.HALF_OPEN:
                transitions = self._open_locked(now)
            elif self._state == CircuitState.CLOSED:
                if self._threshold_reached_locked():
                    transitions = self._open_locked(now)
        self._emit("on_call_failed", exc, elapsed)
        self._publish(transitions)

    def _threshold_reached_locked(self) -> bool:
        if len(self._failures) < self._config.max_failures:
            return False
        if not self._failures:
            return True
        span = self._failures[-1] - self._failures[0]
        return span <= self._config.rolling_window

    def _retry_after_locked(self, now: float) -> float:
        if self._opened_at is None:
            return 0.0
        elapsed = now - self._opened_at
        return max(self._config.recovery_timeout - elapsed, 0.0)

    def _recover_if_due_locked(self, now: float) -> list[_Transition]:
        if self._opened_at is None:
            return []
        if now - self._opened_at < self._config.recovery_timeout:
            return []
        self._opened_at = None
        return self._set_state_locked(CircuitState.HALF_OPEN)

    def _open_locked(self, now: float) -> list[_Transition]:
        self._opened_at = now
        return self._set_state_locked(CircuitState.OPEN)

    def _close_locked(self) -> list[_Transition]:
        self._failures.clear()
        self._opened_at = None
        return self._set_state_locked(CircuitState.CLOSED)

    def _set_state_locked(self, new: CircuitState) -> list[_Transition]:
        old = self._state
        self._state = new
        if old == new:
            return []
        return [_Transition(old, new, len(self._failures))]

    def _publish(self, transitions: list[_Transition]) -> None:
        for transition in transitions:
            fields: dict[str, object] = {
                "breaker": self.name,
                "group": self.group,
                "previous_state": str(transition.old),
            }
            if transition.new == CircuitState.OPEN:
                log_warning(
                    self._logger,
                    "circuit_breaker.opened",
                    failure_count=transition.failure_count,
                    **fields,
                )
            elif transition.new == CircuitState.HALF_OPEN:
                log_info(self._logger, "circuit_breaker.half_open", **fields)
            else:
                log_info(self._logger, "circuit_breaker.closed", **fields)
            self._emit("on_state_change", transition.old, transition.new)

    def _emit(self, hook: str, *args: object) -> None:
        for listener in self._listeners:
            try:
                getattr(listener, hook)(self.name, *args)
            except Exception:
                log_exception(
                    self._logger,
                    "circuit_breaker.listener_failed",
                    breaker=self.name,
                    group=self.group,
                    hook=hook,
                )
