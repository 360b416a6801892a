"""Framework-agnostic async circuit breaker.

This package implements the circuit breaker pattern from *Release It!*.

Key behavior notes:
  - A breaker trips when ``max_failures`` counted failures fall within
    ``rolling_window`` seconds (inclusive). Only the newest ``max_failures``
    failure timestamps are tracked.
  - Recovery is lazy: there is no timer. ``OPEN`` becomes ``HALF_OPEN`` the
    next time ``run``, ``state`` or ``snapshot`` observes that
    ``recovery_timeout`` has elapsed.
  - While ``HALF_OPEN`` one success closes the circuit and one counted failure
    reopens it. Errors the classifier ignores leave the state untouched.
  - Cancellation of the protected operation is never recorded unless
    ``trip_on_cancellation`` is set and the classifier accepts it.
"""

from tripwire.circuit_breaker.breaker import CircuitBreaker, CircuitBreakerConfig
from tripwire.circuit_breaker.classifier import (
    ErrorClassifier,
    TripOnAnyError,
    TripOnExceptionTypes,
    as_classifier,
)
from tripwire.circuit_breaker.exceptions import (
    CircuitBreakerError,
    CircuitOpenError,
)
from tripwire.circuit_breaker.metrics import BreakerListener
from tripwire.circuit_breaker.registry import CircuitBreakerRegistry
from tripwire.circuit_breaker.state import BreakerSnapshot, CircuitState

__all__ = [
    "BreakerListener",
    "BreakerSnapshot",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitBreakerRegistry",
    "CircuitOpenError",
    "CircuitState",
    "ErrorClassifier",
    "TripOnAnyError",
    "TripOnExceptionTypes",
    "as_classifier",
]
