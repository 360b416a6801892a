"""Tenacity retry predicate for breaker-protected calls.

Breakers never retry on their own. Callers that layer tenacity on top of
``CircuitBreaker.run`` pass ``retry_if_dependency_failed`` as the ``retry``
strategy so that a rejection by an open circuit is not retried straight away.
"""

from __future__ import annotations

from tenacity.retry import retry_base, retry_if_exception

from tripwire.circuit_breaker import CircuitOpenError


def retry_if_dependency_failed(
    *exception_types: type[BaseException],
) -> retry_base:
    """Retry on dependency errors but never on ``CircuitOpenError``.

    Args:
        *exception_types: Errors worth retrying. Defaults to ``Exception``.
    """
    retryable = exception_types or (Exception,)

    def _predicate(error: BaseException) -> bool:
        if isinstance(error, CircuitOpenError):
            return False
        return isinstance(error, retryable)

    return retry_if_exception(_predicate)
