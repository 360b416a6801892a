"""Observability hooks for circuit breakers."""

from typing import Protocol

from tripwire.circuit_breaker.state import CircuitState


class BreakerListener(Protocol):
    """Listener protocol for circuit breaker events.

    Notes:
        Hooks are synchronous and always invoked after the breaker released
        its state lock, so they may safely read ``breaker.state``. Exceptions
        raised by a hook are logged and suppressed.
    """

    def on_state_change(
        self, name: str, old: CircuitState, new: CircuitState
    ) -> None:
        """Handle circuit state transitions."""

    def on_call_rejected(self, name: str) -> None:
        """Handle call rejection while the circuit is open."""

    def on_call_succeeded(self, name: str, elapsed: float) -> None:
        """Handle successful protected call completion."""

    def on_call_failed(
        self, name: str, exc: BaseException, elapsed: float
    ) -> None:
        """Handle a protected call failure that counted towards tripping."""
