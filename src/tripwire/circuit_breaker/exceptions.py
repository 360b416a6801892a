"""Circuit breaker exceptions.

Callers can distinguish between:
  - A call being rejected because the circuit is open (``CircuitOpenError``).
  - The protected operation itself failing (its own exception, unchanged).
"""


class CircuitBreakerError(Exception):
    """Base exception for the circuit breaker package."""


class CircuitOpenError(CircuitBreakerError):
    """Raised when a call is rejected because the circuit is open.

    Attributes:
        breaker_name: Name of the breaker rejecting the call.
        group: Optional group of the breaker rejecting the call.
        retry_after: Seconds until a half-open trial call may be attempted.
        last_error: Most recent failure that counted towards tripping, if any.
    """

    def __init__(
        self,
        breaker_name: str,
        *,
        group: str | None = None,
        retry_after: float = 0.0,
        last_error: BaseException | None = None,
    ) -> None:
        """Initialize a circuit-open exception payload.

        Args:
            breaker_name: Breaker rejecting the call.
            group: Group the breaker belongs to.
            retry_after: Seconds until the next trial call is allowed.
            last_error: Last counted failure observed by the breaker.
        """
        self.breaker_name = breaker_name
        self.group = group
        self.retry_after = retry_after
        self.last_error = last_error
        label = breaker_name if group is None else f"{group}/{breaker_name}"
        super().__init__(f"circuit_open: {label} retry_after={retry_after:g}s")
        if last_error is not None:
            self.__cause__ = last_error
