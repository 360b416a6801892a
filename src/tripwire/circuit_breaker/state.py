"""Circuit breaker state primitives."""

from dataclasses import dataclass
from enum import StrEnum


class CircuitState(StrEnum):
    """Circuit breaker state values."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of breaker internals useful for metrics/logging.

    Attributes:
        name: Breaker name.
        group: Optional group the breaker belongs to.
        state: Breaker state after the lazy recovery check.
        failure_count: Number of tracked failures in the rolling log.
        failure_timestamps: Tracked failure clock readings, oldest first.
        opened_at: Clock reading when the breaker entered ``OPEN``, if open.
        last_error: Most recent counted failure, if any.
    """

    name: str
    group: str | None
    state: CircuitState
    failure_count: int
    failure_timestamps: tuple[float, ...]
    opened_at: float | None
    last_error: BaseException | None
