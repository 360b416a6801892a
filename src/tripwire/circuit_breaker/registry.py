"""Keyed registry of circuit breakers sharing one base configuration."""

import threading
from collections.abc import Awaitable, Callable, Hashable, Mapping, Sequence
from typing import Generic, TypeVar

from tripwire.circuit_breaker.breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    Clock,
)
from tripwire.circuit_breaker.classifier import ClassifierLike, as_classifier
from tripwire.circuit_breaker.metrics import BreakerListener
from tripwire.circuit_breaker.state import BreakerSnapshot
from tripwire.logging import LoggerLike, get_logger, log_info

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class CircuitBreakerRegistry(Generic[K]):
    """Lazily create and hold one ``CircuitBreaker`` per key.

    Every breaker is built from ``base_config`` with ``name`` set to
    ``str(key)`` and ``group`` set to the registry name. Breakers share the
    registry's classifier, clock, listeners and logger but keep independent
    state. Entries are never evicted.
    """

    def __init__(
        self,
        name: str,
        base_config: CircuitBreakerConfig,
        *,
        classifier: ClassifierLike | None = None,
        clock: Clock | None = None,
        listeners: Sequence[BreakerListener] | None = None,
        logger: LoggerLike | None = None,
    ) -> None:
        """Create an empty registry.

        Args:
            name: Registry name, used as the ``group`` of every breaker.
            base_config: Template config cloned for each new key.
            classifier: Failure classifier shared by all breakers.
            clock: Clock shared by all breakers.
            listeners: Listener hooks attached to every breaker.
            logger: Structured logger. Defaults to a structlog logger.
        """
        self.name = name
        self.base_config = base_config
        self._classifier = as_classifier(classifier)
        self._clock = clock
        self._listeners = tuple(listeners) if listeners is not None else ()
        self._logger = get_logger(__name__) if logger is None else logger
        self._lock = threading.Lock()
        self._breakers: dict[K, CircuitBreaker] = {}

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._breakers

    def __len__(self) -> int:
        with self._lock:
            return len(self._breakers)

    def keys(self) -> list[K]:
        """Return the keys seen so far."""
        with self._lock:
            return list(self._breakers)

    def get(self, key: K) -> CircuitBreaker:
        """Return the breaker for ``key``, creating it on first use.

        Lookup and insertion happen under one lock, so concurrent callers for
        the same new key always observe the same instance.
        """
        with self._lock:
            breaker = self._breakers.get(key)
            if breaker is not None:
                return breaker
            breaker = self._build(key)
            self._breakers[key] = breaker

        log_info(
            self._logger,
            "circuit_breaker_registry.created",
            registry=self.name,
            breaker=breaker.name,
        )
        return breaker

    async def run(self, key: K, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` through the breaker for ``key``."""
        return await self.get(key).run(operation)

    def open_all(self) -> None:
        """Force every registered breaker open."""
        for breaker in self._registered():
            breaker.open()

    def close_all(self) -> None:
        """Force every registered breaker closed."""
        for breaker in self._registered():
            breaker.close()

    def snapshots(self) -> Mapping[K, BreakerSnapshot]:
        """Return a snapshot of every registered breaker keyed by its key."""
        with self._lock:
            items = list(self._breakers.items())
        return {key: breaker.snapshot() for key, breaker in items}

    def _registered(self) -> list[CircuitBreaker]:
        with self._lock:
            return list(self._breakers.values())

    def _build(self, key: K) -> CircuitBreaker:
        config = self.base_config.replace(name=str(key), group=self.name)
        return CircuitBreaker(
            config,
            classifier=self._classifier,
            clock=self._clock,
            listeners=self._listeners,
            logger=self._logger,
        )
