"""Failure classification strategies.

A classifier decides whether an error raised by a protected operation counts
towards tripping the breaker. Errors that do not count are still propagated to
the caller, they are just not recorded.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class ErrorClassifier(Protocol):
    """Decide whether an error counts as a breaker failure."""

    def should_trip(self, error: BaseException) -> bool:
        """Return ``True`` when ``error`` should be recorded as a failure."""


class TripOnAnyError:
    """Default classifier: every error counts."""

    def should_trip(self, error: BaseException) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class TripOnExceptionTypes:
    """Count errors of ``expected`` types unless they match ``excluded``.

    Attributes:
        expected: Exception types that count as failures.
        excluded: Exception types that must never count, checked first.
    """

    expected: tuple[type[BaseException], ...] = (Exception,)
    excluded: tuple[type[BaseException], ...] = ()

    def should_trip(self, error: BaseException) -> bool:
        if self.excluded and isinstance(error, self.excluded):
            return False
        return isinstance(error, self.expected)


class _CallableClassifier:
    def __init__(self, predicate: Callable[[BaseException], bool]) -> None:
        self._predicate = predicate

    def should_trip(self, error: BaseException) -> bool:
        return bool(self._predicate(error))


ClassifierLike = ErrorClassifier | Callable[[BaseException], bool]


def as_classifier(classifier: ClassifierLike | None) -> ErrorClassifier:
    """Normalize ``None``, a predicate, or a classifier object to a classifier."""
    if classifier is None:
        return TripOnAnyError()
    if isinstance(classifier, ErrorClassifier):
        return classifier
    if callable(classifier):
        return _CallableClassifier(classifier)
    raise TypeError(
        "classifier must provide should_trip() or be a callable predicate"
    )
