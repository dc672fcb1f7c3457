"""
Predicates deciding whether an error is worth logging
"""

from typing import Any, Callable, Optional

ErrorPredicate = Callable[[Any], bool]


def always_loggable(error: Any) -> bool:
    """Default predicate: every error is logged"""
    return True


def _status_of(error: Any) -> Optional[int]:
    for attr in ("status_code", "status"):
        status = getattr(error, attr, None)
        if isinstance(status, int):
            return status
    return None


def status_at_least(min_status: int) -> ErrorPredicate:
    """
    Create a predicate that only accepts errors with a status >= min_status

    Errors without a status (plain exceptions) count as 500.
    """

    def predicate(error: Any) -> bool:
        status = _status_of(error)
        if status is None:
            status = 500
        return status >= min_status

    predicate.__name__ = f"status_at_least_{min_status}"
    return predicate


class ErrorClassifier:
    """Wraps a caller supplied predicate"""

    def __init__(self, predicate: Optional[ErrorPredicate] = None):
        self.predicate = predicate or always_loggable

    def test(self, error: Any) -> bool:
        # Exceptions raised by the predicate propagate to the caller
        return bool(self.predicate(error))

    def __repr__(self) -> str:
        name = getattr(self.predicate, "__name__", repr(self.predicate))
        return f"ErrorClassifier({name})"
