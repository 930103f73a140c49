"""Result wrapper returned by every coordinator operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import CrewboardError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or a typed error, never both.

    ``discarded`` is set when a fetch resolved after its consumer went away;
    the value is still returned but the Store was not written.
    """

    value: T | None = None
    error: CrewboardError | None = None
    discarded: bool = False

    @classmethod
    def success(cls, value: T, *, discarded: bool = False) -> Outcome[T]:
        return cls(value=value, discarded=discarded)

    @classmethod
    def failure(cls, error: CrewboardError) -> Outcome[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def retryable(self) -> bool:
        """True when a "Retry" affordance makes sense (transport failures only)."""
        return self.error is not None and self.error.retryable

    @property
    def message(self) -> str | None:
        return None if self.error is None else self.error.message

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
