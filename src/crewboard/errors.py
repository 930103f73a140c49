"""Error taxonomy for the collaborative state layer.

Every failure the coordinator can report is a :class:`CrewboardError`
subclass. Repositories raise them, the coordinator turns them into
:class:`~crewboard.outcome.Outcome` failures, and the UI renders the message.

Only :class:`TransportError` (and its subclasses) is eligible for a
user-initiated retry. Nothing in this package retries automatically.
"""

from __future__ import annotations

from typing import Any


class CrewboardError(Exception):
    """Base class for all expected failures."""

    retryable = False

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ValidationError(CrewboardError):
    """Missing or malformed input, caught before any network call."""


class PermissionDeniedError(CrewboardError):
    """The acting user lacks rights for the requested mutation."""


class ConflictError(CrewboardError):
    """Duplicate membership or duplicate join attempt."""


class NotFoundOrExpiredError(CrewboardError):
    """Join code absent or past expiry. Both cases share one message."""


class TransportError(CrewboardError):
    """Network or remote store failure."""

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code


class RpcUnavailableError(TransportError):
    """The requested server-side function is not deployed."""


class InconsistentStateError(CrewboardError):
    """A multi-step write stopped halfway.

    ``partial`` holds whatever was already persisted remotely (for example the
    project row when its lead membership could not be inserted) so the caller
    can offer a cleanup.
    """

    def __init__(self, message: str, *, partial: Any = None, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.partial = partial
        self.cause = cause
