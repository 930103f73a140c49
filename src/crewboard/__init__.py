"""Crewboard: the collaborative data layer of a team task board.

The :class:`Coordinator` is the entry point. It performs every read and
write against the remote store and keeps a local cache whose read-only
view (``coordinator.state``) is what UI code renders.
"""

from crewboard.coordinator import (
    Coordinator,
    Liveness,
    ProjectCreation,
    ProjectListing,
    ProjectListState,
)
from crewboard.errors import (
    ConflictError,
    CrewboardError,
    InconsistentStateError,
    NotFoundOrExpiredError,
    PermissionDeniedError,
    RpcUnavailableError,
    TransportError,
    ValidationError,
)
from crewboard.outcome import Outcome
from crewboard.state import CollaborativeStateStore, StateView

__version__ = "0.4.0"

__all__ = [
    "CollaborativeStateStore",
    "ConflictError",
    "Coordinator",
    "CrewboardError",
    "InconsistentStateError",
    "Liveness",
    "NotFoundOrExpiredError",
    "Outcome",
    "PermissionDeniedError",
    "ProjectCreation",
    "ProjectListState",
    "ProjectListing",
    "RpcUnavailableError",
    "StateView",
    "TransportError",
    "ValidationError",
    "__version__",
]
