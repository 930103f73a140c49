"""Entity repositories.

Each repository wraps one table family of the remote store and returns
typed domain records. They hold no state of their own.
"""

from .activity import ActivityRepository
from .join_codes import JoinCodeRepository
from .members import MembershipRepository, ProfileRepository
from .projects import ProjectRepository
from .tasks import TaskRepository

__all__ = [
    "ActivityRepository",
    "JoinCodeRepository",
    "MembershipRepository",
    "ProfileRepository",
    "ProjectRepository",
    "TaskRepository",
]
