"""Domain records for projects, tasks, memberships, join codes and activity.

Rows coming back from the remote store are translated here, at the
repository boundary, and nowhere else. Every record is an immutable
dataclass with ``from_row()`` / ``to_dict()`` helpers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

DEFAULT_PROJECT_COLOR = "#3B82F6"


class ProjectType(StrEnum):
    INDIVIDUAL = "individual"
    TEAM = "team"


class ProjectStatus(StrEnum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class MemberRole(StrEnum):
    ADMIN = "admin"
    LEAD = "lead"
    MEMBER = "member"


class TaskStatus(StrEnum):
    """Board columns in workflow order."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ActivityAction(StrEnum):
    CREATED_PROJECT = "created_project"
    UPDATED_PROJECT = "updated_project"
    DELETED_PROJECT = "deleted_project"
    JOINED_PROJECT = "joined_project"
    CREATED_TASK = "created_task"
    UPDATED_TASK = "updated_task"
    COMPLETED_TASK = "completed_task"
    DELETED_TASK = "deleted_task"
    ASSIGNED_TASK = "assigned_task"
    ADDED_MEMBER = "added_member"
    REMOVED_MEMBER = "removed_member"
    UPDATED_MEMBER_ROLE = "updated_member_role"
    UPLOADED_FILE = "uploaded_file"
    COMMENTED = "commented"
    SCHEDULED_MEETING = "scheduled_meeting"
    JOINED_MEETING = "joined_meeting"
    CREATED_EVENT = "created_event"
    GENERATED_REPORT = "generated_report"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 value from the store into an aware UTC datetime.

    Accepts a trailing ``Z`` and naive values (assumed UTC). Returns None for
    empty or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def _required_timestamp(row: dict[str, Any], key: str) -> datetime:
    parsed = parse_timestamp(row.get(key))
    if parsed is None:
        raise ValueError(f"row is missing a valid '{key}' timestamp")
    return parsed


@dataclass(frozen=True)
class Profile:
    """A user as seen by this layer (identity plus gamification and presence)."""

    id: str
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    points: int = 0
    level: int = 1
    project_count: int = 0
    is_online: bool = False
    last_seen: datetime | None = None
    has_ever_created_project: bool = False

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Profile:
        return cls(
            id=row["id"],
            email=row.get("email") or "",
            full_name=row.get("full_name"),
            avatar_url=row.get("avatar_url"),
            points=int(row.get("points") or 0),
            level=int(row.get("level") or 1),
            project_count=int(row.get("project_count") or 0),
            is_online=bool(row.get("is_online", False)),
            last_seen=parse_timestamp(row.get("last_seen")),
            has_ever_created_project=bool(row.get("has_ever_created_project", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "avatar_url": self.avatar_url,
            "points": self.points,
            "level": self.level,
            "project_count": self.project_count,
            "is_online": self.is_online,
            "last_seen": format_timestamp(self.last_seen),
            "has_ever_created_project": self.has_ever_created_project,
        }


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    created_by: str
    created_at: datetime
    updated_at: datetime
    project_type: ProjectType = ProjectType.INDIVIDUAL
    status: ProjectStatus = ProjectStatus.ACTIVE
    description: str | None = None
    color: str = DEFAULT_PROJECT_COLOR
    deadline: datetime | None = None

    @property
    def is_team(self) -> bool:
        return self.project_type == ProjectType.TEAM

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Project:
        created_at = _required_timestamp(row, "created_at")
        return cls(
            id=row["id"],
            name=row["name"],
            created_by=row["created_by"],
            created_at=created_at,
            updated_at=parse_timestamp(row.get("updated_at")) or created_at,
            project_type=ProjectType(row.get("project_type") or ProjectType.INDIVIDUAL),
            status=ProjectStatus(row.get("status") or ProjectStatus.ACTIVE),
            description=row.get("description"),
            color=row.get("color") or DEFAULT_PROJECT_COLOR,
            deadline=parse_timestamp(row.get("deadline")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "project_type": str(self.project_type),
            "status": str(self.status),
            "deadline": format_timestamp(self.deadline),
            "created_by": self.created_by,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }


@dataclass(frozen=True)
class Membership:
    id: str
    project_id: str
    user_id: str
    role: MemberRole
    joined_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Membership:
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            user_id=row["user_id"],
            role=MemberRole(row.get("role") or MemberRole.MEMBER),
            joined_at=_required_timestamp(row, "joined_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "role": str(self.role),
            "joined_at": format_timestamp(self.joined_at),
        }


@dataclass(frozen=True)
class TeamMember:
    """A membership joined with the member's profile.

    ``id`` is the membership id, so the same person appears once per project
    they belong to.
    """

    id: str
    user_id: str
    project_id: str
    email: str
    role: MemberRole
    joined_at: datetime
    full_name: str | None = None
    is_online: bool = False
    last_seen: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    @classmethod
    def from_parts(cls, membership: Membership, profile: Profile) -> TeamMember:
        return cls(
            id=membership.id,
            user_id=membership.user_id,
            project_id=membership.project_id,
            email=profile.email,
            role=membership.role,
            joined_at=membership.joined_at,
            full_name=profile.full_name,
            is_online=profile.is_online,
            last_seen=profile.last_seen,
        )

    def with_role(self, role: MemberRole) -> TeamMember:
        return TeamMember(
            id=self.id,
            user_id=self.user_id,
            project_id=self.project_id,
            email=self.email,
            role=role,
            joined_at=self.joined_at,
            full_name=self.full_name,
            is_online=self.is_online,
            last_seen=self.last_seen,
        )


@dataclass(frozen=True)
class JoinCode:
    id: str
    code: str
    project_id: str
    created_by: str
    created_at: datetime
    expires_at: datetime

    def is_active(self, now: datetime) -> bool:
        return self.expires_at > now

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> JoinCode:
        return cls(
            id=row["id"],
            code=str(row["code"]).upper(),
            project_id=row["project_id"],
            created_by=row["created_by"],
            created_at=_required_timestamp(row, "created_at"),
            expires_at=_required_timestamp(row, "expires_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "project_id": self.project_id,
            "created_by": self.created_by,
            "created_at": format_timestamp(self.created_at),
            "expires_at": format_timestamp(self.expires_at),
        }


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    project_id: str
    created_by: str
    position: int
    created_at: datetime
    updated_at: datetime
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    description: str | None = None
    assigned_to: str | None = None
    due_date: datetime | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Task:
        created_at = _required_timestamp(row, "created_at")
        return cls(
            id=row["id"],
            title=row["title"],
            project_id=row["project_id"],
            created_by=row["created_by"],
            position=int(row.get("position") or 0),
            created_at=created_at,
            updated_at=parse_timestamp(row.get("updated_at")) or created_at,
            status=TaskStatus(row.get("status") or TaskStatus.TODO),
            priority=TaskPriority(row.get("priority") or TaskPriority.MEDIUM),
            description=row.get("description"),
            assigned_to=row.get("assigned_to"),
            due_date=parse_timestamp(row.get("due_date")),
            tags=tuple(row.get("tags") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": str(self.status),
            "priority": str(self.priority),
            "project_id": self.project_id,
            "assigned_to": self.assigned_to,
            "created_by": self.created_by,
            "due_date": format_timestamp(self.due_date),
            "position": self.position,
            "tags": list(self.tags),
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }


@dataclass(frozen=True)
class ActivityEntry:
    """Immutable audit record of a mutating action."""

    id: str
    user_id: str
    action: str
    description: str
    created_at: datetime
    project_id: str | None = None
    task_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ActivityEntry:
        # Older rows use ``activity_type`` instead of ``action``.
        action = row.get("action") or row.get("activity_type")
        if not action:
            raise ValueError("activity row has no action")
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            action=str(action),
            description=row.get("description") or "",
            created_at=_required_timestamp(row, "created_at"),
            project_id=row.get("project_id"),
            task_id=row.get("task_id"),
            metadata=dict(row.get("metadata") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "action": self.action,
            "description": self.description,
            "project_id": self.project_id,
            "task_id": self.task_id,
            "metadata": dict(self.metadata),
            "created_at": format_timestamp(self.created_at),
        }


@dataclass(frozen=True)
class ActivityDraft:
    """An activity entry before the store has assigned it an id."""

    action: str
    description: str
    project_id: str | None = None
    task_id: str | None = None
    target_id: str | None = None
    target_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
