"""Read-side projections over Store contents.

Everything here is a pure function of its arguments: no network, no Store
access, and ``now`` is always passed in so results are deterministic.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from .models import ActivityAction, ActivityEntry, Task, TaskPriority, TaskStatus, TeamMember

MINUTE_SECONDS = 60
HOUR_SECONDS = 3600
DAY_SECONDS = 86400

UNASSIGNED = "unassigned"


# ---------------------------------------------------------------------------
# Activity feed
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeedCategory:
    """Display category for an action tag. The UI maps keys to icons/colors."""

    key: str
    icon: str
    color: str


TASK_DONE = FeedCategory("task_completed", "check-circle", "green")
TASK_CHANGE = FeedCategory("task", "clipboard", "indigo")
PROJECT_CHANGE = FeedCategory("project", "folder", "sky")
MEMBERSHIP = FeedCategory("user_joined", "users", "orange")
COMMENT = FeedCategory("comment", "message-circle", "blue")
FILE = FeedCategory("file_uploaded", "file-text", "purple")
SCHEDULE = FeedCategory("schedule", "calendar", "amber")
REPORT = FeedCategory("report", "bar-chart", "teal")
GENERIC = FeedCategory("activity", "activity", "gray")

_CATEGORY_BY_ACTION: dict[str, FeedCategory] = {
    ActivityAction.COMPLETED_TASK: TASK_DONE,
    ActivityAction.CREATED_TASK: TASK_CHANGE,
    ActivityAction.UPDATED_TASK: TASK_CHANGE,
    ActivityAction.DELETED_TASK: TASK_CHANGE,
    ActivityAction.ASSIGNED_TASK: TASK_CHANGE,
    ActivityAction.CREATED_PROJECT: PROJECT_CHANGE,
    ActivityAction.UPDATED_PROJECT: PROJECT_CHANGE,
    ActivityAction.DELETED_PROJECT: PROJECT_CHANGE,
    ActivityAction.JOINED_PROJECT: MEMBERSHIP,
    ActivityAction.ADDED_MEMBER: MEMBERSHIP,
    ActivityAction.REMOVED_MEMBER: MEMBERSHIP,
    ActivityAction.UPDATED_MEMBER_ROLE: MEMBERSHIP,
    ActivityAction.COMMENTED: COMMENT,
    ActivityAction.UPLOADED_FILE: FILE,
    ActivityAction.SCHEDULED_MEETING: SCHEDULE,
    ActivityAction.JOINED_MEETING: SCHEDULE,
    ActivityAction.CREATED_EVENT: SCHEDULE,
    ActivityAction.GENERATED_REPORT: REPORT,
}


def categorize(action: str) -> FeedCategory:
    """Map an action tag to its display category; unknown tags are generic."""
    return _CATEGORY_BY_ACTION.get(action, GENERIC)


def _units_ago(count: int, unit: str) -> str:
    # Plural even for one: "1 minutes ago".
    return f"{count} {unit}s ago"


def relative_time(created_at: datetime, now: datetime) -> str:
    """Human label for the age of an entry.

    Thresholds: under 60s "Just now", under an hour minutes, under a day
    hours, otherwise days. Entries stamped in the future count as "Just now".
    """
    elapsed = int((now - created_at).total_seconds())
    if elapsed < MINUTE_SECONDS:
        return "Just now"
    if elapsed < HOUR_SECONDS:
        return _units_ago(elapsed // MINUTE_SECONDS, "minute")
    if elapsed < DAY_SECONDS:
        return _units_ago(elapsed // HOUR_SECONDS, "hour")
    return _units_ago(elapsed // DAY_SECONDS, "day")


@dataclass(frozen=True)
class FeedItem:
    entry: ActivityEntry
    category: FeedCategory
    when: str


def project_feed(entries: Iterable[ActivityEntry], now: datetime) -> list[FeedItem]:
    """Feed items in the order given (the Store keeps activity newest first)."""
    return [
        FeedItem(entry=entry, category=categorize(entry.action), when=relative_time(entry.created_at, now))
        for entry in entries
    ]


# ---------------------------------------------------------------------------
# Task board
# ---------------------------------------------------------------------------


def _matches(task: Task, priority: TaskPriority | str | None, assignee: str | None) -> bool:
    if priority is not None and task.priority != priority:
        return False
    if assignee is None:
        return True
    if assignee == UNASSIGNED:
        return task.assigned_to is None
    return task.assigned_to == assignee


def group_board(
    tasks: Iterable[Task],
    *,
    priority: TaskPriority | str | None = None,
    assignee: str | None = None,
) -> dict[TaskStatus, list[Task]]:
    """Columns in workflow order, each sorted by position.

    ``assignee="unassigned"`` selects tasks nobody is assigned to.
    """
    columns: dict[TaskStatus, list[Task]] = {status: [] for status in TaskStatus}
    for task in tasks:
        if _matches(task, priority, assignee):
            columns[task.status].append(task)
    for column in columns.values():
        column.sort(key=lambda t: t.position)
    return columns


def board_counts(tasks: Iterable[Task]) -> dict[TaskStatus, int]:
    counts = {status: 0 for status in TaskStatus}
    for task in tasks:
        counts[task.status] += 1
    return counts


def completion_rate(tasks: Iterable[Task]) -> float:
    """Share of completed tasks in [0, 1]; 0 for an empty board."""
    counts = board_counts(tasks)
    total = sum(counts.values())
    if total == 0:
        return 0.0
    return counts[TaskStatus.COMPLETED] / total


# ---------------------------------------------------------------------------
# Team presence
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Presence:
    members: list[TeamMember]
    online_count: int


def team_presence(members: Iterable[TeamMember]) -> Presence:
    """One entry per person (first membership seen wins), online first."""
    distinct: dict[str, TeamMember] = {}
    for member in members:
        distinct.setdefault(member.user_id, member)
    ordered = sorted(distinct.values(), key=lambda m: (not m.is_online, m.display_name.lower()))
    return Presence(members=ordered, online_count=sum(1 for m in ordered if m.is_online))
