"""Tests for pure read-side projections."""

from datetime import datetime, timedelta, timezone

import pytest

from crewboard.models import ActivityEntry, MemberRole, Task, TaskPriority, TaskStatus, TeamMember
from crewboard.projections import (
    GENERIC,
    MEMBERSHIP,
    TASK_DONE,
    UNASSIGNED,
    board_counts,
    categorize,
    completion_rate,
    group_board,
    project_feed,
    relative_time,
    team_presence,
)

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def _ago(**kwargs) -> datetime:
    return NOW - timedelta(**kwargs)


def _task(task_id, status=TaskStatus.TODO, position=0, priority=TaskPriority.MEDIUM, assigned_to=None) -> Task:
    return Task(
        id=task_id,
        title=task_id,
        project_id="p1",
        created_by="u1",
        position=position,
        created_at=NOW,
        updated_at=NOW,
        status=status,
        priority=priority,
        assigned_to=assigned_to,
    )


def _member(membership_id, user_id, name, online=False) -> TeamMember:
    return TeamMember(
        id=membership_id,
        user_id=user_id,
        project_id="p1",
        email=f"{user_id}@example.com",
        role=MemberRole.MEMBER,
        joined_at=NOW,
        full_name=name,
        is_online=online,
    )


class TestRelativeTime:
    """Thresholds at 60s, 3600s and 86400s"""

    @pytest.mark.parametrize(
        "created_at, expected",
        [
            (_ago(seconds=59), "Just now"),
            (_ago(seconds=60), "1 minutes ago"),
            (_ago(seconds=3599), "59 minutes ago"),
            (_ago(seconds=3600), "1 hours ago"),
            (_ago(hours=5), "5 hours ago"),
            (_ago(seconds=86399), "23 hours ago"),
            (_ago(seconds=86400), "1 days ago"),
            (_ago(days=12), "12 days ago"),
        ],
    )
    def test_labels(self, created_at, expected):
        assert relative_time(created_at, NOW) == expected

    def test_future_timestamp_is_just_now(self):
        assert relative_time(NOW + timedelta(minutes=5), NOW) == "Just now"

    def test_is_deterministic(self):
        created = _ago(minutes=90)
        assert relative_time(created, NOW) == relative_time(created, NOW)


class TestCategorize:
    def test_completed_task(self):
        assert categorize("completed_task") is TASK_DONE

    def test_membership_actions_share_category(self):
        assert categorize("joined_project") is MEMBERSHIP
        assert categorize("added_member") is MEMBERSHIP

    def test_unknown_action_is_generic(self):
        assert categorize("did_something_new") is GENERIC


class TestProjectFeed:
    def test_feed_keeps_order_and_labels(self):
        entries = [
            ActivityEntry(id="2", user_id="u1", action="completed_task", description="done", created_at=_ago(seconds=10)),
            ActivityEntry(id="1", user_id="u1", action="created_task", description="new", created_at=_ago(hours=2)),
        ]
        feed = project_feed(entries, NOW)
        assert [item.entry.id for item in feed] == ["2", "1"]
        assert [item.when for item in feed] == ["Just now", "2 hours ago"]
        assert feed[0].category is TASK_DONE


class TestBoard:
    def test_columns_in_workflow_order_sorted_by_position(self):
        tasks = [
            _task("b", position=2),
            _task("a", position=0),
            _task("r", status=TaskStatus.REVIEW, position=1),
        ]
        columns = group_board(tasks)
        assert list(columns) == [TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.REVIEW, TaskStatus.COMPLETED]
        assert [t.id for t in columns[TaskStatus.TODO]] == ["a", "b"]
        assert [t.id for t in columns[TaskStatus.REVIEW]] == ["r"]
        assert columns[TaskStatus.COMPLETED] == []

    def test_priority_filter(self):
        tasks = [_task("lo", priority=TaskPriority.LOW), _task("hi", priority=TaskPriority.HIGH)]
        columns = group_board(tasks, priority=TaskPriority.HIGH)
        assert [t.id for t in columns[TaskStatus.TODO]] == ["hi"]

    def test_assignee_filters(self):
        tasks = [_task("mine", assigned_to="u1"), _task("theirs", assigned_to="u2"), _task("nobody")]
        assert [t.id for t in group_board(tasks, assignee="u1")[TaskStatus.TODO]] == ["mine"]
        assert [t.id for t in group_board(tasks, assignee=UNASSIGNED)[TaskStatus.TODO]] == ["nobody"]

    def test_counts_and_completion_rate(self):
        tasks = [_task("a"), _task("b", status=TaskStatus.COMPLETED), _task("c", status=TaskStatus.COMPLETED)]
        counts = board_counts(tasks)
        assert counts[TaskStatus.TODO] == 1
        assert counts[TaskStatus.IN_PROGRESS] == 0
        assert counts[TaskStatus.COMPLETED] == 2
        assert completion_rate(tasks) == pytest.approx(2 / 3)

    def test_completion_rate_of_empty_board(self):
        assert completion_rate([]) == 0.0


class TestTeamPresence:
    def test_distinct_people_online_first(self):
        members = [
            _member("m1", "u1", "Zed"),
            _member("m2", "u2", "Amy", online=True),
            _member("m3", "u1", "Zed"),
            _member("m4", "u3", "Bea"),
        ]
        presence = team_presence(members)
        assert [m.user_id for m in presence.members] == ["u2", "u3", "u1"]
        assert presence.online_count == 1
