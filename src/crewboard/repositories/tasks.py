"""Task repository."""

from __future__ import annotations

from typing import Any

from crewboard.errors import PermissionDeniedError
from crewboard.inputs import TaskInput
from crewboard.models import Task
from crewboard.remote import Order, RemoteStore, eq
from crewboard.repositories._decode import decode, decode_all

TABLE = "tasks"


class TaskRepository:
    def __init__(self, remote: RemoteStore) -> None:
        self.remote = remote

    async def list_for_project(self, project_id: str) -> list[Task]:
        """Tasks of a project ordered by position."""
        rows = await self.remote.select(
            TABLE,
            [eq("project_id", project_id)],
            order=[Order("position"), Order("created_at")],
        )
        return decode_all(Task, rows)

    async def get(self, task_id: str) -> Task | None:
        row = await self.remote.select_one(TABLE, [eq("id", task_id)])
        return decode(Task, row) if row else None

    async def max_position(self, project_id: str) -> int | None:
        """Highest position used in the project, or None when it has no tasks."""
        row = await self.remote.select_one(
            TABLE,
            [eq("project_id", project_id)],
            columns="position",
            order=[Order("position", ascending=False)],
        )
        if row is None or row.get("position") is None:
            return None
        return int(row["position"])

    async def next_position(self, project_id: str) -> int:
        current = await self.max_position(project_id)
        return 0 if current is None else current + 1

    async def create(self, data: TaskInput, creator_id: str, position: int) -> Task:
        row = data.to_row()
        row["created_by"] = creator_id
        row["position"] = position
        return decode(Task, await self.remote.insert(TABLE, row))

    async def update(self, task_id: str, changes: dict[str, Any]) -> Task:
        rows = await self.remote.update(TABLE, changes, [eq("id", task_id)])
        if not rows:
            raise PermissionDeniedError("Task not found or you do not have access to it")
        return decode(Task, rows[0])

    async def delete(self, task_id: str) -> None:
        await self.remote.delete(TABLE, [eq("id", task_id)])
