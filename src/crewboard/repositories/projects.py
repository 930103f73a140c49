"""Project repository."""

from __future__ import annotations

from typing import Any

from crewboard.errors import PermissionDeniedError, TransportError
from crewboard.inputs import ProjectInput, ProjectPatch
from crewboard.models import Project
from crewboard.remote import Order, RemoteStore, eq
from crewboard.repositories._decode import decode, decode_all

TABLE = "projects"
VISIBLE_PROJECTS_RPC = "get_user_projects"


def _rows(payload: Any) -> list[dict[str, Any]]:
    if payload is None:
        return []
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return payload
    raise TransportError(f"Unexpected {VISIBLE_PROJECTS_RPC} response: {type(payload).__name__}")


class ProjectRepository:
    def __init__(self, remote: RemoteStore) -> None:
        self.remote = remote

    async def list_visible(self, user_id: str) -> list[Project]:
        """Projects *user_id* created OR is a member of, newest first.

        The union is computed server-side by a single RPC so a project is
        never duplicated or missed by combining two client-side queries.
        """
        payload = await self.remote.rpc(VISIBLE_PROJECTS_RPC, {"p_user_id": user_id})
        projects = decode_all(Project, _rows(payload))
        projects.sort(key=lambda p: p.created_at, reverse=True)
        return projects

    async def get(self, project_id: str) -> Project | None:
        row = await self.remote.select_one(TABLE, [eq("id", project_id)])
        return decode(Project, row) if row else None

    async def list_created_by(self, user_id: str, limit: int | None = None) -> list[Project]:
        rows = await self.remote.select(
            TABLE,
            [eq("created_by", user_id)],
            order=[Order("created_at")],
            limit=limit,
        )
        return decode_all(Project, rows)

    async def create(self, data: ProjectInput, creator_id: str) -> Project:
        row = data.to_row()
        row["created_by"] = creator_id
        return decode(Project, await self.remote.insert(TABLE, row))

    async def update(self, project_id: str, patch: ProjectPatch) -> Project:
        rows = await self.remote.update(TABLE, patch.to_row(), [eq("id", project_id)])
        if not rows:
            raise PermissionDeniedError("Project not found or you do not have access to it")
        return decode(Project, rows[0])

    async def delete(self, project_id: str) -> None:
        await self.remote.delete(TABLE, [eq("id", project_id)])
