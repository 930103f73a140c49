"""Activity log repository."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from crewboard.errors import RpcUnavailableError, TransportError
from crewboard.models import ActivityDraft, ActivityEntry
from crewboard.remote import Order, RemoteStore, eq
from crewboard.repositories._decode import decode, decode_all

logger = logging.getLogger(__name__)

TABLE = "activity_logs"
LOG_ACTIVITY_RPC = "log_activity"


class ActivityRepository:
    def __init__(self, remote: RemoteStore) -> None:
        self.remote = remote

    async def list_recent(self, project_id: str | None = None, limit: int = 50) -> list[ActivityEntry]:
        """Newest first, optionally scoped to one project."""
        predicates = [eq("project_id", project_id)] if project_id else []
        rows = await self.remote.select(
            TABLE,
            predicates,
            order=[Order("created_at", ascending=False)],
            limit=limit,
        )
        return decode_all(ActivityEntry, rows)

    async def append(self, user_id: str, draft: ActivityDraft, now: datetime) -> ActivityEntry:
        """Append an entry through ``log_activity``, or a direct insert if the RPC is missing."""
        try:
            payload = await self.remote.rpc(
                LOG_ACTIVITY_RPC,
                {
                    "p_user_id": user_id,
                    "p_action": draft.action,
                    "p_description": draft.description,
                    "p_project_id": draft.project_id,
                    "p_task_id": draft.task_id,
                    "p_target_id": draft.target_id,
                    "p_target_type": draft.target_type,
                    "p_metadata": dict(draft.metadata),
                },
            )
        except RpcUnavailableError:
            logger.debug(f"{LOG_ACTIVITY_RPC} unavailable; inserting into {TABLE} directly")
            row = await self.remote.insert(TABLE, self._row(user_id, draft))
            return decode(ActivityEntry, row)

        if isinstance(payload, list):
            payload = payload[0] if payload else None
        if isinstance(payload, dict) and "created_at" in payload:
            return decode(ActivityEntry, payload)

        # The RPC returns just the new id, or nothing at all
        entry_id = payload.get("id") if isinstance(payload, dict) else payload
        if entry_id is None or entry_id == "":
            return await self._read_back(user_id, draft)
        return ActivityEntry(
            id=str(entry_id),
            user_id=user_id,
            action=draft.action,
            description=draft.description,
            created_at=now,
            project_id=draft.project_id,
            task_id=draft.task_id,
            metadata=dict(draft.metadata),
        )

    async def _read_back(self, user_id: str, draft: ActivityDraft) -> ActivityEntry:
        """Fetch the entry a void ``log_activity`` call just wrote."""
        rows = await self.remote.select(
            TABLE,
            [eq("user_id", user_id), eq("action", str(draft.action))],
            order=[Order("created_at", ascending=False)],
            limit=1,
        )
        if not rows:
            raise TransportError(f"{LOG_ACTIVITY_RPC} returned no entry and none could be read back")
        return decode(ActivityEntry, rows[0])

    @staticmethod
    def _row(user_id: str, draft: ActivityDraft) -> dict[str, Any]:
        metadata = dict(draft.metadata)
        if draft.target_id:
            metadata.setdefault("target_id", draft.target_id)
        if draft.target_type:
            metadata.setdefault("target_type", draft.target_type)
        return {
            "user_id": user_id,
            "action": draft.action,
            "description": draft.description,
            "project_id": draft.project_id,
            "task_id": draft.task_id,
            "metadata": metadata,
        }
