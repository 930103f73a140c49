"""Join code repository (``team_codes`` table)."""

from __future__ import annotations

from datetime import datetime

from crewboard.errors import TransportError
from crewboard.models import JoinCode
from crewboard.remote import Order, RemoteStore, eq, gt
from crewboard.repositories._decode import decode

TABLE = "team_codes"
GENERATE_CODE_RPC = "generate_team_code"


class JoinCodeRepository:
    def __init__(self, remote: RemoteStore) -> None:
        self.remote = remote

    async def generate(self) -> str:
        """Ask the server for a fresh token.

        Raises RpcUnavailableError when the function is not deployed.
        """
        payload = await self.remote.rpc(GENERATE_CODE_RPC)
        if isinstance(payload, dict):
            payload = payload.get(GENERATE_CODE_RPC) or payload.get("code")
        if not isinstance(payload, str) or not payload.strip():
            raise TransportError(f"{GENERATE_CODE_RPC} returned no code")
        return payload.strip()

    async def find_active(self, code: str, now: datetime) -> JoinCode | None:
        row = await self.remote.select_one(
            TABLE,
            [eq("code", code), gt("expires_at", now)],
            order=[Order("created_at", ascending=False)],
        )
        return decode(JoinCode, row) if row else None

    async def active_for_project(self, project_id: str, now: datetime) -> JoinCode | None:
        row = await self.remote.select_one(
            TABLE,
            [eq("project_id", project_id), gt("expires_at", now)],
            order=[Order("created_at", ascending=False)],
        )
        return decode(JoinCode, row) if row else None

    async def expire_active(self, project_id: str, now: datetime) -> int:
        """Expire every still-active code of a project. Returns how many were expired."""
        rows = await self.remote.update(
            TABLE,
            {"expires_at": now.isoformat()},
            [eq("project_id", project_id), gt("expires_at", now)],
        )
        return len(rows)

    async def create(
        self,
        code: str,
        project_id: str,
        creator_id: str,
        expires_at: datetime,
    ) -> JoinCode:
        row = await self.remote.insert(
            TABLE,
            {
                "code": code,
                "project_id": project_id,
                "created_by": creator_id,
                "expires_at": expires_at.isoformat(),
            },
        )
        return decode(JoinCode, row)
