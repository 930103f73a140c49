"""Membership and profile repositories."""

from __future__ import annotations

from collections.abc import Iterable

from crewboard.errors import ConflictError, PermissionDeniedError
from crewboard.inputs import ProfilePatch
from crewboard.models import MemberRole, Membership, Profile
from crewboard.remote import Order, RemoteStore, eq, in_
from crewboard.repositories._decode import decode, decode_all

MEMBERS_TABLE = "project_members"
PROFILES_TABLE = "profiles"


class MembershipRepository:
    def __init__(self, remote: RemoteStore) -> None:
        self.remote = remote

    async def get(self, project_id: str, user_id: str) -> Membership | None:
        row = await self.remote.select_one(
            MEMBERS_TABLE,
            [eq("project_id", project_id), eq("user_id", user_id)],
        )
        return decode(Membership, row) if row else None

    async def get_by_id(self, membership_id: str) -> Membership | None:
        row = await self.remote.select_one(MEMBERS_TABLE, [eq("id", membership_id)])
        return decode(Membership, row) if row else None

    async def list_for_projects(self, project_ids: Iterable[str]) -> list[Membership]:
        ids = list(project_ids)
        if not ids:
            return []
        rows = await self.remote.select(
            MEMBERS_TABLE,
            [in_("project_id", ids)],
            order=[Order("joined_at", ascending=False)],
        )
        return decode_all(Membership, rows)

    async def add(self, project_id: str, user_id: str, role: MemberRole) -> Membership:
        """Insert a membership row. A second row for the same pair is a conflict."""
        try:
            row = await self.remote.insert(
                MEMBERS_TABLE,
                {"project_id": project_id, "user_id": user_id, "role": role.value},
            )
        except ConflictError as exc:
            raise ConflictError(
                "User is already a project member",
                details={"project_id": project_id, "user_id": user_id},
            ) from exc
        return decode(Membership, row)

    async def update_role(self, membership_id: str, role: MemberRole) -> Membership:
        rows = await self.remote.update(MEMBERS_TABLE, {"role": role.value}, [eq("id", membership_id)])
        if not rows:
            raise PermissionDeniedError("Membership not found or you do not have access to it")
        return decode(Membership, rows[0])

    async def remove(self, membership_id: str) -> None:
        await self.remote.delete(MEMBERS_TABLE, [eq("id", membership_id)])


class ProfileRepository:
    def __init__(self, remote: RemoteStore) -> None:
        self.remote = remote

    async def get(self, user_id: str) -> Profile | None:
        row = await self.remote.select_one(PROFILES_TABLE, [eq("id", user_id)])
        return decode(Profile, row) if row else None

    async def find_by_email(self, email: str) -> Profile | None:
        row = await self.remote.select_one(PROFILES_TABLE, [eq("email", email.strip().lower())])
        return decode(Profile, row) if row else None

    async def list_by_ids(self, user_ids: Iterable[str]) -> list[Profile]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return []
        rows = await self.remote.select(PROFILES_TABLE, [in_("id", ids)])
        return decode_all(Profile, rows)

    async def update(self, user_id: str, patch: ProfilePatch) -> Profile:
        rows = await self.remote.update(PROFILES_TABLE, patch.to_row(), [eq("id", user_id)])
        if not rows:
            raise PermissionDeniedError("Profile not found or you do not have access to it")
        return decode(Profile, rows[0])
