"""Shared fixtures: an in-memory remote store, a controllable clock and
coordinators for a few named users."""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from crewboard.coordinator import Coordinator
from crewboard.errors import ConflictError, CrewboardError, RpcUnavailableError, ValidationError
from crewboard.models import parse_timestamp
from crewboard.remote import AnyOf, Filter, Order

ALICE = "user-alice"
BOB = "user-bob"
CAROL = "user-carol"

_CASCADES = {
    "projects": ("tasks", "project_members", "team_codes"),
}


class FakeClock:
    """Callable clock. The fake store advances it one second per insert."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        parsed = parse_timestamp(value)
        return parsed if parsed is not None else value
    return value


def _matches(row: dict[str, Any], predicate: Filter | AnyOf) -> bool:
    if isinstance(predicate, AnyOf):
        return any(_matches(row, f) for f in predicate.filters)
    value = row.get(predicate.column)
    if predicate.op == "eq":
        return value == predicate.value
    if predicate.op == "gt":
        return value is not None and _comparable(value) > _comparable(predicate.value)
    if predicate.op == "in":
        return value in predicate.value
    if predicate.op == "is":
        return value is None
    raise AssertionError(f"unsupported operator {predicate.op}")


class FakeRemoteStore:
    """Row store with the same async surface as ``RemoteStore``.

    Every call yields to the event loop once, so concurrent coordinator
    calls interleave the way they would over the network. ``fail_on`` makes
    one operation raise.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.rpcs = {"get_user_projects", "log_activity", "generate_team_code"}
        self.next_codes: list[str] = ["CT-7F3K"]
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], CrewboardError] = {}
        self._ids = itertools.count(1)

    # -- test helpers ---------------------------------------------------

    def fail_on(self, operation: str, target: str, error: CrewboardError) -> None:
        self.failures[(operation, target)] = error

    def heal(self) -> None:
        self.failures.clear()

    def add_profile(self, user_id: str, email: str, full_name: str | None = None, **extra: Any) -> dict[str, Any]:
        row = {"id": user_id, "email": email, "full_name": full_name, "is_online": False, **extra}
        self.tables["profiles"].append(row)
        return row

    def seed(self, table: str, **values: Any) -> dict[str, Any]:
        row = self._stamp(table, dict(values))
        self.tables[table].append(row)
        return dict(row)

    def rows(self, table: str, **equals: Any) -> list[dict[str, Any]]:
        return [dict(r) for r in self.tables[table] if all(r.get(k) == v for k, v in equals.items())]

    # -- plumbing -------------------------------------------------------

    async def _enter(self, operation: str, target: str) -> None:
        await asyncio.sleep(0)
        self.calls.append((operation, target))
        error = self.failures.get((operation, target))
        if error is not None:
            raise error

    def _stamp(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        now = self.clock().isoformat()
        row.setdefault("id", f"{table}-{next(self._ids)}")
        row.setdefault("created_at", now)
        if table in ("projects", "tasks"):
            row.setdefault("updated_at", now)
        if table == "project_members":
            row.setdefault("joined_at", now)
        if table == "activity_logs":
            row.setdefault("metadata", {})
        self.clock.advance(seconds=1)
        return row

    def _check_unique(self, table: str, row: dict[str, Any]) -> None:
        existing = self.tables[table]
        if table == "project_members" and any(
            r["project_id"] == row["project_id"] and r["user_id"] == row["user_id"] for r in existing
        ):
            raise ConflictError("duplicate key value violates unique constraint", details={"code": "23505"})
        if table == "team_codes" and any(r["code"] == row["code"] for r in existing):
            raise ConflictError("duplicate key value violates unique constraint", details={"code": "23505"})

    def _insert_row(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        stored = self._stamp(table, dict(row))
        self._check_unique(table, stored)
        self.tables[table].append(stored)
        if table == "projects":
            for profile in self.tables["profiles"]:
                if profile["id"] == stored["created_by"]:
                    profile["has_ever_created_project"] = True
        return dict(stored)

    # -- RemoteStore surface ----------------------------------------------

    async def select(
        self,
        table: str,
        predicates: Iterable[Filter | AnyOf] = (),
        *,
        columns: str = "*",
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        await self._enter("select", table)
        predicates = list(predicates)
        rows = [dict(r) for r in self.tables[table] if all(_matches(r, p) for p in predicates)]
        for item in reversed(list(order)):
            present = [r for r in rows if r.get(item.column) is not None]
            missing = [r for r in rows if r.get(item.column) is None]
            present.sort(key=lambda r: _comparable(r[item.column]), reverse=not item.ascending)
            rows = present + missing
        return rows[:limit] if limit is not None else rows

    async def select_one(
        self,
        table: str,
        predicates: Iterable[Filter | AnyOf] = (),
        *,
        columns: str = "*",
        order: Sequence[Order] = (),
    ) -> dict[str, Any] | None:
        rows = await self.select(table, predicates, columns=columns, order=order, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        await self._enter("insert", table)
        return self._insert_row(table, row)

    async def update(
        self,
        table: str,
        patch: dict[str, Any],
        predicates: Iterable[Filter | AnyOf],
    ) -> list[dict[str, Any]]:
        await self._enter("update", table)
        predicates = list(predicates)
        updated = []
        for row in self.tables[table]:
            if all(_matches(row, p) for p in predicates):
                row.update(patch)
                if table in ("projects", "tasks"):
                    row["updated_at"] = self.clock().isoformat()
                updated.append(dict(row))
        return updated

    async def delete(self, table: str, predicates: Iterable[Filter | AnyOf]) -> None:
        await self._enter("delete", table)
        predicates = list(predicates)
        if not predicates:
            raise ValidationError(f"Refusing to delete from '{table}' without a filter")
        doomed = [r for r in self.tables[table] if all(_matches(r, p) for p in predicates)]
        self.tables[table] = [r for r in self.tables[table] if r not in doomed]
        for child in _CASCADES.get(table, ()):
            ids = {r["id"] for r in doomed}
            self.tables[child] = [r for r in self.tables[child] if r.get("project_id") not in ids]

    async def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        await self._enter("rpc", function)
        if function not in self.rpcs:
            raise RpcUnavailableError(f"Could not find the function public.{function}", status_code=404)
        params = params or {}
        if function == "get_user_projects":
            user_id = params["p_user_id"]
            member_of = {m["project_id"] for m in self.tables["project_members"] if m["user_id"] == user_id}
            return [
                dict(p) for p in self.tables["projects"] if p["created_by"] == user_id or p["id"] in member_of
            ]
        if function == "generate_team_code":
            return self.next_codes.pop(0)
        if function == "log_activity":
            metadata = dict(params.get("p_metadata") or {})
            if params.get("p_target_id"):
                metadata.setdefault("target_id", params["p_target_id"])
            if params.get("p_target_type"):
                metadata.setdefault("target_type", params["p_target_type"])
            row = self._insert_row(
                "activity_logs",
                {
                    "user_id": params["p_user_id"],
                    "action": params["p_action"],
                    "description": params["p_description"],
                    "project_id": params.get("p_project_id"),
                    "task_id": params.get("p_task_id"),
                    "metadata": metadata,
                },
            )
            return row["id"]
        raise AssertionError(f"unhandled rpc {function}")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def remote(clock: FakeClock) -> FakeRemoteStore:
    store = FakeRemoteStore(clock)
    store.add_profile(ALICE, "alice@example.com", "Alice Doe")
    store.add_profile(BOB, "bob@example.com", "Bob Roe")
    store.add_profile(CAROL, "carol@example.com", None)
    return store


@pytest.fixture
def make_coordinator(remote: FakeRemoteStore, clock: FakeClock) -> Callable[[str], Coordinator]:
    def _make(user_id: str) -> Coordinator:
        return Coordinator.from_remote(remote, user_id, clock=clock)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def alice(make_coordinator: Callable[[str], Coordinator]) -> Coordinator:
    return make_coordinator(ALICE)


@pytest.fixture
def bob(make_coordinator: Callable[[str], Coordinator]) -> Coordinator:
    return make_coordinator(BOB)


@pytest.fixture
def carol(make_coordinator: Callable[[str], Coordinator]) -> Coordinator:
    return make_coordinator(CAROL)
