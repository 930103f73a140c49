"""Tests for the HTTP remote store client (mocked with respx)."""

import json
from datetime import datetime, timezone

import httpx
import pytest
import respx

from crewboard.errors import (
    ConflictError,
    PermissionDeniedError,
    RpcUnavailableError,
    TransportError,
    ValidationError,
)
from crewboard.models import ActivityDraft
from crewboard.remote import Order, RemoteStore, any_of, eq, gt, in_, is_null, map_error
from crewboard.repositories import ActivityRepository, ProjectRepository

BASE = "https://store.example.com"


def _store() -> RemoteStore:
    return RemoteStore(BASE, api_key="anon-key", access_token="user-token")


class TestFilters:
    def test_eq_param(self):
        assert eq("project_id", "p1").to_param() == ("project_id", "eq.p1")

    def test_in_param_quotes_reserved_characters(self):
        assert in_("name", ["a", "b,c"]).to_param() == ("name", 'in.(a,"b,c")')

    def test_is_null(self):
        assert is_null("assigned_to").to_param() == ("assigned_to", "is.null")

    def test_any_of(self):
        predicate = any_of(eq("created_by", "u1"), eq("assigned_to", "u1"))
        assert predicate.to_param() == ("or", "(created_by.eq.u1,assigned_to.eq.u1)")

    def test_nested_values_are_quoted(self):
        predicate = any_of(eq("title", "a, b"), is_null("title"))
        assert predicate.to_param() == ("or", '(title.eq."a, b",title.is.null)')

    def test_order(self):
        assert Order("created_at", ascending=False).to_param() == "created_at.desc"


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status, body, expected",
        [
            (500, {"message": "boom"}, TransportError),
            (503, None, TransportError),
            (401, {"message": "JWT expired"}, PermissionDeniedError),
            (403, {"message": "forbidden"}, PermissionDeniedError),
            (400, {"code": "42501", "message": "row-level security"}, PermissionDeniedError),
            (409, {"code": "23505", "message": "duplicate key"}, ConflictError),
            (400, {"code": "23505", "message": "duplicate key"}, ConflictError),
            (400, {"code": "22P02", "message": "invalid input syntax"}, ValidationError),
            (404, {"code": "PGRST202", "message": "Could not find the function"}, RpcUnavailableError),
        ],
    )
    def test_mapping(self, status, body, expected):
        response = httpx.Response(status, json=body) if body is not None else httpx.Response(status)
        error = map_error(response)
        assert type(error) is expected

    def test_404_on_rpc_is_unavailable(self):
        error = map_error(httpx.Response(404, json={"message": "not found"}), rpc=True)
        assert isinstance(error, RpcUnavailableError)
        assert error.retryable

    def test_only_transport_errors_are_retryable(self):
        assert map_error(httpx.Response(502)).retryable
        assert not map_error(httpx.Response(403)).retryable


class TestRequests:
    @pytest.mark.asyncio
    async def test_select_sends_filters_order_and_auth(self):
        with respx.mock(base_url=BASE) as router:
            route = router.get("/rest/v1/tasks").mock(
                return_value=httpx.Response(200, json=[{"id": "t1"}])
            )
            async with _store() as store:
                rows = await store.select(
                    "tasks",
                    [eq("project_id", "p1")],
                    order=[Order("position"), Order("created_at")],
                    limit=5,
                )

        assert rows == [{"id": "t1"}]
        request = route.calls.last.request
        assert request.url.params["project_id"] == "eq.p1"
        assert request.url.params["order"] == "position.asc,created_at.asc"
        assert request.url.params["limit"] == "5"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["authorization"] == "Bearer user-token"

    @pytest.mark.asyncio
    async def test_insert_returns_representation(self):
        with respx.mock(base_url=BASE) as router:
            route = router.post("/rest/v1/projects").mock(
                return_value=httpx.Response(201, json=[{"id": "p1", "name": "Launch"}])
            )
            async with _store() as store:
                row = await store.insert("projects", {"name": "Launch"})

        assert row == {"id": "p1", "name": "Launch"}
        assert route.calls.last.request.headers["prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_update_uses_gt_filter(self):
        with respx.mock(base_url=BASE) as router:
            route = router.patch("/rest/v1/team_codes").mock(return_value=httpx.Response(200, json=[]))
            async with _store() as store:
                rows = await store.update("team_codes", {"expires_at": "x"}, [gt("expires_at", "2026-01-01")])

        assert rows == []
        assert route.calls.last.request.url.params["expires_at"] == "gt.2026-01-01"

    @pytest.mark.asyncio
    async def test_rpc_posts_params(self):
        with respx.mock(base_url=BASE) as router:
            route = router.post("/rest/v1/rpc/get_user_projects").mock(
                return_value=httpx.Response(200, json=[])
            )
            async with _store() as store:
                result = await store.rpc("get_user_projects", {"p_user_id": "u1"})

        assert result == []
        assert json.loads(route.calls.last.request.content) == {"p_user_id": "u1"}

    @pytest.mark.asyncio
    async def test_missing_rpc(self):
        with respx.mock(base_url=BASE) as router:
            router.post("/rest/v1/rpc/generate_team_code").mock(
                return_value=httpx.Response(404, json={"code": "PGRST202", "message": "missing"})
            )
            async with _store() as store:
                with pytest.raises(RpcUnavailableError):
                    await store.rpc("generate_team_code")

    @pytest.mark.asyncio
    async def test_network_error_is_transport_error(self):
        with respx.mock(base_url=BASE) as router:
            router.get("/rest/v1/projects").mock(side_effect=httpx.ConnectError("refused"))
            async with _store() as store:
                with pytest.raises(TransportError) as excinfo:
                    await store.select("projects")

        assert excinfo.value.retryable

    @pytest.mark.asyncio
    async def test_no_content_response(self):
        with respx.mock(base_url=BASE) as router:
            router.delete("/rest/v1/tasks").mock(return_value=httpx.Response(204))
            async with _store() as store:
                assert await store.delete("tasks", [eq("id", "t1")]) is None

    @pytest.mark.asyncio
    async def test_unfiltered_delete_is_refused(self):
        async with _store() as store:
            with pytest.raises(ValidationError):
                await store.delete("tasks", [])


class TestRepositoriesOverHttp:
    @staticmethod
    def _activity_row(entry_id: str, description: str) -> dict:
        return {
            "id": entry_id,
            "user_id": "u1",
            "action": "commented",
            "description": description,
            "created_at": "2026-03-02T09:00:00Z",
        }

    @pytest.mark.asyncio
    async def test_void_log_activity_reads_back_each_entry(self):
        with respx.mock(base_url=BASE) as router:
            router.post("/rest/v1/rpc/log_activity").mock(return_value=httpx.Response(204))
            read_back = router.get("/rest/v1/activity_logs").mock(
                side_effect=[
                    httpx.Response(200, json=[self._activity_row("a1", "one")]),
                    httpx.Response(200, json=[self._activity_row("a2", "two")]),
                ]
            )
            async with _store() as store:
                repository = ActivityRepository(store)
                now = datetime(2026, 3, 2, 9, tzinfo=timezone.utc)
                first = await repository.append("u1", ActivityDraft(action="commented", description="one"), now)
                second = await repository.append("u1", ActivityDraft(action="commented", description="two"), now)

        assert [first.id, second.id] == ["a1", "a2"]
        params = read_back.calls.last.request.url.params
        assert params["user_id"] == "eq.u1"
        assert params["action"] == "eq.commented"
        assert params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_void_log_activity_without_row_is_transport_error(self):
        with respx.mock(base_url=BASE) as router:
            router.post("/rest/v1/rpc/log_activity").mock(return_value=httpx.Response(200, json=None))
            router.get("/rest/v1/activity_logs").mock(return_value=httpx.Response(200, json=[]))
            async with _store() as store:
                with pytest.raises(TransportError):
                    await ActivityRepository(store).append(
                        "u1",
                        ActivityDraft(action="commented", description="one"),
                        datetime(2026, 3, 2, 9, tzinfo=timezone.utc),
                    )

    @pytest.mark.asyncio
    async def test_malformed_row_is_transport_error(self):
        row = {
            "id": "p1",
            "name": "Launch",
            "created_by": "u1",
            "created_at": "2026-03-02T09:00:00Z",
            "status": "archived",
        }
        with respx.mock(base_url=BASE) as router:
            router.post("/rest/v1/rpc/get_user_projects").mock(return_value=httpx.Response(200, json=[row]))
            async with _store() as store:
                with pytest.raises(TransportError) as excinfo:
                    await ProjectRepository(store).list_visible("u1")

        assert str(excinfo.value) == "Invalid response from remote store"
