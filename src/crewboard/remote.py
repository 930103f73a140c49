"""Async client for the remote data store (PostgREST flavoured HTTP API).

Repositories are the only callers. The client speaks rows (plain dicts) and
maps every HTTP or network failure onto the package error taxonomy:

- network errors, timeouts and 5xx -> TransportError
- 401/403 and SQLSTATE 42501 -> PermissionDeniedError
- 409 and SQLSTATE 23505 (unique violation) -> ConflictError
- other 4xx -> ValidationError
- missing RPC function (PGRST202 or 404 on /rpc/) -> RpcUnavailableError
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from .errors import (
    ConflictError,
    CrewboardError,
    PermissionDeniedError,
    RpcUnavailableError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_RESERVED_CHARS = frozenset(',()" ')


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _quote(value: Any) -> str:
    text = _format_value(value)
    if any(ch in _RESERVED_CHARS for ch in text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


@dataclass(frozen=True)
class Filter:
    """A single ``column.op.value`` predicate."""

    column: str
    op: str
    value: Any

    def operand(self, nested: bool = False) -> str:
        if self.op == "in":
            return "(" + ",".join(_quote(v) for v in self.value) + ")"
        if nested:
            return _quote(self.value)
        return _format_value(self.value)

    def to_param(self) -> tuple[str, str]:
        return self.column, f"{self.op}.{self.operand()}"

    def expression(self) -> str:
        return f"{self.column}.{self.op}.{self.operand(nested=True)}"


@dataclass(frozen=True)
class AnyOf:
    """``or``-combined predicates: a row matches if any member matches."""

    filters: tuple[Filter, ...]

    def to_param(self) -> tuple[str, str]:
        return "or", "(" + ",".join(f.expression() for f in self.filters) + ")"


Predicate = Filter | AnyOf


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def gt(column: str, value: Any) -> Filter:
    return Filter(column, "gt", value)


def in_(column: str, values: Iterable[Any]) -> Filter:
    return Filter(column, "in", tuple(values))


def is_null(column: str) -> Filter:
    return Filter(column, "is", None)


def any_of(*filters: Filter) -> AnyOf:
    return AnyOf(tuple(filters))


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True

    def to_param(self) -> str:
        return f"{self.column}.{'asc' if self.ascending else 'desc'}"


def _error_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"message": response.text or f"HTTP {response.status_code}"}
    if isinstance(body, dict):
        return body
    return {"message": str(body)}


def map_error(response: httpx.Response, *, rpc: bool = False) -> CrewboardError:
    """Translate a failed response into the package error taxonomy."""
    payload = _error_payload(response)
    status = response.status_code
    code = str(payload.get("code") or "")
    message = str(payload.get("message") or payload.get("error") or f"HTTP {status}")
    details = {"status_code": status, "code": code, "details": payload.get("details"), "hint": payload.get("hint")}

    if code == "PGRST202" or (rpc and status == 404):
        return RpcUnavailableError(message, status_code=status, details=details)
    if status >= 500:
        return TransportError(message, status_code=status, details=details)
    if status in (401, 403) or code == "42501":
        return PermissionDeniedError(message, details=details)
    if status == 409 or code == "23505":
        return ConflictError(message, details=details)
    return ValidationError(message, details=details)


class RemoteStore:
    """Row-level access to the remote store over HTTP.

    One instance per session; it owns an ``httpx.AsyncClient`` unless one is
    injected. Use as an async context manager or call :meth:`aclose`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._access_token = access_token
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> RemoteStore:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.aclose()
        return False

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
        bearer = self._access_token or self._api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Sequence[tuple[str, str]] | None = None,
        json: Any = None,
        prefer: str | None = None,
        rpc: bool = False,
    ) -> Any:
        url = f"{self.base_url}/rest/v1/{path}"
        logger.debug(f"{method} {url} params={params}")
        try:
            response = await self._get_http_client().request(
                method,
                url,
                params=list(params or ()),
                json=json,
                headers=self._headers(prefer),
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request to remote store timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransportError(f"Cannot reach remote store: {exc}") from exc

        if response.status_code >= 400:
            error = map_error(response, rpc=rpc)
            logger.debug(f"{method} {url} failed: {type(error).__name__}: {error}")
            raise error

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError("Invalid response from remote store", status_code=response.status_code) from exc

    @staticmethod
    def _query_params(
        predicates: Iterable[Predicate],
        *,
        columns: str | None = None,
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if columns is not None:
            params.append(("select", columns))
        params.extend(p.to_param() for p in predicates)
        if order:
            params.append(("order", ",".join(o.to_param() for o in order)))
        if limit is not None:
            params.append(("limit", str(limit)))
        return params

    async def select(
        self,
        table: str,
        predicates: Iterable[Predicate] = (),
        *,
        columns: str = "*",
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params = self._query_params(predicates, columns=columns, order=order, limit=limit)
        rows = await self._request("GET", table, params=params)
        return list(rows or [])

    async def select_one(
        self,
        table: str,
        predicates: Iterable[Predicate] = (),
        *,
        columns: str = "*",
        order: Sequence[Order] = (),
    ) -> dict[str, Any] | None:
        rows = await self.select(table, predicates, columns=columns, order=order, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored (with server defaults)."""
        rows = await self._request(
            "POST",
            table,
            params=[("select", "*")],
            json=[row],
            prefer="return=representation",
        )
        if not rows:
            raise TransportError(f"Insert into '{table}' returned no row")
        return rows[0] if isinstance(rows, list) else rows

    async def update(
        self,
        table: str,
        patch: dict[str, Any],
        predicates: Iterable[Predicate],
    ) -> list[dict[str, Any]]:
        params = self._query_params(predicates, columns="*")
        rows = await self._request("PATCH", table, params=params, json=patch, prefer="return=representation")
        return list(rows or [])

    async def delete(self, table: str, predicates: Iterable[Predicate]) -> None:
        params = self._query_params(predicates)
        if not params:
            raise ValidationError(f"Refusing to delete from '{table}' without a filter")
        await self._request("DELETE", table, params=params, prefer="return=minimal")

    async def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("POST", f"rpc/{function}", json=params or {}, rpc=True)
