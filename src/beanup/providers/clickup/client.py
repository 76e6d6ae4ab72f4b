"""ClickUp REST v2 adapter built on httpx."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from beanup.contracts.exceptions import ClickUpAPIError, ProviderError, RateLimitError, RemoteNotFoundError
from beanup.contracts.provider import TaskService
from beanup.contracts.task import (
    AuthorizedUser,
    CreateTaskInput,
    ListField,
    RemoteTask,
    TaskList,
    TaskUpdate,
    WorkspaceMember,
)
from beanup.providers.clickup._retrying_transport import RetryingTransport, RetryPolicy
from beanup.providers.clickup.failures import FailureClass, classify_failure, parse_error_body

_LOG = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.clickup.com/api/v2"

M = TypeVar("M", bound=BaseModel)


class ClickUpClient(TaskService):
    """Thin adapter over the ClickUp REST API.

    Use as an async context manager::

        async with ClickUpClient(token=token) as client:
            task = await client.get_task("abc123")
    """

    def __init__(
        self,
        *,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._token = token
        self._base_url = base_url
        self._policy = policy or RetryPolicy()
        self._inner_transport = transport
        self._timeout = timeout
        self._http: httpx.AsyncClient | None = None

        self._user: AuthorizedUser | None = None
        self._space_tags: set[tuple[str, str]] = set()
        self._space_tag_locks: dict[tuple[str, str], asyncio.Lock] = {}

    async def __aenter__(self) -> ClickUpClient:
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            transport=RetryingTransport(transport=self._inner_transport, policy=self._policy),
            headers={"Authorization": self._token, "Content-Type": "application/json"},
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            timeout=httpx.Timeout(self._timeout),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    # ------------------------------------------------------------------
    # Identity and list metadata
    # ------------------------------------------------------------------

    async def get_authorized_user(self) -> AuthorizedUser:
        if self._user is None:
            data = await self._request("GET", "/user")
            self._user = _parse(AuthorizedUser, data.get("user"))
        return self._user

    async def get_list(self, list_id: str) -> TaskList:
        data = await self._request("GET", f"/list/{list_id}")
        space = data.get("space") or {}
        return _parse(TaskList, {**data, "space_id": space.get("id")})

    async def get_list_fields(self, list_id: str) -> list[ListField]:
        data = await self._request("GET", f"/list/{list_id}/field")
        return [_parse(ListField, field) for field in data.get("fields") or []]

    async def get_workspace_members(self) -> list[WorkspaceMember]:
        data = await self._request("GET", "/team")
        members: dict[int, WorkspaceMember] = {}
        for team in data.get("teams") or []:
            for member in team.get("members") or []:
                parsed = _parse(WorkspaceMember, member.get("user"))
                members.setdefault(parsed.id, parsed)
        return list(members.values())

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def create_task(self, list_id: str, input: CreateTaskInput) -> RemoteTask:
        data = await self._request("POST", f"/list/{list_id}/task", json=input.to_payload())
        return _parse(RemoteTask, data)

    async def update_task(self, task_id: str, update: TaskUpdate) -> RemoteTask:
        data = await self._request("PUT", f"/task/{task_id}", json=update.to_payload())
        return _parse(RemoteTask, data)

    async def get_task(self, task_id: str) -> RemoteTask:
        data = await self._request("GET", f"/task/{task_id}", params={"include_markdown_description": "true"})
        return _parse(RemoteTask, data)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def add_tag(self, task_id: str, tag: str) -> None:
        await self._request("POST", f"/task/{task_id}/tag/{quote(tag, safe='')}")

    async def remove_tag(self, task_id: str, tag: str) -> None:
        await self._request("DELETE", f"/task/{task_id}/tag/{quote(tag, safe='')}")

    async def ensure_space_tag(self, space_id: str, tag: str) -> None:
        """Create *tag* in *space_id* once per client; ClickUp rejects task tags unknown to the space."""
        key = (space_id, tag)
        if key in self._space_tags:
            return
        async with self._space_tag_locks.setdefault(key, asyncio.Lock()):
            if key in self._space_tags:
                return
            try:
                await self._request("POST", f"/space/{space_id}/tag", json={"tag": {"name": tag}})
            except ClickUpAPIError as exc:
                if not _is_duplicate_error(exc):
                    raise
                _LOG.debug("Space tag already exists in %s: %s", space_id, tag)
            self._space_tags.add(key)

    # ------------------------------------------------------------------
    # Custom fields, relations, comments
    # ------------------------------------------------------------------

    async def set_custom_field(self, task_id: str, field_id: str, value: Any) -> None:
        await self._request("POST", f"/task/{task_id}/field/{field_id}", json={"value": value})

    async def add_dependency(self, task_id: str, *, depends_on: str) -> None:
        try:
            await self._request("POST", f"/task/{task_id}/dependency", json={"depends_on": depends_on})
        except ClickUpAPIError as exc:
            if _is_duplicate_error(exc):
                _LOG.debug("Dependency already exists: %s waits on %s", task_id, depends_on)
                return
            raise

    async def create_comment(self, task_id: str, items: list[dict[str, Any]]) -> None:
        await self._request("POST", f"/task/{task_id}/comment", json={"comment": items})

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _require_http(self) -> httpx.AsyncClient:
        if self._http is None:
            raise ProviderError("ClickUp client is not initialized. Use 'async with'.")
        return self._http

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        http = self._require_http()
        try:
            response = await http.request(method, path, json=json, params=params)
        except httpx.TransportError as exc:
            raise ProviderError(f"{method} {path} failed: {exc}") from exc

        if response.is_success:
            if not response.content:
                return {}
            try:
                payload = response.json()
            except ValueError as exc:
                raise ProviderError(f"{method} {path} returned invalid JSON") from exc
            return payload if isinstance(payload, dict) else {}

        raise _error_from_response(method, path, response)


def _error_from_response(method: str, path: str, response: httpx.Response) -> ClickUpAPIError:
    body = parse_error_body(response.content)
    failure = classify_failure(response.status_code, body)
    detail = body.message or response.reason_phrase
    message = f"{method} {path} failed with HTTP {response.status_code}: {detail}"
    if body.ecode:
        message = f"{message} ({body.ecode})"

    error_cls: type[ClickUpAPIError] = ClickUpAPIError
    if failure is FailureClass.NOT_FOUND:
        error_cls = RemoteNotFoundError
    elif failure is FailureClass.RATE_LIMITED:
        error_cls = RateLimitError
    return error_cls(message, status_code=response.status_code, ecode=body.ecode)


def _is_duplicate_error(exc: ClickUpAPIError) -> bool:
    msg = str(exc).lower()
    return "already exists" in msg or "duplicate" in msg or "already taken" in msg


def _parse(model: type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ProviderError(f"Unexpected ClickUp payload for {model.__name__}: {exc}") from exc
