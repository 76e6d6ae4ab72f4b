"""Async wrapper around the ``beans`` CLI."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from beanup.contracts.bean import Bean
from beanup.contracts.exceptions import BeanNotFoundError, BeansError

_LOG = logging.getLogger(__name__)

_BEAN_LIST = TypeAdapter(list[Bean])


@dataclass
class CompletedProcess:
    """Result of a ``beans`` CLI invocation."""

    returncode: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class ExtensionDataOp:
    """One ``setExtensionData`` mutation inside a batch."""

    bean_id: str
    name: str
    data: dict[str, Any]


class BeansClient:
    """Reads beans and writes their extension metadata by shelling out to ``beans``."""

    def __init__(self, beans_path: Path | None = None, *, executable: str = "beans") -> None:
        self._beans_path = beans_path
        self._executable = executable

    async def run(self, args: list[str], *, check: bool = True) -> CompletedProcess:
        """Execute ``beans <args>`` asynchronously.

        Raises:
            BeansError: If the binary cannot be started, or ``check`` is set and
                the command exits non-zero.
        """
        cmd = [self._executable, *args]
        if self._beans_path is not None:
            cmd += ["--beans-path", str(self._beans_path)]
        _LOG.debug("Running: %s", " ".join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise BeansError(f"Failed to execute beans CLI: {exc}") from exc
        stdout_bytes, stderr_bytes = await proc.communicate()
        result = CompletedProcess(
            returncode=proc.returncode or 0,
            stdout=stdout_bytes.decode(errors="replace") if stdout_bytes else "",
            stderr=stderr_bytes.decode(errors="replace") if stderr_bytes else "",
        )
        if check and result.returncode != 0:
            raise BeansError(f"beans {' '.join(args[:2])} failed: {result.stderr.strip()}")
        return result

    async def json(self, args: list[str]) -> Any:
        result = await self.run(args)
        if not result.stdout.strip():
            return None
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise BeansError(f"beans {' '.join(args[:2])} returned invalid JSON") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_beans(self) -> list[Bean]:
        payload = await self.json(["list", "--json", "--full"])
        return _parse_beans(payload or [])

    async def get(self, bean_id: str) -> Bean:
        """Fetch one bean.

        Raises:
            BeanNotFoundError: If no bean has that id.
        """
        result = await self.run(["show", "--json", bean_id], check=False)
        if result.returncode != 0:
            if "not found" in result.stderr.lower():
                raise BeanNotFoundError(bean_id)
            raise BeansError(f"beans show failed: {result.stderr.strip()}")
        try:
            payload = json.loads(result.stdout) if result.stdout.strip() else None
        except json.JSONDecodeError as exc:
            raise BeansError("beans show returned invalid JSON") from exc
        # A single id yields an object, not a list.
        if isinstance(payload, list):
            payload = payload[0] if payload else None
        if not isinstance(payload, dict) or not payload.get("id"):
            raise BeanNotFoundError(bean_id)
        return _parse_beans([payload])[0]

    async def get_many(self, bean_ids: list[str]) -> list[Bean]:
        """Fetch several beans, in the order requested."""
        if not bean_ids:
            return []
        if len(bean_ids) == 1:
            return [await self.get(bean_ids[0])]
        payload = await self.json(["show", "--json", *bean_ids])
        beans = _parse_beans(payload if isinstance(payload, list) else [payload] if payload else [])
        by_id = {bean.id: bean for bean in beans}
        missing = [bean_id for bean_id in bean_ids if bean_id not in by_id]
        if missing:
            raise BeanNotFoundError(missing[0])
        return [by_id[bean_id] for bean_id in bean_ids]

    # ------------------------------------------------------------------
    # Extension metadata
    # ------------------------------------------------------------------

    async def set_extension_data_batch(self, ops: list[ExtensionDataOp]) -> None:
        """Apply every op in one GraphQL request using aliased mutations."""
        if not ops:
            return
        fields = [
            f"op{i}: setExtensionData(id: {_graphql_literal(op.bean_id)}, "
            f"name: {_graphql_literal(op.name)}, data: {_graphql_literal(op.data)}) {{ id }}"
            for i, op in enumerate(ops)
        ]
        await self.query("mutation { " + " ".join(fields) + " }")

    async def remove_extension_data(self, bean_id: str, name: str) -> None:
        mutation = (
            f"mutation {{ removeExtensionData(id: {_graphql_literal(bean_id)}, "
            f"name: {_graphql_literal(name)}) {{ id }} }}"
        )
        await self.query(mutation)

    async def query(self, document: str) -> Any:
        payload = await self.json(["query", "--json", document])
        if isinstance(payload, dict) and payload.get("errors"):
            messages = "; ".join(
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in payload["errors"]
            )
            raise BeansError(f"beans query failed: {messages}")
        return payload


def _parse_beans(payload: Any) -> list[Bean]:
    try:
        return _BEAN_LIST.validate_python(payload)
    except ValidationError as exc:
        raise BeansError(f"Unexpected beans payload: {exc}") from exc


def _graphql_literal(value: Any) -> str:
    """Render a Python value as a GraphQL input literal (object keys unquoted)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, dict):
        return "{" + ", ".join(f"{key}: {_graphql_literal(item)}" for key, item in value.items()) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_graphql_literal(item) for item in value) + "]"
    return json.dumps(str(value))
