"""Pure field mapping and diffing between beans and ClickUp tasks.

Nothing in this module performs I/O. Remote values arrive in whatever shape
ClickUp chose (dates as numeric strings, priority ids as strings), so every
comparison goes through :func:`normalize_scalar` first.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from beanup.contracts.bean import Bean, BeanPriority, BeanStatus
from beanup.contracts.config import BeanUpConfig, CustomFieldsMap
from beanup.contracts.task import CreateTaskInput, CustomFieldValue, RemoteTask, TaskUpdate

DEFAULT_STATUS_MAPPING: dict[str, str] = {
    BeanStatus.DRAFT: "backlog",
    BeanStatus.TODO: "to do",
    BeanStatus.IN_PROGRESS: "in progress",
    BeanStatus.COMPLETED: "complete",
    BeanStatus.SCRAPPED: "closed",
}

# ClickUp ranks: 1 urgent, 2 high, 3 normal, 4 low.
DEFAULT_PRIORITY_MAPPING: dict[str, int] = {
    BeanPriority.CRITICAL: 1,
    BeanPriority.HIGH: 2,
    BeanPriority.NORMAL: 3,
    BeanPriority.LOW: 4,
    BeanPriority.DEFERRED: 4,
}

_MENTION_RE = re.compile(r"@([a-zA-Z0-9_-]+)")


class FieldMapper:
    """Translate bean enumerations into ClickUp values.

    Configured tables win; built-in defaults fill absent keys. ``None`` means
    no mapping exists and the caller must omit the field.
    """

    def __init__(
        self,
        *,
        status_mapping: Mapping[str, str] | None = None,
        priority_mapping: Mapping[str, int] | None = None,
        type_mapping: Mapping[str, int] | None = None,
    ) -> None:
        self._status = {**DEFAULT_STATUS_MAPPING, **(status_mapping or {})}
        self._priority = {**DEFAULT_PRIORITY_MAPPING, **(priority_mapping or {})}
        self._type = dict(type_mapping or {})

    @classmethod
    def from_config(cls, config: BeanUpConfig) -> FieldMapper:
        return cls(
            status_mapping=config.status_mapping,
            priority_mapping=config.priority_mapping,
            type_mapping=config.type_mapping,
        )

    @property
    def status_mapping(self) -> dict[str, str]:
        return dict(self._status)

    def map_status(self, status: str | None) -> str | None:
        if not status:
            return None
        return self._status.get(status)

    def map_priority(self, priority: str | None) -> int | None:
        if not priority:
            return None
        return self._priority.get(priority)

    def map_type(self, bean_type: str | None) -> int | None:
        if not bean_type:
            return None
        return self._type.get(bean_type)


@dataclass(frozen=True, slots=True)
class DesiredTask:
    """The task fields a bean should produce remotely. ``None`` means "leave alone"."""

    name: str
    description: str
    status: str | None = None
    priority: int | None = None
    due_date: int | None = None
    custom_item_id: int | None = None


# ----------------------------------------------------------------------
# Normalization
# ----------------------------------------------------------------------


def normalize_scalar(value: Any) -> Any:
    """Fold ClickUp's string-or-number representations into one comparable form.

    Integral numbers and numeric strings become ``int``, other numeric strings
    ``float``. Strings that parse to NaN or infinity stay strings. Everything
    else is returned unchanged (strings stripped).
    """
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return text
        if not math.isfinite(number):
            return text
        return int(number) if number.is_integer() else number
    return value


def due_date_to_millis(value: date) -> int:
    """Epoch milliseconds of local midnight on *value*.

    Built from a naive local datetime so timezones behind UTC keep the same
    calendar day when ClickUp renders it.
    """
    midnight = datetime(value.year, value.month, value.day)
    return int(midnight.timestamp() * 1000)


def millis_to_due_date(millis: int | str) -> date:
    """Local calendar date of an epoch-millisecond timestamp."""
    return datetime.fromtimestamp(int(normalize_scalar(millis)) / 1000).date()


def _normalized_due(value: Any) -> int | None:
    """Remote or desired due value as local-midnight epoch millis."""
    number = normalize_scalar(value)
    if number is None or number == "":
        return None
    if not isinstance(number, (int, float)):
        return None
    return due_date_to_millis(millis_to_due_date(int(number)))


# ----------------------------------------------------------------------
# Mentions
# ----------------------------------------------------------------------


def extract_mentions(text: str) -> list[str]:
    """Unique ``@user`` names in first-seen order, without the ``@``."""
    seen: dict[str, None] = {}
    for match in _MENTION_RE.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)


def strip_mentions(text: str) -> str:
    return _MENTION_RE.sub("", text)


def build_mention_comment(usernames: Iterable[str], users: Mapping[str, int]) -> list[dict[str, Any]]:
    """Comment items tagging every mapped user; empty when nobody is mapped."""
    items: list[dict[str, Any]] = [{"text": "Mentioned: "}]
    tagged = 0
    for username in usernames:
        user_id = users.get(username)
        if user_id is None:
            continue
        if tagged:
            items.append({"text": " "})
        items.append({"type": "tag", "user": {"id": user_id}})
        tagged += 1
    return items if tagged else []


# ----------------------------------------------------------------------
# Desired state
# ----------------------------------------------------------------------


def build_desired(bean: Bean, mapper: FieldMapper) -> DesiredTask:
    return DesiredTask(
        name=bean.title,
        description=strip_mentions(bean.body),
        status=mapper.map_status(bean.status),
        priority=mapper.map_priority(bean.priority),
        due_date=due_date_to_millis(bean.due) if bean.due is not None else None,
        custom_item_id=mapper.map_type(bean.type),
    )


def build_custom_fields(bean: Bean, fields: CustomFieldsMap) -> dict[str, Any]:
    """Custom field id to value for the bean metadata fields that are configured."""
    values: dict[str, Any] = {}
    if fields.bean_id:
        values[fields.bean_id] = bean.id
    if fields.created_at and bean.created_at is not None:
        values[fields.created_at] = int(bean.created_at.timestamp() * 1000)
    if fields.updated_at and bean.updated_at is not None:
        values[fields.updated_at] = int(bean.updated_at.timestamp() * 1000)
    return values


def build_create_input(
    desired: DesiredTask,
    *,
    assignee: int | None,
    parent_task_id: str | None,
    custom_fields: Mapping[str, Any],
) -> CreateTaskInput:
    return CreateTaskInput(
        name=desired.name,
        markdown_description=desired.description,
        status=desired.status,
        priority=desired.priority,
        assignees=[assignee] if assignee else None,
        parent=parent_task_id,
        due_date=desired.due_date,
        due_date_time=False if desired.due_date is not None else None,
        custom_item_id=desired.custom_item_id,
        custom_fields=[CustomFieldValue(id=key, value=value) for key, value in custom_fields.items()] or None,
    )


# ----------------------------------------------------------------------
# Diffing
# ----------------------------------------------------------------------


def build_update(current: RemoteTask, desired: DesiredTask) -> TaskUpdate:
    """Partial update holding only the fields whose desired value differs."""
    update: dict[str, Any] = {}

    if desired.name != current.name:
        update["name"] = desired.name

    if desired.description.strip() != current.text.strip():
        update["markdown_description"] = desired.description

    if desired.status is not None and desired.status.lower() != (current.status_name or "").lower():
        update["status"] = desired.status

    if desired.priority is not None and desired.priority != current.priority_rank:
        update["priority"] = desired.priority

    if desired.due_date is not None and _normalized_due(desired.due_date) != _normalized_due(current.due_date):
        update["due_date"] = desired.due_date
        update["due_date_time"] = False

    if desired.custom_item_id is not None and desired.custom_item_id != normalize_scalar(current.custom_item_id):
        update["custom_item_id"] = desired.custom_item_id

    return TaskUpdate(**update)


def diff_labels(desired: Iterable[str], current: Iterable[str]) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Return ``(to_add, to_remove)``; both sorted and disjoint."""
    want = set(desired)
    have = set(current)
    return tuple(sorted(want - have)), tuple(sorted(have - want))


def diff_custom_fields(current: Mapping[str, Any], desired: Mapping[str, Any]) -> list[str]:
    """Keys of *desired* whose normalized value differs from *current*."""
    return [key for key, value in desired.items() if normalize_scalar(current.get(key)) != normalize_scalar(value)]
