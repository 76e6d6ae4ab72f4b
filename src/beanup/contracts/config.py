"""Configuration contracts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from beanup.contracts.bean import BeanType

_LOG = logging.getLogger(__name__)


class CustomFieldsMap(BaseModel):
    """ClickUp custom field ids that receive bean metadata."""

    bean_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class SyncFilter(BaseModel):
    exclude_status: list[str] = Field(default_factory=list)


class BeanUpConfig(BaseModel):
    list_id: str
    auth: Literal["env", "token"] = "env"
    token: str | None = None
    assignee: int | None = None
    """ClickUp user id to assign; ``0`` leaves tasks unassigned, ``None`` uses the token owner."""
    status_mapping: dict[str, str] = Field(default_factory=dict)
    priority_mapping: dict[str, int] = Field(default_factory=dict)
    type_mapping: dict[str, int] = Field(default_factory=dict)
    custom_fields: CustomFieldsMap = Field(default_factory=CustomFieldsMap)
    users: dict[str, int] = Field(default_factory=dict)
    sync_filter: SyncFilter = Field(default_factory=SyncFilter)
    beans_path: Path = Path(".beans")
    sync_state: Literal["file", "extension"] = "file"
    max_concurrent: int = Field(default=8, ge=1)
    run_timeout: float | None = Field(default=None, gt=0)

    @field_validator("list_id")
    @classmethod
    def _require_list_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("list_id must not be empty")
        return value

    @field_validator("type_mapping")
    @classmethod
    def _drop_unknown_types(cls, value: dict[str, int]) -> dict[str, int]:
        valid = {member.value for member in BeanType}
        kept: dict[str, int] = {}
        for bean_type, custom_item_id in value.items():
            if bean_type in valid:
                kept[bean_type] = custom_item_id
            else:
                _LOG.warning(
                    "Ignoring invalid bean type %r in type_mapping (valid types: %s)",
                    bean_type,
                    ", ".join(sorted(valid)),
                )
        return kept

    @model_validator(mode="after")
    def _validate_auth_token(self) -> BeanUpConfig:
        token = (self.token or "").strip()
        if self.auth == "token" and not token:
            raise ValueError("token auth requires a non-empty token")
        if self.auth != "token" and token:
            raise ValueError("token must be unset when auth is not 'token'")
        return self
