from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from beanup.config import DEFAULT_CONFIG_NAME, find_config, load_config
from beanup.contracts.config import BeanUpConfig
from beanup.contracts.exceptions import ConfigError


def write_config(directory: Path, payload: dict) -> Path:
    path = directory / DEFAULT_CONFIG_NAME
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_config_resolves_beans_path_against_config_dir(tmp_path: Path) -> None:
    path = write_config(tmp_path, {"list_id": "901", "beans_path": "work/.beans", "users": {"alice": 11}})

    config = load_config(path)

    assert config.list_id == "901"
    assert config.beans_path == (tmp_path / "work/.beans").resolve()
    assert config.users == {"alice": 11}
    assert config.sync_state == "file"
    assert config.max_concurrent == 8


def test_load_config_keeps_absolute_beans_path(tmp_path: Path) -> None:
    absolute = tmp_path / "elsewhere"
    path = write_config(tmp_path, {"list_id": "901", "beans_path": str(absolute)})

    assert load_config(path).beans_path == absolute


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="failed reading config file"):
        load_config(tmp_path / "missing.json")


def test_load_config_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / DEFAULT_CONFIG_NAME
    path.write_text("{", encoding="utf-8")

    with pytest.raises(ConfigError, match="invalid JSON"):
        load_config(path)


def test_load_config_requires_list_id(tmp_path: Path) -> None:
    path = write_config(tmp_path, {"list_id": "  "})

    with pytest.raises(ConfigError, match="list_id must not be empty"):
        load_config(path)


def test_find_config_walks_up(tmp_path: Path) -> None:
    path = write_config(tmp_path, {"list_id": "901"})
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_config(nested) == path.resolve()


def test_find_config_raises_when_absent(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match=f"no {DEFAULT_CONFIG_NAME} found"):
        find_config(tmp_path)


def test_unknown_type_mapping_keys_are_dropped(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        config = BeanUpConfig(list_id="901", type_mapping={"bug": 1001, "story": 1002})

    assert config.type_mapping == {"bug": 1001}
    assert "story" in caplog.text


def test_token_auth_requires_token() -> None:
    with pytest.raises(ValidationError, match="token auth requires"):
        BeanUpConfig(list_id="901", auth="token")

    with pytest.raises(ValidationError, match="token must be unset"):
        BeanUpConfig(list_id="901", token="pk_1")

    assert BeanUpConfig(list_id="901", auth="token", token="pk_1").token == "pk_1"


def test_limits_are_validated() -> None:
    with pytest.raises(ValidationError):
        BeanUpConfig(list_id="901", max_concurrent=0)
    with pytest.raises(ValidationError):
        BeanUpConfig(list_id="901", run_timeout=0)
