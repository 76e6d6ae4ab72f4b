"""Config loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from beanup.contracts.config import BeanUpConfig
from beanup.contracts.exceptions import ConfigError

DEFAULT_CONFIG_NAME = "beanup.json"


def _resolve_path(value: Path, *, base_dir: Path) -> Path:
    if value.is_absolute():
        return value
    return (base_dir / value).resolve()


def find_config(start: Path | None = None) -> Path:
    """Walk up from *start* (default: cwd) looking for ``beanup.json``.

    Raises:
        ConfigError: If no config file is found.
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    raise ConfigError(f"no {DEFAULT_CONFIG_NAME} found in {current} or any parent directory")


def load_config(path: str | Path) -> BeanUpConfig:
    """Load and validate config from JSON, resolving ``beans_path`` against the config directory."""
    config_path = Path(path).expanduser().resolve()
    config_dir = config_path.parent

    try:
        raw_payload: Any = json.loads(config_path.read_text(encoding="utf-8"))
        parsed = BeanUpConfig.model_validate(raw_payload)
    except OSError as exc:
        raise ConfigError(f"failed reading config file: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in config file: {config_path}") from exc
    except ValidationError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc

    return parsed.model_copy(update={"beans_path": _resolve_path(parsed.beans_path, base_dir=config_dir)})
