from __future__ import annotations

import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_MAX_FILE_SIZE_MB,
    DEFAULT_PHOTO_CONCURRENCY,
    DEFAULT_PHOTO_TIMEOUT_SECONDS,
    ImportConfig,
    PhotoFetchConfig,
)

"""Config loader.

Responsibilities:
- Load the YAML config (config/import.yml by default)
- Validate it against the bundled JSON schema (config_schema.json)
- Apply defaults for every omitted key
- Apply environment overrides (IMAGE_PROXY_URL, PHOTO_FETCH_TIMEOUT)
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "apply_env_overrides",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing / not valid JSON, or the
            config data fails schema validation (unknown keys, wrong types...).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path | None = None) -> ImportConfig:
    """Load and validate the import configuration.

    With ``path=None`` the default location is used and a missing file simply
    means "all defaults". An explicitly given path must exist.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
        if not path.exists():
            return apply_env_overrides(ImportConfig())
    elif not path.exists():
        raise ConfigError(f"config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top-level value must be a mapping")

    _validate_config_schema(data)

    photo_raw = data.get("photo_fetch") or {}
    photo = PhotoFetchConfig(
        enabled=photo_raw.get("enabled", True),
        timeout_seconds=float(photo_raw.get("timeout_seconds", DEFAULT_PHOTO_TIMEOUT_SECONDS)),
        max_concurrency=photo_raw.get("max_concurrency", DEFAULT_PHOTO_CONCURRENCY),
        proxy_url=photo_raw.get("proxy_url"),
    )
    cfg = ImportConfig(
        max_file_size_mb=data.get("max_file_size_mb", DEFAULT_MAX_FILE_SIZE_MB),
        photo_fetch=photo,
        header_synonyms={k: list(v) for k, v in (data.get("header_synonyms") or {}).items()},
        logs_directory=data.get("logs_directory", "logs"),
    )
    return apply_env_overrides(cfg)


def apply_env_overrides(cfg: ImportConfig) -> ImportConfig:
    """Environment variables win over the YAML values (.env is loaded by the CLI)."""
    photo = cfg.photo_fetch
    proxy_url = os.getenv("IMAGE_PROXY_URL")
    if proxy_url:
        photo = replace(photo, proxy_url=proxy_url)
    timeout_raw = os.getenv("PHOTO_FETCH_TIMEOUT")
    if timeout_raw:
        try:
            timeout = float(timeout_raw)
        except ValueError as e:
            raise ConfigError(f"PHOTO_FETCH_TIMEOUT must be a number: {timeout_raw!r}") from e
        if timeout <= 0:
            raise ConfigError(f"PHOTO_FETCH_TIMEOUT must be positive: {timeout_raw!r}")
        photo = replace(photo, timeout_seconds=timeout)
    if photo is cfg.photo_fetch:
        return cfg
    return replace(cfg, photo_fetch=photo)
