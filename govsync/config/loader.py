"""YAML configuration loading with environment overrides."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from govsync.config.models import GovSyncConfig
from govsync.config.env import substitute_env_dict
from govsync.scheduling.errors import ConfigurationError

ENV_PREFIX = "GOVSYNC_"
_RESERVED_ENV = {"GOVSYNC_CONFIG", "GOVSYNC_DATABASE_URL"}


class ConfigLoadError(ValueError):
    """Raised when configuration YAML cannot be parsed."""


class YAMLConfigLoader:
    """Load govsync.yaml with deterministic path resolution."""

    DEFAULT_FILENAME = "govsync.yaml"

    @classmethod
    def resolve_path(cls, cli_path: str | None = None) -> Path:
        """Resolve config path by priority: env -> cli -> cwd default."""
        env_path = os.environ.get("GOVSYNC_CONFIG", "").strip()
        if env_path:
            return Path(env_path)
        if cli_path and cli_path.strip():
            return Path(cli_path.strip())
        return Path.cwd() / cls.DEFAULT_FILENAME

    @classmethod
    def load_dict(cls, path: str | Path | None = None) -> dict[str, Any]:
        """Load YAML into dict. Missing or empty file yields empty dict."""
        target = Path(path) if path is not None else cls.resolve_path()
        if not target.exists():
            return {}
        text = target.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            if mark is not None:
                raise ConfigLoadError(
                    f"Invalid YAML at {target}:{mark.line + 1}:{mark.column + 1}"
                ) from exc
            raise ConfigLoadError(f"Invalid YAML at {target}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(f"Config root must be mapping: {target}")
        return data


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in updates.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _coerce_env_value(raw: str) -> Any:
    """Booleans, null and JSON lists/objects; numbers stay strings for pydantic to parse."""
    value = raw.strip()
    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    if value.startswith(("[", "{")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def collect_env_overrides(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Map GOVSYNC_SECTION__KEY=value variables onto nested dicts."""
    overrides: dict[str, Any] = {}
    for key, raw_value in os.environ.items():
        if not key.startswith(prefix) or key in _RESERVED_ENV:
            continue
        path = [p.strip().lower() for p in key[len(prefix) :].split("__") if p.strip()]
        if not path:
            continue
        cursor = overrides
        for part in path[:-1]:
            existing = cursor.get(part)
            if not isinstance(existing, dict):
                existing = {}
                cursor[part] = existing
            cursor = existing
        cursor[path[-1]] = _coerce_env_value(raw_value)
    return overrides


def load_config(
    cli_path: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> GovSyncConfig:
    """Build the configuration: YAML file, then GOVSYNC_* env, then explicit overrides.

    Raises:
        ConfigLoadError: the YAML file is malformed.
        ConfigurationError: values fail validation.
    """
    data = YAMLConfigLoader.load_dict(YAMLConfigLoader.resolve_path(cli_path))
    if isinstance(data.get("temporal"), dict):
        data["temporal"] = substitute_env_dict(data["temporal"])
    merged = _deep_merge(data, collect_env_overrides())
    if overrides:
        merged = _deep_merge(merged, overrides)
    try:
        return GovSyncConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {_format_errors(exc)}") from exc


def _format_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)
