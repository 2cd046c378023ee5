from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from .schema import Settings

DEFAULT_CONFIG_PATH = Path("config/default.yaml")
OVERRIDES_ENV = "DOCTOR_QUEST_CONFIG_OVERRIDES"

# First match wins; the NEXT_PUBLIC_ names are what hosted front-ends export.
CREDENTIAL_ENV = {
    "url": ("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
    "anon_key": ("SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"),
}


def read_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file into a dictionary, returning an empty mapping when the file is blank."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries, letting override values replace base entries."""
    result: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            result[key] = merge_dicts(base[key], value)
        else:
            result[key] = value
    return result


def apply_credential_env(data: Dict[str, Any]) -> Dict[str, Any]:
    """Fill missing backend credentials from the environment."""
    backend = dict(data.get("backend") or {})
    for field, names in CREDENTIAL_ENV.items():
        if backend.get(field):
            continue
        for name in names:
            value = os.getenv(name)
            if value:
                backend[field] = value
                break
    result = dict(data)
    result["backend"] = backend
    return result


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Read configuration, apply environment overrides, and return validated Settings.

    Loads the YAML file via `read_yaml`, merges any JSON-specified overrides from
    `DOCTOR_QUEST_CONFIG_OVERRIDES` using `merge_dicts`, fills Supabase credentials
    from the environment when the file leaves them blank, and validates the
    resulting payload against the `Settings` schema.
    """

    config_file = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    data = read_yaml(config_file)

    overrides_env = os.getenv(OVERRIDES_ENV)
    if overrides_env:
        try:
            overrides = json.loads(overrides_env)
        except json.JSONDecodeError as err:
            raise ValueError(
                f"Failed to parse {OVERRIDES_ENV} env var as JSON."
            ) from err
        data = merge_dicts(data, overrides)

    data = apply_credential_env(data)

    try:
        settings = Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    return settings
