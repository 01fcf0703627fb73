"""Config file I/O: load from JSON, merge env vars, save back to disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic_settings import EnvSettingsSource

from darkheim.config.schema import DarkheimConfig

_DEFAULT_CONFIG_DIR = Path.home() / ".darkheim"
_DEFAULT_CONFIG_FILE = _DEFAULT_CONFIG_DIR / "config.json"


def get_config_path() -> Path:
    return _DEFAULT_CONFIG_FILE


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> DarkheimConfig:
    """Load config from JSON file, falling back to defaults if file is missing.

    Environment variables with DARKHEIM_ prefix override file values.
    Nested keys use __ as delimiter (e.g. DARKHEIM_DATABASE__PATH).
    """
    config_path = path or _DEFAULT_CONFIG_FILE
    config_path = config_path.expanduser().resolve()

    if config_path.exists():
        raw = json.loads(config_path.read_text(encoding="utf-8"))
        # file values arrive as init kwargs, which outrank every source
        env = EnvSettingsSource(DarkheimConfig)()
        return DarkheimConfig(**_merge(raw, env))

    return DarkheimConfig()


def save_config(config: DarkheimConfig, path: Path | None = None) -> Path:
    """Serialize current config to JSON and write to disk atomically.

    Uses temp-file-then-rename for crash safety.
    """
    config_path = path or _DEFAULT_CONFIG_FILE
    config_path = config_path.expanduser().resolve()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")
    tmp_path = config_path.with_suffix(".tmp")
    tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.rename(config_path)
    return config_path
