"""Configuration loading and resolution."""

from __future__ import annotations

import copy
import json
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # Python 3.9-3.10
    import tomli as tomllib  # type: ignore[no-redef]

from lgc_cli.core.constants import IMPORT_BATCH_SIZE


class ConfigError(RuntimeError):
    """Raised when config file parsing fails."""


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def expand_path(path_str: str) -> Path:
    """Expand user/env vars and return absolute path."""
    return Path(os.path.expandvars(path_str)).expanduser().resolve()


def default_config_path() -> Path:
    """Get default config file path."""
    raw = os.getenv("LGC_CONFIG_FILE", "~/.config/lgc/config.toml")
    return expand_path(raw)


def _default_config() -> Dict[str, Any]:
    return {
        "supabase": {
            "url": None,
            "key": None,
            "access_token": None,
            "schema": "public",
        },
        "user": {
            "id": None,
            "sex": None,
            "height": None,
            "birthday": None,
        },
        "import": {
            "batch_size": IMPORT_BATCH_SIZE,
        },
        "exercises": {
            "rules": {},
        },
        "api": {
            "max_retries": 3,
            "timeout_seconds": 30,
        },
    }


def _read_config(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text()
    try:
        if suffix in {".toml", ""}:
            loaded = tomllib.loads(text)
        else:
            loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    except Exception as exc:
        if suffix in {".toml", ""}:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
        raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain an object/table at the root")
    return loaded


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from disk, merged with defaults."""
    cfg_path = path or default_config_path()
    cfg = _default_config()

    if cfg_path.exists():
        cfg = _deep_merge(cfg, _read_config(cfg_path))

    return cfg


def resolve_supabase(config: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Resolve store URL, key and access token with env taking precedence."""
    section = config.get("supabase", {})
    return {
        "url": os.getenv("SUPABASE_URL") or section.get("url"),
        "key": os.getenv("SUPABASE_KEY") or section.get("key"),
        "access_token": os.getenv("SUPABASE_ACCESS_TOKEN") or section.get("access_token"),
        "schema": section.get("schema") or "public",
    }


def resolve_user_id(config: Dict[str, Any], explicit: Optional[str] = None) -> Optional[str]:
    """Resolve the user id with CLI override first."""
    if explicit:
        return explicit
    raw = os.getenv("LGC_USER_ID") or config.get("user", {}).get("id")
    return str(raw) if raw else None


def resolve_batch_size(config: Dict[str, Any], explicit: Optional[int] = None) -> int:
    """Resolve the import batch size with CLI override first."""
    if explicit is not None:
        return explicit
    return int(config.get("import", {}).get("batch_size") or IMPORT_BATCH_SIZE)


def resolve_birthday(config: Dict[str, Any]) -> Optional[date]:
    """Resolve ``[user] birthday`` as a TOML date or a YYYY-MM-DD string."""
    raw = config.get("user", {}).get("birthday")
    if not raw:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return datetime.strptime(str(raw).strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ConfigError(f"Invalid user.birthday {raw!r}: expected YYYY-MM-DD") from exc
