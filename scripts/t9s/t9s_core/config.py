"""Connection settings and user config merging for the TUI."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from t9s_core.collectors.cache import DEFAULT_TTL_SECONDS
from t9s_core.collectors.teamcity import DEFAULT_BUILD_COUNT

CONFIG_FILE_NAME = "config.json"
APP_CONFIG_DIR_NAME = "teamcity-cli"
ENV_PREFIX = "T9S_"

DEFAULTS: dict[str, Any] = {
    "tick_rate": 4.0,
    "frame_rate": 1.0,
    "cache_ttl_seconds": DEFAULT_TTL_SECONDS,
    "build_count": DEFAULT_BUILD_COUNT,
}


class ConfigError(ValueError):
    """Missing or malformed configuration; fatal at startup."""


@dataclass
class AppConfig:
    teamcity_url: str
    token: str
    projects: list[str] = field(default_factory=list)
    tick_rate: float = 4.0
    frame_rate: float = 1.0
    cache_ttl_seconds: float = DEFAULT_TTL_SECONDS
    build_count: int = DEFAULT_BUILD_COUNT


def env_config_dir() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base)
    return Path.home() / ".config"


def default_config_paths() -> list[Path]:
    return [Path(CONFIG_FILE_NAME), env_config_dir() / APP_CONFIG_DIR_NAME / CONFIG_FILE_NAME]


def load_user_config(path: str | None) -> dict:
    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"config path not found: {config_path}")
        candidates = [config_path]
    else:
        candidates = [p for p in default_config_paths() if p.exists()]

    if not candidates:
        return {}

    try:
        loaded = json.loads(candidates[0].read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON config: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read config {candidates[0]}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError(f"config {candidates[0]} must be a JSON object")
    return loaded


def _split_projects(value: Any) -> list[str]:
    if isinstance(value, str):
        return [p.strip() for p in value.split(",") if p.strip()]
    if isinstance(value, list):
        return [str(p).strip() for p in value if str(p).strip()]
    return []


def env_overrides(environ: Mapping[str, str]) -> dict:
    overrides: dict[str, Any] = {}
    url = environ.get(f"{ENV_PREFIX}TEAMCITY_URL")
    if url:
        overrides["teamcity_url"] = url
    token = environ.get(f"{ENV_PREFIX}TOKEN")
    if token:
        overrides["token"] = token
    projects = environ.get(f"{ENV_PREFIX}PROJECTS")
    if projects:
        overrides["projects"] = projects
    return overrides


def resolve_config(
    config_path: str | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    resolved = dict(DEFAULTS)
    resolved.update(load_user_config(config_path))
    resolved.update(env_overrides(os.environ if environ is None else environ))
    for key, value in (overrides or {}).items():
        if value is not None:
            resolved[key] = value

    missing = [key for key in ("teamcity_url", "token") if not resolved.get(key)]
    projects = _split_projects(resolved.get("projects"))
    if not projects:
        missing.append("projects")
    if missing:
        raise ConfigError(f"missing required setting(s): {', '.join(missing)}")

    try:
        return AppConfig(
            teamcity_url=str(resolved["teamcity_url"]),
            token=str(resolved["token"]),
            projects=projects,
            tick_rate=max(0.1, float(resolved["tick_rate"])),
            frame_rate=max(0.1, float(resolved["frame_rate"])),
            cache_ttl_seconds=max(0.0, float(resolved["cache_ttl_seconds"])),
            build_count=max(1, int(resolved["build_count"])),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid setting: {exc}") from exc
