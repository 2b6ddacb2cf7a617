"""Collector helpers and package exports."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

APP_CACHE_DIR_NAME = "teamcity-client"
CACHE_FILE_NAME = "build_configs_cache.json"


def read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text())
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None


def file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def env_cache_dir() -> Path:
    base = os.environ.get("XDG_CACHE_HOME")
    if base:
        return Path(base)
    return Path.home() / ".cache"


def default_cache_file() -> Path:
    return env_cache_dir() / APP_CACHE_DIR_NAME / CACHE_FILE_NAME
