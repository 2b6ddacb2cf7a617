"""Shared text and time formatting helpers for human-facing tables."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Sequence

from t9s_core.models import Change

# TeamCity timestamps look like "20250131T154210+0000", optionally with
# fractional seconds before the offset.
TEAMCITY_DATETIME_RE = re.compile(r"^(\d{8}T\d{6})(?:\.\d+)?([+\-]\d{4})$")
HUMAN_READABLE_DATE_FORMAT = "%d %b %H:%M"


def parse_tc_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    match = TEAMCITY_DATETIME_RE.match(value.strip())
    if not match:
        return None
    try:
        parsed = datetime.strptime(match.group(1) + match.group(2), "%Y%m%dT%H%M%S%z")
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc)


def format_start_time(value: str | None) -> str:
    parsed = parse_tc_datetime(value)
    if parsed is None:
        return ""
    return parsed.strftime(HUMAN_READABLE_DATE_FORMAT)


def format_duration(seconds: float | int) -> str:
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def build_duration(start: str | None, finish: str | None, now: datetime | None = None) -> str:
    started = parse_tc_datetime(start)
    if started is None:
        return ""
    if finish:
        ended = parse_tc_datetime(finish)
    else:
        # Unfinished builds are still running.
        ended = now or datetime.now(timezone.utc)
    if ended is None or ended < started:
        return ""
    return format_duration((ended - started).total_seconds())


def changes_summary(changes: Sequence[Change]) -> str:
    if not changes:
        return "No changes"
    users = [c.username for c in changes if c.username]
    if not users:
        return f"⚠ {len(changes)} Changes from 0 users"
    if len(users) == 1:
        return f"{users[0]}: {len(changes)}"
    return f"{len(changes)} Changes"
