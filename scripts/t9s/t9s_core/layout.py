"""Responsive column selection by terminal width."""

from __future__ import annotations

BUILD_COLUMNS = ["Number", "Branch", "Status", "Last Changes", "Start time", "Duration"]
PROJECT_COLUMNS = ["Project", "Name", "ID"]

VISIBLE_BUILD_COLUMNS = {
    "narrow": ["Number", "Status", "Duration"],
    "medium": ["Number", "Status", "Last Changes", "Start time", "Duration"],
    "wide": BUILD_COLUMNS,
}

VISIBLE_PROJECT_COLUMNS = {
    "narrow": ["Name"],
    "medium": ["Project", "Name"],
    "wide": PROJECT_COLUMNS,
}


def select_layout_mode(width: int) -> str:
    if width < 100:
        return "narrow"
    if width < 160:
        return "medium"
    return "wide"


def visible_columns(table: str, width: int) -> list[str]:
    mode = select_layout_mode(width)
    if table == "builds":
        return VISIBLE_BUILD_COLUMNS[mode]
    return VISIBLE_PROJECT_COLUMNS[mode]


def visible_window(total: int, selected: int | None, rows: int) -> tuple[int, int]:
    """Return the [start, end) slice of rows to draw so the selection stays on screen."""
    rows = max(1, rows)
    if total <= rows:
        return 0, total
    index = selected or 0
    start = max(0, index - rows + 1)
    return start, min(total, start + rows)
