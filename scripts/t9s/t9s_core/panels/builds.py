"""Build history renderer."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from rich.panel import Panel

from t9s_core.formatting import build_duration, changes_summary, format_start_time
from t9s_core.layout import visible_columns, visible_window
from t9s_core.models import Build
from t9s_core.panels import TABLE_CHROME_ROWS, add_selectable_row, panel_from_table, selectable_table


def build_cells(build: Build, now: datetime | None = None) -> dict[str, str]:
    return {
        "Number": build.number or "",
        "Branch": build.branch_name or "",
        "Status": build.status_text or build.status or "",
        "Last Changes": changes_summary(build.changes),
        "Start time": format_start_time(build.start_date),
        "Duration": build_duration(build.start_date, build.finish_date, now=now),
    }


def render(
    title: str,
    builds: Sequence[Build],
    selected: int | None,
    width: int,
    height: int,
    loading: bool = False,
    now: datetime | None = None,
) -> Panel:
    columns = visible_columns("builds", width)
    table = selectable_table(columns)
    panel_title = f"Builds: {title}"

    if not builds:
        message = "Loading builds..." if loading else "No builds"
        table.add_row("", *([message] + [""] * (len(columns) - 1)))
        return panel_from_table(panel_title, "loading" if loading else "ok", table)

    start, end = visible_window(len(builds), selected, height - TABLE_CHROME_ROWS)
    for index in range(start, end):
        build = builds[index]
        cells = build_cells(build, now=now)
        add_selectable_row(
            table,
            [cells[name] for name in columns],
            selected == index,
            style="red" if build.is_failed else None,
        )
    return panel_from_table(panel_title, "ok", table)
