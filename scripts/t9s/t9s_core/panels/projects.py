"""Build configuration list renderer."""

from __future__ import annotations

from typing import Sequence

from rich.panel import Panel

from t9s_core.layout import visible_columns, visible_window
from t9s_core.models import BuildType
from t9s_core.panels import TABLE_CHROME_ROWS, add_selectable_row, panel_from_table, selectable_table


def _cells(config: BuildType, columns: list[str]) -> list[str]:
    values = {
        "Project": config.project_name or "N/A",
        "Name": config.name,
        "ID": config.id,
    }
    return [values[name] for name in columns]


def render(configs: Sequence[BuildType], selected: int | None, width: int, height: int) -> Panel:
    columns = visible_columns("projects", width)
    table = selectable_table(columns)
    if not configs:
        table.add_row("", *(["No build configurations"] + [""] * (len(columns) - 1)))
        return panel_from_table("Build Configurations", "ok", table)

    start, end = visible_window(len(configs), selected, height - TABLE_CHROME_ROWS)
    for index in range(start, end):
        add_selectable_row(table, _cells(configs[index], columns), selected == index)
    return panel_from_table("Build Configurations", "ok", table)
