"""Panel rendering helpers."""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

STATUS_BORDER = {
    "ok": "cyan",
    "loading": "yellow",
    "error": "red",
}

MESSAGE_STYLE = {
    "info": "green",
    "error": "bold red",
    "help": "dim",
}

HIGHLIGHT_SYMBOL = ">> "
HIGHLIGHT_STYLE = "reverse"
HEADER_STYLE = "bold yellow"

# Border, header row and its bottom margin.
TABLE_CHROME_ROWS = 4


def border_for(status: str) -> str:
    return STATUS_BORDER.get(status, "cyan")


def selectable_table(columns: list[str]) -> Table:
    table = Table(box=None, expand=True, header_style=HEADER_STYLE, pad_edge=False)
    table.add_column("", no_wrap=True, width=len(HIGHLIGHT_SYMBOL))
    for name in columns:
        table.add_column(name, no_wrap=True, overflow="ellipsis")
    return table


def add_selectable_row(table: Table, cells: list[str], selected: bool, style: str | None = None) -> None:
    marker = HIGHLIGHT_SYMBOL if selected else ""
    row_style = style or ""
    if selected:
        row_style = f"{row_style} {HIGHLIGHT_STYLE}".strip()
    table.add_row(marker, *cells, style=row_style or None)


def panel_from_table(title: str, status: str, table: Table) -> Panel:
    return Panel(table, title=f"[bold]{title}[/bold]", border_style=border_for(status))


def status_line(message: str | None, kind: str = "info") -> Text:
    if not message:
        return Text("")
    return Text(message, style=MESSAGE_STYLE.get(kind, "default"), no_wrap=True, overflow="ellipsis")
