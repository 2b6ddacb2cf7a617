"""Header line renderer."""

from __future__ import annotations

from rich.text import Text


def render(
    title: str,
    shown: int,
    total: int,
    filter_text: str | None = None,
    edit_buffer: str | None = None,
) -> Text:
    text = Text()
    text.append(title, style="bold cyan")
    text.append(f"   {shown}/{total}", style="bold")
    if edit_buffer is not None:
        text.append("   Filter: ", style="default")
        text.append(f"{edit_buffer}_", style="bold yellow")
    elif filter_text:
        text.append("   Filter: ", style="default")
        text.append(filter_text, style="bold")
    text.append("   ? for help", style="dim")
    return text
