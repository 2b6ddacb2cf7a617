"""Project-List screen: every build configuration of the configured projects."""

from __future__ import annotations

from enum import Enum, auto
from typing import Callable, Sequence

from rich.console import ConsoleDimensions, RenderableType

from t9s_core.actions import Action, LoadBuildList, Render
from t9s_core.external import open_url
from t9s_core.models import BuildType
from t9s_core.panels.header import render as render_header
from t9s_core.panels.projects import render as render_projects
from t9s_core.screens import ListScreen
from t9s_core.terminal import KeyEvent


class InputMode(Enum):
    NORMAL = auto()
    FILTER_EDIT = auto()


def configuration_label(config: BuildType) -> str:
    return f"{config.id} {config.name}"


class ProjectList(ListScreen):
    key_bindings = {
        **ListScreen.key_bindings,
        "enter": "confirm",
        "l": "confirm",
        "/": "start_filter",
        "esc": "clear_filter",
    }
    help_text = "j/k move  gg/G top/bottom  / filter  f find  enter open builds  o browser  q quit"

    def __init__(self, build_types: Sequence[BuildType], opener: Callable[[str], bool] = open_url):
        super().__init__(opener=opener)
        self.build_types = tuple(build_types)
        self.filter_string: str | None = None
        self.input_mode = InputMode.NORMAL
        self.edit_buffer = ""

    # Filtering happens on every read so bounds never go stale.
    def get_items(self) -> Sequence[BuildType]:
        if not self.filter_string:
            return self.build_types
        needle = self.filter_string.lower()
        return tuple(bt for bt in self.build_types if needle in bt.name.lower())

    def label_for(self, item: BuildType) -> str:
        return configuration_label(item)

    def name_for(self, item: BuildType) -> str:
        return item.name

    def set_filter(self, value: str | None) -> None:
        self.filter_string = value or None
        self.select(0 if self.get_items() else None)

    # -- input ------------------------------------------------------------

    def handle_key_event(self, key: KeyEvent) -> Action | None:
        if self.input_mode is InputMode.FILTER_EDIT:
            return self._handle_filter_key(key)
        return super().handle_key_event(key)

    def _handle_filter_key(self, key: KeyEvent) -> Action | None:
        if key.code == "esc":
            self.input_mode = InputMode.NORMAL
            self.edit_buffer = ""
        elif key.code == "enter":
            self.input_mode = InputMode.NORMAL
            self.set_filter(self.edit_buffer)
            self.edit_buffer = ""
        elif key.code == "backspace":
            self.edit_buffer = self.edit_buffer[:-1]
        elif key.is_printable:
            self.edit_buffer += key.code
        else:
            # Control keys such as ctrl+c still reach the global key map.
            return None
        return Render()

    def start_filter(self) -> Action:
        self.input_mode = InputMode.FILTER_EDIT
        self.edit_buffer = self.filter_string or ""
        return Render()

    def clear_filter(self) -> Action | None:
        if self.filter_string is None:
            return None
        self.set_filter(None)
        return Render()

    def confirm(self) -> Action | None:
        config = self.selected_item()
        if config is None:
            return None
        return LoadBuildList(project_id=config.id, title=config.name)

    # -- drawing ----------------------------------------------------------

    def draw(self, size: ConsoleDimensions) -> RenderableType:
        items = self.get_items()
        header = render_header(
            "Build Configurations",
            shown=len(items),
            total=len(self.build_types),
            filter_text=self.filter_string,
            edit_buffer=self.edit_buffer if self.input_mode is InputMode.FILTER_EDIT else None,
        )
        body = render_projects(items, self.selected, size.width, self.body_height(size))
        return self.compose(header, body)
