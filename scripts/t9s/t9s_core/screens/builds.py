"""Build-List screen: build history of one configuration."""

from __future__ import annotations

from typing import Callable, Sequence

from rich.console import ConsoleDimensions, RenderableType

from t9s_core.actions import Action, Error, LoadBuildLog, ShowProjectList
from t9s_core.external import open_url
from t9s_core.models import Build
from t9s_core.panels.builds import render as render_builds
from t9s_core.panels.header import render as render_header
from t9s_core.screens import ListScreen


def build_label(build: Build) -> str:
    build_id = "" if build.id is None else str(build.id)
    return f"#{build_id} {build.number or ''} [{build.build_type_id or ''}]"


class BuildList(ListScreen):
    key_bindings = {
        **ListScreen.key_bindings,
        "esc": "back",
        "h": "back",
        "enter": "view_log",
        "l": "view_log",
    }
    help_text = "j/k move  gg/G top/bottom  f find  enter log  o browser  esc back  q quit"

    def __init__(
        self,
        title: str,
        builds: Sequence[Build],
        loading: bool = False,
        opener: Callable[[str], bool] = open_url,
    ):
        super().__init__(opener=opener)
        self.title = title
        self.items = tuple(builds)
        self.loading = loading

    def get_items(self) -> Sequence[Build]:
        return self.items

    def label_for(self, item: Build) -> str:
        return build_label(item)

    def name_for(self, item: Build) -> str:
        return f"build #{item.number or item.id}"

    def update(self, action: Action) -> Action | None:
        if isinstance(action, Error):
            self.loading = False
        return super().update(action)

    def back(self) -> Action:
        return ShowProjectList()

    def view_log(self) -> Action | None:
        build = self.selected_item()
        if build is None:
            return None
        if build.id is None:
            return Error("Build has no id; cannot fetch its log")
        return LoadBuildLog(build_id=build.id)

    def draw(self, size: ConsoleDimensions) -> RenderableType:
        header = render_header(self.title, shown=len(self.items), total=len(self.items))
        body = render_builds(
            self.title,
            self.items,
            self.selected,
            size.width,
            self.body_height(size),
            loading=self.loading,
        )
        return self.compose(header, body)
