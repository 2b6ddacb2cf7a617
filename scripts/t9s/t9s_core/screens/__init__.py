"""Screen contract shared by every navigational context.

A screen owns its view state. The runtime hands it raw keys
(``handle_key_event``), raw events (``handle_event``) and every dispatched
action (``update``); any action a hook returns is queued by the runtime.
Screens are rebuilt on every navigation, so none of this state survives a
screen swap.
"""

from __future__ import annotations

import logging
import queue
from typing import Any, Callable, Sequence

from rich.console import ConsoleDimensions, Group, RenderableType

from t9s_core.actions import (
    Action,
    Error,
    ExternalChoiceMade,
    Help,
    Notify,
    Render,
    RequestExternalChoice,
    Tick,
)
from t9s_core.external import open_url
from t9s_core.panels import status_line
from t9s_core.terminal import Event, KeyEvent

logger = logging.getLogger(__name__)

# Header line above the table and status line below it.
SCREEN_CHROME_ROWS = 2
KEY_BUFFER_LIMIT = 16


class Screen:
    # key code -> method name
    key_bindings: dict[str, str] = {}
    # (previous key, key) -> method name
    key_sequences: dict[tuple[str, str], str] = {}
    help_text = ""

    def __init__(self, opener: Callable[[str], bool] = open_url):
        self.opener = opener
        self.action_queue: queue.Queue | None = None
        self.last_keys: list[str] = []
        self.message: str | None = None
        self.message_kind = "info"
        self.show_help = False

    # -- lifecycle --------------------------------------------------------

    def register_action_handler(self, action_queue: queue.Queue) -> None:
        self.action_queue = action_queue

    def init(self, size: ConsoleDimensions) -> None:
        pass

    # -- input ------------------------------------------------------------

    def handle_event(self, event: Event) -> Action | None:
        return None

    def handle_key_event(self, key: KeyEvent) -> Action | None:
        self.clear_message()
        self.last_keys.append(key.code)
        del self.last_keys[:-KEY_BUFFER_LIMIT]

        command = self.key_bindings.get(key.code)
        if command is None and len(self.last_keys) >= 2:
            command = self.key_sequences.get((self.last_keys[-2], self.last_keys[-1]))
            if command is not None:
                self.last_keys.clear()
        if command is None:
            return None
        return getattr(self, command)()

    # -- update -----------------------------------------------------------

    def update(self, action: Action) -> Action | None:
        if isinstance(action, Tick):
            self.last_keys.clear()
        elif isinstance(action, Error):
            self.set_message(action.message, "error")
            return Render()
        elif isinstance(action, Notify):
            self.set_message(action.message, "info")
            return Render()
        elif isinstance(action, Help):
            self.show_help = not self.show_help
            return Render()
        return None

    # -- drawing ----------------------------------------------------------

    def draw(self, size: ConsoleDimensions) -> RenderableType:
        raise NotImplementedError

    def footer(self) -> RenderableType:
        if self.message:
            return status_line(self.message, self.message_kind)
        if self.show_help:
            return status_line(self.help_text, "help")
        return status_line(None)

    def compose(self, header: RenderableType, body: RenderableType) -> RenderableType:
        return Group(header, body, self.footer())

    # -- messages ---------------------------------------------------------

    def set_message(self, message: str, kind: str = "info") -> None:
        self.message = message
        self.message_kind = kind

    def clear_message(self) -> None:
        self.message = None

    def help(self) -> Action:
        return Help()


class ListScreen(Screen):
    """Screen over a selectable list with vim-style navigation and fuzzy jump."""

    key_bindings = {
        "j": "move_down",
        "down": "move_down",
        "k": "move_up",
        "up": "move_up",
        "G": "move_end",
        "home": "move_begin",
        "end": "move_end",
        "f": "fuzzy_find",
        "o": "open_selected_url",
        "?": "help",
    }
    key_sequences = {("g", "g"): "move_begin"}

    def __init__(self, opener: Callable[[str], bool] = open_url):
        super().__init__(opener=opener)
        self._selected: int | None = None

    def get_items(self) -> Sequence[Any]:
        raise NotImplementedError

    def label_for(self, item: Any) -> str:
        raise NotImplementedError

    def url_for(self, item: Any) -> str | None:
        return getattr(item, "web_url", None)

    def name_for(self, item: Any) -> str:
        return self.label_for(item)

    # -- selection --------------------------------------------------------

    @property
    def selected(self) -> int | None:
        items = self.get_items()
        if not items or self._selected is None:
            return None
        return min(self._selected, len(items) - 1)

    def select(self, index: int | None) -> None:
        self._selected = index

    def selected_item(self) -> Any | None:
        index = self.selected
        if index is None:
            return None
        return self.get_items()[index]

    def init(self, size: ConsoleDimensions) -> None:
        self.select(0 if self.get_items() else None)

    def move_down(self) -> Action:
        items = self.get_items()
        if not items:
            self.select(None)
            return Render()
        i = self.selected
        if i is None or i >= len(items) - 1:
            self.select(0)
        else:
            self.select(i + 1)
        return Render()

    def move_up(self) -> Action:
        items = self.get_items()
        if not items:
            self.select(None)
            return Render()
        i = self.selected
        if i is None:
            self.select(0)
        elif i == 0:
            self.select(len(items) - 1)
        else:
            self.select(i - 1)
        return Render()

    def move_begin(self) -> Action:
        self.select(0 if self.get_items() else None)
        return Render()

    def move_end(self) -> Action:
        items = self.get_items()
        self.select(len(items) - 1 if items else None)
        return Render()

    # -- fuzzy selection --------------------------------------------------

    def fuzzy_find(self) -> Action:
        return RequestExternalChoice(tuple(self.label_for(item) for item in self.get_items()))

    def select_label(self, label: str) -> bool:
        if not label:
            return False
        for index, item in enumerate(self.get_items()):
            if self.label_for(item) == label:
                self.select(index)
                return True
        return False

    def update(self, action: Action) -> Action | None:
        if isinstance(action, ExternalChoiceMade):
            if self.select_label(action.selected):
                return Render()
            logger.debug("no row matches %r", action.selected)
            return None
        return super().update(action)

    # -- browser ----------------------------------------------------------

    def open_selected_url(self) -> Action:
        item = self.selected_item()
        if item is None:
            return Render()
        url = self.url_for(item)
        if not url:
            return Error("No web URL available for this entry")
        if self.opener(url):
            return Notify(f"Opened {self.name_for(item)} in browser")
        return Error(f"Failed to open URL: {url}")

    def body_height(self, size: ConsoleDimensions) -> int:
        return max(1, size.height - SCREEN_CHROME_ROWS)
