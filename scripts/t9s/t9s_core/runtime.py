"""Action dispatch runtime.

One main loop owns every screen and all runtime state. Terminal events and
timers become actions; network fetches run as detached tasks whose only side
effect is putting exactly one action on the shared queue. Each loop iteration
waits for one event, then drains the queue in FIFO order. Actions that screen
update hooks return are queued after the drain pass, so they are handled on
the next pass rather than recursively within the current one.
"""

from __future__ import annotations

import logging
import queue
import threading
from enum import Enum, auto
from typing import Any, Callable, Sequence

from rich.console import Group

from t9s_core.actions import (
    QUIET_ACTIONS,
    Action,
    ClearScreen,
    Error,
    ExternalChoiceMade,
    LoadBuildList,
    LoadBuildLog,
    Quit,
    Render,
    RequestExternalChoice,
    Resize,
    Resume,
    ShowBuildList,
    ShowBuildLog,
    ShowProjectList,
    Suspend,
    Tick,
)
from t9s_core.collectors.teamcity import TeamCityError
from t9s_core.external import open_url, page_text, run_fzf
from t9s_core.models import BuildType
from t9s_core.screens import Screen
from t9s_core.screens.builds import BuildList
from t9s_core.screens.projects import ProjectList
from t9s_core.terminal import KeyEvent

logger = logging.getLogger(__name__)


class Mode(Enum):
    HOME = auto()


KEYMAP: dict[Mode, dict[str, Callable[[], Action]]] = {
    Mode.HOME: {
        "q": Quit,
        "ctrl+c": Quit,
        "ctrl+d": Quit,
        "ctrl+z": Suspend,
    },
}

EVENT_ACTIONS: dict[str, Callable[[], Action]] = {
    "quit": Quit,
    "tick": Tick,
    "render": Render,
}


def spawn_thread(task: Callable[[], None]) -> None:
    threading.Thread(target=task, name="t9s-fetch", daemon=True).start()


class App:
    def __init__(
        self,
        client: Any,
        build_types: Sequence[BuildType],
        terminal: Any,
        picker: Callable[[Sequence[str]], str] = run_fzf,
        opener: Callable[[str], bool] = open_url,
        pager: Callable[[str], bool] = page_text,
        spawn: Callable[[Callable[[], None]], None] = spawn_thread,
    ):
        self.client = client
        self.build_types = tuple(build_types)
        self.terminal = terminal
        self.picker = picker
        self.opener = opener
        self.pager = pager
        self.spawn = spawn
        self.action_queue: queue.Queue = queue.Queue()
        self.screens: list[Screen] = [ProjectList(self.build_types, opener=opener)]
        self.mode = Mode.HOME
        self.should_quit = False
        self.should_suspend = False

    # -- main loop --------------------------------------------------------

    def run(self) -> None:
        self.terminal.enter()
        try:
            self.mount(self.screens)
            self.action_queue.put(Render())
            while True:
                self.handle_events()
                self.handle_actions()
                if self.should_suspend:
                    self.terminal.suspend()
                    self.action_queue.put(Resume())
                    self.action_queue.put(ClearScreen())
                    self.terminal.enter()
                elif self.should_quit:
                    break
        except KeyboardInterrupt:
            logger.info("interrupted")
        finally:
            self.terminal.exit()

    def handle_events(self) -> None:
        event = self.terminal.next_event()
        if event is None:
            return

        if event.kind == "key" and event.key is not None:
            self.handle_key_event(event.key)
        elif event.kind == "resize":
            self.action_queue.put(Resize(event.width, event.height))
        elif event.kind in EVENT_ACTIONS:
            self.action_queue.put(EVENT_ACTIONS[event.kind]())

        for screen in self.screens:
            action = screen.handle_event(event)
            if action is not None:
                self.action_queue.put(action)

    def handle_key_event(self, key: KeyEvent) -> None:
        handled = False
        for screen in self.screens:
            action = screen.handle_key_event(key)
            if action is not None:
                self.action_queue.put(action)
                handled = True
        if handled:
            return

        factory = KEYMAP.get(self.mode, {}).get(key.code)
        if factory is not None:
            action = factory()
            logger.info("Got action: %r", action)
            self.action_queue.put(action)

    def handle_actions(self) -> None:
        follow_ups: list[Action] = []
        while True:
            try:
                action = self.action_queue.get_nowait()
            except queue.Empty:
                break
            if not isinstance(action, QUIET_ACTIONS):
                logger.debug("%r", action)

            self.apply(action)

            for screen in list(self.screens):
                follow_up = screen.update(action)
                if follow_up is not None:
                    follow_ups.append(follow_up)

        for follow_up in follow_ups:
            self.action_queue.put(follow_up)

    # -- built-in effects -------------------------------------------------

    def apply(self, action: Action) -> None:
        if isinstance(action, Quit):
            self.should_quit = True
        elif isinstance(action, Suspend):
            self.should_suspend = True
        elif isinstance(action, Resume):
            self.should_suspend = False
        elif isinstance(action, ClearScreen):
            self.terminal.clear()
        elif isinstance(action, Resize):
            self.terminal.resize(action.width, action.height)
            self.render()
        elif isinstance(action, Render):
            self.render()
        elif isinstance(action, Error):
            logger.warning("%s", action.message)
        elif isinstance(action, RequestExternalChoice):
            self.request_external_choice(action.options)
        elif isinstance(action, LoadBuildList):
            self.mount([BuildList(action.title, [], loading=True, opener=self.opener)])
            self.render()
            self.load_builds(action.project_id, action.title)
        elif isinstance(action, ShowBuildList):
            self.mount([BuildList(action.title, action.items, opener=self.opener)])
            self.render()
        elif isinstance(action, ShowProjectList):
            self.mount([ProjectList(self.build_types, opener=self.opener)])
            self.render()
        elif isinstance(action, LoadBuildLog):
            self.load_build_log(action.build_id)
        elif isinstance(action, ShowBuildLog):
            self.show_build_log(action.text)

    def mount(self, screens: list[Screen]) -> None:
        self.screens = screens
        size = self.terminal.size()
        for screen in self.screens:
            screen.register_action_handler(self.action_queue)
            screen.init(size)

    def render(self) -> None:
        size = self.terminal.size()
        renderables = []
        for screen in self.screens:
            try:
                renderables.append(screen.draw(size))
            except Exception as exc:
                logger.exception("draw failed")
                self.action_queue.put(Error(f"Failed to draw: {exc!r}"))
        self.terminal.draw(Group(*renderables))

    def request_external_choice(self, options: Sequence[str]) -> None:
        with self.terminal.paused():
            selected = self.picker(list(options))
        if selected:
            self.action_queue.put(ExternalChoiceMade(selected))

    def show_build_log(self, text: str) -> None:
        with self.terminal.paused():
            ok = self.pager(text)
        if not ok:
            self.action_queue.put(Error("Failed to page build log"))
        self.action_queue.put(ClearScreen())
        self.action_queue.put(Render())

    # -- detached fetch tasks ---------------------------------------------

    def load_builds(self, project_id: str, title: str) -> None:
        client = self.client.clone()
        tx = self.action_queue

        def task() -> None:
            try:
                items = client.fetch_builds_for_configuration(project_id)
            except TeamCityError as exc:
                tx.put(Error(f"Failed to fetch builds for project {project_id}: {exc}"))
                return
            except Exception as exc:
                logger.exception("build fetch for %s failed", project_id)
                tx.put(Error(f"Failed to fetch builds for project {project_id}: {exc}"))
                return
            tx.put(ShowBuildList(title=title, items=tuple(items)))

        self.spawn(task)

    def load_build_log(self, build_id: int) -> None:
        client = self.client.clone()
        tx = self.action_queue

        def task() -> None:
            try:
                text = client.fetch_log_text(build_id)
            except TeamCityError as exc:
                tx.put(Error(f"Failed to fetch log for build {build_id}: {exc}"))
                return
            except Exception as exc:
                logger.exception("log fetch for build %s failed", build_id)
                tx.put(Error(f"Failed to fetch log for build {build_id}: {exc}"))
                return
            tx.put(ShowBuildLog(build_id=build_id, text=text))

        self.spawn(task)
