from __future__ import annotations

import io
import tempfile
import unittest
from contextlib import contextmanager
from pathlib import Path
import sys

from rich.console import Console, ConsoleDimensions

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from t9s_core.actions import (  # noqa: E402
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
    ShowProjectList,
    Suspend,
    Tick,
)
from t9s_core.collectors.cache import PersistentCache  # noqa: E402
from t9s_core.collectors.teamcity import TeamCityClient, TeamCityError  # noqa: E402
from t9s_core.models import Build, BuildType  # noqa: E402
from t9s_core.runtime import App  # noqa: E402
from t9s_core.screens.builds import BuildList  # noqa: E402
from t9s_core.screens.projects import ProjectList  # noqa: E402
from t9s_core.terminal import QUIT, RENDER, TICK, Event, KeyEvent  # noqa: E402


class FakeTerminal:
    def __init__(self, events=(), width: int = 120, height: int = 40):
        self.events = list(events)
        self.width = width
        self.height = height
        self.drawn = []
        self.calls: list[str] = []

    def enter(self):
        self.calls.append("enter")

    def exit(self):
        self.calls.append("exit")

    def suspend(self):
        self.calls.append("suspend")

    @contextmanager
    def paused(self):
        self.calls.append("pause")
        yield
        self.calls.append("unpause")

    def size(self):
        return ConsoleDimensions(self.width, self.height)

    def resize(self, width, height):
        self.width, self.height = width, height

    def clear(self):
        self.calls.append("clear")

    def draw(self, renderable):
        self.drawn.append(renderable)

    def next_event(self):
        if self.events:
            return self.events.pop(0)
        return QUIT


class FakeClient:
    def __init__(self, builds=None, error: str | None = None, log_text: str = "log"):
        self.builds = builds or {}
        self.error = error
        self.log_text = log_text
        self.calls: list[str] = []
        self.clones = 0

    def clone(self):
        self.clones += 1
        return self

    def fetch_builds_for_configuration(self, config_id):
        self.calls.append(config_id)
        if self.error:
            raise TeamCityError(self.error)
        return list(self.builds.get(config_id, []))

    def fetch_log_text(self, build_id):
        if self.error:
            raise TeamCityError(self.error)
        return self.log_text


class BrokenClient(FakeClient):
    def fetch_builds_for_configuration(self, config_id):
        raise AttributeError("'list' object has no attribute 'get'")

    def fetch_log_text(self, build_id):
        raise AttributeError("'list' object has no attribute 'get'")


CONFIGS = [
    BuildType(id="auth", name="auth"),
    BuildType(id="billing", name="billing"),
]
BUILDS = [Build(id=101, number="3.2", build_type_id="auth"), Build(id=102, number="3.3", build_type_id="auth")]


def key(code: str) -> Event:
    return Event("key", key=KeyEvent(code))


def make_app(client=None, events=(), **kwargs) -> App:
    app = App(
        client or FakeClient({"auth": BUILDS}),
        CONFIGS,
        FakeTerminal(events),
        spawn=lambda task: task(),
        **kwargs,
    )
    app.mount(app.screens)
    return app


def drain_queue(app: App) -> list:
    pending = []
    while not app.action_queue.empty():
        pending.append(app.action_queue.get_nowait())
    return pending


class DispatchTests(unittest.TestCase):
    def test_quit_sets_flag(self):
        app = make_app()
        app.action_queue.put(Quit())
        app.handle_actions()
        self.assertTrue(app.should_quit)

    def test_suspend_and_resume_toggle(self):
        app = make_app()
        app.action_queue.put(Suspend())
        app.handle_actions()
        self.assertTrue(app.should_suspend)
        app.action_queue.put(Resume())
        app.handle_actions()
        self.assertFalse(app.should_suspend)

    def test_render_and_resize_draw(self):
        app = make_app()
        app.action_queue.put(Render())
        app.action_queue.put(Resize(80, 20))
        app.handle_actions()
        self.assertEqual(len(app.terminal.drawn), 2)
        self.assertEqual(app.terminal.size(), ConsoleDimensions(80, 20))

    def test_clear_screen(self):
        app = make_app()
        app.action_queue.put(ClearScreen())
        app.handle_actions()
        self.assertIn("clear", app.terminal.calls)

    def test_fifo_order(self):
        app = make_app()
        seen = []
        original = app.apply
        app.apply = lambda action: (seen.append(action), original(action))
        actions = [Tick(), Render(), Quit()]
        for action in actions:
            app.action_queue.put(action)
        app.handle_actions()
        self.assertEqual(seen, actions)

    def test_screen_follow_ups_wait_for_next_pass(self):
        app = make_app()
        app.action_queue.put(ExternalChoiceMade("billing billing"))
        app.handle_actions()
        self.assertEqual(app.screens[0].selected, 1)
        # The screen's Render follow-up is queued, not yet drawn.
        self.assertEqual(app.terminal.drawn, [])
        self.assertEqual(app.action_queue.qsize(), 1)
        app.handle_actions()
        self.assertEqual(len(app.terminal.drawn), 1)
        self.assertTrue(app.action_queue.empty())

    def test_external_choice_round_trip(self):
        offered = []
        app = make_app(picker=lambda options: offered.append(options) or "billing billing")
        app.action_queue.put(RequestExternalChoice(("auth auth", "billing billing")))
        app.handle_actions()
        self.assertEqual(offered, [["auth auth", "billing billing"]])
        self.assertEqual(app.terminal.calls, ["pause", "unpause"])
        self.assertEqual(app.screens[0].selected, 1)

    def test_cancelled_external_choice_enqueues_nothing(self):
        app = make_app(picker=lambda options: "")
        app.action_queue.put(RequestExternalChoice(("auth auth",)))
        app.handle_actions()
        self.assertTrue(app.action_queue.empty())
        self.assertEqual(app.screens[0].selected, 0)

    def test_error_is_not_fatal(self):
        app = make_app()
        app.action_queue.put(Error("server down"))
        app.handle_actions()
        self.assertFalse(app.should_quit)
        self.assertEqual(app.screens[0].message, "server down")


class NavigationTests(unittest.TestCase):
    def test_load_build_list_swaps_screen_and_fetches(self):
        client = FakeClient({"auth": BUILDS})
        app = make_app(client)
        app.action_queue.put(LoadBuildList(project_id="auth", title="auth"))
        app.handle_actions()
        self.assertEqual(client.calls, ["auth"])
        self.assertEqual(client.clones, 1)
        screen = app.screens[0]
        self.assertIsInstance(screen, BuildList)
        self.assertEqual(screen.title, "auth")
        self.assertEqual(screen.items, tuple(BUILDS))
        self.assertFalse(screen.loading)
        # Empty "loading" screen drawn first, then the populated one.
        self.assertEqual(len(app.terminal.drawn), 2)

    def test_load_build_list_failure_leaves_empty_screen(self):
        app = make_app(FakeClient(error="Request failed with status: 500"))
        app.action_queue.put(LoadBuildList(project_id="auth", title="auth"))
        app.handle_actions()
        screen = app.screens[0]
        self.assertIsInstance(screen, BuildList)
        self.assertEqual(screen.items, ())
        self.assertIn("Failed to fetch builds for project auth", screen.message)

    def test_load_build_list_failure_stops_loading(self):
        app = make_app(FakeClient(error="boom"))
        app.action_queue.put(LoadBuildList(project_id="auth", title="auth"))
        app.handle_actions()
        app.handle_actions()
        screen = app.screens[0]
        self.assertFalse(screen.loading)
        console = Console(file=io.StringIO(), width=120, height=40, record=True)
        console.print(screen.draw(app.terminal.size()))
        frame = console.export_text()
        self.assertIn("No builds", frame)
        self.assertNotIn("Loading builds", frame)

    def test_unexpected_fetch_error_becomes_error_action(self):
        app = make_app(BrokenClient())
        app.action_queue.put(LoadBuildList(project_id="auth", title="auth"))
        with self.assertLogs("t9s_core.runtime", level="ERROR"):
            app.handle_actions()
        screen = app.screens[0]
        self.assertFalse(screen.loading)
        self.assertIn("Failed to fetch builds for project auth", screen.message)
        self.assertIn("no attribute", screen.message)

    def test_unexpected_log_error_becomes_error_action(self):
        app = make_app(BrokenClient(), pager=lambda text: True)
        app.action_queue.put(LoadBuildLog(build_id=101))
        with self.assertLogs("t9s_core.runtime", level="ERROR"):
            app.handle_actions()
        self.assertIn("Failed to fetch log for build 101", app.screens[0].message)

    def test_detached_task_result_is_an_action(self):
        tasks = []
        app = App(FakeClient({"auth": BUILDS}), CONFIGS, FakeTerminal(), spawn=tasks.append)
        app.mount(app.screens)
        app.action_queue.put(LoadBuildList(project_id="auth", title="auth"))
        app.handle_actions()
        self.assertTrue(app.screens[0].loading)
        tasks[0]()
        self.assertEqual(drain_queue(app), [ShowBuildList(title="auth", items=tuple(BUILDS))])

    def test_show_project_list_is_fresh_mount(self):
        app = make_app()
        app.screens[0].set_filter("bill")
        app.action_queue.put(ShowBuildList(title="auth", items=BUILDS))
        app.action_queue.put(ShowProjectList())
        app.handle_actions()
        screen = app.screens[0]
        self.assertIsInstance(screen, ProjectList)
        self.assertIsNone(screen.filter_string)
        self.assertEqual(len(screen.get_items()), 2)
        self.assertEqual(screen.selected, 0)

    def test_stale_result_applies_to_active_screen(self):
        tasks = []
        app = App(FakeClient({"auth": BUILDS}), CONFIGS, FakeTerminal(), spawn=tasks.append)
        app.mount(app.screens)
        app.action_queue.put(LoadBuildList(project_id="auth", title="auth"))
        app.action_queue.put(ShowProjectList())
        app.handle_actions()
        self.assertIsInstance(app.screens[0], ProjectList)
        tasks[0]()
        app.handle_actions()
        self.assertIsInstance(app.screens[0], BuildList)

    def test_build_log_goes_to_pager(self):
        paged = []
        app = make_app(FakeClient(log_text="step 1"), pager=lambda text: paged.append(text) or True)
        app.action_queue.put(LoadBuildLog(build_id=101))
        app.handle_actions()
        self.assertEqual(paged, ["step 1"])
        self.assertIn("clear", app.terminal.calls)

    def test_build_log_failure_reports_error(self):
        app = make_app(FakeClient(error="timeout"), pager=lambda text: True)
        app.action_queue.put(LoadBuildLog(build_id=101))
        app.handle_actions()
        self.assertIn("Failed to fetch log for build 101", app.screens[0].message)


class EventLoopTests(unittest.TestCase):
    def test_keys_go_to_screen_then_global_keymap(self):
        app = make_app(events=[key("j"), key("q")])
        app.handle_events()
        app.handle_actions()
        self.assertEqual(app.screens[0].selected, 1)
        app.handle_events()
        app.handle_actions()
        self.assertTrue(app.should_quit)

    def test_double_g_through_event_loop(self):
        app = make_app(events=[key("G"), key("g"), key("g")])
        for _ in range(3):
            app.handle_events()
            app.handle_actions()
        self.assertEqual(app.screens[0].selected, 0)

    def test_tick_between_presses_breaks_sequence(self):
        app = make_app(events=[key("G"), key("g"), TICK, key("g")])
        for _ in range(4):
            app.handle_events()
            app.handle_actions()
        self.assertEqual(app.screens[0].selected, 1)

    def test_timer_and_resize_events_become_actions(self):
        app = make_app(events=[RENDER, Event("resize", width=90, height=30)])
        app.handle_events()
        app.handle_events()
        self.assertEqual(drain_queue(app), [Render(), Resize(90, 30)])

    def test_ctrl_z_suspends_then_resumes(self):
        app = make_app(events=[key("ctrl+z"), TICK, key("q")])
        app.run()
        calls = app.terminal.calls
        self.assertIn("suspend", calls)
        self.assertEqual(calls[calls.index("suspend") + 1], "enter")
        self.assertFalse(app.should_suspend)
        self.assertTrue(app.should_quit)
        self.assertEqual(calls[-1], "exit")

    def test_run_stops_on_quit_event(self):
        app = make_app()
        app.run()
        self.assertTrue(app.should_quit)
        self.assertEqual(app.terminal.calls[0], "enter")
        self.assertEqual(app.terminal.calls[-1], "exit")
        self.assertGreaterEqual(len(app.terminal.drawn), 1)


class EndToEndTests(unittest.TestCase):
    def test_configurations_cached_and_builds_loaded(self):
        class Api:
            def __init__(self):
                self.calls = []

            def clone(self):
                return self

            def list_configurations(self, project_id):
                self.calls.append(("configs", project_id))
                return [BuildType(id="auth", name="auth")]

            def list_builds(self, config_id, max_count=100):
                self.calls.append(("builds", config_id))
                return list(BUILDS)

        with tempfile.TemporaryDirectory() as tmp:
            cache_path = Path(tmp) / "cache.json"
            api = Api()
            client = TeamCityClient(api, cache=PersistentCache(cache_path))

            configs = client.fetch_configurations_for_projects(["auth"])
            self.assertEqual(api.calls, [("configs", "auth")])
            self.assertTrue(cache_path.exists())

            app = App(client, configs, FakeTerminal(), spawn=lambda task: task())
            app.mount(app.screens)
            app.action_queue.put(app.screens[0].confirm())
            app.handle_actions()
            self.assertEqual(app.screens[0].title, "auth")
            self.assertEqual(app.screens[0].items, tuple(BUILDS))

            client.fetch_configurations_for_projects(["auth"])
            self.assertEqual(api.calls.count(("configs", "auth")), 1)


if __name__ == "__main__":
    unittest.main()
