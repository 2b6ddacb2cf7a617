"""Terminal surface: alternate-screen drawing plus the raw event source.

Uses termios non-canonical mode (ICANON/ECHO/ISIG off, VMIN=0/VTIME=0)
instead of tty.setraw() so Rich Live's alternate screen rendering keeps
working over SSH. Ctrl+C and Ctrl+Z arrive as keys and are mapped to actions
by the runtime.
"""

from __future__ import annotations

import codecs
import logging
import os
import select
import signal
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from rich.console import Console, ConsoleDimensions, RenderableType
from rich.live import Live
from rich.text import Text

try:
    import termios
except ImportError:
    termios = None

logger = logging.getLogger(__name__)

ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[5~": "pageup",
    "\x1b[6~": "pagedown",
    "\x1b[3~": "delete",
}

CONTROL_KEYS = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x03": "ctrl+c",
    "\x1a": "ctrl+z",
    "\x04": "ctrl+d",
}


@dataclass(frozen=True)
class KeyEvent:
    code: str

    @property
    def is_printable(self) -> bool:
        return len(self.code) == 1 and self.code.isprintable()


@dataclass(frozen=True)
class Event:
    kind: str
    key: KeyEvent | None = None
    width: int = 0
    height: int = 0


TICK = Event("tick")
RENDER = Event("render")
QUIT = Event("quit")


def decode_keys(data: str) -> list[KeyEvent]:
    """Split a chunk of terminal input into key events."""
    keys: list[KeyEvent] = []
    i = 0
    while i < len(data):
        ch = data[i]
        if ch == "\x1b":
            for length in (4, 3):
                seq = data[i : i + length]
                if seq in ESCAPE_SEQUENCES:
                    keys.append(KeyEvent(ESCAPE_SEQUENCES[seq]))
                    i += length
                    break
            else:
                keys.append(KeyEvent("esc"))
                i += 1
            continue
        keys.append(KeyEvent(CONTROL_KEYS.get(ch, ch)))
        i += 1
    return keys


class Terminal:
    def __init__(self, console: Console | None = None, tick_rate: float = 4.0, frame_rate: float = 1.0):
        self.console = console or Console()
        self.tick_interval = 1.0 / max(tick_rate, 0.1)
        self.render_interval = 1.0 / max(frame_rate, 0.1)
        self.live: Live | None = None
        self.fd: int | None = None
        self._old_settings = None
        self._pending: list[KeyEvent] = []
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
        self._last_size: ConsoleDimensions | None = None
        self._next_tick = 0.0
        self._next_render = 0.0

    # -- terminal control -------------------------------------------------

    def enter(self) -> None:
        self._enable_input()
        self.live = Live(Text(""), console=self.console, screen=True, auto_refresh=False)
        self.live.start()
        now = time.monotonic()
        self._next_tick = now + self.tick_interval
        self._next_render = now + self.render_interval
        self._last_size = self.size()

    def exit(self) -> None:
        if self.live is not None:
            self.live.stop()
            self.live = None
        self._restore_input()

    def suspend(self) -> None:
        self.exit()
        if hasattr(signal, "SIGTSTP"):
            os.kill(os.getpid(), signal.SIGTSTP)

    @contextmanager
    def paused(self) -> Iterator[None]:
        """Hand the real terminal to an external process for the duration."""
        self.exit()
        try:
            yield
        finally:
            self.enter()

    def size(self) -> ConsoleDimensions:
        return self.console.size

    def resize(self, width: int, height: int) -> None:
        self._last_size = ConsoleDimensions(width, height)
        if self.live is not None:
            self.live.refresh()

    def clear(self) -> None:
        self.console.clear()
        if self.live is not None:
            self.live.refresh()

    def draw(self, renderable: RenderableType) -> None:
        if self.live is None:
            return
        self.live.update(renderable, refresh=True)

    # -- input ------------------------------------------------------------

    def _enable_input(self) -> None:
        self.fd = None
        self._old_settings = None
        if termios is None:
            return
        try:
            fd = sys.stdin.fileno()
            self._old_settings = termios.tcgetattr(fd)
            new = termios.tcgetattr(fd)
            new[3] &= ~(termios.ICANON | termios.ECHO | termios.ISIG)
            new[6][termios.VMIN] = 0
            new[6][termios.VTIME] = 0
            termios.tcsetattr(fd, termios.TCSADRAIN, new)
            self.fd = fd
        except (termios.error, OSError, ValueError) as exc:
            # No keyboard input; the screen still draws.
            logger.warning("keyboard input unavailable: %s", exc)
            self._old_settings = None

    def _restore_input(self) -> None:
        if termios is None or self.fd is None or self._old_settings is None:
            return
        termios.tcsetattr(self.fd, termios.TCSADRAIN, self._old_settings)
        self._old_settings = None

    def _read_keys(self, timeout: float) -> list[KeyEvent] | None:
        """Return decoded keys, or None once stdin has reached end of file."""
        if self.fd is None:
            time.sleep(timeout)
            return []
        readable, _, _ = select.select([self.fd], [], [], timeout)
        if not readable:
            return []
        try:
            raw = os.read(self.fd, 1024)
        except OSError:
            return []
        if not raw:
            return None
        # Multi-byte input can straddle reads.
        return decode_keys(self._decoder.decode(raw))

    def next_event(self) -> Event | None:
        """Block until the next key, resize, tick or render event."""
        if self._pending:
            return Event("key", key=self._pending.pop(0))

        current = self.size()
        if current != self._last_size:
            self._last_size = current
            return Event("resize", width=current.width, height=current.height)

        now = time.monotonic()
        timeout = max(0.0, min(self._next_tick, self._next_render) - now)
        keys = self._read_keys(timeout)
        if keys is None:
            return QUIT
        if keys:
            self._pending.extend(keys[1:])
            return Event("key", key=keys[0])

        now = time.monotonic()
        if now >= self._next_tick:
            self._next_tick = now + self.tick_interval
            return TICK
        if now >= self._next_render:
            self._next_render = now + self.render_interval
            return RENDER
        return None
