"""Closed set of actions flowing through the dispatch queue.

Every action is a frozen dataclass; payload sequences are tuples so a queued
action can be shared between the runtime and every screen without copying.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from t9s_core.models import Build


# Terminal-related actions
@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Render:
    pass


@dataclass(frozen=True)
class Resize:
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"negative terminal size: {self.width}x{self.height}")


@dataclass(frozen=True)
class Suspend:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class ClearScreen:
    pass


# General UI actions
@dataclass(frozen=True)
class Error:
    message: str


@dataclass(frozen=True)
class Notify:
    message: str


@dataclass(frozen=True)
class Help:
    pass


# External picker round trip
@dataclass(frozen=True)
class RequestExternalChoice:
    options: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))


@dataclass(frozen=True)
class ExternalChoiceMade:
    selected: str


# Builds
@dataclass(frozen=True)
class LoadBuildList:
    project_id: str
    title: str


@dataclass(frozen=True)
class ShowBuildList:
    title: str
    items: tuple[Build, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class LoadBuildLog:
    build_id: int


@dataclass(frozen=True)
class ShowBuildLog:
    build_id: int
    text: str


# Projects
@dataclass(frozen=True)
class ShowProjectList:
    pass


Action = Union[
    Tick,
    Render,
    Resize,
    Suspend,
    Resume,
    Quit,
    ClearScreen,
    Error,
    Notify,
    Help,
    RequestExternalChoice,
    ExternalChoiceMade,
    LoadBuildList,
    ShowBuildList,
    LoadBuildLog,
    ShowBuildLog,
    ShowProjectList,
]

# Actions too frequent to be worth a debug log line.
QUIET_ACTIONS = (Tick, Render)
