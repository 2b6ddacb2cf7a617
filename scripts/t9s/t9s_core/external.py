"""Process-external integrations: fuzzy picker, browser, pager (fail-soft)."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import webbrowser
from typing import Sequence

logger = logging.getLogger(__name__)

DEFAULT_PAGER = "less -R"


def run_fzf(options: Sequence[str]) -> str:
    """Return the option picked in fzf, or "" when cancelled or unavailable."""
    try:
        proc = subprocess.run(
            ["fzf"],
            input="\n".join(options),
            stdout=subprocess.PIPE,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        logger.warning("fzf not installed")
        return ""

    # 1: no match, 130: cancelled
    if proc.returncode != 0:
        return ""
    return proc.stdout.rstrip("\n")


def open_url(url: str) -> bool:
    try:
        return bool(webbrowser.open(url))
    except webbrowser.Error as exc:
        logger.warning("failed to open %s: %s", url, exc)
        return False


def page_text(text: str) -> bool:
    cmd = shlex.split(os.environ.get("PAGER") or DEFAULT_PAGER)
    try:
        proc = subprocess.run(cmd, input=text, text=True, check=False)
    except FileNotFoundError:
        logger.warning("pager not found: %s", cmd[0])
        return False
    return proc.returncode == 0
