#!/usr/bin/env python3
"""Thin compatibility entrypoint for the t9s TUI."""

from __future__ import annotations

from t9s_core.app import main


if __name__ == "__main__":
    raise SystemExit(main())
