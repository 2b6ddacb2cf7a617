"""TUI application entrypoint for t9s."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from rich.console import Console

from t9s_core import logging_setup
from t9s_core.collectors import default_cache_file
from t9s_core.collectors.cache import PersistentCache
from t9s_core.collectors.teamcity import TeamCityApi, TeamCityClient, TeamCityError
from t9s_core.config import AppConfig, ConfigError, resolve_config
from t9s_core.models import BuildType
from t9s_core.runtime import App
from t9s_core.terminal import Terminal


def build_client(config: AppConfig) -> TeamCityClient:
    cache_path = os.environ.get("T9S_CACHE_FILE")
    cache = PersistentCache(cache_path if cache_path else default_cache_file())
    return TeamCityClient(
        TeamCityApi(config.teamcity_url, config.token),
        cache=cache,
        ttl_seconds=config.cache_ttl_seconds,
        build_count=config.build_count,
    )


def _json_output(build_types: list[BuildType]) -> str:
    return json.dumps([bt.to_dict() for bt in build_types], indent=2)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Terminal UI for TeamCity build configurations and builds")
    parser.add_argument("--config", help="JSON config file (default: ./config.json or ~/.config/teamcity-cli/config.json)")
    parser.add_argument("-p", "--project", action="append", dest="projects", help="TeamCity project id; repeat for several")
    parser.add_argument("--json", action="store_true", help="Print build configurations as JSON and exit")
    parser.add_argument("--clear-cache", action="store_true", help="Delete the build configuration cache and exit")
    parser.add_argument("--cache-info", action="store_true", help="Show cache entry count and size and exit")
    parser.add_argument("--describe", metavar="CONFIG_ID", help="Print one build configuration as JSON and exit")
    parser.add_argument(
        "--download-log",
        nargs=2,
        metavar=("BUILD_ID", "PATH"),
        help="Save the plain-text log of a build to PATH and exit",
    )
    parser.add_argument("--tick-rate", type=float, help="Ticks per second (key sequence timeout)")
    parser.add_argument("--frame-rate", type=float, help="Redraws per second")
    args = parser.parse_args(argv)

    stderr_handler = logging_setup.configure()

    try:
        config = resolve_config(
            args.config,
            overrides={
                "projects": args.projects,
                "tick_rate": args.tick_rate,
                "frame_rate": args.frame_rate,
            },
        )
    except ConfigError as exc:
        print(f"Failed to load configuration: {exc}", file=sys.stderr)
        print("Please check your config file or environment variables.", file=sys.stderr)
        return 1

    client = build_client(config)

    if args.clear_cache:
        client.clear_cache()
        print(f"Cleared cache {client.cache.path}")
        return 0

    if args.cache_info:
        entries, size = client.cache_info()
        print(f"Cache {client.cache.path}: {entries} entries, {size} bytes")
        return 0

    if args.describe:
        try:
            build_type = client.fetch_configuration_details(args.describe)
        except TeamCityError as exc:
            print(f"Failed to fetch build configuration {args.describe}: {exc}", file=sys.stderr)
            return 1
        print(json.dumps(build_type.to_dict(), indent=2))
        return 0

    if args.download_log:
        build_id, target = args.download_log
        if not build_id.isdigit():
            print(f"Invalid build id: {build_id}", file=sys.stderr)
            return 1
        try:
            client.download_log_to(int(build_id), Path(target))
        except (TeamCityError, OSError) as exc:
            print(f"Failed to download log for build {build_id}: {exc}", file=sys.stderr)
            return 1
        print(f"Saved log for build {build_id} to {target}")
        return 0

    console = Console()
    with console.status("Fetching build configurations from TeamCity..."):
        build_types = client.fetch_configurations_for_projects(config.projects)

    if args.json:
        print(_json_output(build_types))
        return 0

    logging_setup.detach(stderr_handler)
    terminal = Terminal(console=console, tick_rate=config.tick_rate, frame_rate=config.frame_rate)
    App(client, build_types, terminal).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
