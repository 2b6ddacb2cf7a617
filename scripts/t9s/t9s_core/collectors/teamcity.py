"""TeamCity REST collector.

``TeamCityApi`` talks HTTP; ``TeamCityClient`` layers the persistent cache and
the partial-failure policy on top of it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import requests

from t9s_core.collectors import default_cache_file
from t9s_core.collectors.cache import DEFAULT_TTL_SECONDS, PersistentCache, cache_key
from t9s_core.models import Build, BuildType

logger = logging.getLogger(__name__)

BUILD_TYPE_FIELDS = "count,href,buildType(id,name,type,description,projectName,projectId,href,links,webUrl)"
BUILD_FIELDS = (
    "count,build(id,number,branchName,statusText,status,state,webUrl,buildTypeId,"
    "startDate,finishDate,changes(change(comment,username)))"
)
DEFAULT_BUILD_COUNT = 100


class TeamCityError(Exception):
    """Transport failure or non-success status from the TeamCity server."""


class TeamCityApi:
    """Thin wrapper over the TeamCity REST endpoints the TUI needs."""

    def __init__(self, base_url: str, token: str, timeout: int = 30):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["Authorization"] = f"Bearer {token}"

    def clone(self) -> "TeamCityApi":
        return TeamCityApi(self.base_url, self.token, timeout=self.timeout)

    def _get(self, path: str, params: dict[str, Any] | None = None, accept_json: bool = True) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"} if accept_json else {}
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.Timeout as exc:
            raise TeamCityError(f"Request to {url} timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise TeamCityError(f"Request to {url} failed: {exc}") from exc

        if not response.ok:
            raise TeamCityError(f"Request failed with status: {response.status_code} {response.reason or ''}".rstrip())
        return response

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = self._get(path, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise TeamCityError(f"invalid JSON from {path}") from exc

    def list_configurations(self, project_id: str) -> list[BuildType]:
        payload = self._get_json(
            "/app/rest/buildTypes",
            params={
                "locator": f"affectedProject:(id:{project_id})",
                "fields": BUILD_TYPE_FIELDS,
            },
        )
        rows = payload.get("buildType") if isinstance(payload, dict) else None
        return [BuildType.from_api(row) for row in rows or [] if isinstance(row, dict)]

    def get_configuration(self, config_id: str) -> BuildType:
        payload = self._get_json(f"/app/rest/buildTypes/id:{config_id}")
        if not isinstance(payload, dict):
            raise TeamCityError(f"unexpected payload for build configuration {config_id}")
        return BuildType.from_api(payload)

    def list_builds(self, config_id: str, max_count: int = DEFAULT_BUILD_COUNT) -> list[Build]:
        payload = self._get_json(
            "/app/rest/builds",
            params={
                "locator": f"buildType:{config_id}",
                "count": str(max_count),
                "fields": BUILD_FIELDS,
            },
        )
        rows = payload.get("build") if isinstance(payload, dict) else None
        return [Build.from_api(row) for row in rows or [] if isinstance(row, dict)]

    def fetch_log_text(self, build_id: int) -> str:
        response = self._get(
            "/downloadBuildLog.html",
            params={"buildId": str(build_id), "plain": "true"},
            accept_json=False,
        )
        return response.text


class TeamCityClient:
    """Data-access client used by the runtime.

    Build configuration lists change rarely and are cached per project. Build
    history and logs change constantly and always go to the server.
    """

    def __init__(
        self,
        api: TeamCityApi,
        cache: PersistentCache | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        build_count: int = DEFAULT_BUILD_COUNT,
    ):
        self.api = api
        self.cache = cache if cache is not None else PersistentCache(default_cache_file())
        self.ttl_seconds = ttl_seconds
        self.build_count = build_count

    def clone(self) -> "TeamCityClient":
        return TeamCityClient(
            self.api.clone(),
            cache=PersistentCache(self.cache.path, clock=self.cache.clock),
            ttl_seconds=self.ttl_seconds,
            build_count=self.build_count,
        )

    def fetch_configurations_for_project(self, project_id: str) -> list[BuildType]:
        key = cache_key("project", project_id)
        cached = self.cache.get(key)
        if isinstance(cached, list):
            logger.info("Using cached build configurations for project %s", project_id)
            return [BuildType.from_api(row) for row in cached if isinstance(row, dict)]

        result = self.api.list_configurations(project_id)
        self.cache.put(key, [bt.to_dict() for bt in result], ttl=self.ttl_seconds)
        return result

    def fetch_configurations_for_projects(self, project_ids: Sequence[str]) -> list[BuildType]:
        if not project_ids:
            raise ValueError("You need to specify at least one project ID")

        all_build_types: list[BuildType] = []
        for project_id in project_ids:
            try:
                all_build_types.extend(self.fetch_configurations_for_project(project_id))
            except TeamCityError as exc:
                logger.error("Error fetching build types for project %s: %s", project_id, exc)
        return all_build_types

    def fetch_configuration_details(self, config_id: str) -> BuildType:
        return self.api.get_configuration(config_id)

    def fetch_builds_for_configuration(self, config_id: str) -> list[Build]:
        return self.api.list_builds(config_id, max_count=self.build_count)

    def fetch_log_text(self, build_id: int) -> str:
        return self.api.fetch_log_text(build_id)

    def download_log_to(self, build_id: int, path: Path) -> None:
        text = self.fetch_log_text(build_id)
        Path(path).write_text(text)

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_info(self) -> tuple[int, int]:
        return self.cache.info()
