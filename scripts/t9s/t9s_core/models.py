"""Shared model contracts for TeamCity data flowing through the TUI."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

FAILED_STATUSES = {"FAILURE", "UNKNOWN"}


@dataclass(frozen=True)
class BuildType:
    """A build configuration ("buildType" in the TeamCity REST API)."""

    id: str
    name: str
    description: str | None = None
    project_name: str | None = None
    project_id: str | None = None
    href: str | None = None
    web_url: str | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "BuildType":
        return cls(
            id=str(payload.get("id", "")),
            name=str(payload.get("name", "")),
            description=payload.get("description"),
            project_name=payload.get("projectName"),
            project_id=payload.get("projectId"),
            href=payload.get("href"),
            web_url=payload.get("webUrl"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "projectName": self.project_name,
            "projectId": self.project_id,
            "href": self.href,
            "webUrl": self.web_url,
        }


@dataclass(frozen=True)
class Change:
    comment: str | None = None
    username: str | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Change":
        return cls(comment=payload.get("comment"), username=payload.get("username"))

    def to_dict(self) -> dict[str, Any]:
        return {"comment": self.comment, "username": self.username}


@dataclass(frozen=True)
class Build:
    id: int | None = None
    number: str | None = None
    branch_name: str | None = None
    status_text: str | None = None
    status: str | None = None
    state: str | None = None
    web_url: str | None = None
    build_type_id: str | None = None
    start_date: str | None = None
    finish_date: str | None = None
    changes: tuple[Change, ...] = field(default_factory=tuple)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Build":
        changes = payload.get("changes")
        raw_changes = (changes.get("change") if isinstance(changes, dict) else None) or []
        return cls(
            id=payload.get("id"),
            number=payload.get("number"),
            branch_name=payload.get("branchName"),
            status_text=payload.get("statusText"),
            status=payload.get("status"),
            state=payload.get("state"),
            web_url=payload.get("webUrl"),
            build_type_id=payload.get("buildTypeId"),
            start_date=payload.get("startDate"),
            finish_date=payload.get("finishDate"),
            changes=tuple(Change.from_api(c) for c in raw_changes if isinstance(c, dict)),
        )

    @property
    def is_failed(self) -> bool:
        # A build without a status is still queued.
        return self.status in FAILED_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "branchName": self.branch_name,
            "statusText": self.status_text,
            "status": self.status,
            "state": self.state,
            "webUrl": self.web_url,
            "buildTypeId": self.build_type_id,
            "startDate": self.start_date,
            "finishDate": self.finish_date,
            "changes": {"change": [c.to_dict() for c in self.changes]},
        }
