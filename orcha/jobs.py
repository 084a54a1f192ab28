"""Saved jobs, run records and the storage interface that persists them."""

from __future__ import annotations

import abc
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

ISO_UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def now_iso_utc() -> str:
    """Current UTC time as an ISO-8601 string such as ``2026-05-29T12:34:56Z``."""
    return datetime.now(timezone.utc).strftime(ISO_UTC_FORMAT)


def generate_id() -> str:
    """A random identifier of 32 lower-case hex characters."""
    return secrets.token_hex(16)


def _as_str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{what} must be a string, got {type(value).__name__}")
    return value


@dataclass
class JobDefinition:
    """A saved, named workflow definition."""

    id: str = ""
    name: str = ""
    description: str = ""
    definition: Any = field(default_factory=dict)
    schedule_cron: str | None = None
    enabled: bool = True
    created_at: str = ""
    updated_at: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "definition": self.definition,
            "enabled": self.enabled,
            "schedule_cron": self.schedule_cron,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_json(cls, data: Any) -> JobDefinition:
        """Build from request data; id and timestamps are left for the store to assign."""
        fields = data if isinstance(data, Mapping) else {}
        job = cls()
        if "name" in fields:
            job.name = _as_str(fields["name"], "name")
        if isinstance(fields.get("description"), str):
            job.description = fields["description"]
        if "definition" in fields:
            job.definition = fields["definition"]
        if isinstance(fields.get("enabled"), bool):
            job.enabled = fields["enabled"]
        if isinstance(fields.get("schedule_cron"), str):
            job.schedule_cron = fields["schedule_cron"]
        return job


@dataclass
class RunRecord:
    """One workflow execution and its outcome."""

    id: str = ""
    job_id: str | None = None
    trigger: str = ""
    status: str = ""
    started_at: str = ""
    finished_at: str | None = None
    result: Any = None
    error: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "job_id": self.job_id,
            "trigger": self.trigger,
            "status": self.status,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "error": self.error,
        }


class JobStore(abc.ABC):
    """Persistence for job definitions and run history."""

    @abc.abstractmethod
    def list_jobs(self) -> list[JobDefinition]:
        """All jobs, ordered by name."""

    @abc.abstractmethod
    def get_job(self, job_id: str) -> JobDefinition | None:
        """The job with ``job_id``, or None."""

    @abc.abstractmethod
    def get_job_by_name(self, name: str) -> JobDefinition | None:
        """The job called ``name``, or None."""

    @abc.abstractmethod
    def create_job(self, job: JobDefinition) -> JobDefinition:
        """Store a new job, assigning its id and timestamps; raise on conflict."""

    @abc.abstractmethod
    def update_job(self, job: JobDefinition) -> None:
        """Overwrite the stored job with the same id; raise KeyError if there is none."""

    @abc.abstractmethod
    def delete_job(self, job_id: str) -> None:
        """Remove a job; raise KeyError if there is none."""

    @abc.abstractmethod
    def insert_run(self, run: RunRecord) -> RunRecord:
        """Store a run, assigning an id and start time where they are empty."""

    @abc.abstractmethod
    def list_runs(self, job_id: str | None = None, limit: int = 100) -> list[RunRecord]:
        """Most recent runs first, of one job or of all when ``job_id`` is None."""

    @abc.abstractmethod
    def get_run(self, run_id: str) -> RunRecord | None:
        """The run with ``run_id``, or None."""