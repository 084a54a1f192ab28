"""Job store kept in an SQLite database."""

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import threading
from collections.abc import Iterator
from os import PathLike
from typing import Any

from .jobs import JobDefinition, JobStore, RunRecord, generate_id, now_iso_utc

_SCHEMA = """
PRAGMA journal_mode=WAL;
CREATE TABLE IF NOT EXISTS jobs(
  id TEXT PRIMARY KEY, name TEXT UNIQUE NOT NULL, description TEXT,
  definition TEXT NOT NULL, schedule_cron TEXT,
  enabled INTEGER NOT NULL DEFAULT 1, created_at TEXT, updated_at TEXT);
CREATE TABLE IF NOT EXISTS runs(
  id TEXT PRIMARY KEY, job_id TEXT, trigger TEXT NOT NULL, status TEXT NOT NULL,
  started_at TEXT, finished_at TEXT, result TEXT, error TEXT);
CREATE INDEX IF NOT EXISTS idx_runs_job ON runs(job_id, started_at);
CREATE INDEX IF NOT EXISTS idx_runs_started ON runs(started_at);
"""

_JOB_COLUMNS = "id,name,description,definition,schedule_cron,enabled,created_at,updated_at"
_RUN_COLUMNS = "id,job_id,trigger,status,started_at,finished_at,result,error"

_MISSING_JSON = object()


class JobStoreError(Exception):
    """Raised when the database cannot be opened or a statement fails."""


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_json(text: Any, fallback: Any) -> Any:
    if not text:
        return fallback
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return fallback


def _read_job(row: tuple) -> JobDefinition:
    return JobDefinition(
        id=_text(row[0]),
        name=_text(row[1]),
        description=_text(row[2]),
        definition=_parse_json(row[3], {}),
        schedule_cron=None if row[4] is None else _text(row[4]),
        enabled=_text(row[5]) == "1",
        created_at=_text(row[6]),
        updated_at=_text(row[7]),
    )


def _read_run(row: tuple) -> RunRecord:
    return RunRecord(
        id=_text(row[0]),
        job_id=None if row[1] is None else _text(row[1]),
        trigger=_text(row[2]),
        status=_text(row[3]),
        started_at=_text(row[4]),
        finished_at=None if row[5] is None else _text(row[5]),
        result=_parse_json(row[6], None),
        error=_text(row[7]),
    )


class SqliteJobStore(JobStore):
    """Jobs and run history in one SQLite connection, with access serialised by a lock."""

    def __init__(
        self, db_path: str | PathLike[str], logger: logging.Logger | None = None
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        try:
            self._db = sqlite3.connect(
                db_path, timeout=5.0, check_same_thread=False, isolation_level=None
            )
        except sqlite3.Error as exc:
            raise JobStoreError(f"Failed to open job database '{db_path}': {exc}") from exc
        try:
            self._db.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            self._db.close()
            raise JobStoreError(f"Failed to initialise job schema: {exc}") from exc
        self._logger.info("Job store opened at %s", db_path)

    @contextlib.contextmanager
    def _guard(self, action: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._db
            except sqlite3.Error as exc:
                self._logger.warning("%s failed: %s", action, exc)
                raise JobStoreError(f"{action} failed: {exc}") from exc

    def list_jobs(self) -> list[JobDefinition]:
        with self._guard("list_jobs") as db:
            rows = db.execute(f"SELECT {_JOB_COLUMNS} FROM jobs ORDER BY name").fetchall()
        return [_read_job(row) for row in rows]

    def get_job(self, job_id: str) -> JobDefinition | None:
        with self._guard("get_job") as db:
            row = db.execute(f"SELECT {_JOB_COLUMNS} FROM jobs WHERE id=?", (job_id,)).fetchone()
        return None if row is None else _read_job(row)

    def get_job_by_name(self, name: str) -> JobDefinition | None:
        with self._guard("get_job_by_name") as db:
            row = db.execute(f"SELECT {_JOB_COLUMNS} FROM jobs WHERE name=?", (name,)).fetchone()
        return None if row is None else _read_job(row)

    def create_job(self, job: JobDefinition) -> JobDefinition:
        with self._guard("create_job") as db:
            job.id = generate_id()
            job.created_at = now_iso_utc()
            job.updated_at = job.created_at
            db.execute(
                f"INSERT INTO jobs({_JOB_COLUMNS}) VALUES(?,?,?,?,?,?,?,?)",
                (
                    job.id,
                    job.name,
                    job.description,
                    json.dumps(job.definition),
                    job.schedule_cron,
                    1 if job.enabled else 0,
                    job.created_at,
                    job.updated_at,
                ),
            )
        return job

    def update_job(self, job: JobDefinition) -> None:
        with self._guard("update_job") as db:
            cursor = db.execute(
                "UPDATE jobs SET name=?,description=?,definition=?,schedule_cron=?,"
                "enabled=?,updated_at=? WHERE id=?",
                (
                    job.name,
                    job.description,
                    json.dumps(job.definition),
                    job.schedule_cron,
                    1 if job.enabled else 0,
                    now_iso_utc(),
                    job.id,
                ),
            )
            changed = cursor.rowcount
        if changed <= 0:
            raise KeyError(job.id)

    def delete_job(self, job_id: str) -> None:
        with self._guard("delete_job") as db:
            changed = db.execute("DELETE FROM jobs WHERE id=?", (job_id,)).rowcount
        if changed <= 0:
            raise KeyError(job_id)

    def insert_run(self, run: RunRecord) -> RunRecord:
        with self._guard("insert_run") as db:
            if not run.id:
                run.id = generate_id()
            if not run.started_at:
                run.started_at = now_iso_utc()
            db.execute(
                f"INSERT INTO runs({_RUN_COLUMNS}) VALUES(?,?,?,?,?,?,?,?)",
                (
                    run.id,
                    run.job_id,
                    run.trigger,
                    run.status,
                    run.started_at,
                    run.finished_at,
                    json.dumps(run.result),
                    run.error,
                ),
            )
        return run

    def list_runs(self, job_id: str | None = None, limit: int = 100) -> list[RunRecord]:
        base = f"SELECT {_RUN_COLUMNS} FROM runs "
        with self._guard("list_runs") as db:
            if job_id is not None:
                rows = db.execute(
                    base + "WHERE job_id=? ORDER BY started_at DESC LIMIT ?",
                    (job_id, int(limit)),
                ).fetchall()
            else:
                rows = db.execute(
                    base + "ORDER BY started_at DESC LIMIT ?", (int(limit),)
                ).fetchall()
        return [_read_run(row) for row in rows]

    def get_run(self, run_id: str) -> RunRecord | None:
        with self._guard("get_run") as db:
            row = db.execute(f"SELECT {_RUN_COLUMNS} FROM runs WHERE id=?", (run_id,)).fetchone()
        return None if row is None else _read_run(row)

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> SqliteJobStore:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()