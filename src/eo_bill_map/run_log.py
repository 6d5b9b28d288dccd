"""Append-only run log for batch ingestion runs.

One JSON object per line in ``.run_log.jsonl`` (override with
``EOBM_RUN_LOG``), so repeated precompute runs can be compared.

Usage::

    with RunLogger("precompute", meta={"sheet": "eo-gender.csv"}) as log:
        with log.phase_ctx("Ingest"):
            ...
        log.meta["bills"] = 120
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

LOGGER = logging.getLogger(__name__)

DEFAULT_LOG_PATH = Path(".run_log.jsonl")


def get_log_path() -> Path:
    return Path(os.environ.get("EOBM_RUN_LOG", str(DEFAULT_LOG_PATH)))


@dataclass
class RunRecord:
    run_id: str
    task: str
    started_at: str  # ISO
    ended_at: str | None = None
    duration_s: float | None = None
    status: str = "running"  # ok | error | running
    phases: list[dict] = field(default_factory=list)  # [{name, duration_s, detail}]
    error: str | None = None
    meta: dict = field(default_factory=dict)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json_line(cls, line: str) -> RunRecord | None:
        line = line.strip()
        if not line:
            return None
        try:
            return cls(**json.loads(line))
        except (json.JSONDecodeError, TypeError):
            return None


class RunLogger:
    """Times one run and appends it to the log on exit."""

    def __init__(self, task: str, *, log_path: Path | None = None, meta: dict | None = None):
        self.task = task
        self.log_path = log_path if log_path is not None else get_log_path()
        self.meta = dict(meta or {})
        self.run_id = str(uuid.uuid4())[:8]
        self.phases: list[dict] = []
        self._started_at = ""
        self._t0 = 0.0

    @contextmanager
    def phase_ctx(self, name: str, detail: str | None = None):
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.phases.append(
                {"name": name, "duration_s": round(time.perf_counter() - t0, 2), "detail": detail}
            )

    def __enter__(self) -> RunLogger:
        self._started_at = datetime.now(timezone.utc).isoformat()
        self._t0 = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        error = None
        if exc_type is not None and not issubclass(exc_type, SystemExit):
            error = f"{exc_type.__name__}: {exc_val}" if exc_val else exc_type.__name__
        elif exc_type is not None and exc_val.code not in (0, None):
            error = f"exit code {exc_val.code}"
        record = RunRecord(
            run_id=self.run_id,
            task=self.task,
            started_at=self._started_at,
            ended_at=datetime.now(timezone.utc).isoformat(),
            duration_s=round(time.perf_counter() - self._t0, 2),
            status="error" if error else "ok",
            phases=self.phases,
            error=error,
            meta=self.meta,
        )
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(record.to_json_line() + "\n")
        except OSError as e:
            LOGGER.warning("Run log append failed: %s", e)
        return None  # do not suppress


def load_recent_runs(n: int = 20, *, task: str | None = None, log_path: Path | None = None) -> list[RunRecord]:
    """Last *n* runs, newest first, optionally filtered by task."""
    path = log_path or get_log_path()
    if not path.exists():
        return []
    records: list[RunRecord] = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            rec = RunRecord.from_json_line(line)
            if rec is not None and (task is None or rec.task == task):
                records.append(rec)
    return records[::-1][:n]
