"""Per-run analytics tracker using ContextVars.

Follows the same ContextVar pattern as ``cost_hook.py``: opt-in and zero
overhead when no run is active.

Usage::

    analytics = start_run(project_id="proj-1")
    with track_stage("analysis") as stage:
        stage.success_count = 1
    analytics = end_run()
    print(analytics.total_duration_ms)
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generator, Optional

import structlog


@dataclass
class StageMetrics:
    stage: str
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_ms: float = 0.0
    success_count: int = 0
    error_count: int = 0
    degraded: bool = False
    error: str = ""


@dataclass
class RunAnalytics:
    """Timing and outcome of one workflow run."""

    run_id: str
    project_id: str = ""
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    status: str = "running"
    stages: list[StageMetrics] = field(default_factory=list)
    total_duration_ms: float = 0.0

    def finalize(self) -> None:
        self.ended_at = datetime.now(timezone.utc)
        if self.started_at:
            self.total_duration_ms = (self.ended_at - self.started_at).total_seconds() * 1000
        if any(s.error for s in self.stages):
            self.status = "degraded"
        else:
            self.status = "completed"


_current_run: ContextVar[RunAnalytics | None] = ContextVar("lumen_current_run", default=None)


def get_current_run() -> RunAnalytics | None:
    """Get the active RunAnalytics, or None if no run is active."""
    return _current_run.get()


def start_run(project_id: str = "", run_id: str | None = None) -> RunAnalytics:
    """Create and activate a new RunAnalytics for the current context."""
    analytics = RunAnalytics(
        run_id=run_id or uuid.uuid4().hex[:12],
        project_id=project_id,
        started_at=datetime.now(timezone.utc),
    )
    _current_run.set(analytics)
    structlog.contextvars.bind_contextvars(run_id=analytics.run_id)
    return analytics


def end_run() -> RunAnalytics | None:
    """Finalize the current run and return its analytics. Returns None if no run is active."""
    analytics = _current_run.get()
    if analytics is None:
        return None

    analytics.finalize()
    _current_run.set(None)
    structlog.contextvars.unbind_contextvars("run_id")
    return analytics


@contextmanager
def track_stage(name: str) -> Generator[StageMetrics, None, None]:
    """Context manager that records a StageMetrics entry on the current run.

    The stage is still yielded when no run is active; it is simply not recorded.
    """
    analytics = _current_run.get()
    stage = StageMetrics(stage=name, started_at=datetime.now(timezone.utc))
    structlog.contextvars.bind_contextvars(stage=name)

    try:
        yield stage
    except Exception as exc:
        stage.error = str(exc)
        stage.error_count += 1
        raise
    finally:
        stage.ended_at = datetime.now(timezone.utc)
        if stage.started_at:
            stage.duration_ms = (stage.ended_at - stage.started_at).total_seconds() * 1000
        if analytics is not None:
            analytics.stages.append(stage)
        structlog.contextvars.unbind_contextvars("stage")
