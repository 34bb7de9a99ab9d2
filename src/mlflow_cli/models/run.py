"""
Run lifecycle models.

This module provides the run status enumeration and the request/response
models used when creating, ending and fetching runs.
"""

import datetime
from enum import Enum

from pydantic import BaseModel, Field


class RunStatus(Enum):
    """Run status enumeration.

    Mirrors the MLflow run lifecycle:
    - RUNNING: Run is in progress
    - SCHEDULED: Run is scheduled but not started
    - FINISHED: Run completed successfully
    - FAILED: Run terminated with an error
    - KILLED: Run was stopped by the user
    """

    RUNNING = "RUNNING"
    SCHEDULED = "SCHEDULED"
    FINISHED = "FINISHED"
    FAILED = "FAILED"
    KILLED = "KILLED"

    @property
    def is_terminal(self) -> bool:
        """Whether the status ends the run (and therefore sets an end time)."""
        return self in (RunStatus.FINISHED, RunStatus.FAILED, RunStatus.KILLED)

    @classmethod
    def end_statuses(cls) -> tuple["RunStatus", ...]:
        """Statuses accepted when ending a run."""
        return (cls.FINISHED, cls.FAILED, cls.KILLED)


class RunConfig(BaseModel):
    """Parameters for creating a new run."""

    experiment_id: str = Field(..., description="Experiment the run belongs to")
    run_name: str | None = Field(default=None, description="Run name (default: timestamp-based)")
    tags: dict[str, str] = Field(default_factory=dict, description="Run tags")
    description: str | None = Field(default=None, description="Run description")


class RunInfo(BaseModel):
    """Run information returned by the tracking server."""

    run_id: str
    experiment_id: str
    run_name: str = ""
    status: str = RunStatus.RUNNING.value
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    artifact_uri: str = ""
    tags: dict[str, str] = Field(default_factory=dict)
    description: str = ""

    def __str__(self) -> str:
        return f"RunInfo(run_id={self.run_id}, status={self.status})"
