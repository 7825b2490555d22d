"""Run log for ai-workflow.

Persists each run's step history as JSON under the log directory, with atomic
writes after every step so an interrupted run still leaves its history behind.
"""

import json
import logging
import random
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from .workflow.types import ExecutionCallbacks, ExecutionReport, Step, StepResult

logger = logging.getLogger(__name__)

RunLogStatus = Literal["running", "completed", "halted", "failed"]


@dataclass
class RunRecord:
    """Persisted record of one workflow run."""
    run_id: str
    workflow_name: str
    input: str
    started_at: str
    updated_at: str
    status: RunLogStatus
    variables: Dict[str, Any] = field(default_factory=dict)
    steps: List[Dict[str, Any]] = field(default_factory=list)
    halted_step: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        result: Dict[str, Any] = {
            "run_id": self.run_id,
            "workflow_name": self.workflow_name,
            "input": self.input,
            "started_at": self.started_at,
            "updated_at": self.updated_at,
            "status": self.status,
            "variables": self.variables,
            "steps": self.steps,
        }
        if self.halted_step is not None:
            result["halted_step"] = self.halted_step
        if self.error is not None:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunRecord":
        """Create RunRecord from dict."""
        return cls(
            run_id=data["run_id"],
            workflow_name=data["workflow_name"],
            input=data.get("input", ""),
            started_at=data["started_at"],
            updated_at=data["updated_at"],
            status=data["status"],
            variables=data.get("variables", {}),
            steps=data.get("steps", []),
            halted_step=data.get("halted_step"),
            error=data.get("error"),
        )


class RunLog:
    """Writes the JSON log of a single run."""

    def __init__(self, log_dir: Path, workflow_name: str, input: str = "",
                 variables: Optional[Dict[str, Any]] = None, run_id: Optional[str] = None):
        """Initialize run log.

        Args:
            log_dir: Directory holding run logs
            workflow_name: Name of the workflow being run
            input: Run input
            variables: Variables seeded into the run
            run_id: Optional run ID to use (generates one if not provided)
        """
        self.log_dir = Path(log_dir)
        self.run_id = run_id or self._generate_run_id()
        self.log_file = self.log_dir / f"{self.run_id}.json"

        now = datetime.now(timezone.utc).isoformat()
        self.record = RunRecord(
            run_id=self.run_id,
            workflow_name=workflow_name,
            input=input,
            started_at=now,
            updated_at=now,
            status="running",
            variables=dict(variables or {}),
        )

    @staticmethod
    def _generate_run_id() -> str:
        """Generate run ID in format: YYYYMMDDTHHMMSSZ-<6char>."""
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=6))
        return f"{timestamp}-{suffix}"

    def start(self) -> Path:
        """Create the log directory and write the initial record."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._write()
        logger.debug(f"Run log: {self.log_file}")
        return self.log_file

    def record_step(self, step: Step, result: StepResult):
        """Append a step attempt and persist."""
        self.record.steps.append(result.to_dict())
        self._write()

    def finish(self, report: ExecutionReport):
        """Record the final run status."""
        self.record.status = report.status
        self.record.halted_step = report.halted_step
        self._write()

    def fail(self, error: str):
        """Record a run aborted by an unexpected error."""
        self.record.status = "failed"
        self.record.error = error
        self._write()

    def callbacks(self, base: Optional[ExecutionCallbacks] = None) -> ExecutionCallbacks:
        """
        Callbacks that persist each step result.

        Args:
            base: Callbacks to chain; their hooks run before the log is written
        """
        base = base or ExecutionCallbacks()

        def on_step_complete(step: Step, result: StepResult):
            if base.on_step_complete:
                base.on_step_complete(step, result)
            self.record_step(step, result)

        return ExecutionCallbacks(
            on_step_start=base.on_step_start,
            on_step_complete=on_step_complete,
            on_error=base.on_error,
            on_workflow_complete=base.on_workflow_complete,
        )

    def _write(self):
        """Write the record atomically (temp file + rename)."""
        self.record.updated_at = datetime.now(timezone.utc).isoformat()

        temp_file = self.log_file.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(self.record.to_dict(), f, indent=2, default=str)

        temp_file.replace(self.log_file)


def list_runs(log_dir: Path) -> List[Path]:
    """Run log files, newest first."""
    log_dir = Path(log_dir)
    if not log_dir.is_dir():
        return []
    # Run ids start with a UTC timestamp, so name order is start order
    return sorted(log_dir.glob("*.json"), key=lambda p: p.name, reverse=True)


def load_run(path: Path) -> RunRecord:
    """
    Load a run log.

    Raises:
        FileNotFoundError: If the log file doesn't exist
        json.JSONDecodeError: If the log file is corrupted
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return RunRecord.from_dict(data)
