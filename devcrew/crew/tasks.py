"""Task records flowing through an orchestration run."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..errors import TaskStateError


class Priority(Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key: lower runs first."""
        return _PRIORITY_ORDER.index(self)

    @classmethod
    def parse(cls, value: Any, default: "Priority" = None) -> "Priority":
        """Lenient parse; unknown values map to ``default`` (medium)."""
        if isinstance(value, Priority):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default or cls.MEDIUM


_PRIORITY_ORDER = [Priority.URGENT, Priority.HIGH, Priority.MEDIUM, Priority.LOW]


class TaskStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


@dataclass
class ExecutionStep:
    """One tool call made by a worker while processing a prompt."""

    step: str
    result: str
    success: bool
    tool: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None


@dataclass
class WorkerResult:
    """What a worker returns for one prompt."""

    text: str
    reasoning: List[str] = field(default_factory=list)
    steps: List[ExecutionStep] = field(default_factory=list)
    tokens: int = 0
    role: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "text": self.text,
            "reasoning": list(self.reasoning),
            "steps": [
                {"step": s.step, "tool": s.tool, "success": s.success}
                for s in self.steps
            ],
            "tokens": self.tokens,
        }


@dataclass
class TaskFailure:
    """Result payload of a failed task."""

    error: str
    stage: Optional[str] = None   # "primary" | "secondary" in collaborative runs
    skipped: bool = False         # never started because the run aborted

    def to_dict(self) -> dict:
        return {"error": self.error, "stage": self.stage, "skipped": self.skipped}


@dataclass
class Task:
    """A unit of work produced by the decomposer.

    Status only moves forward: pending -> in_progress -> completed|failed.
    A task skipped by an aborted run goes straight from pending to failed.
    """

    id: str
    description: str
    priority: Priority = Priority.MEDIUM
    dependencies: Tuple[str, ...] = ()  # declared only; no strategy enforces them
    assigned_role: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    result: Any = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    attempts: int = 0

    # ── Transitions ───────────────────────────────────────────

    def assign(self, role: str) -> None:
        if self.assigned_role is not None:
            raise TaskStateError(self.id, f"already assigned to {self.assigned_role}")
        self.assigned_role = role

    def start(self) -> None:
        if self.status is not TaskStatus.PENDING:
            raise TaskStateError(self.id, f"cannot start from {self.status.value}")
        self.status = TaskStatus.IN_PROGRESS
        self.started_at = time.time()

    def complete(self, result: Any) -> None:
        self._finish(TaskStatus.COMPLETED, result)

    def fail(self, error: str, stage: Optional[str] = None) -> None:
        self._finish(TaskStatus.FAILED, TaskFailure(error=error, stage=stage))

    def skip(self, reason: str) -> None:
        if self.status is not TaskStatus.PENDING:
            raise TaskStateError(self.id, f"cannot skip from {self.status.value}")
        self.status = TaskStatus.FAILED
        self.result = TaskFailure(error=reason, skipped=True)

    def _finish(self, status: TaskStatus, result: Any) -> None:
        if self.status is not TaskStatus.IN_PROGRESS:
            raise TaskStateError(self.id, f"cannot finish from {self.status.value}")
        self.status = status
        self.result = result
        self.finished_at = time.time()

    # ── Queries ───────────────────────────────────────────────

    @property
    def duration(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    @property
    def error(self) -> Optional[str]:
        if isinstance(self.result, TaskFailure):
            return self.result.error
        return None

    @property
    def output(self) -> Optional[str]:
        if isinstance(self.result, WorkerResult):
            return self.result.text
        return None

    def to_dict(self) -> dict:
        if isinstance(self.result, (WorkerResult, TaskFailure)):
            result = self.result.to_dict()
        else:
            result = self.result
        return {
            "id": self.id,
            "description": self.description,
            "priority": self.priority.value,
            "dependencies": list(self.dependencies),
            "assigned_role": self.assigned_role,
            "status": self.status.value,
            "result": result,
            "duration": self.duration,
        }
