"""Run report: the outcome of one orchestration run."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .tasks import Task, TaskStatus
from .timeline import TimelineEvent
from .validator import ValidationResult


@dataclass(frozen=True)
class RunReport:
    """Everything a caller sees after ``Orchestrator.run``.

    ``tasks`` keeps decomposition order regardless of execution order.
    """

    success: bool
    tasks: Tuple[Task, ...]
    contributions: Dict[str, Dict[str, Any]]
    timeline: Tuple[TimelineEvent, ...]
    work_item: str = ""
    strategy: str = ""
    run_id: str = ""
    validation: Optional[ValidationResult] = None
    decomposition_fallback: bool = False
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def completed_tasks(self) -> List[Task]:
        return [t for t in self.tasks if t.status is TaskStatus.COMPLETED]

    @property
    def failed_tasks(self) -> List[Task]:
        return [t for t in self.tasks if t.status is TaskStatus.FAILED]

    @property
    def results(self) -> Dict[str, Optional[str]]:
        """task_id -> final text (``None`` for failed tasks)."""
        return {t.id: t.output for t in self.tasks}

    @property
    def issues(self) -> List[str]:
        return list(self.validation.issues) if self.validation else []

    @property
    def duration(self) -> float:
        if not self.timeline:
            return 0.0
        return self.timeline[-1].timestamp - self.timeline[0].timestamp

    @property
    def tokens(self) -> int:
        total = 0
        for entries in self.contributions.values():
            for result in entries.values():
                total += getattr(result, "tokens", 0) or 0
        return total

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "work_item": self.work_item,
            "strategy": self.strategy,
            "success": self.success,
            "error": self.error,
            "tasks": [t.to_dict() for t in self.tasks],
            "contributions": {
                role: {
                    task_id: result.to_dict() if hasattr(result, "to_dict") else result
                    for task_id, result in entries.items()
                }
                for role, entries in self.contributions.items()
            },
            "timeline": [e.to_dict() for e in self.timeline],
            "validation": self.validation.to_dict() if self.validation else None,
            "decomposition_fallback": self.decomposition_fallback,
            "duration": self.duration,
        }
