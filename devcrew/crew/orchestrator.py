"""Orchestrator: decompose -> execute strategy -> cross-validate -> report."""

import threading
import uuid
from enum import Enum
from typing import Callable, List, Optional

from ..errors import ConfigurationError, OrchestratorBusyError
from ..logger import RunLogAdapter, get_logger
from .decomposer import Decomposer, fallback_tasks
from .pool import WorkerPool
from .report import RunReport
from .strategies import STRATEGIES, ProgressCallback, SingleRoleStrategy, StrategyConfig
from .tasks import Task, TaskStatus
from .timeline import ContributionMap, Timeline, TimelineEvent
from .validator import CrossValidator, ValidationResult

_log = get_logger(__name__)

REVIEWER_ROLE = "reviewer"


class OrchestratorState(Enum):
    IDLE = "idle"
    DECOMPOSING = "decomposing"
    EXECUTING = "executing"
    CROSS_VALIDATING = "cross_validating"
    DONE = "done"


def _check_config(pool: WorkerPool, config: StrategyConfig) -> None:
    if len(pool) == 0:
        raise ConfigurationError("Worker pool is empty")
    if pool.default_role not in pool:
        raise ConfigurationError(f"Default role '{pool.default_role}' is not in the pool")
    if config.type not in STRATEGIES:
        raise ConfigurationError(
            f"Unknown strategy '{config.type}' (expected one of: {', '.join(STRATEGIES)})"
        )
    if config.max_concurrency < 1:
        raise ConfigurationError(f"max_concurrency must be >= 1, got {config.max_concurrency}")
    if config.task_timeout < 0:
        raise ConfigurationError(f"task_timeout must be >= 0, got {config.task_timeout}")
    if config.max_retries < 0:
        raise ConfigurationError(f"max_retries must be >= 0, got {config.max_retries}")
    if config.cross_validation and REVIEWER_ROLE not in pool:
        raise ConfigurationError("Cross-validation is enabled but the pool has no reviewer role")


class Orchestrator:
    """Runs one work item at a time through a fixed worker pool.

    ``on_progress(step, role)`` receives every timeline entry and every
    worker tool step. ``on_complete(report)`` fires once per finished run.
    Neither callback can affect the run; their exceptions are logged.
    """

    def __init__(
        self,
        pool: WorkerPool,
        config: Optional[StrategyConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[Callable[[RunReport], None]] = None,
    ):
        self.pool = pool
        self.config = config or StrategyConfig()
        try:
            _check_config(pool, self.config)
        except ConfigurationError as e:
            _log.error("Invalid orchestrator setup: %s", e)
            raise

        self.on_progress = on_progress
        self.on_complete = on_complete
        self.state = OrchestratorState.IDLE
        self.last_report: Optional[RunReport] = None
        self._run_lock = threading.Lock()
        self._tasks: List[Task] = []
        self._completed_total = 0
        self._failed_total = 0

    # ── Public API ────────────────────────────────────────────

    def run(self, work_item: str) -> RunReport:
        """Execute ``work_item`` end-to-end. Task errors end up in the report."""
        if not self._run_lock.acquire(blocking=False):
            raise OrchestratorBusyError()
        try:
            return self._run(work_item)
        finally:
            self._run_lock.release()

    def run_single(self, work_item: str, role: Optional[str] = None) -> RunReport:
        """Hand the whole work item to one worker, without decomposition or
        cross-validation. ``role`` defaults to the pool's default role."""
        role = role or self.pool.default_role
        if role not in self.pool:
            raise ConfigurationError(f"Unknown role '{role}'")
        if not self._run_lock.acquire(blocking=False):
            raise OrchestratorBusyError()
        try:
            return self._run(work_item, single_role=role)
        finally:
            self._run_lock.release()

    def team_status(self) -> dict:
        lead = self.pool.lead_role
        return {
            "lead": {"name": lead.name, "title": lead.display_name},
            "members": [
                {
                    "name": role.name,
                    "title": role.display_name,
                    "description": role.description,
                    "capabilities": list(role.capabilities),
                }
                for role in self.pool.roles.values()
            ],
            "strategy": self.config.type,
            "state": self.state.value,
            "active_tasks": sum(1 for t in self._tasks if t.status is TaskStatus.IN_PROGRESS),
            "completed_tasks": self._completed_total,
            "failed_tasks": self._failed_total,
        }

    # ── Run phases ────────────────────────────────────────────

    def _run(self, work_item: str, single_role: Optional[str] = None) -> RunReport:
        run_id = uuid.uuid4().hex[:8]
        log = RunLogAdapter(_log, {"run_id": run_id})
        timeline = Timeline(listener=self._on_event)
        contributions = ContributionMap()
        lead = self.pool.lead_role.name
        strategy_name = "single" if single_role else self.config.type
        self.state = OrchestratorState.IDLE
        self._tasks = []

        log.info("Starting %s run: %s", strategy_name, work_item[:120])

        # Phase 1: decompose
        self.state = OrchestratorState.DECOMPOSING
        if single_role:
            tasks, fallback = fallback_tasks(work_item), False
        else:
            timeline.add("Task analysis started", lead)
            decomposer = Decomposer(self.pool.lead, max_steps=self.config.decomposition_steps)
            tasks, fallback = decomposer.decompose(
                work_item, self.pool.role_names, on_step=self._step_reporter(lead),
            )
            timeline.add("Task breakdown completed", lead)
        self._tasks = tasks
        log.info("Decomposed into %d tasks%s", len(tasks), " (fallback)" if fallback else "")

        # Phase 2: execute
        self.state = OrchestratorState.EXECUTING
        strategy_args = (self.pool, self.config, timeline, contributions)
        if single_role:
            strategy = SingleRoleStrategy(
                *strategy_args, role=single_role, on_progress=self._progress, log=log,
            )
        else:
            strategy = STRATEGIES[self.config.type](
                *strategy_args, on_progress=self._progress, log=log,
            )
        error = None
        try:
            ok = strategy.execute(tasks)
        except Exception as e:
            log.exception("Strategy %s crashed", strategy.name)
            error = f"{type(e).__name__}: {e}"
            self._settle(tasks, timeline, error)
            ok = False

        # Phase 3: cross-validate
        validation: Optional[ValidationResult] = None
        if ok and self.config.cross_validation and not single_role:
            self.state = OrchestratorState.CROSS_VALIDATING
            timeline.add("Cross-validation started", REVIEWER_ROLE)
            validator = CrossValidator(
                self.pool.get(REVIEWER_ROLE),
                max_steps=self.config.validation_steps,
                role=REVIEWER_ROLE,
            )
            validation = validator.validate(
                work_item, tasks, contributions.snapshot(),
                on_step=self._step_reporter(REVIEWER_ROLE),
            )
            timeline.add("Cross-validation completed", REVIEWER_ROLE)

        success = ok and (validation is None or validation.passed)
        self.state = OrchestratorState.DONE

        report = RunReport(
            success=success,
            tasks=tuple(tasks),
            contributions=contributions.snapshot(),
            timeline=timeline.events(),
            work_item=work_item,
            strategy=strategy_name,
            run_id=run_id,
            validation=validation,
            decomposition_fallback=fallback,
            error=error,
        )
        self._completed_total += len(report.completed_tasks)
        self._failed_total += len(report.failed_tasks)
        self.last_report = report
        log.info(
            "Run finished: success=%s completed=%d failed=%d",
            success, len(report.completed_tasks), len(report.failed_tasks),
        )

        if self.on_complete is not None:
            try:
                self.on_complete(report)
            except Exception as e:
                log.warning("on_complete callback failed: %s", e)
        return report

    def _settle(self, tasks: List[Task], timeline: Timeline, error: str) -> None:
        """Force every non-terminal task to failed after a strategy crash."""
        for task in tasks:
            if task.status is TaskStatus.IN_PROGRESS:
                task.fail(error)
                timeline.add(f"Task failed: {task.description}", task.assigned_role or "orchestrator")
            elif task.status is TaskStatus.PENDING:
                task.skip(error)
                timeline.add(f"Task skipped: {task.description}", "orchestrator")

    # ── Progress plumbing ─────────────────────────────────────

    def _progress(self, step: str, role: str) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(step, role)
        except Exception as e:
            _log.warning("Progress callback failed: %s", e)

    def _on_event(self, event: TimelineEvent) -> None:
        self._progress(event.event, event.role)

    def _step_reporter(self, role: str) -> Callable[[str], None]:
        return lambda step: self._progress(step, role)
