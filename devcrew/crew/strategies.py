"""Execution strategies: how a decomposed task list is driven through the pool."""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from ..errors import TaskTimeoutError
from ..logger import get_logger
from .pool import WorkerPool
from .selector import secondary_role, select_role
from .tasks import Task, TaskStatus, WorkerResult
from .timeline import ContributionMap, Timeline

_log = get_logger(__name__)

ProgressCallback = Callable[[str, str], None]

GUIDANCE_PROMPT = """\
Provide guidance for this task: {description}
Agent: {role}
Role: {title}

Keep it to a few concrete points the agent should follow. Do not do the task yourself."""

COLLABORATION_PROMPT = """\
Review and improve this work:

{primary_output}

Original task: {description}

Return the improved, complete result."""

SKIP_REASON = "Skipped: run aborted after an earlier task failed"


@dataclass
class StrategyConfig:
    """Knobs shared by every strategy.

    Parsed from the ``orchestration:`` section of ``.devcrew.yml``.
    """

    type: str = "hierarchical"
    max_concurrency: int = 3
    retry_on_failure: bool = True
    cross_validation: bool = True
    task_timeout: float = 0.0          # seconds, 0 = wait forever
    max_retries: int = 0               # extra attempts per worker call
    reasoning_steps: int = 8
    guidance_steps: int = 3
    collaboration_steps: int = 5
    validation_steps: int = 5
    decomposition_steps: int = 5


class Strategy:
    """Base class. Subclasses implement ``execute`` and return whether the
    run completed without an unrecoverable failure."""

    name = ""

    def __init__(
        self,
        pool: WorkerPool,
        config: StrategyConfig,
        timeline: Timeline,
        contributions: ContributionMap,
        on_progress: Optional[ProgressCallback] = None,
        log=None,
    ):
        self.pool = pool
        self.config = config
        self.timeline = timeline
        self.contributions = contributions
        self._on_progress = on_progress
        self.log = log or _log

    def execute(self, tasks: List[Task]) -> bool:
        raise NotImplementedError

    # ── Building blocks ───────────────────────────────────────

    def _assign(self, task: Task) -> str:
        role = select_role(task, self.pool.role_names, self.pool.default_role)
        task.assign(role)
        return role

    def _step_reporter(self, role: str) -> Callable[[str], None]:
        def report(step: str) -> None:
            if self._on_progress is not None:
                self._on_progress(step, role)
        return report

    def _invoke(self, worker, prompt: str, role: str, *,
                reasoning: bool = True, max_steps: int = 8) -> WorkerResult:
        """One worker call, bounded by ``task_timeout`` when set.

        A call that overruns is cancelled: its ``cancel`` event is set and
        none of its later steps reach ``on_progress``. The call runs on a
        daemon thread so a stuck provider cannot block interpreter exit.
        """
        timeout = self.config.task_timeout
        if not timeout or timeout <= 0:
            return worker.invoke(
                prompt, reasoning=reasoning, max_steps=max_steps,
                on_step=self._step_reporter(role),
            )

        cancel = threading.Event()
        gate = threading.Lock()

        def on_step(step: str) -> None:
            with gate:
                if cancel.is_set() or self._on_progress is None:
                    return
                self._on_progress(step, role)

        outcome: Dict[str, Any] = {}

        def call() -> None:
            try:
                outcome["result"] = worker.invoke(
                    prompt, reasoning=reasoning, max_steps=max_steps,
                    on_step=on_step, cancel=cancel,
                )
            except Exception as e:
                outcome["error"] = e

        thread = threading.Thread(target=call, name=f"devcrew-{role}", daemon=True)
        thread.start()
        thread.join(timeout)
        if thread.is_alive():
            with gate:
                cancel.set()
            raise TaskTimeoutError(timeout)
        if "error" in outcome:
            raise outcome["error"]
        return outcome["result"]

    def _call(self, task: Task, worker, prompt: str, role: str, *,
              reasoning: bool = True, max_steps: int = 8) -> WorkerResult:
        """``_invoke`` with per-call retries while ``retry_on_failure`` is on."""
        retries = self.config.max_retries if self.config.retry_on_failure else 0
        attempt = 0
        while True:
            attempt += 1
            task.attempts += 1
            try:
                return self._invoke(worker, prompt, role, reasoning=reasoning, max_steps=max_steps)
            except Exception as e:
                if attempt > retries:
                    raise
                self.log.info("Task %s attempt %d failed (%s); retrying", task.id, attempt, e)
                if isinstance(e, TaskTimeoutError):
                    # The cancelled call may still be winding down on the old instance.
                    worker = self.pool.checkout(role)

    def _run_task(self, task: Task, worker=None, prompt: Optional[str] = None) -> bool:
        """Run one assigned task to a terminal state. Never raises for worker errors."""
        role = task.assigned_role
        worker = worker if worker is not None else self.pool.get(role)
        task.start()
        self.timeline.add(f"Task started: {task.description}", role)
        try:
            result = self._call(
                task, worker, prompt or task.description, role,
                max_steps=self.config.reasoning_steps,
            )
        except Exception as e:
            self._record_failure(task, role, e)
            return False

        task.complete(result)
        self.contributions.record(role, task.id, result)
        self.timeline.add(f"Task completed: {task.description}", role)
        return True

    def _record_failure(self, task: Task, role: str, error: Exception,
                        stage: Optional[str] = None) -> None:
        message = str(error) or type(error).__name__
        task.fail(message, stage=stage)
        self.timeline.add(f"Task failed: {task.description}", role)
        self.log.warning("Task %s (%s) failed: %s", task.id, role, message)

    def _skip_remaining(self, tasks: List[Task]) -> None:
        for task in tasks:
            if task.status is TaskStatus.PENDING:
                task.skip(SKIP_REASON)
                self.timeline.add(f"Task skipped: {task.description}", "orchestrator")

    def _run_in_order(self, tasks: List[Task], run_one: Callable[[Task], bool]) -> bool:
        for index, task in enumerate(tasks):
            if run_one(task) or self.config.retry_on_failure:
                continue
            self.log.warning("Aborting run after task %s failed", task.id)
            self._skip_remaining(tasks[index + 1:])
            return False
        return True


class SequentialStrategy(Strategy):
    """One task at a time, in decomposition order."""

    name = "sequential"

    def execute(self, tasks: List[Task]) -> bool:
        return self._run_in_order(tasks, self._run_one)

    def _run_one(self, task: Task) -> bool:
        self._assign(task)
        return self._run_task(task)


class ParallelStrategy(Strategy):
    """Contiguous batches of ``max_concurrency`` tasks with a barrier between batches."""

    name = "parallel"

    def execute(self, tasks: List[Task]) -> bool:
        size = self.config.max_concurrency
        batches = [tasks[i:i + size] for i in range(0, len(tasks), size)]

        for number, batch in enumerate(batches, start=1):
            self.log.info("Dispatching batch %d/%d (%d tasks)", number, len(batches), len(batch))
            ok = self._run_batch(batch)
            if ok or self.config.retry_on_failure:
                continue
            self.log.warning("Aborting run after batch %d had failures", number)
            for rest in batches[number:]:
                self._skip_remaining(rest)
            return False
        return True

    def _run_batch(self, batch: List[Task]) -> bool:
        # Each task gets its own worker instance; no instance is shared within a batch.
        workers = {}
        for task in batch:
            role = self._assign(task)
            workers[task.id] = self.pool.checkout(role)

        outcomes: Dict[str, bool] = {}
        with ThreadPoolExecutor(max_workers=len(batch), thread_name_prefix="devcrew-batch") as executor:
            future_map = {
                executor.submit(self._run_task, task, workers[task.id]): task
                for task in batch
            }
            for future, task in future_map.items():
                outcomes[task.id] = future.result()
        return all(outcomes.values())


class HierarchicalStrategy(Strategy):
    """Priority order; the lead advises each task before its worker runs it."""

    name = "hierarchical"

    def execute(self, tasks: List[Task]) -> bool:
        ordered = sorted(tasks, key=lambda t: t.priority.rank)
        return self._run_in_order(ordered, self._run_one)

    def _run_one(self, task: Task) -> bool:
        role = self._assign(task)
        guidance = self._guidance(task, role)
        prompt = task.description
        if guidance:
            prompt = f"Guidance from your lead:\n{guidance}\n\nTask: {task.description}"
        return self._run_task(task, prompt=prompt)

    def _guidance(self, task: Task, role: str) -> str:
        lead_name = self.pool.lead_role.name
        worker_role = self.pool.roles[role]
        prompt = GUIDANCE_PROMPT.format(
            description=task.description, role=role, title=worker_role.display_name,
        )
        try:
            result = self._invoke(
                self.pool.lead, prompt, lead_name,
                reasoning=False, max_steps=self.config.guidance_steps,
            )
        except Exception as e:
            self.log.warning("Guidance for task %s unavailable: %s", task.id, e)
            self.timeline.add(f"Guidance unavailable for: {task.description}", lead_name)
            return ""
        self.timeline.add(f"Guidance provided for: {task.description}", lead_name)
        return result.text.strip()


class CollaborativeStrategy(Strategy):
    """Primary worker produces, a paired secondary worker reviews and improves."""

    name = "collaborative"

    def execute(self, tasks: List[Task]) -> bool:
        return self._run_in_order(tasks, self._run_one)

    def _run_one(self, task: Task) -> bool:
        primary = self._assign(task)
        secondary = secondary_role(primary, self.pool.role_names)

        task.start()
        self.timeline.add(f"Collaborative task started: {task.description}", primary)
        try:
            first = self._call(
                task, self.pool.get(primary), task.description, primary,
                max_steps=self.config.reasoning_steps,
            )
        except Exception as e:
            self._record_failure(task, primary, e, stage="primary")
            return False
        self.contributions.record(primary, task.id, first)

        prompt = COLLABORATION_PROMPT.format(
            primary_output=first.text, description=task.description,
        )
        try:
            final = self._call(
                task, self.pool.get(secondary), prompt, secondary,
                max_steps=self.config.collaboration_steps,
            )
        except Exception as e:
            self._record_failure(task, secondary, e, stage="secondary")
            return False

        task.complete(final)
        self.contributions.record(secondary, task.id, final)
        self.timeline.add(f"Collaborative task completed: {task.description}", secondary)
        return True


class SingleRoleStrategy(Strategy):
    """Every task goes to one fixed role, in order. Backs single-worker mode."""

    name = "single"

    def __init__(self, *args, role: str, **kwargs):
        super().__init__(*args, **kwargs)
        self.role = role

    def execute(self, tasks: List[Task]) -> bool:
        return self._run_in_order(tasks, self._run_one)

    def _run_one(self, task: Task) -> bool:
        task.assign(self.role)
        return self._run_task(task)


STRATEGIES: Dict[str, Type[Strategy]] = {
    cls.name: cls
    for cls in (SequentialStrategy, ParallelStrategy, HierarchicalStrategy, CollaborativeStrategy)
}
