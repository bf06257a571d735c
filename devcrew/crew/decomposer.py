"""Decomposer: asks the lead to break a work item into tasks and parses the answer."""

import re
from typing import Callable, Iterable, List, Optional, Tuple

from ..logger import get_logger
from .tasks import Priority, Task

_log = get_logger(__name__)

DECOMPOSE_PROMPT = """\
Analyze this task and break it down into smaller, manageable subtasks:

{work_item}

Available roles: {roles}

Answer using ONLY the following format, one block per subtask, in execution order:

Task: <what the agent should do, specific and actionable>
Priority: <urgent|high|medium|low>
Depends on: <comma-separated task numbers, or none>

Rules:
- Number tasks implicitly by their order (the first block is task 1)
- Keep each task completable by a single specialist
- Include 2-6 tasks for typical requests
- Do NOT add any other text
"""

_TASK_RE = re.compile(r"^task(?:\s+\d+)?\s*:\s*(.*)$", re.IGNORECASE)
_PRIORITY_RE = re.compile(r"^priority\s*:\s*(.*)$", re.IGNORECASE)
_DEPENDS_RE = re.compile(r"^depends\s+on\s*:\s*(.*)$", re.IGNORECASE)
_DEP_ID_RE = re.compile(r"^(?:task[-\s]?)?(\d+)$", re.IGNORECASE)
_NO_DEPS = {"", "none", "-", "n/a", "no"}


def task_id(index: int) -> str:
    """Stable id for the ``index``-th (1-based) decomposed task."""
    return f"task-{index}"


class _Draft:
    __slots__ = ("description", "priority", "dependencies")

    def __init__(self, description: str):
        self.description = description
        self.priority = Priority.MEDIUM
        self.dependencies: List[str] = []


def parse_breakdown(text: str) -> List[Task]:
    """Parse the lead's ``Task:/Priority:/Depends on:`` blocks.

    Lines outside that micro-format are ignored. Returns an empty list when
    no task line is found; the caller supplies the fallback.
    """
    drafts: List[_Draft] = []
    for raw in (text or "").splitlines():
        line = raw.strip().strip("*").strip()
        if not line:
            continue

        m = _TASK_RE.match(line)
        if m:
            description = m.group(1).strip(" *")
            if description:
                drafts.append(_Draft(description))
            continue

        if not drafts:
            continue
        current = drafts[-1]

        m = _PRIORITY_RE.match(line)
        if m:
            current.priority = Priority.parse(m.group(1).strip(" *"))
            continue

        m = _DEPENDS_RE.match(line)
        if m:
            current.dependencies.extend(_split_dependencies(m.group(1).strip(" *")))

    known = {task_id(i) for i in range(1, len(drafts) + 1)}
    tasks = []
    for index, draft in enumerate(drafts, start=1):
        own_id = task_id(index)
        deps: List[str] = []
        for dep in draft.dependencies:
            if dep in known and dep != own_id and dep not in deps:
                deps.append(dep)
        tasks.append(Task(
            id=own_id,
            description=draft.description,
            priority=draft.priority,
            dependencies=tuple(deps),
        ))
    return tasks


def _split_dependencies(value: str) -> List[str]:
    value = value.strip()
    if value.lower() in _NO_DEPS:
        return []
    deps = []
    for part in re.split(r"[,;]|\s+and\s+", value, flags=re.IGNORECASE):
        part = part.strip().lower()
        if part in _NO_DEPS:
            continue
        m = _DEP_ID_RE.match(part)
        deps.append(task_id(int(m.group(1))) if m else part)
    return deps


def fallback_tasks(work_item: str) -> List[Task]:
    """The single whole-item task used when no breakdown is available."""
    return [Task(id=task_id(1), description=work_item, priority=Priority.MEDIUM)]


class Decomposer:
    """Turns a free-text work item into an ordered, non-empty task list."""

    def __init__(self, lead, max_steps: int = 5):
        self.lead = lead
        self.max_steps = max_steps

    def build_prompt(self, work_item: str, roles: Iterable[str]) -> str:
        return DECOMPOSE_PROMPT.format(work_item=work_item, roles=", ".join(roles))

    def decompose(
        self,
        work_item: str,
        roles: Iterable[str],
        on_step: Optional[Callable[[str], None]] = None,
    ) -> Tuple[List[Task], bool]:
        """Return ``(tasks, used_fallback)``. Never raises for lead errors."""
        if not (work_item or "").strip():
            _log.warning("Empty work item; using a single fallback task")
            return fallback_tasks(work_item or ""), True

        try:
            result = self.lead.invoke(
                self.build_prompt(work_item, roles),
                reasoning=True,
                max_steps=self.max_steps,
                on_step=on_step,
            )
        except Exception as e:
            _log.warning("Decomposition call failed (%s); using a single fallback task", e)
            return fallback_tasks(work_item), True

        tasks = parse_breakdown(result.text)
        if not tasks:
            _log.warning("Decomposition output had no 'Task:' lines; using a single fallback task")
            return fallback_tasks(work_item), True

        _log.info("Decomposed work item into %d tasks", len(tasks))
        return tasks, False
