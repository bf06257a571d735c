"""Development service: picks single-worker or orchestrated execution for a work item."""

from typing import Callable, Optional

from ..logger import get_logger
from .orchestrator import Orchestrator
from .report import RunReport

_log = get_logger(__name__)

COMPLEXITY_LEVELS = ("simple", "medium", "complex")
MODES = ("auto", "single", "orchestrated")

_SIMPLE_PHRASES = ("fix bug", "fix typo", "update text", "change color", "rename")
_COMPLEX_WORDS = ("architecture", "refactor", "integrate", "database",
                  "authentication", "security", "migrate")
_SPECIALIST_WORDS = ("test", "document", "review")


def assess_complexity(work_item: str) -> str:
    """Keyword and word-count estimate: ``simple``, ``medium`` or ``complex``."""
    text = work_item.lower()
    if any(p in text for p in _SIMPLE_PHRASES):
        return "simple"
    if any(w in text for w in _COMPLEX_WORDS):
        return "complex"

    words = len(work_item.split())
    if words < 10:
        return "simple"
    if words > 50:
        return "complex"
    return "medium"


def select_mode(complexity: str, work_item: str) -> str:
    if complexity == "simple":
        return "single"
    if complexity == "complex":
        return "orchestrated"
    # Medium work that needs a specialist benefits from the team.
    text = work_item.lower()
    if any(w in text for w in _SPECIALIST_WORDS):
        return "orchestrated"
    return "single"


class DevelopmentService:
    """Front door used by the CLI: decides how a work item is executed."""

    def __init__(self, orchestrator: Orchestrator,
                 on_progress: Optional[Callable[[str, str], None]] = None):
        self.orchestrator = orchestrator
        self.on_progress = on_progress

    def develop(self, work_item: str, mode: str = "auto",
                complexity: Optional[str] = None) -> RunReport:
        if mode not in MODES:
            raise ValueError(f"Unknown mode '{mode}' (expected one of: {', '.join(MODES)})")
        if complexity is not None and complexity not in COMPLEXITY_LEVELS:
            raise ValueError(f"Unknown complexity '{complexity}'")

        complexity = complexity or assess_complexity(work_item)
        if mode == "auto":
            mode = select_mode(complexity, work_item)

        _log.info("Developing with %s mode (complexity: %s)", mode, complexity)
        self._notify(f"Starting development with {mode} mode (complexity: {complexity})", "system")

        if mode == "single":
            report = self.orchestrator.run_single(work_item)
        else:
            report = self.orchestrator.run(work_item)
        report.metadata.update({"mode": mode, "complexity": complexity})
        return report

    def _notify(self, step: str, role: str) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(step, role)
        except Exception as e:
            _log.warning("Progress callback failed: %s", e)
