"""Cross-validation: a reviewer pass over the aggregate results of a run."""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..logger import get_logger
from .tasks import Task

_log = get_logger(__name__)

VALIDATION_PROMPT = """\
Cross-validate the following work results produced by the team.

Work item: {work_item}

## Task results
{results}

## Contributions
{contributions}

Answer in exactly this layout:

Verdict: PASS
Issues:
- one issue per line
Recommendations:
- one recommendation per line

The first line is "Verdict: PASS" when the work item is complete and correct,
and "Verdict: REJECT" otherwise. Do not use the word "pass" anywhere else.
Leave a section without bullets when it has nothing to list."""

_MAX_RESULT_CHARS = 2000

_BULLET_RE = re.compile(r"^[-*•]\s+(.*)$")
_ISSUE_WORDS = ("issue", "problem")
_RECOMMEND_WORDS = ("recommend", "suggest")


@dataclass
class ValidationResult:
    passed: bool
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    text: str = ""
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
            "error": self.error,
        }


def verdict(text: str) -> bool:
    """Lexical pass/fail: a "pass" indicator and no "fail" anywhere."""
    lowered = (text or "").lower()
    return "pass" in lowered and "fail" not in lowered


def _mentions(text: str, words) -> bool:
    lowered = text.lower()
    return any(w in lowered for w in words)


def extract_findings(text: str):
    """Split reviewer output into ``(issues, recommendations)`` bullet lists.

    A bullet counts when it sits under an issues/recommendations heading or
    mentions one of those words itself.
    """
    issues: List[str] = []
    recommendations: List[str] = []
    section = None

    for line in (text or "").splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        m = _BULLET_RE.match(stripped)
        is_heading = m is None or stripped.rstrip("*").endswith(":")
        if is_heading:
            heading = stripped.strip("#* ")
            if _mentions(heading, _ISSUE_WORDS):
                section = "issues"
            elif _mentions(heading, _RECOMMEND_WORDS):
                section = "recommendations"
            else:
                section = None
            continue

        item = m.group(1).strip()
        if not item:
            continue
        if section == "issues" or (section is None and _mentions(item, _ISSUE_WORDS)):
            issues.append(item)
        elif section == "recommendations" or (section is None and _mentions(item, _RECOMMEND_WORDS)):
            recommendations.append(item)

    return issues, recommendations


class CrossValidator:
    """Runs the reviewer once over a finished run's results."""

    def __init__(self, reviewer, max_steps: int = 5, role: str = "reviewer"):
        self.reviewer = reviewer
        self.max_steps = max_steps
        self.role = role

    def build_prompt(self, work_item: str, tasks: List[Task],
                     contributions: Dict[str, Dict[str, Any]]) -> str:
        results = []
        for task in tasks:
            body = task.output if task.output is not None else f"ERROR: {task.error}"
            results.append(
                f"### {task.id} [{task.assigned_role or '-'}] ({task.status.value})\n"
                f"{task.description}\n\n{(body or '')[:_MAX_RESULT_CHARS]}"
            )
        contrib_lines = [
            f"- {role}: {', '.join(sorted(entries))}"
            for role, entries in contributions.items()
        ]
        return VALIDATION_PROMPT.format(
            work_item=work_item,
            results="\n\n".join(results) or "(none)",
            contributions="\n".join(contrib_lines) or "(none)",
        )

    def validate(
        self,
        work_item: str,
        tasks: List[Task],
        contributions: Dict[str, Dict[str, Any]],
        on_step: Optional[Callable[[str], None]] = None,
    ) -> ValidationResult:
        """Never raises for reviewer errors; they produce a failed result."""
        prompt = self.build_prompt(work_item, tasks, contributions)
        try:
            result = self.reviewer.invoke(
                prompt, reasoning=True, max_steps=self.max_steps, on_step=on_step,
            )
        except Exception as e:
            _log.warning("Cross-validation call failed: %s", e)
            return ValidationResult(
                passed=False,
                issues=[f"Cross-validation could not run: {e}"],
                error=str(e),
            )

        text = result.text or ""
        issues, recommendations = extract_findings(text)
        passed = verdict(text)
        if not passed:
            _log.warning("Cross-validation failed with %d issues", len(issues))
        return ValidationResult(
            passed=passed, issues=issues, recommendations=recommendations, text=text,
        )
