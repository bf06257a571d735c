"""Role selection: keyword rules mapping task text to a worker role."""

import re
from typing import Collection, Dict, Iterable, Optional, Tuple

from .tasks import Task


class RoleRule:
    """A tagged keyword class. Matches when any keyword occurs as a word prefix."""

    __slots__ = ("role", "keywords", "_pattern")

    def __init__(self, role: str, keywords: Iterable[str]):
        self.role = role
        self.keywords = tuple(keywords)
        self._pattern = re.compile(
            r"\b(?:" + "|".join(re.escape(k) for k in self.keywords) + r")",
            re.IGNORECASE,
        )

    def matches(self, text: str) -> bool:
        return bool(self._pattern.search(text))

    def __repr__(self) -> str:
        return f"RoleRule({self.role!r}, {self.keywords!r})"


# First match wins; order is precedence.
ROLE_RULES: Tuple[RoleRule, ...] = (
    RoleRule("architect", ("architecture", "design", "plan")),
    RoleRule("tester", ("test", "quality", "bug")),
    RoleRule("documenter", ("document", "readme", "guide")),
    RoleRule("reviewer", ("review", "improve", "refactor")),
)

DEFAULT_ROLE = "developer"

# Collaborative strategy: primary role -> complementary reviewer of its output.
PAIRINGS: Dict[str, str] = {
    "developer": "reviewer",
    "reviewer": "developer",
    "architect": "developer",
    "tester": "developer",
    "documenter": "reviewer",
}


def select_role(
    task: Task,
    available: Optional[Collection[str]] = None,
    default: str = DEFAULT_ROLE,
) -> str:
    """Pick the role for ``task``. Pure and deterministic for a given text.

    A matched role that is not in ``available`` falls through to the next
    rule, and finally to ``default``.
    """
    for rule in ROLE_RULES:
        if available is not None and rule.role not in available:
            continue
        if rule.matches(task.description):
            return rule.role
    return default


def secondary_role(primary: str, available: Collection[str]) -> str:
    """Complementary role for a collaborative task.

    Falls back to the first other available role, then to ``primary`` itself.
    """
    paired = PAIRINGS.get(primary)
    if paired is not None and paired in available:
        return paired
    for name in available:
        if name != primary:
            return name
    return primary
