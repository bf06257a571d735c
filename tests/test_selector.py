"""Tests for keyword role selection and collaborative pairing."""

import pytest

from devcrew.crew.roles import DEFAULT_ROLES
from devcrew.crew.selector import PAIRINGS, ROLE_RULES, RoleRule, secondary_role, select_role
from devcrew.crew.tasks import Task


def _task(description):
    return Task(id="task-1", description=description)


class TestSelectRole:
    """First matching rule wins, developer otherwise."""

    @pytest.mark.parametrize("description,role", [
        ("Design the database schema", "architect"),
        ("Plan the migration", "architect"),
        ("Write unit tests for the parser", "tester"),
        ("Check code quality", "tester"),
        ("Fix the login bug", "tester"),
        ("Update the README", "documenter"),
        ("Write a user guide", "documenter"),
        ("Refactor the HTTP client", "reviewer"),
        ("Improve error messages", "reviewer"),
        ("Implement the API endpoints", "developer"),
    ])
    def test_keyword_rules(self, description, role):
        assert select_role(_task(description)) == role

    def test_fix_typo_in_readme(self):
        assert select_role(_task("Fix typo in README")) == "documenter"

    def test_precedence(self):
        # "design" (architect) outranks "test" (tester)
        assert select_role(_task("Design a test harness")) == "architect"

    def test_case_insensitive(self):
        assert select_role(_task("ARCHITECTURE overview")) == "architect"

    def test_word_prefix_only(self):
        # "latest" contains "test" but not at a word boundary
        assert select_role(_task("Fetch the latest rates")) == "developer"

    def test_deterministic(self):
        task = _task("Review the pull request")
        assert {select_role(task) for _ in range(10)} == {"reviewer"}

    def test_unavailable_role_falls_through(self):
        available = ("developer", "reviewer")
        # "design" would pick architect; "review" is the next matching rule
        assert select_role(_task("Design review"), available) == "reviewer"
        assert select_role(_task("Write tests"), available) == "developer"

    def test_custom_default(self):
        assert select_role(_task("Do something"), ("tester",), default="tester") == "tester"


class TestSecondaryRole:
    """Pairing table with fallbacks."""

    @pytest.mark.parametrize("primary,secondary", [
        ("developer", "reviewer"),
        ("reviewer", "developer"),
        ("architect", "developer"),
        ("tester", "developer"),
        ("documenter", "reviewer"),
    ])
    def test_pairings(self, primary, secondary):
        assert secondary_role(primary, tuple(DEFAULT_ROLES)) == secondary

    def test_every_default_role_is_paired(self):
        assert set(PAIRINGS) == set(DEFAULT_ROLES)

    def test_unpaired_role_uses_first_other(self):
        assert secondary_role("security", ("security", "developer", "tester")) == "developer"

    def test_missing_partner_uses_first_other(self):
        assert secondary_role("documenter", ("documenter", "tester")) == "tester"

    def test_only_role(self):
        assert secondary_role("developer", ("developer",)) == "developer"


class TestRoleRule:
    """RoleRule matching."""

    def test_rules_cover_non_default_roles(self):
        assert [r.role for r in ROLE_RULES] == ["architect", "tester", "documenter", "reviewer"]

    def test_matches_word_start(self):
        rule = RoleRule("tester", ("test",))
        assert rule.matches("testing the parser")
        assert rule.matches("Unit-test it")
        assert not rule.matches("contest entry")

    def test_keywords_are_escaped(self):
        rule = RoleRule("x", ("c++",))
        assert rule.matches("port to c++")
        assert not rule.matches("port to c")
