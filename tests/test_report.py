"""Tests for RunReport queries."""

import dataclasses

import pytest

from devcrew.crew.report import RunReport
from devcrew.crew.tasks import Task, WorkerResult
from devcrew.crew.timeline import TimelineEvent
from devcrew.crew.validator import ValidationResult


def _report(**kwargs):
    done = Task(id="task-1", description="a")
    done.start()
    done.complete(WorkerResult(text="A", tokens=100))
    failed = Task(id="task-2", description="b")
    failed.skip("aborted")

    fields = dict(
        success=False,
        tasks=(done, failed),
        contributions={"developer": {"task-1": done.result}, "reviewer": {"task-1": WorkerResult(text="R", tokens=50)}},
        timeline=(TimelineEvent(10.0, "Task started: a", "developer"), TimelineEvent(12.5, "Task completed: a", "developer")),
    )
    fields.update(kwargs)
    return RunReport(**fields)


class TestRunReport:
    """Derived views over a finished run."""

    def test_task_partitions(self):
        report = _report()
        assert [t.id for t in report.completed_tasks] == ["task-1"]
        assert [t.id for t in report.failed_tasks] == ["task-2"]
        assert report.results == {"task-1": "A", "task-2": None}

    def test_duration_and_tokens(self):
        report = _report()
        assert report.duration == pytest.approx(2.5)
        assert report.tokens == 150

    def test_empty_timeline(self):
        assert _report(timeline=()).duration == 0.0

    def test_issues(self):
        assert _report().issues == []
        validation = ValidationResult(passed=False, issues=["x"])
        assert _report(validation=validation).issues == ["x"]

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            _report().success = True

    def test_to_dict(self):
        data = _report(run_id="abc", strategy="parallel").to_dict()
        assert data["run_id"] == "abc"
        assert data["strategy"] == "parallel"
        assert data["tasks"][1]["result"]["skipped"] is True
        assert data["contributions"]["reviewer"]["task-1"]["text"] == "R"
        assert data["timeline"][0]["event"] == "Task started: a"
        assert data["validation"] is None
