"""Shared fixtures for devcrew tests."""

import os
import threading
import time
from unittest.mock import MagicMock

import pytest
import yaml

from devcrew import config as config_module
from devcrew import logger as logger_module
from devcrew.crew.pool import WorkerPool
from devcrew.crew.roles import DEFAULT_ROLES, LEAD_ROLE
from devcrew.crew.tasks import WorkerResult
from devcrew.errors import TaskCancelledError


@pytest.fixture
def tmp_dir(tmp_path):
    """Provide a temporary directory and cd into it."""
    orig = os.getcwd()
    os.chdir(tmp_path)
    yield tmp_path
    os.chdir(orig)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep global config and log files out of the real home directory."""
    home = tmp_path / "_home"
    monkeypatch.setattr(config_module, "CONFIG_DIR", home / ".devcrew")
    monkeypatch.setattr(config_module, "CONFIG_FILE", home / ".devcrew" / "config.yml")
    monkeypatch.setattr(logger_module, "DEFAULT_LOG_FILE", home / ".devcrew" / "logs" / "devcrew.log")
    for var in ("DEVCREW_MODEL", "DEVCREW_STRATEGY", "DEVCREW_MAX_CONCURRENCY", "DEVCREW_VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def sample_config_data():
    """Minimal .devcrew.yml data dict."""
    return {
        "active-model": "local",
        "commit-prefix": "test: ",
        "theme": "no_color",
        "command-timeout": 30,
        "verbose": False,
        "use-unicode": True,
        "orchestration": {
            "strategy": "parallel",
            "max-concurrency": 2,
            "retry-on-failure": False,
            "cross-validation": True,
        },
        "models": {
            "local": {
                "provider": "local",
                "model": "openai/model",
                "description": "Local test model",
                "temperature": 0.0,
                "max-tokens": 8192,
                "api-base": "http://localhost:8080/v1",
                "api-key": "not-needed",
            }
        },
    }


@pytest.fixture
def config_yaml_file(tmp_dir, sample_config_data):
    """Write a config YAML to tmp_dir and return its Path."""
    path = tmp_dir / ".devcrew.yml"
    with open(path, "w") as f:
        yaml.dump(sample_config_data, f, default_flow_style=False)
    return path


@pytest.fixture
def mock_console():
    """A mock Rich Console that silently accepts all print calls."""
    c = MagicMock()
    c.print = MagicMock()
    return c


# ── Instrumented workers ──────────────────────────────────────


class Recorder:
    """Thread-safe log of ``(kind, role, prompt, worker_id)`` worker events."""

    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def add(self, kind, role, prompt, worker_id):
        with self._lock:
            self.events.append((kind, role, prompt, worker_id))

    def wait_for(self, kind, needle, timeout=2.0):
        """Poll until a ``kind`` event for ``needle`` arrives; True if it did."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if any(e[0] == kind and needle in e[2] for e in self.events):
                    return True
            time.sleep(0.01)
        return False

    def calls(self, role=None):
        """Prompts passed to ``invoke``, optionally for one role, in start order."""
        return [e[2] for e in self.events if e[0] == "start" and (role is None or e[1] == role)]

    def index(self, kind, needle):
        """Position of the first ``kind`` event whose prompt contains ``needle``."""
        for i, event in enumerate(self.events):
            if event[0] == kind and needle in event[2]:
                return i
        raise AssertionError(f"no {kind} event for {needle!r}")


class FakeWorker:
    """Worker double. ``respond(role, prompt)`` returns text or raises."""

    def __init__(self, role, recorder, respond=None, delay=0.0, steps=()):
        self.role = role
        self.recorder = recorder
        self.respond = respond
        self.delay = delay
        self.steps = steps

    def invoke(self, prompt, *, reasoning=True, max_steps=8, on_step=None, cancel=None):
        self.recorder.add("start", self.role.name, prompt, id(self))
        try:
            if self.delay:
                time.sleep(self.delay)
            if cancel is not None and cancel.is_set():
                self.recorder.add("cancelled", self.role.name, prompt, id(self))
                raise TaskCancelledError(self.role.name)
            for step in self.steps:
                if on_step is not None:
                    on_step(step)
            if self.respond is None:
                text = f"{self.role.name} done"
            else:
                text = self.respond(self.role.name, prompt)
        finally:
            self.recorder.add("finish", self.role.name, prompt, id(self))
        return WorkerResult(text=text, role=self.role.name, tokens=10)


def breakdown(*tasks):
    """Lead answer in the decomposition micro-format.

    Each entry is a description or a ``(description, priority[, depends])`` tuple.
    """
    lines = []
    for entry in tasks:
        if isinstance(entry, str):
            entry = (entry,)
        lines.append(f"Task: {entry[0]}")
        if len(entry) > 1:
            lines.append(f"Priority: {entry[1]}")
        if len(entry) > 2:
            lines.append(f"Depends on: {entry[2]}")
        lines.append("")
    return "\n".join(lines)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_pool(recorder):
    """Build a WorkerPool of FakeWorkers sharing ``recorder``."""

    def _make(respond=None, roles=None, delay=0.0, steps=(), default_role="developer"):
        def factory(role):
            return FakeWorker(role, recorder, respond=respond, delay=delay, steps=steps)

        return WorkerPool(
            roles if roles is not None else DEFAULT_ROLES,
            factory,
            lead_role=LEAD_ROLE,
            default_role=default_role,
        )

    return _make


def lead_says(text, default=None):
    """``respond`` callback: the lead answers ``text`` to decomposition prompts."""

    def respond(role, prompt):
        if role == "lead" and prompt.startswith("Analyze this task"):
            return text
        if role == "lead":
            return "Keep it small."
        if default is not None:
            return default(role, prompt)
        if role == "reviewer" and prompt.startswith("Cross-validate"):
            return "Assessment: PASS"
        return f"{role} did: {prompt.splitlines()[-1]}"

    return respond


@pytest.fixture
def plan():
    """The ``breakdown`` helper, for building lead answers."""
    return breakdown


@pytest.fixture
def lead_script():
    """The ``lead_says`` helper, for building ``respond`` callbacks."""
    return lead_says
