"""Crew main entry point: wires config, worker pool, orchestrator and renderer."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from rich.console import Console

from .. import theme
from ..config import (
    Config, STRATEGY_TYPES, validate_bool, validate_enum,
    validate_float_range, validate_int_range,
)
from ..errors import ConfigurationError, DevcrewError
from ..logger import get_logger
from ..theme import get_icon
from ..tools.file_ops import FileOps
from .changes import apply_changes
from .orchestrator import Orchestrator
from .pool import WorkerPool
from .rendering import CrewRenderer
from .report import RunReport
from .roles import LEAD_ROLE, load_roles
from .service import DevelopmentService
from .strategies import StrategyConfig
from .worker import create_worker_for_role

_log = get_logger(__name__)

_STEP_KEYS = ("reasoning", "guidance", "collaboration", "validation", "decomposition")


@dataclass
class OrchestrationConfig:
    """Parsed ``orchestration:`` section of ``.devcrew.yml``."""

    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    default_role: str = "developer"
    roles: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "OrchestrationConfig":
        """Parse with defaults. Invalid values are logged and replaced by the default."""
        if not data:
            return cls()

        defaults = StrategyConfig()

        def pick(key, validate, default, *args):
            if key not in data:
                return default
            valid, value, msg = validate(data[key], *args)
            if not valid:
                _log.warning("orchestration.%s: %s; using %r", key, msg, default)
                return default
            return value

        steps = data.get("steps") or {}
        step_values = {}
        for name in _STEP_KEYS:
            default = getattr(defaults, f"{name}_steps")
            raw = steps.get(name, default)
            valid, value, msg = validate_int_range(raw, 1, 50)
            if not valid:
                _log.warning("orchestration.steps.%s: %s; using %d", name, msg, default)
                value = default
            step_values[f"{name}_steps"] = value

        strategy = StrategyConfig(
            type=pick("strategy", validate_enum, defaults.type, STRATEGY_TYPES),
            max_concurrency=pick("max-concurrency", validate_int_range, defaults.max_concurrency, 1, 64),
            retry_on_failure=pick("retry-on-failure", validate_bool, defaults.retry_on_failure),
            cross_validation=pick("cross-validation", validate_bool, defaults.cross_validation),
            task_timeout=pick("task-timeout", validate_float_range, defaults.task_timeout, 0, 86400),
            max_retries=pick("max-retries", validate_int_range, defaults.max_retries, 0, 10),
            **step_values,
        )
        return cls(
            strategy=strategy,
            default_role=str(data.get("default-role", "developer")),
            roles=dict(data.get("roles") or {}),
        )


class Crew:
    """Top-level crew interface invoked by ``devcrew develop``."""

    def __init__(self, config: Config, console: Console,
                 overrides: Optional[Dict[str, Any]] = None):
        self.config = config
        self.console = console
        raw = dict(config.orchestration_config or {})
        raw.update(overrides or {})
        self.orch_cfg = OrchestrationConfig.from_dict(raw)
        self.roles = load_roles(raw)
        self.renderer = CrewRenderer(console)
        self._build()

    def _build(self) -> None:
        """(Re)create the worker pool and orchestrator for the active preset."""
        preset = self.config.get_active_preset()
        project_root = self.config.project_root or "."

        def factory(role):
            return create_worker_for_role(role, self.config, project_root, preset)

        self.pool = WorkerPool(
            self.roles, factory, lead_role=LEAD_ROLE, default_role=self.orch_cfg.default_role,
        )
        self.orchestrator = Orchestrator(
            self.pool, self.orch_cfg.strategy, on_progress=self.renderer.on_progress,
        )
        self.service = DevelopmentService(self.orchestrator, on_progress=self.renderer.on_progress)
        _log.info("Crew ready with model preset %s (%s)", preset.name, preset.model)

    def switch_model(self, name: str) -> None:
        """Rebuild the whole team against another model preset."""
        if not self.config.set_active_model(name):
            raise ConfigurationError(
                f"Unknown model preset '{name}' (available: {', '.join(self.config.models)})"
            )
        self._build()

    def team_status(self) -> dict:
        return self.orchestrator.team_status()

    def run(self, work_item: str, mode: str = "auto", apply: bool = False) -> Optional[RunReport]:
        """Execute a work item end-to-end and render it. Returns None if interrupted."""
        palette = theme.get_theme()
        if not work_item.strip():
            self.console.print("  Usage: devcrew develop <work item>", style=palette.DIM)
            return None

        self.renderer.render_start(work_item, self.orch_cfg.strategy.type)
        try:
            report = self.service.develop(work_item, mode=mode)
        except KeyboardInterrupt:
            self.console.print("\n  Crew interrupted by user", style=palette.ERROR, markup=False)
            return None
        except DevcrewError as e:
            self.console.print(f"\n  Crew error: {e}", style=palette.ERROR, markup=False)
            return None

        self.renderer.render_summary(report)
        if apply:
            self._apply(report)
        return report

    def _apply(self, report: RunReport) -> None:
        palette = theme.get_theme()
        result = apply_changes(report, FileOps(self.config.project_root or "."))
        if not result.written and not result.errors:
            self.console.print("  No file changes found in the results", style=palette.DIM)
        for path in result.written:
            self.console.print(f"  {get_icon('✓')} wrote {path}", style=palette.SUCCESS)
        for path, message in result.errors:
            self.console.print(f"  {get_icon('✗')} {path}: {message}", style=palette.ERROR, markup=False)
