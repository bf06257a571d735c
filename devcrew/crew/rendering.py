"""Crew console rendering: streamed progress lines, run summary, role table."""

import threading
from typing import Dict, Mapping, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .. import theme
from ..theme import get_icon
from .report import RunReport
from .roles import WorkerRole
from .tasks import TaskStatus

# 8-color palette for role distinction
ROLE_COLORS = [
    "#7FA6D9",  # blue
    "#57DB9C",  # green
    "#D9A67F",  # orange
    "#D97FD9",  # magenta
    "#7FD9D9",  # cyan
    "#D9D97F",  # yellow
    "#9C7FD9",  # purple
    "#D97F7F",  # red
]


def _color_for_role(role_name: Optional[str]) -> str:
    if not role_name or not theme.get_theme().ACCENT:
        return theme.get_theme().DIM
    # Stable across processes, unlike hash()
    idx = sum(ord(c) for c in role_name) % len(ROLE_COLORS)
    return ROLE_COLORS[idx]


# Event prefix -> (icon_char, palette attribute)
_EVENT_DISPLAY = [
    ("Task started", "▸", "INFO"),
    ("Collaborative task started", "▸", "INFO"),
    ("Task completed", "✓", "SUCCESS"),
    ("Collaborative task completed", "✓", "SUCCESS"),
    ("Task failed", "✗", "ERROR"),
    ("Task skipped", "–", "DIM"),
    ("Guidance unavailable", "!", "WARN"),
    ("Guidance provided", "⊙", "DIM"),
    ("Cross-validation", "⊙", "ACCENT"),
    ("Task analysis", "●", "ACCENT"),
    ("Task breakdown", "●", "ACCENT"),
]

_STATUS_STYLE = {
    TaskStatus.COMPLETED: "SUCCESS",
    TaskStatus.FAILED: "ERROR",
    TaskStatus.IN_PROGRESS: "INFO",
    TaskStatus.PENDING: "DIM",
}


def _fmt_tokens(n: int) -> str:
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.0f}k"
    return str(n)


class CrewRenderer:
    """Prints orchestration progress. ``on_progress`` is safe to call from
    several worker threads at once."""

    def __init__(self, console: Console, show_steps: bool = True):
        self.console = console
        self.show_steps = show_steps
        self._lock = threading.Lock()

    def _print(self, text: Text) -> None:
        with self._lock:
            self.console.print(text)

    def render_start(self, work_item: str, strategy: str) -> None:
        palette = theme.get_theme()
        text = Text("\n  ")
        text.append(f"{get_icon('●')} Crew ", style=f"bold {palette.ACCENT}")
        text.append(f"[{strategy}] ", style=palette.DIM)
        text.append(work_item, style=palette.TEXT)
        self._print(text)

    # ── Streamed events ───────────────────────────────────────

    def on_progress(self, step: str, role: str) -> None:
        palette = theme.get_theme()
        for prefix, icon_char, attr in _EVENT_DISPLAY:
            if step.startswith(prefix):
                icon, style = get_icon(icon_char), getattr(palette, attr)
                break
        else:
            if not self.show_steps:
                return
            icon, style = get_icon("↳"), palette.DIM

        text = Text("  ")
        text.append(f"{icon} ", style=style)
        text.append(f"{role:<11}", style=_color_for_role(role))
        text.append(" ")
        text.append(step, style=style)
        self._print(text)

    # ── Final summary ─────────────────────────────────────────

    def render_summary(self, report: RunReport) -> None:
        palette = theme.get_theme()
        table = Table(
            show_header=True,
            header_style=f"bold {palette.ACCENT}",
            border_style=palette.BORDER,
            padding=(0, 1),
        )
        table.add_column("Task", min_width=7)
        table.add_column("Role", min_width=10)
        table.add_column("Priority", min_width=7)
        table.add_column("Description", min_width=24, overflow="fold")
        table.add_column("Status", min_width=8)
        table.add_column("Time", justify="right", min_width=6)

        for task in report.tasks:
            status = task.status.value
            if task.result is not None and getattr(task.result, "skipped", False):
                status = "skipped"
            duration = task.duration
            table.add_row(
                task.id,
                Text(task.assigned_role or "-", style=_color_for_role(task.assigned_role)),
                task.priority.value,
                Text(task.description),
                Text(status, style=getattr(palette, _STATUS_STYLE[task.status])),
                f"{duration:.1f}s" if duration is not None else "-",
            )

        parts = [table]
        if report.validation is not None:
            parts += [Text(""), self._validation_block(report)]
        failed = [t for t in report.failed_tasks if t.error]
        if failed:
            parts.append(Text(""))
            for task in failed:
                line = Text(f"{get_icon('✗')} {task.id}: ", style=palette.ERROR)
                line.append(task.error, style=palette.DIM)
                parts.append(line)

        outcome = "succeeded" if report.success else "failed"
        title = Text(f" Run {outcome} ", style=f"bold {palette.SUCCESS if report.success else palette.ERROR}")
        footer = Text(
            f"{report.duration:.1f}s total | {_fmt_tokens(report.tokens)} tokens | "
            f"{len(report.completed_tasks)}/{len(report.tasks)} completed",
            style=palette.DIM,
        )
        with self._lock:
            self.console.print(Panel(
                Group(*parts),
                title=title,
                subtitle=footer,
                title_align="left",
                border_style=palette.BORDER,
                padding=(0, 1),
            ))

    def _validation_block(self, report: RunReport) -> Text:
        palette = theme.get_theme()
        validation = report.validation
        text = Text()
        if validation.passed:
            text.append(f"{get_icon('✓')} Cross-validation passed", style=palette.SUCCESS)
        else:
            text.append(f"{get_icon('✗')} Cross-validation failed", style=palette.ERROR)
        for issue in validation.issues:
            text.append(f"\n  {get_icon('–')} {issue}", style=palette.WARN)
        for rec in validation.recommendations:
            text.append(f"\n  {get_icon('↳')} {rec}", style=palette.DIM)
        return text

    # ── Static tables ─────────────────────────────────────────

    def render_roles(self, roles: Mapping[str, WorkerRole], lead: Optional[WorkerRole] = None) -> None:
        palette = theme.get_theme()
        table = Table(
            show_header=True,
            header_style=f"bold {palette.ACCENT}",
            border_style=palette.BORDER,
            padding=(0, 1),
        )
        table.add_column("Role", min_width=10)
        table.add_column("Title", min_width=16)
        table.add_column("Description", min_width=30)
        table.add_column("Tools")

        rows = ([lead] if lead is not None else []) + list(roles.values())
        for role in rows:
            table.add_row(
                Text(role.name, style=_color_for_role(role.name)),
                Text(role.display_name),
                Text(role.description),
                Text(", ".join(role.capabilities) or "-", style=palette.DIM),
            )
        with self._lock:
            self.console.print(table)

    def render_config(self, summary: Dict[str, object]) -> None:
        palette = theme.get_theme()
        table = Table(show_header=False, border_style=palette.BORDER, padding=(0, 1))
        table.add_column("Key", style=f"bold {palette.ACCENT}")
        table.add_column("Value")
        for key, value in summary.items():
            table.add_row(key, Text(str(value)))
        with self._lock:
            self.console.print(table)
