"""
devcrew v1.0.0: multi-worker development crew for your terminal.

Command: devcrew develop "<work item>"
"""

import sys

import click
from rich.console import Console
from rich.text import Text

from . import __version__, theme
from .config import Config, ModelPreset, STRATEGY_TYPES
from .crew import Crew, LEAD_ROLE, load_roles
from .crew.rendering import CrewRenderer
from .crew.service import MODES
from .errors import ConfigurationError
from .logger import setup_logger

console = Console()


def _banner() -> Text:
    palette = theme.get_theme()
    text = Text()
    text.append("devcrew", style=f"bold {palette.ACCENT}")
    text.append(f" v{__version__} · multi-worker development crew", style=palette.DIM)
    return text


def _prepare(config: Config, verbose: bool = False) -> None:
    if verbose:
        config.verbose = True
    setup_logger(verbose=config.verbose)
    theme.set_theme(config.theme)
    theme.set_use_unicode(config.use_unicode)


@click.group()
@click.version_option(__version__, prog_name="devcrew")
def cli():
    """devcrew: break work items into tasks and run them with a crew of AI workers."""


@cli.command()
@click.argument("work_item", nargs=-1, required=True)
@click.option("--strategy", "-s", type=click.Choice(sorted(STRATEGY_TYPES)), default=None,
              help="Execution strategy")
@click.option("--max-concurrency", "-c", type=click.IntRange(min=1), default=None,
              help="Batch size for the parallel strategy")
@click.option("--no-retry", is_flag=True, help="Abort the run at the first failed task")
@click.option("--no-validate", is_flag=True, help="Skip the cross-validation pass")
@click.option("--timeout", "-t", type=click.FloatRange(min=0), default=None,
              help="Per-call worker timeout in seconds (0 = none)")
@click.option("--mode", type=click.Choice(MODES), default="auto",
              help="single worker, orchestrated team, or auto by complexity")
@click.option("--model", "-m", default=None, help="Model preset name or litellm model id")
@click.option("--project-dir", "-d", default=".", help="Project directory")
@click.option("--apply", "apply_files", is_flag=True, help="Write code blocks from the results to disk")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def develop(work_item, strategy, max_concurrency, no_retry, no_validate, timeout,
            mode, model, project_dir, apply_files, verbose):
    """Develop WORK_ITEM with the crew."""
    config = Config.load(project_dir)
    _prepare(config, verbose)
    console.print(_banner())

    if model and not config.set_active_model(model):
        config.models["_cli"] = ModelPreset(name="_cli", provider="openai", model=model)
        config.active_model = "_cli"

    overrides = {}
    if strategy:
        overrides["strategy"] = strategy
    if max_concurrency is not None:
        overrides["max-concurrency"] = max_concurrency
    if no_retry:
        overrides["retry-on-failure"] = False
    if no_validate:
        overrides["cross-validation"] = False
    if timeout is not None:
        overrides["task-timeout"] = timeout

    try:
        crew = Crew(config, console, overrides=overrides)
    except ConfigurationError as e:
        console.print(f"Error: {e}", style=theme.get_theme().ERROR, markup=False)
        sys.exit(1)

    report = crew.run(" ".join(work_item), mode=mode, apply=apply_files)
    sys.exit(0 if report is not None and report.success else 1)


@cli.command()
@click.option("--project-dir", "-d", default=".", help="Project directory")
def roles(project_dir):
    """List the crew roles and their tools."""
    config = Config.load(project_dir)
    _prepare(config)
    CrewRenderer(console).render_roles(load_roles(config.orchestration_config), LEAD_ROLE)


@cli.command("config")
@click.option("--project-dir", "-d", default=".", help="Project directory")
def config_cmd(project_dir):
    """Show the effective configuration."""
    config = Config.load(project_dir)
    _prepare(config)
    CrewRenderer(console).render_config(config.summary())


if __name__ == "__main__":
    cli()
