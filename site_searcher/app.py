"""Typer CLI entrypoint for Site-Searcher."""

from __future__ import annotations

import signal
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, SearchConfig
from .exceptions import SearchError
from .logging_conf import configure_logging, searcher_log_path, tail_log
from .orchestrator import SearchSession, SearchSummary

app = typer.Typer(
    help="Site-Searcher: check a list of websites for a pattern in parallel.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="Configuration commands.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Log inspection commands.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="YAML or JSON configuration file.", show_default=False),
]


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = AppState(repository=ConfigRepository(), verbose=False)
        ctx.obj = state
    return state


def _load_config(state: AppState, path: Optional[Path], **overrides) -> SearchConfig:
    try:
        return state.repository.load(path, **overrides)
    except (FileNotFoundError, ValueError, ValidationError) as exc:
        console.print(f"Invalid configuration: {exc}", style="red")
        raise typer.Exit(code=1) from exc


def _render_config_table(config: SearchConfig) -> Table:
    table = Table(title="Effective configuration", box=box.SIMPLE_HEAD)
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", overflow="fold")
    for key, value in config.model_dump(mode="json").items():
        table.add_row(key, "-" if value is None else str(value))
    return table


def _render_summary_table(summary: SearchSummary, output: Path) -> Table:
    table = Table(title="Search results", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Workers", str(summary.workers))
    table.add_row("Queued", str(summary.queued))
    table.add_row("Matched", str(summary.matched))
    table.add_row("Output", str(output))
    return table


def _install_signal_handlers(session: SearchSession) -> dict:
    def _handler(signum, _frame) -> None:  # noqa: ANN001
        session.request_stop()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            previous[signum] = signal.signal(signum, _handler)
        except ValueError:
            # Not on the main thread (e.g. embedded runners); rely on explicit shutdown.
            continue
    return previous


def _restore_signal_handlers(previous: dict) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = AppState(repository=ConfigRepository(), verbose=verbose)


@app.command("run", help="Search every site listed in the input file.")
def run(
    ctx: typer.Context,
    input_path: Annotated[
        Optional[Path], typer.Option("--input", "-i", help="CSV input with a header row.", show_default=False)
    ] = None,
    output_path: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="File receiving matching sites.", show_default=False)
    ] = None,
    workers: Annotated[
        Optional[int], typer.Option("--workers", "-w", min=1, help="Worker pool size.", show_default=False)
    ] = None,
    pattern: Annotated[
        Optional[str], typer.Option("--pattern", "-p", help="Regular expression to look for.", show_default=False)
    ] = None,
    case_sensitive: Annotated[
        Optional[bool],
        typer.Option("--case-sensitive/--ignore-case", help="Pattern case handling.", show_default=False),
    ] = None,
    until_idle: Annotated[
        Optional[bool],
        typer.Option(
            "--until-idle/--forever",
            help="Stop once every site was checked, or keep running until interrupted.",
            show_default=False,
        ),
    ] = None,
    config_path: ConfigOption = None,
) -> None:
    state = _get_state(ctx)
    config = _load_config(
        state,
        config_path,
        input_path=input_path,
        output_path=output_path,
        workers=workers,
        pattern=pattern,
        case_sensitive=case_sensitive,
        exit_when_idle=until_idle,
    )
    configure_logging(verbose=state.verbose, log_dir=config.log_dir)
    session = SearchSession(config)
    previous = _install_signal_handlers(session)
    try:
        summary = session.run()
    except SearchError as exc:
        console.print(f"Search aborted: {exc}", style="red")
        raise typer.Exit(code=1) from exc
    finally:
        _restore_signal_handlers(previous)
    console.print(_render_summary_table(summary, config.output_path))


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context, config_path: ConfigOption = None) -> None:
    state = _get_state(ctx)
    console.print(_render_config_table(_load_config(state, config_path)))


@config_app.command("init", help="Write a configuration file with default values.")
def config_init(
    ctx: typer.Context,
    config_path: ConfigOption = None,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    state = _get_state(ctx)
    target = config_path or state.repository.locator.config_path()
    if target.exists() and not force:
        console.print(f"Configuration already exists: {target}", style="yellow")
        raise typer.Exit(code=1)
    path = state.repository.save(SearchConfig(), target)
    console.print(f"Configuration written to {path}", style="green")


@log_app.command("tail", help="Show the last lines of the searcher log.")
def log_tail(
    ctx: typer.Context,
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of lines to show."),
    config_path: ConfigOption = None,
) -> None:
    state = _get_state(ctx)
    config = _load_config(state, config_path)
    path = searcher_log_path(config.log_dir)
    content = tail_log(path, lines)
    if not content:
        console.print(f"No log entries at {path}.", style="dim")
        raise typer.Exit(code=0)
    for line in content:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
