"""Command line adapter for lib_closable.

Purpose
-------
Expose the metadata banner and a demonstration of the close combinators so
operators can see ordering and error precedence without writing code.

Contents
--------
* :func:`cli` - click group with global ``--traceback`` and ``--use-dotenv``.
* ``info`` / ``demo`` sub-commands.
* :func:`main` - entry point delegating exit handling to ``lib_cli_exit_tools``.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Sequence

import click
import lib_cli_exit_tools
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __init__conf__
from . import config as config_module
from .adapters.worker import CloseWorker
from .domain.closable import close_all, sequence
from .domain.errors import CloseTimeoutError
from .lib_closable import close_and_wait, summary_info

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
DEFAULT_RESOURCES = ("database", "cache", "socket")


@dataclass(slots=True)
class DemoReport:
    """Outcome of one ``demo`` run."""

    mode: str
    triggered: list[str] = field(default_factory=list)
    outcomes: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@click.group(invoke_without_command=True, context_settings=CLICK_CONTEXT_SETTINGS)
@click.version_option(__init__conf__.version, "--version", "-V", prog_name=__init__conf__.shell_command)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python tracebacks on errors.",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=False,
    help="Load environment variables from a nearby .env before running commands.",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool, use_dotenv: bool) -> None:
    """Group and close resources under a single deadline."""

    explicit: bool | None = None
    if ctx.get_parameter_source("use_dotenv") is not ParameterSource.DEFAULT:
        explicit = use_dotenv
    if config_module.should_use_dotenv(explicit=explicit, env_value=os.getenv(config_module.DOTENV_ENV_VAR)):
        config_module.enable_dotenv()

    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback

    try:
        settings = config_module.load_settings()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    logging.basicConfig(
        level=settings.python_log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        click.echo(summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print the package metadata banner."""

    click.echo(summary_info(), nl=False)


@cli.command("demo", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("resources", nargs=-1)
@click.option("--mode", type=click.Choice(["all", "sequence"]), default="sequence", show_default=True)
@click.option("--fail", "failing", multiple=True, help="Resource name whose close should fail (repeatable).")
@click.option("--delay", type=click.FloatRange(min=0.0), default=0.0, show_default=True, help="Seconds each close blocks.")
@click.option("--timeout", type=click.FloatRange(min=0.0, min_open=True), default=None, help="Deadline and wait bound in seconds.")
@click.pass_context
def cli_demo(
    ctx: click.Context,
    resources: tuple[str, ...],
    mode: str,
    failing: tuple[str, ...],
    delay: float,
    timeout: float | None,
) -> None:
    """Close simulated RESOURCES with the selected combinator."""

    settings: config_module.CloseSettings = ctx.obj
    effective_timeout = timedelta(seconds=timeout) if timeout is not None else settings.timeout
    report = _run_demo(
        resources=resources or DEFAULT_RESOURCES,
        mode=mode,
        failing=set(failing),
        delay=delay,
        timeout=effective_timeout,
    )
    _render_report(report)
    if not report.ok:
        ctx.exit(1)


def _run_demo(
    *,
    resources: Sequence[str],
    mode: str,
    failing: set[str],
    delay: float,
    timeout: timedelta,
) -> DemoReport:
    """Close one worker-backed resource per name and collect what happened."""

    report = DemoReport(mode=mode)
    lock = threading.Lock()
    workers: list[CloseWorker] = []

    def close_fn(name: str):
        def _close(deadline) -> None:
            with lock:
                report.triggered.append(name)
            if delay:
                time.sleep(delay)
            if name in failing:
                with lock:
                    report.outcomes[name] = "failed"
                raise RuntimeError(f"{name} refused to close")
            with lock:
                report.outcomes[name] = "closed"

        return _close

    members = []
    for name in resources:
        worker = CloseWorker(name=f"demo-{name}")
        worker.start()
        workers.append(worker)
        members.append(worker.closable(close_fn(name)))

    combinator = close_all if mode == "all" else sequence
    try:
        close_and_wait(combinator(*members), timeout)
    except Exception as exc:  # noqa: BLE001
        report.error = str(exc)
    finally:
        try:
            close_and_wait(close_all(*workers), timeout)
        except CloseTimeoutError:
            logging.getLogger(__name__).warning("Demo workers did not stop within %s", timeout)
    return report


def _render_report(report: DemoReport) -> None:
    console = Console(highlight=False)
    table = Table(title=f"close {report.mode}")
    table.add_column("#", justify="right")
    table.add_column("resource")
    table.add_column("outcome")
    for index, name in enumerate(report.triggered, start=1):
        table.add_row(str(index), name, report.outcomes.get(name, "pending"))
    console.print(table)
    if report.ok:
        console.print(f"result: ok ({len(report.triggered)} closed)")
    else:
        console.print(f"result: failed ({report.error})")


def main(argv: Sequence[str] | None = None, *, restore_traceback: bool = True) -> int:
    """Run the click group through ``lib_cli_exit_tools`` and return the exit code.

    Parameters
    ----------
    argv:
        Optional argument list; defaults to ``sys.argv[1:]``.
    restore_traceback:
        Restore the traceback preferences that were active before the call.
    """

    previous = (lib_cli_exit_tools.config.traceback, lib_cli_exit_tools.config.traceback_force_color)
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback, lib_cli_exit_tools.config.traceback_force_color = previous


__all__ = ["DemoReport", "cli", "main"]
