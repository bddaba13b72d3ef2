"""CLI behaviour coverage for the click adapter."""

from __future__ import annotations

import re
import sys
from datetime import timedelta
from typing import Callable

import lib_cli_exit_tools
import pytest
from click.testing import CliRunner

from lib_closable import __init__conf__
from lib_closable import cli as cli_mod
from lib_closable.lib_closable import summary_info

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    """Return ``text`` without ANSI colour codes.

    Examples
    --------
    >>> strip_ansi("\x1b[31mred\x1b[0m")
    'red'
    """

    return ANSI_RE.sub("", text)


def run_cli(args: list[str] | None = None) -> tuple[int, str, BaseException | None]:
    """Invoke the click group with ``CliRunner`` and capture output."""

    runner = CliRunner()
    result = runner.invoke(cli_mod.cli, args or [], prog_name=__init__conf__.shell_command)
    return result.exit_code, result.output, result.exception


def test_cli_without_subcommand_prints_summary() -> None:
    exit_code, stdout, _ = run_cli()

    assert exit_code == 0
    assert stdout == summary_info()


def test_cli_info_command_matches_summary() -> None:
    exit_code, stdout, _ = run_cli(["info"])

    assert exit_code == 0
    assert stdout == summary_info()


def test_cli_version_flag() -> None:
    exit_code, stdout, _ = run_cli(["--version"])

    assert exit_code == 0
    assert __init__conf__.version in stdout


def test_cli_traceback_option_updates_exit_tools_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(lib_cli_exit_tools.config, "traceback", False, raising=False)
    monkeypatch.setattr(lib_cli_exit_tools.config, "traceback_force_color", False, raising=False)

    exit_code, _stdout, _exception = run_cli(["--traceback", "info"])
    assert exit_code == 0
    assert lib_cli_exit_tools.config.traceback is True

    exit_code, _stdout, _exception = run_cli(["--no-traceback", "info"])
    assert exit_code == 0
    assert lib_cli_exit_tools.config.traceback is False
    assert lib_cli_exit_tools.config.traceback_force_color is False


def test_cli_rejects_malformed_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOSABLE_TIMEOUT", "later")

    exit_code, stdout, _ = run_cli(["info"])

    assert exit_code == 2
    assert "CLOSABLE_TIMEOUT" in stdout


def test_cli_demo_sequence_succeeds() -> None:
    exit_code, stdout, _ = run_cli(["demo", "--mode", "sequence", "--timeout", "5", "db", "cache"])

    plain = strip_ansi(stdout)
    assert exit_code == 0
    assert "close sequence" in plain
    assert plain.index("db") < plain.index("cache")
    assert "result: ok (2 closed)" in plain


def test_cli_demo_all_reports_failure() -> None:
    exit_code, stdout, _ = run_cli(["demo", "--mode", "all", "--fail", "cache", "--timeout", "5", "db", "cache"])

    plain = strip_ansi(stdout)
    assert exit_code == 1
    assert "close all" in plain
    assert "failed" in plain
    assert "result: failed (cache refused to close)" in plain


def test_run_demo_sequence_keeps_going_and_reports_first_failure() -> None:
    report = cli_mod._run_demo(
        resources=["a", "b", "c"],
        mode="sequence",
        failing={"a", "c"},
        delay=0.0,
        timeout=timedelta(seconds=5),
    )

    assert report.triggered == ["a", "b", "c"]
    assert report.outcomes == {"a": "failed", "b": "closed", "c": "failed"}
    assert report.error == "a refused to close"
    assert not report.ok


def test_run_demo_all_triggers_everything() -> None:
    report = cli_mod._run_demo(
        resources=["a", "b", "c"],
        mode="all",
        failing=set(),
        delay=0.0,
        timeout=timedelta(seconds=5),
    )

    assert sorted(report.triggered) == ["a", "b", "c"]
    assert report.ok


def test_run_demo_reports_timeouts() -> None:
    report = cli_mod._run_demo(
        resources=["slow"],
        mode="sequence",
        failing=set(),
        delay=0.5,
        timeout=timedelta(milliseconds=20),
    )

    assert report.error is not None
    assert "did not complete" in report.error


def test_cli_demo_uses_default_resources(monkeypatch: pytest.MonkeyPatch) -> None:
    recorded: dict[str, object] = {}

    def fake_run_demo(**kwargs: object) -> cli_mod.DemoReport:
        recorded.update(kwargs)
        return cli_mod.DemoReport(mode="sequence", triggered=["database"], outcomes={"database": "closed"})

    monkeypatch.setattr(cli_mod, "_run_demo", fake_run_demo)
    monkeypatch.setenv("CLOSABLE_TIMEOUT", "7")

    exit_code, _stdout, _ = run_cli(["demo"])

    assert exit_code == 0
    assert recorded["resources"] == cli_mod.DEFAULT_RESOURCES
    assert recorded["timeout"] == timedelta(seconds=7)


def test_main_restores_traceback_preferences(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(lib_cli_exit_tools.config, "traceback", True, raising=False)
    monkeypatch.setattr(lib_cli_exit_tools.config, "traceback_force_color", True, raising=False)

    recorded: dict[str, bool] = {}

    def fake_run_cli(command: Callable[..., int], argv: list[str] | None = None, *, prog_name: str | None = None, **_: object) -> int:
        runner = CliRunner()
        result = runner.invoke(command, ["--no-traceback", "info"] if argv is None else argv)
        if result.exception is not None:
            raise result.exception
        recorded["traceback"] = lib_cli_exit_tools.config.traceback
        recorded["traceback_force_color"] = lib_cli_exit_tools.config.traceback_force_color
        return result.exit_code

    monkeypatch.setattr(lib_cli_exit_tools, "run_cli", fake_run_cli)

    exit_code = cli_mod.main(["--no-traceback", "info"])

    assert exit_code == 0
    assert recorded == {"traceback": False, "traceback_force_color": False}
    assert lib_cli_exit_tools.config.traceback is True
    assert lib_cli_exit_tools.config.traceback_force_color is True


def test_main_consumes_sys_argv(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(lib_cli_exit_tools.config, "traceback", False, raising=False)
    monkeypatch.setattr(lib_cli_exit_tools.config, "traceback_force_color", False, raising=False)
    monkeypatch.setattr(sys, "argv", [__init__conf__.shell_command, "info"], raising=False)

    exit_code = cli_mod.main()
    captured = capsys.readouterr()

    assert exit_code == 0
    assert "Info for lib_closable" in captured.out
