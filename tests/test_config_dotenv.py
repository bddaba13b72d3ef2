from __future__ import annotations

import logging
import os
from datetime import timedelta
from pathlib import Path

import pytest
from click.testing import CliRunner

from lib_closable import cli as cli_module
from lib_closable import config as closable_config


@pytest.fixture(autouse=True)
def _reset_dotenv_state() -> None:
    """Reset shared dotenv state around each test."""

    closable_config._reset_dotenv_state_for_testing()
    yield
    closable_config._reset_dotenv_state_for_testing()


def test_enable_dotenv_populates_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Loading the nearest .env injects values without overriding call arguments."""

    nested = tmp_path / "nested"
    nested.mkdir()
    env_file = tmp_path / ".env"
    env_file.write_text("CLOSABLE_TIMEOUT=12\n")
    monkeypatch.chdir(nested)
    monkeypatch.delenv("CLOSABLE_TIMEOUT", raising=False)

    loaded = closable_config.enable_dotenv()

    assert loaded == env_file.resolve()
    assert os.environ["CLOSABLE_TIMEOUT"] == "12"
    assert closable_config.load_settings().timeout == timedelta(seconds=12)

    os.environ.pop("CLOSABLE_TIMEOUT", None)


def test_enable_dotenv_respects_existing_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Existing environment variables keep precedence over .env entries."""

    nested = tmp_path / "nested"
    nested.mkdir()
    (tmp_path / ".env").write_text("CLOSABLE_LOG_LEVEL=DEBUG\n")
    monkeypatch.chdir(nested)
    monkeypatch.setenv("CLOSABLE_LOG_LEVEL", "ERROR")

    result = closable_config.enable_dotenv()

    assert result is not None
    assert os.environ["CLOSABLE_LOG_LEVEL"] == "ERROR"


def test_enable_dotenv_from_explicit_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    env_file = tmp_path / "a" / ".env"
    env_file.write_text("CLOSABLE_TIMEOUT=3\n")
    monkeypatch.delenv("CLOSABLE_TIMEOUT", raising=False)

    assert closable_config.enable_dotenv(nested) == env_file.resolve()
    assert closable_config.enable_dotenv(tmp_path) == env_file.resolve()

    os.environ.pop("CLOSABLE_TIMEOUT", None)


def test_enable_dotenv_returns_none_without_file(tmp_path: Path) -> None:
    assert closable_config.enable_dotenv(tmp_path) is None


@pytest.mark.parametrize(
    "explicit, env_value, expected",
    [
        (None, None, False),
        (None, "1", True),
        (None, "off", False),
        (True, None, True),
        (False, "yes", False),
    ],
)
def test_should_use_dotenv_precedence(explicit: bool | None, env_value: str | None, expected: bool) -> None:
    assert closable_config.should_use_dotenv(explicit=explicit, env_value=env_value) is expected


def test_load_settings_defaults() -> None:
    settings = closable_config.load_settings({})
    assert settings.timeout == closable_config.DEFAULT_TIMEOUT
    assert settings.log_level == "WARNING"
    assert settings.python_log_level == logging.WARNING


def test_load_settings_parses_values() -> None:
    settings = closable_config.load_settings({"CLOSABLE_TIMEOUT": "0.5", "CLOSABLE_LOG_LEVEL": " debug "})
    assert settings.timeout == timedelta(milliseconds=500)
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env, error_match",
    [
        ({"CLOSABLE_TIMEOUT": "soon"}, "number of seconds"),
        ({"CLOSABLE_TIMEOUT": "0"}, "must be positive"),
        ({"CLOSABLE_TIMEOUT": "-3"}, "must be positive"),
        ({"CLOSABLE_LOG_LEVEL": "verbose"}, "must be one of"),
    ],
)
def test_load_settings_rejects_malformed_values(env: dict[str, str], error_match: str) -> None:
    with pytest.raises(ValueError, match=error_match):
        closable_config.load_settings(env)


def test_cli_dotenv_toggle_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    """CLI flag wins over environment toggle when deciding whether to load .env."""

    runner = CliRunner()

    calls: list[tuple[tuple[object, ...], dict[str, object]]] = []

    def record_enable(*args: object, **kwargs: object) -> None:
        calls.append((args, kwargs))

    monkeypatch.setattr(closable_config, "enable_dotenv", record_enable)
    monkeypatch.delenv(closable_config.DOTENV_ENV_VAR, raising=False)

    result = runner.invoke(cli_module.cli, ["--use-dotenv", "info"])
    assert result.exit_code == 0
    assert len(calls) == 1

    calls.clear()
    env = {closable_config.DOTENV_ENV_VAR: "1"}
    result = runner.invoke(cli_module.cli, ["info"], env=env)
    assert result.exit_code == 0
    assert len(calls) == 1

    calls.clear()
    env = {closable_config.DOTENV_ENV_VAR: "1"}
    result = runner.invoke(cli_module.cli, ["--no-use-dotenv", "info"], env=env)
    assert result.exit_code == 0
    assert calls == []
