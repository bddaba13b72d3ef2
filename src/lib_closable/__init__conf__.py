"""Static package metadata surfaced by the CLI banner."""

from __future__ import annotations

name = "lib_closable"
title = "Deadline-driven close combinators for grouped resources"
version = "0.1.0"
shell_command = "lib_closable"

_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", name),
    ("title", title),
    ("version", version),
    ("shell_command", shell_command),
)


def info_lines() -> list[str]:
    """Return the aligned ``key = value`` lines of the metadata banner."""

    pad = max(len(label) for label, _ in _FIELDS)
    return [f"    {label.ljust(pad)} = {value}" for label, value in _FIELDS]


__all__ = ["info_lines", "name", "shell_command", "title", "version"]
