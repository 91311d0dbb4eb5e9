"""Shared CLI utilities for wasm-remap commands.

Provides the common ``--config`` option, config loading, binary reading and
standardised output / error helpers so every command reports errors and JSON
the same way.

Usage in a command::

    import typer
    from wasm_remap.cli import ConfigOption, error_exit, get_options, json_print

    app = typer.Typer()

    @app.command()
    def main(config: Path | None = ConfigOption) -> None:
        options = get_options(config)
        ...
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from wasm_remap.config import load_config
from wasm_remap.errors import RemapperConfigError
from wasm_remap.remapper import RemapOptions

# Re-usable Typer option for --config
ConfigOption: Path | None = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to a wasm-remap.toml (default: search upward from the current directory).",
)

# Exit code for internal (non-input) failures.
EXIT_INTERNAL = 2

console = Console()
_err_console = Console(stderr=True)


def get_options(config: Path | None = None, *, json_mode: bool = False) -> RemapOptions:
    """Load remap options from *config* (or the discovered file), exiting on error."""
    try:
        return load_config(config)
    except (OSError, KeyError, RemapperConfigError) as e:
        error_exit(f"invalid configuration: {e}", json_mode=json_mode)


def read_binary(path: Path, *, json_mode: bool = False) -> bytes:
    """Read *path* as bytes, exiting with a readable error if it cannot be read."""
    try:
        return path.read_bytes()
    except OSError as e:
        error_exit(f"unable to read {path}: {e.strerror or e}", json_mode=json_mode)


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(f"[red bold]error:[/red bold] {escape(msg)}", highlight=False)
    raise typer.Exit(code=code)


def warn(msg: str) -> None:
    """Print a warning line to stderr."""
    _err_console.print(f"[yellow bold]warning:[/yellow bold] {escape(msg)}", highlight=False)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))
