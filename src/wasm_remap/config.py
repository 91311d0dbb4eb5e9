"""Optional project configuration for wasm-remap.

Reads the ``[remap]`` table of ``wasm-remap.toml`` so that a project can pin
its matching options instead of repeating CLI flags::

    [remap]
    ignore_constant_data_section_pointers = true
    require_exact_function_locals = false
    matching_threshold = 0.5
    jobs = 4

Usage::

    from wasm_remap.config import load_config

    options = load_config()                      # search upward from cwd
    options = load_config(Path("ci/remap.toml"))  # explicit file

A missing file during the upward search is not an error: the defaults of
:class:`~wasm_remap.remapper.RemapOptions` apply.
"""

from __future__ import annotations

import dataclasses
import sys
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from wasm_remap.errors import RemapperConfigError
from wasm_remap.remapper import RemapOptions

CONFIG_FILENAME = "wasm-remap.toml"

_OPTION_KEYS = frozenset(f.name for f in dataclasses.fields(RemapOptions))


def _find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (or cwd) to the nearest ``wasm-remap.toml``."""
    candidate = (start or Path.cwd()).resolve()
    while True:
        path = candidate / CONFIG_FILENAME
        if path.is_file():
            return path
        if candidate == candidate.parent:
            return None
        candidate = candidate.parent


def _options_from_table(table: dict[str, Any], source: Path) -> RemapOptions:
    unknown = sorted(set(table) - _OPTION_KEYS)
    if unknown:
        raise KeyError(
            f"Unknown key(s) {unknown} in [remap] of {source}.  "
            f"Valid keys: {sorted(_OPTION_KEYS)}"
        )
    try:
        return RemapOptions(**table)
    except RemapperConfigError as e:
        raise RemapperConfigError(f"{source}: {e}") from e


def load_config(path: Path | None = None, *, search_from: Path | None = None) -> RemapOptions:
    """Load remap options from a TOML file.

    Args:
        path: Explicit config file.  Must exist.
        search_from: Directory to start the upward search from when *path*
            is ``None`` (defaults to the current directory).

    Raises:
        FileNotFoundError: *path* was given but does not exist.
        KeyError: The ``[remap]`` table has unknown keys.
        RemapperConfigError: A value has the wrong type or range, or the
            file is not valid TOML.
    """
    if path is None:
        path = _find_config(search_from)
        if path is None:
            return RemapOptions()
    elif not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise RemapperConfigError(f"{path}: {e}") from e

    table = raw.get("remap", {})
    if not isinstance(table, dict):
        raise RemapperConfigError(f"{path}: [remap] must be a table")
    return _options_from_table(table, path)


def apply_overrides(options: RemapOptions, **overrides: Any) -> RemapOptions:
    """Return *options* with every non-``None`` override applied."""
    changes = {k: v for k, v in overrides.items() if v is not None}
    unknown = sorted(set(changes) - _OPTION_KEYS)
    if unknown:
        raise KeyError(f"Unknown option(s): {unknown}")
    return dataclasses.replace(options, **changes) if changes else options
