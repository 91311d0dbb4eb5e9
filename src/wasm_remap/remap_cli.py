"""Recover function names for a stripped wasm binary from a debug build.

Usage:
    wasm-remap remap app.wasm app.debug.wasm app.named.wasm
    wasm-remap remap app.wasm app.debug.wasm out.wasm --threshold 0.5 --json
"""

from __future__ import annotations

import warnings
from pathlib import Path

import typer
from rich.markup import escape

from wasm_remap.cli import (
    EXIT_INTERNAL,
    ConfigOption,
    console,
    error_exit,
    get_options,
    json_print,
    read_binary,
    warn,
)
from wasm_remap.config import apply_overrides
from wasm_remap.errors import NameSectionEncodeError, RemapperConfigError, RemapperError
from wasm_remap.remapper import Remapper
from wasm_remap.utils import atomic_write_bytes

_EPILOG = """\
[bold]Examples:[/bold]

wasm-remap remap app.wasm app.debug.wasm out.wasm            Default matching

wasm-remap remap app.wasm app.debug.wasm out.wasm -T 0.8     Drop matches below 80%

wasm-remap remap app.wasm app.debug.wasm out.wasm -j 8       Score on 8 threads

wasm-remap remap app.wasm app.debug.wasm out.wasm --json     Machine-readable output

[bold]How it works:[/bold]

Every function of the stripped INPUT is compared with every function of the
REFERENCE that has the same signature (and, by default, the same locals).
Instructions are compared position by position; call targets and constants
pointing into static data are allowed to differ.  The best-scoring reference
name is written into OUTPUT's name section.

[dim]Defaults can be pinned in a wasm-remap.toml [remap] table.[/dim]"""

app = typer.Typer(
    help="Transfer function names from a debug build onto a stripped wasm binary.",
    rich_markup_mode="rich",
    epilog=_EPILOG,
)


@app.command()
def main(
    input_path: Path = typer.Argument(..., help="Stripped wasm binary to name"),
    reference_path: Path = typer.Argument(..., help="Wasm binary that still has debug names"),
    output_path: Path = typer.Argument(..., help="Where to write the renamed binary"),
    threshold: float | None = typer.Option(
        None, "--threshold", "-T", help="Minimum weight (0.0-1.0) for a match to be used"
    ),
    ignore_data_pointers: bool | None = typer.Option(
        None,
        "--ignore-data-pointers/--exact-data-pointers",
        help="Treat constants and store offsets into static data as equal",
    ),
    require_exact_locals: bool | None = typer.Option(
        None,
        "--require-exact-locals/--allow-different-locals",
        help="Only match functions whose declared locals are identical",
    ),
    jobs: int | None = typer.Option(None, "--jobs", "-j", help="Worker threads for matching"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    config: Path | None = ConfigOption,
) -> None:
    """Write OUTPUT as INPUT plus the names recovered from REFERENCE.

    Options given on the command line override the ``[remap]`` table of the
    discovered (or ``--config``) wasm-remap.toml, which in turn overrides the
    built-in defaults.
    """
    options = get_options(config, json_mode=json_output)
    try:
        options = apply_overrides(
            options,
            matching_threshold=threshold,
            ignore_constant_data_section_pointers=ignore_data_pointers,
            require_exact_function_locals=require_exact_locals,
            jobs=jobs,
        )
    except (KeyError, RemapperConfigError) as e:
        error_exit(str(e), json_mode=json_output)

    input_bytes = read_binary(input_path, json_mode=json_output)
    reference_bytes = read_binary(reference_path, json_mode=json_output)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            result = Remapper(input_bytes, reference_bytes, options).remap()
        except NameSectionEncodeError as e:
            error_exit(f"internal error: {e}", json_mode=json_output, code=EXIT_INTERNAL)
        except RemapperError as e:
            error_exit(str(e), json_mode=json_output)

    if not json_output:
        for w in caught:
            warn(str(w.message))

    try:
        atomic_write_bytes(output_path, result.output)
    except OSError as e:
        error_exit(f"unable to write {output_path}: {e.strerror or e}", json_mode=json_output)

    if json_output:
        json_print(
            {
                "input": str(input_path),
                "reference": str(reference_path),
                "output": str(output_path),
                "remapped": len(result.names),
                "names": {str(func_id): name for func_id, name in result.names.items()},
                "warnings": [str(w.message) for w in caught],
            }
        )
        return

    for func_id, name in result.names.items():
        console.print(f'Remapped function {func_id} to "{escape(name)}"', highlight=False)
    console.print(
        f"[bold]{len(result.names)}[/bold] function(s) named, written to {escape(str(output_path))}",
        highlight=False,
    )


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
