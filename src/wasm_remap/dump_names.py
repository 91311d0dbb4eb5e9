"""List the function names stored in a wasm binary's name section.

Usage: wasm-remap names <binary> [--json]
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from wasm_remap.cli import console, error_exit, json_print, read_binary
from wasm_remap.errors import WasmDecodeError
from wasm_remap.names import read_name_section

app = typer.Typer(help="List function names from a wasm name section.")


@app.command()
def main(
    binary: Path = typer.Argument(..., help="Wasm binary to inspect"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
) -> None:
    """Print the module name and every (index, name) pair of BINARY."""
    data = read_binary(binary, json_mode=json_output)
    try:
        section = read_name_section(data)
    except WasmDecodeError as e:
        error_exit(f"{binary}: {e}", json_mode=json_output)

    if section is None:
        error_exit(f"{binary} has no name section", json_mode=json_output)

    if json_output:
        json_print(
            {
                "module": section.module_name,
                "functions": {str(k): v for k, v in sorted(section.functions.items())},
            }
        )
        return

    title = f"{escape(binary.name)} ({escape(section.module_name)})" if section.module_name else escape(binary.name)
    table = Table(title=title)
    table.add_column("Index", justify="right")
    table.add_column("Name")
    for func_id, name in sorted(section.functions.items()):
        table.add_row(str(func_id), escape(name))
    console.print(table)
