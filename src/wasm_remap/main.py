"""main.py – Umbrella CLI entry point for wasm-remap.

Registers each single-command module as a flat ``app.command()`` entry so
that ``wasm-remap remap ...`` and ``wasm-remap names ...`` take their
arguments directly.
"""

import importlib

import typer

app = typer.Typer(
    help="Recover function names for stripped WebAssembly binaries.",
    rich_markup_mode="rich",
    no_args_is_help=True,
    epilog="""\
[bold]Typical workflow:[/bold]
  wasm-remap remap app.wasm app.debug.wasm app.named.wasm   Recover names
  wasm-remap names app.named.wasm                           Inspect the result

[dim]Matching defaults can be set in wasm-remap.toml; run 'wasm-remap <cmd> --help' for details.[/dim]""",
)

# (command name, module, help)
_SINGLE_COMMANDS: list[tuple[str, str, str]] = [
    ("remap", "wasm_remap.remap_cli", "Transfer function names from a debug build onto a stripped binary."),
    ("names", "wasm_remap.dump_names", "List function names from a wasm name section."),
]

for _name, _module, _help in _SINGLE_COMMANDS:
    _mod = importlib.import_module(_module)
    _epilog = getattr(_mod.app.info, "epilog", None)
    if not isinstance(_epilog, str):
        _epilog = None
    app.command(name=_name, help=_help, epilog=_epilog)(_mod.main)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
