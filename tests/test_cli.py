"""Tests for shared CLI helpers, the umbrella app and atomic writes."""

import json
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner
from wasm_builder import square_modules

from wasm_remap import dump_names, remap_cli
from wasm_remap.cli import error_exit, get_options, json_print, read_binary, warn
from wasm_remap.main import app
from wasm_remap.remapper import RemapOptions
from wasm_remap.utils import atomic_write_bytes

runner = CliRunner()

# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


class TestErrorExit:
    def test_text(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("bad [remap] table")
        assert exc_info.value.exit_code == 1
        err = capsys.readouterr().err
        assert "error:" in err
        # markup in messages is printed literally
        assert "[remap]" in err

    def test_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("boom", json_mode=True, code=2)
        assert exc_info.value.exit_code == 2
        assert json.loads(capsys.readouterr().out) == {"error": "boom"}

    def test_warn(self, capsys: pytest.CaptureFixture[str]) -> None:
        warn("careful")
        err = capsys.readouterr().err
        assert "warning:" in err
        assert "careful" in err

    def test_json_print(self, capsys: pytest.CaptureFixture[str]) -> None:
        json_print({"a": [1, 2]})
        assert json.loads(capsys.readouterr().out) == {"a": [1, 2]}


class TestLoaders:
    def test_get_options_explicit(self, tmp_path: Path) -> None:
        cfg = tmp_path / "remap.toml"
        cfg.write_text("[remap]\njobs = 3\n")
        assert get_options(cfg) == RemapOptions(jobs=3)

    def test_get_options_invalid(self, tmp_path: Path) -> None:
        cfg = tmp_path / "remap.toml"
        cfg.write_text("[remap]\njobs = 0\n")
        with pytest.raises(typer.Exit):
            get_options(cfg)

    def test_read_binary(self, tmp_path: Path) -> None:
        path = tmp_path / "a.wasm"
        path.write_bytes(b"\x00asm")
        assert read_binary(path) == b"\x00asm"

    def test_read_binary_missing(self, tmp_path: Path) -> None:
        with pytest.raises(typer.Exit):
            read_binary(tmp_path / "missing.wasm")


# ---------------------------------------------------------------------------
# atomic_write_bytes()
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_and_replaces(self, tmp_path: Path) -> None:
        target = tmp_path / "out.wasm"
        atomic_write_bytes(target, b"first")
        atomic_write_bytes(target, b"second")
        assert target.read_bytes() == b"second"
        assert not (tmp_path / "out.wasm.tmp").exists()

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            atomic_write_bytes(tmp_path / "no" / "such" / "out.wasm", b"x")


# ---------------------------------------------------------------------------
# Umbrella app
# ---------------------------------------------------------------------------


class TestMainApp:
    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "remap" in result.output
        assert "names" in result.output

    def test_remap_then_names(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        stripped, reference = square_modules()
        (tmp_path / "app.wasm").write_bytes(stripped)
        (tmp_path / "app.debug.wasm").write_bytes(reference)

        result = runner.invoke(app, ["remap", "app.wasm", "app.debug.wasm", "out.wasm"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["names", "out.wasm", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["functions"] == {"0": "square", "1": "squareTen"}

    def test_standalone_apps_parse_like_subcommands(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        stripped, reference = square_modules()
        (tmp_path / "app.wasm").write_bytes(stripped)
        (tmp_path / "app.debug.wasm").write_bytes(reference)
        args = ["app.wasm", "app.debug.wasm", "out.wasm", "-T", "0.5", "--json"]

        standalone = runner.invoke(remap_cli.app, args)
        umbrella = runner.invoke(app, ["remap", *args])
        assert standalone.exit_code == 0, standalone.output
        assert umbrella.exit_code == 0, umbrella.output
        assert json.loads(standalone.output) == json.loads(umbrella.output)

        standalone = runner.invoke(dump_names.app, ["out.wasm", "--json"])
        umbrella = runner.invoke(app, ["names", "out.wasm", "--json"])
        assert standalone.exit_code == 0, standalone.output
        assert standalone.output == umbrella.output
