"""Tests for wasm-remap.toml loading and CLI override merging."""

from pathlib import Path

import pytest

from wasm_remap.config import CONFIG_FILENAME, _find_config, apply_overrides, load_config
from wasm_remap.errors import RemapperConfigError
from wasm_remap.remapper import RemapOptions

# ---------------------------------------------------------------------------
# Helper: create a temp wasm-remap.toml and return its directory
# ---------------------------------------------------------------------------


def _make_project(tmp_path: Path, toml_content: str) -> Path:
    (tmp_path / CONFIG_FILENAME).write_text(toml_content)
    return tmp_path


# ---------------------------------------------------------------------------
# _find_config()
# ---------------------------------------------------------------------------


class TestFindConfig:
    def test_in_start_dir(self, tmp_path: Path) -> None:
        _make_project(tmp_path, "[remap]\n")
        assert _find_config(tmp_path) == (tmp_path / CONFIG_FILENAME).resolve()

    def test_walks_upward(self, tmp_path: Path) -> None:
        _make_project(tmp_path, "[remap]\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert _find_config(nested) == (tmp_path / CONFIG_FILENAME).resolve()

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _make_project(tmp_path, "[remap]\n")
        monkeypatch.chdir(tmp_path)
        assert _find_config() == (tmp_path / CONFIG_FILENAME).resolve()


# ---------------------------------------------------------------------------
# load_config()
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_full_table(self, tmp_path: Path) -> None:
        root = _make_project(
            tmp_path,
            """\
[remap]
ignore_constant_data_section_pointers = false
require_exact_function_locals = false
matching_threshold = 0.5
jobs = 4
""",
        )
        options = load_config(root / CONFIG_FILENAME)
        assert options == RemapOptions(
            ignore_constant_data_section_pointers=False,
            require_exact_function_locals=False,
            matching_threshold=0.5,
            jobs=4,
        )

    def test_partial_table_keeps_defaults(self, tmp_path: Path) -> None:
        root = _make_project(tmp_path, "[remap]\njobs = 2\n")
        options = load_config(search_from=root)
        assert options.jobs == 2
        assert options.require_exact_function_locals is True

    def test_integer_threshold(self, tmp_path: Path) -> None:
        root = _make_project(tmp_path, "[remap]\nmatching_threshold = 1\n")
        assert load_config(root / CONFIG_FILENAME).matching_threshold == 1.0

    def test_no_remap_table(self, tmp_path: Path) -> None:
        root = _make_project(tmp_path, "[other]\nkey = 1\n")
        assert load_config(root / CONFIG_FILENAME) == RemapOptions()

    def test_nothing_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("wasm_remap.config._find_config", lambda start=None: None)
        assert load_config(search_from=tmp_path) == RemapOptions()

    def test_explicit_path_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")

    def test_unknown_key(self, tmp_path: Path) -> None:
        root = _make_project(tmp_path, "[remap]\nfuzzy = true\n")
        with pytest.raises(KeyError, match="fuzzy"):
            load_config(root / CONFIG_FILENAME)

    def test_bad_value_names_file(self, tmp_path: Path) -> None:
        root = _make_project(tmp_path, "[remap]\nmatching_threshold = 2.0\n")
        with pytest.raises(RemapperConfigError, match=CONFIG_FILENAME):
            load_config(root / CONFIG_FILENAME)

    def test_wrong_type(self, tmp_path: Path) -> None:
        root = _make_project(tmp_path, '[remap]\njobs = "many"\n')
        with pytest.raises(RemapperConfigError, match="jobs"):
            load_config(root / CONFIG_FILENAME)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        root = _make_project(tmp_path, "[remap\n")
        with pytest.raises(RemapperConfigError):
            load_config(root / CONFIG_FILENAME)

    def test_remap_not_a_table(self, tmp_path: Path) -> None:
        root = _make_project(tmp_path, "remap = 3\n")
        with pytest.raises(RemapperConfigError, match="must be a table"):
            load_config(root / CONFIG_FILENAME)


# ---------------------------------------------------------------------------
# apply_overrides()
# ---------------------------------------------------------------------------


class TestApplyOverrides:
    def test_none_is_ignored(self) -> None:
        base = RemapOptions(jobs=3)
        assert apply_overrides(base, jobs=None, matching_threshold=None) is base

    def test_values_replace(self) -> None:
        base = RemapOptions(jobs=3, matching_threshold=0.2)
        result = apply_overrides(base, matching_threshold=0.9, require_exact_function_locals=False)
        assert result == RemapOptions(
            jobs=3, matching_threshold=0.9, require_exact_function_locals=False
        )

    def test_false_is_applied(self) -> None:
        result = apply_overrides(RemapOptions(), ignore_constant_data_section_pointers=False)
        assert result.ignore_constant_data_section_pointers is False

    def test_invalid_value(self) -> None:
        with pytest.raises(RemapperConfigError):
            apply_overrides(RemapOptions(), matching_threshold=-1.0)

    def test_unknown_key(self) -> None:
        with pytest.raises(KeyError):
            apply_overrides(RemapOptions(), fuzzy=True)
