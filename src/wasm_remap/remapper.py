"""remapper.py – Recover function names for a stripped module.

Decodes the stripped input and a reference build that still carries a
``name`` section, picks the best-scoring reference function for every input
function, and writes the recovered names into a copy of the input.

Usage::

    from wasm_remap import Remapper, RemapOptions

    out = Remapper(stripped, reference, RemapOptions(jobs=4)).remap()
    Path("app.named.wasm").write_bytes(out.output)
    for func_id, name in out.names.items():
        print(func_id, name)
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

from wasm_remap.binary_loader import Function, ModuleInfo, decode_module
from wasm_remap.errors import (
    InvalidInputBinary,
    InvalidReferenceBinary,
    NameSectionEncodeError,
    ParseError,
    RemapperConfigError,
    RemapperError,
    WasmDecodeError,
)
from wasm_remap.matcher import DataRegionIndex, Match, MatchOptions, find_matches
from wasm_remap.names import inject_names, read_name_section
from wasm_remap.sections import split_sections

NameMap = dict[int, str]


@dataclass(frozen=True)
class RemapOptions:
    """Validated remap configuration.

    ``matching_threshold`` defaults to 0.0, which keeps every top-ranked
    match.  A positive value discards a function's best match when its
    weight is below the threshold, leaving that function unnamed.
    """

    ignore_constant_data_section_pointers: bool = True
    require_exact_function_locals: bool = True
    matching_threshold: float = 0.0
    jobs: int = 1

    def __post_init__(self) -> None:
        for key in ("ignore_constant_data_section_pointers", "require_exact_function_locals"):
            if not isinstance(getattr(self, key), bool):
                raise RemapperConfigError(f"{key} must be a bool, got {getattr(self, key)!r}")

        threshold = self.matching_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise RemapperConfigError(f"matching_threshold must be a number, got {threshold!r}")
        if math.isnan(threshold) or not 0.0 <= threshold <= 1.0:
            raise RemapperConfigError(
                f"matching_threshold must be between 0.0 and 1.0, got {threshold!r}"
            )
        object.__setattr__(self, "matching_threshold", float(threshold))

        if isinstance(self.jobs, bool) or not isinstance(self.jobs, int) or self.jobs < 1:
            raise RemapperConfigError(f"jobs must be a positive integer, got {self.jobs!r}")

    @property
    def match_options(self) -> MatchOptions:
        return MatchOptions(
            ignore_constant_data_section_pointers=self.ignore_constant_data_section_pointers,
            require_exact_function_locals=self.require_exact_function_locals,
        )


@dataclass
class RemapperOutput:
    output: bytes  # the input module with recovered names in its name section
    names: NameMap  # function index -> recovered name, ascending by index


# ---------------------------------------------------------------------------
# Name selection
# ---------------------------------------------------------------------------


def select_name(matches: list[Match], threshold: float = 0.0) -> str | None:
    """Return the name of the best match, if it has one and clears *threshold*."""
    if not matches:
        return None
    best = matches[0]
    if threshold > 0.0 and not best.weight >= threshold:
        return None
    return best.function.name


def _best_name(
    func: Function,
    reference: ModuleInfo,
    options: RemapOptions,
    regions: DataRegionIndex,
) -> str | None:
    matches = find_matches(func, reference.functions, options.match_options, regions)
    return select_name(matches, options.matching_threshold)


def build_name_map(
    input_info: ModuleInfo,
    reference_info: ModuleInfo,
    options: RemapOptions,
    regions: DataRegionIndex,
) -> NameMap:
    """Pick a reference name for every input function that has a viable match."""
    results: dict[int, str | None] = {}
    if options.jobs > 1 and len(input_info.functions) > 1:
        with ThreadPoolExecutor(max_workers=options.jobs) as executor:
            futures = {
                executor.submit(_best_name, func, reference_info, options, regions): func.id
                for func in input_info.functions
            }
            for fut in as_completed(futures):
                results[futures[fut]] = fut.result()
    else:
        for func in input_info.functions:
            results[func.id] = _best_name(func, reference_info, options, regions)

    return {func_id: name for func_id, name in sorted(results.items()) if name is not None}


# ---------------------------------------------------------------------------
# Remapper
# ---------------------------------------------------------------------------


def _require_buffer(value: Any, what: str) -> bytes:
    if value is None:
        raise RemapperConfigError(f"{what} binary is required")
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise RemapperConfigError(f"{what} binary must be bytes, got {type(value).__name__}")
    return bytes(value)


class Remapper:
    """Transfers function names from *reference* onto *input*."""

    def __init__(
        self,
        input: bytes,
        reference: bytes,
        options: RemapOptions | None = None,
    ) -> None:
        self.input = _require_buffer(input, "input")
        self.reference = _require_buffer(reference, "reference")
        if options is not None and not isinstance(options, RemapOptions):
            raise RemapperConfigError(f"options must be RemapOptions, got {type(options).__name__}")
        self.options = options or RemapOptions()

    def remap(self) -> RemapperOutput:
        """Run the full decode -> match -> inject pipeline.

        Raises:
            InvalidInputBinary / InvalidReferenceBinary: a buffer is not a
                valid module (or the reference's name section is malformed).
            MissingSection / InvalidOffsetInstruction: a module has a shape
                the remapper cannot handle; ``err.role`` names which one.
            NameSectionEncodeError: the output could not be produced.
        """
        for buf, error in (
            (self.input, InvalidInputBinary),
            (self.reference, InvalidReferenceBinary),
        ):
            try:
                split_sections(buf)
            except WasmDecodeError as e:
                raise error(f"{error().args[0]}: {e}") from e

        input_info = self._decode(self.input, "input", InvalidInputBinary, strict_names=False)
        reference_info = self._decode(
            self.reference, "reference", InvalidReferenceBinary, strict_names=True
        )

        regions = DataRegionIndex([*input_info.data_regions, *reference_info.data_regions])
        names = build_name_map(input_info, reference_info, self.options, regions)
        output = inject_names(self.input, names)
        self._check_output(output, names)
        return RemapperOutput(output=output, names=names)

    @staticmethod
    def _decode(
        buf: bytes,
        role: str,
        error: type[RemapperError],
        *,
        strict_names: bool,
    ) -> ModuleInfo:
        try:
            return decode_module(buf, strict_names=strict_names)
        except WasmDecodeError as e:
            raise error(f"{error().args[0]}: {e}") from e
        except ParseError as e:
            e.role = role
            raise

    @staticmethod
    def _check_output(output: bytes, names: NameMap) -> None:
        try:
            section = read_name_section(output)
        except WasmDecodeError as e:
            raise NameSectionEncodeError(f"output module does not re-parse: {e}") from e
        if section is None:
            raise NameSectionEncodeError("output module has no name section")
        lost = {k: v for k, v in names.items() if section.functions.get(k) != v}
        if lost:
            raise NameSectionEncodeError(f"names missing from output name section: {lost}")


def remap(input: bytes, reference: bytes, **options: Any) -> RemapperOutput:
    """Shorthand for ``Remapper(input, reference, RemapOptions(**options)).remap()``."""
    try:
        opts = RemapOptions(**options)
    except TypeError as e:
        raise RemapperConfigError(str(e)) from e
    return Remapper(input, reference, opts).remap()
