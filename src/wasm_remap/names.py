"""Parsing, building and injecting the custom ``name`` section.

The injector works on raw bytes: every section other than ``name`` is copied
through verbatim, so the output differs from the input only in its name
metadata.
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field

from wasm_remap.errors import NameSectionEncodeError, WasmDecodeError
from wasm_remap.leb128 import U32_MAX, ByteReader, encode_name, encode_u32
from wasm_remap.sections import (
    HEADER_SIZE,
    NAME_SECTION,
    SEC_CUSTOM,
    find_custom_section,
    split_sections,
)

SUBSEC_MODULE = 0
SUBSEC_FUNCTIONS = 1


@dataclass
class NameSection:
    """Decoded contents of a ``name`` custom section.

    Subsections other than module and function names (locals, labels,
    globals, ...) are kept as raw payload bytes keyed by subsection id.
    """

    module_name: str | None = None
    functions: dict[int, str] = field(default_factory=dict)
    other_subsections: list[tuple[int, bytes]] = field(default_factory=list)


def _read_name_map(reader: ByteReader) -> dict[int, str]:
    names: dict[int, str] = {}
    for _ in range(reader.read_u32()):
        index = reader.read_u32()
        names[index] = reader.read_name()
    return names


def parse_name_section(reader: ByteReader) -> NameSection:
    """Decode the content of a ``name`` section (after the section name)."""
    section = NameSection()
    seen: set[int] = set()
    while not reader.at_end:
        start = reader.pos
        sub_id = reader.read_byte()
        if sub_id in seen:
            raise WasmDecodeError(f"duplicate name subsection {sub_id}", start)
        seen.add(sub_id)
        sub = reader.sub_reader(reader.read_u32())

        if sub_id == SUBSEC_MODULE:
            section.module_name = sub.read_name()
        elif sub_id == SUBSEC_FUNCTIONS:
            section.functions = _read_name_map(sub)
        else:
            section.other_subsections.append((sub_id, sub.read_bytes(sub.remaining)))
            continue

        if not sub.at_end:
            raise WasmDecodeError(f"trailing bytes in name subsection {sub_id}", sub.pos)
    return section


def read_name_section(module: bytes) -> NameSection | None:
    """Return the decoded ``name`` section of *module*, or ``None`` if it has none."""
    raw = find_custom_section(split_sections(module), NAME_SECTION)
    if raw is None:
        return None
    return parse_name_section(raw.reader(module))


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_name_map(names: Mapping[int, str]) -> bytes:
    """Encode *names* as a wasm name map (entries sorted by index)."""
    out = bytearray(encode_u32(len(names)))
    for index in sorted(names):
        name = names[index]
        if not isinstance(name, str):
            raise TypeError(f"name for function {index} is {type(name).__name__}, not str")
        if not 0 <= index <= U32_MAX:
            raise ValueError(f"function index {index} does not fit in u32")
        out += encode_u32(index)
        out += encode_name(name)
    return bytes(out)


def _subsection(sub_id: int, payload: bytes) -> bytes:
    return bytes([sub_id]) + encode_u32(len(payload)) + payload


def build_name_section(section: NameSection) -> bytes:
    """Serialize *section* as a complete custom section (id, size, name, subsections).

    Raises:
        NameSectionEncodeError: if any entry cannot be encoded.
    """
    try:
        subsections: list[tuple[int, bytes]] = []
        if section.module_name is not None:
            subsections.append((SUBSEC_MODULE, encode_name(section.module_name)))
        subsections.append((SUBSEC_FUNCTIONS, encode_name_map(section.functions)))
        subsections.extend(section.other_subsections)
        subsections.sort(key=lambda item: item[0])

        content = encode_name(NAME_SECTION) + b"".join(
            _subsection(sub_id, payload) for sub_id, payload in subsections
        )
        return bytes([SEC_CUSTOM]) + encode_u32(len(content)) + content
    except (TypeError, ValueError, UnicodeEncodeError) as e:
        raise NameSectionEncodeError(f"unable to build name section: {e}") from e


def inject_names(module: bytes, names: Mapping[int, str]) -> bytes:
    """Return a copy of *module* whose ``name`` section carries *names*.

    An existing name section is replaced in place: its function names are
    kept unless *names* overrides them, and its other subsections are
    preserved.  Extra ``name`` sections are dropped.  Without an existing
    section, a new one is appended at the end of the module.

    Raises:
        NameSectionEncodeError: if the module cannot be re-framed or the
            names cannot be encoded.
    """
    try:
        sections = split_sections(module)
    except WasmDecodeError as e:
        raise NameSectionEncodeError(f"unable to re-frame module: {e}") from e

    existing = find_custom_section(sections, NAME_SECTION)
    if existing is None:
        return bytes(module) + build_name_section(NameSection(functions=dict(names)))

    try:
        merged = parse_name_section(existing.reader(module))
    except WasmDecodeError as e:
        warnings.warn(f"Discarding malformed name section: {e}", stacklevel=2)
        merged = NameSection()
    merged.functions.update(names)
    replacement = build_name_section(merged)

    out = bytearray(module[:HEADER_SIZE])
    for section in sections:
        if section.id == SEC_CUSTOM and section.name == NAME_SECTION:
            if section is existing:
                out += replacement
            continue
        out += module[section.start : section.end]
    return bytes(out)
