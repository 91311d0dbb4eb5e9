"""Section framing for wasm modules.

Splits a module into :class:`RawSection` records that remember their exact
byte ranges, so callers can decode individual sections or splice a
replacement section in without re-encoding anything else.
"""

from __future__ import annotations

from dataclasses import dataclass

from wasm_remap.errors import WasmDecodeError
from wasm_remap.leb128 import ByteReader

WASM_MAGIC = b"\x00asm"
WASM_VERSION = b"\x01\x00\x00\x00"
HEADER_SIZE = len(WASM_MAGIC) + len(WASM_VERSION)

SEC_CUSTOM = 0
SEC_TYPE = 1
SEC_IMPORT = 2
SEC_FUNCTION = 3
SEC_TABLE = 4
SEC_MEMORY = 5
SEC_GLOBAL = 6
SEC_EXPORT = 7
SEC_START = 8
SEC_ELEMENT = 9
SEC_CODE = 10
SEC_DATA = 11
SEC_DATA_COUNT = 12
SEC_TAG = 13

SECTION_NAMES: dict[int, str] = {
    SEC_CUSTOM: "custom",
    SEC_TYPE: "type",
    SEC_IMPORT: "import",
    SEC_FUNCTION: "function",
    SEC_TABLE: "table",
    SEC_MEMORY: "memory",
    SEC_GLOBAL: "global",
    SEC_EXPORT: "export",
    SEC_START: "start",
    SEC_ELEMENT: "element",
    SEC_CODE: "code",
    SEC_DATA: "data",
    SEC_DATA_COUNT: "datacount",
    SEC_TAG: "tag",
}

NAME_SECTION = "name"


@dataclass(frozen=True)
class RawSection:
    """Byte layout of one section inside a module buffer."""

    id: int
    start: int  # offset of the section id byte
    content_start: int  # first byte after the size (and, for custom sections, the name)
    end: int  # one past the last payload byte
    name: str | None = None  # custom sections only

    @property
    def kind(self) -> str:
        return SECTION_NAMES[self.id]

    def reader(self, data: bytes) -> ByteReader:
        """Return a reader positioned at the start of this section's content."""
        return ByteReader(data, self.content_start, self.end)


def check_header(data: bytes) -> None:
    """Raise ``WasmDecodeError`` unless *data* starts with a version-1 preamble."""
    if len(data) < HEADER_SIZE:
        raise WasmDecodeError("buffer too small for a wasm module header", 0)
    if data[:4] != WASM_MAGIC:
        raise WasmDecodeError("bad magic number", 0)
    if data[4:8] != WASM_VERSION:
        raise WasmDecodeError(f"unsupported wasm version {data[4:8].hex()}", 4)


def split_sections(data: bytes) -> list[RawSection]:
    """Split *data* into sections in file order.

    Unknown section ids and repeated non-custom sections are rejected.
    """
    check_header(data)
    reader = ByteReader(data, HEADER_SIZE)
    sections: list[RawSection] = []
    seen: set[int] = set()

    while not reader.at_end:
        start = reader.pos
        sec_id = reader.read_byte()
        if sec_id not in SECTION_NAMES:
            raise WasmDecodeError(f"unknown section id {sec_id}", start)
        size = reader.read_u32()
        payload = reader.sub_reader(size)

        name = None
        if sec_id == SEC_CUSTOM:
            name = payload.read_name()
        elif sec_id in seen:
            raise WasmDecodeError(f"duplicate {SECTION_NAMES[sec_id]} section", start)
        seen.add(sec_id)

        sections.append(
            RawSection(id=sec_id, start=start, content_start=payload.pos, end=payload.end, name=name)
        )

    return sections


def find_section(sections: list[RawSection], sec_id: int) -> RawSection | None:
    """Return the first non-custom section with *sec_id*, if present."""
    for section in sections:
        if section.id == sec_id:
            return section
    return None


def find_custom_section(sections: list[RawSection], name: str) -> RawSection | None:
    """Return the first custom section called *name*, if present."""
    for section in sections:
        if section.id == SEC_CUSTOM and section.name == name:
            return section
    return None
