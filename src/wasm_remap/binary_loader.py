"""Decode a wasm module into normalized per-function records.

Usage::

    from wasm_remap.binary_loader import decode_module

    info = decode_module(Path("app.wasm").read_bytes())
    for func in info.functions:
        print(func.id, func.name, func.param_types, len(func.instructions))

Only what the matcher needs is decoded: type signatures, imported function
count, function bodies, active data segments and the existing function
names.  Other sections are framed and skipped.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from enum import Enum

from wasm_remap.errors import InvalidOffsetInstruction, MissingSection, WasmDecodeError
from wasm_remap.instructions import Instruction, read_expression
from wasm_remap.leb128 import U32_MAX, ByteReader
from wasm_remap.names import parse_name_section
from wasm_remap.opcodes import OP_I32_CONST
from wasm_remap.sections import (
    NAME_SECTION,
    SEC_CODE,
    SEC_DATA,
    SEC_FUNCTION,
    SEC_IMPORT,
    SEC_TYPE,
    RawSection,
    find_custom_section,
    find_section,
    split_sections,
)

# Engines reject functions with more locals than this; so do we, before
# flattening run-length declarations into memory.
MAX_FUNCTION_LOCALS = 50_000

_FUNC_TYPE_FORM = 0x60

# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class ValueType(Enum):
    """Numeric value types supported in signatures and locals."""

    I32 = 0x7F
    I64 = 0x7E
    F32 = 0x7D
    F64 = 0x7C

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class FunctionType:
    params: tuple[ValueType, ...]
    result: ValueType | None


@dataclass(frozen=True)
class Function:
    """One defined (non-imported) function."""

    id: int  # global function index (imports first)
    name: str | None
    return_type: ValueType | None
    param_types: tuple[ValueType, ...]
    local_types: tuple[ValueType, ...]  # declared locals only, flattened
    instructions: tuple[Instruction, ...] = field(repr=False)


@dataclass(frozen=True)
class DataRegion:
    """Linear-memory range initialised by an active data segment."""

    start: int
    end: int  # start + len(data); containment is inclusive of end
    data: bytes = field(repr=False)

    def contains(self, offset: int) -> bool:
        return self.start <= offset <= self.end


@dataclass(frozen=True)
class ModuleInfo:
    functions: tuple[Function, ...]
    data_regions: tuple[DataRegion, ...]
    import_count: int = 0
    names: dict[int, str] = field(default_factory=dict, compare=False)


# ---------------------------------------------------------------------------
# Section decoders
# ---------------------------------------------------------------------------


def _read_value_type(reader: ByteReader) -> ValueType:
    pos = reader.pos
    code = reader.read_byte()
    try:
        return ValueType(code)
    except ValueError:
        raise WasmDecodeError(f"unsupported value type 0x{code:02x}", pos) from None


def _decode_types(reader: ByteReader) -> list[FunctionType]:
    types: list[FunctionType] = []
    for _ in range(reader.read_u32()):
        pos = reader.pos
        form = reader.read_byte()
        if form != _FUNC_TYPE_FORM:
            raise WasmDecodeError(f"unsupported type form 0x{form:02x}", pos)
        params = tuple(reader.read_vec(lambda: _read_value_type(reader)))
        results = reader.read_vec(lambda: _read_value_type(reader))
        if len(results) > 1:
            raise WasmDecodeError("functions with multiple results are not supported", pos)
        types.append(FunctionType(params, results[0] if results else None))
    return types


def _skip_limits(reader: ByteReader) -> None:
    flags = reader.read_byte()
    read = reader.read_u64 if flags & 0x04 else reader.read_u32
    read()
    if flags & 0x01:
        read()


def _count_function_imports(reader: ByteReader) -> int:
    count = 0
    for _ in range(reader.read_u32()):
        reader.read_name()
        reader.read_name()
        pos = reader.pos
        kind = reader.read_byte()
        if kind == 0x00:  # func
            reader.read_u32()
            count += 1
        elif kind == 0x01:  # table
            reader.read_byte()
            _skip_limits(reader)
        elif kind == 0x02:  # memory
            _skip_limits(reader)
        elif kind == 0x03:  # global
            reader.read_byte()
            reader.read_byte()
        elif kind == 0x04:  # tag
            reader.read_byte()
            reader.read_u32()
        else:
            raise WasmDecodeError(f"unknown import kind 0x{kind:02x}", pos)
    return count


def _read_offset(reader: ByteReader) -> int:
    """Read a data segment offset that must be a single integer constant."""
    expr = read_expression(reader)
    if len(expr) != 2 or not expr[0].is_int_const:
        raise InvalidOffsetInstruction()
    value = expr[0].immediates[0]
    return value & (U32_MAX if expr[0].opcode == OP_I32_CONST else 0xFFFFFFFFFFFFFFFF)


def _decode_data_regions(reader: ByteReader) -> list[DataRegion]:
    regions: list[DataRegion] = []
    for _ in range(reader.read_u32()):
        pos = reader.pos
        flags = reader.read_u32()
        if flags == 1:
            # Passive segment: no load offset at all.
            raise InvalidOffsetInstruction("passive data segment has no offset")
        if flags == 2:
            reader.read_u32()  # memory index
        elif flags != 0:
            raise WasmDecodeError(f"unknown data segment flags {flags}", pos)
        start = _read_offset(reader)
        payload = reader.read_bytes(reader.read_u32())
        regions.append(DataRegion(start=start, end=start + len(payload), data=payload))
    return regions


def _read_locals(reader: ByteReader) -> tuple[ValueType, ...]:
    local_types: list[ValueType] = []
    total = 0
    for _ in range(reader.read_u32()):
        pos = reader.pos
        count = reader.read_u32()
        value_type = _read_value_type(reader)
        total += count
        if total > MAX_FUNCTION_LOCALS:
            raise WasmDecodeError(f"too many locals (more than {MAX_FUNCTION_LOCALS})", pos)
        local_types.extend([value_type] * count)
    return tuple(local_types)


def _decode_code(reader: ByteReader) -> list[tuple[tuple[ValueType, ...], tuple[Instruction, ...]]]:
    bodies = []
    for _ in range(reader.read_u32()):
        body = reader.sub_reader(reader.read_u32())
        local_types = _read_locals(body)
        instructions = tuple(read_expression(body))
        if not body.at_end:
            raise WasmDecodeError("trailing bytes after function body", body.pos)
        bodies.append((local_types, instructions))
    return bodies


def _read_section(data: bytes, section: RawSection, decode):
    """Run *decode* over *section* and require it to consume the whole payload."""
    reader = section.reader(data)
    result = decode(reader)
    if not reader.at_end:
        raise WasmDecodeError(f"trailing bytes in {section.kind} section", reader.pos)
    return result


def _decode_function_names(data: bytes, sections: list[RawSection], strict: bool) -> dict[int, str]:
    raw = find_custom_section(sections, NAME_SECTION)
    if raw is None:
        return {}
    try:
        return parse_name_section(raw.reader(data)).functions
    except WasmDecodeError as e:
        if strict:
            raise
        warnings.warn(f"Ignoring malformed name section: {e}", stacklevel=3)
        return {}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def decode_module(data: bytes, *, strict_names: bool = True) -> ModuleInfo:
    """Decode *data* into a :class:`ModuleInfo`.

    Args:
        data: Raw module bytes.
        strict_names: If False, a malformed existing ``name`` section is
            ignored with a warning instead of failing the decode.

    Raises:
        WasmDecodeError: The buffer is not a well-formed (supported) module.
        InvalidOffsetInstruction: A data segment offset is not a single
            integer constant.
        MissingSection: The type, function or code section is absent.
    """
    sections = split_sections(data)

    data_section = find_section(sections, SEC_DATA)
    data_regions = _read_section(data, data_section, _decode_data_regions) if data_section else []

    type_section = find_section(sections, SEC_TYPE)
    if type_section is None:
        raise MissingSection("type")
    function_section = find_section(sections, SEC_FUNCTION)
    if function_section is None:
        raise MissingSection("function")
    code_section = find_section(sections, SEC_CODE)
    if code_section is None:
        raise MissingSection("code")

    types = _read_section(data, type_section, _decode_types)
    type_refs = _read_section(data, function_section, lambda r: r.read_vec(r.read_u32))
    bodies = _read_section(data, code_section, _decode_code)
    if len(type_refs) != len(bodies):
        raise WasmDecodeError(
            f"function section declares {len(type_refs)} functions "
            f"but code section has {len(bodies)} bodies",
            code_section.start,
        )

    import_section = find_section(sections, SEC_IMPORT)
    import_count = _read_section(data, import_section, _count_function_imports) if import_section else 0
    names = _decode_function_names(data, sections, strict_names)

    functions: list[Function] = []
    for position, (type_ref, (local_types, instructions)) in enumerate(zip(type_refs, bodies)):
        if type_ref >= len(types):
            raise WasmDecodeError(
                f"function {position} uses undefined type {type_ref}", function_section.start
            )
        func_type = types[type_ref]
        func_id = position + import_count
        functions.append(
            Function(
                id=func_id,
                name=names.get(func_id),
                return_type=func_type.result,
                param_types=func_type.params,
                local_types=local_types,
                instructions=instructions,
            )
        )

    return ModuleInfo(
        functions=tuple(functions),
        data_regions=tuple(data_regions),
        import_count=import_count,
        names=names,
    )
