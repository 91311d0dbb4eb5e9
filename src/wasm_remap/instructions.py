"""Instruction value type and bytecode decoder.

Instructions are immutable, hashable values.  Two instructions are equal
exactly when their opcode and every immediate are equal, which is the
baseline equivalence used by the matcher.  Float constants keep their raw
IEEE-754 bit pattern so that identical encodings (NaN payloads included)
compare equal.
"""

from __future__ import annotations

import struct
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from wasm_remap.errors import WasmDecodeError
from wasm_remap.leb128 import ByteReader
from wasm_remap.opcodes import (
    INT_CONST_OPCODES,
    LOAD_OPCODES,
    OP_BLOCK,
    OP_CALL,
    OP_CALL_INDIRECT,
    OP_END,
    OP_IF,
    OP_LOOP,
    OPCODES,
    PREFIX_FC,
    STORE_OPCODES,
    Imm,
    mnemonic,
)


@dataclass(frozen=True)
class Instruction:
    """A single decoded instruction."""

    opcode: int
    immediates: tuple[Any, ...] = ()

    @property
    def mnemonic(self) -> str:
        return mnemonic(self.opcode)

    @property
    def is_store(self) -> bool:
        return self.opcode in STORE_OPCODES

    @property
    def is_load(self) -> bool:
        return self.opcode in LOAD_OPCODES

    @property
    def is_int_const(self) -> bool:
        return self.opcode in INT_CONST_OPCODES

    @property
    def is_call(self) -> bool:
        return self.opcode == OP_CALL

    @property
    def is_call_indirect(self) -> bool:
        return self.opcode == OP_CALL_INDIRECT

    @property
    def memarg_offset(self) -> int | None:
        """Static offset of a load/store, ``None`` for other instructions."""
        if self.is_store or self.is_load:
            return self.immediates[1]
        return None

    @property
    def const_value(self) -> int | None:
        """Signed value of an ``i32.const`` / ``i64.const``."""
        if self.is_int_const:
            return self.immediates[0]
        return None

    def __str__(self) -> str:
        if not self.immediates:
            return self.mnemonic
        if self.opcode == 0x43:
            (value,) = struct.unpack("<f", struct.pack("<I", self.immediates[0]))
            return f"{self.mnemonic} {value!r}"
        if self.opcode == 0x44:
            (value,) = struct.unpack("<d", struct.pack("<Q", self.immediates[0]))
            return f"{self.mnemonic} {value!r}"
        if self.is_store or self.is_load:
            align, offset = self.immediates
            return f"{self.mnemonic} offset={offset} align={1 << align}"
        return " ".join([self.mnemonic, *(str(i) for i in self.immediates)])


# ---------------------------------------------------------------------------
# Immediate readers
# ---------------------------------------------------------------------------


def _two_u32(r: ByteReader) -> tuple[int, int]:
    return (r.read_u32(), r.read_u32())


_IMMEDIATE_READERS: dict[Imm, Callable[[ByteReader], tuple[Any, ...]]] = {
    Imm.NONE: lambda r: (),
    Imm.BLOCK_TYPE: lambda r: (r.read_s33(),),
    Imm.LABEL: lambda r: (r.read_u32(),),
    Imm.BR_TABLE: lambda r: (tuple(r.read_vec(r.read_u32)), r.read_u32()),
    Imm.FUNC: lambda r: (r.read_u32(),),
    Imm.CALL_INDIRECT: _two_u32,
    Imm.LOCAL: lambda r: (r.read_u32(),),
    Imm.GLOBAL: lambda r: (r.read_u32(),),
    Imm.TABLE: lambda r: (r.read_u32(),),
    Imm.REF_TYPE: lambda r: (r.read_byte(),),
    Imm.MEMARG: _two_u32,
    Imm.MEMORY: lambda r: (r.read_u32(),),
    Imm.I32: lambda r: (r.read_s32(),),
    Imm.I64: lambda r: (r.read_s64(),),
    Imm.F32: lambda r: (r.read_f32_bits(),),
    Imm.F64: lambda r: (r.read_f64_bits(),),
    Imm.SELECT_TYPES: lambda r: (tuple(r.read_vec(r.read_byte)),),
    Imm.DATA: lambda r: (r.read_u32(),),
    Imm.ELEM: lambda r: (r.read_u32(),),
    Imm.MEMORY_INIT: _two_u32,
    Imm.MEMORY_COPY: _two_u32,
    Imm.TABLE_INIT: _two_u32,
    Imm.TABLE_COPY: _two_u32,
}


def read_instruction(reader: ByteReader) -> Instruction:
    """Decode one instruction at the reader's position."""
    start = reader.pos
    opcode = reader.read_byte()
    if opcode == PREFIX_FC:
        opcode = (PREFIX_FC << 8) | reader.read_u32()
    entry = OPCODES.get(opcode)
    if entry is None:
        raise WasmDecodeError(f"unsupported opcode 0x{opcode:x}", start)
    _, imm = entry
    return Instruction(opcode, _IMMEDIATE_READERS[imm](reader))


def read_expression(reader: ByteReader) -> list[Instruction]:
    """Decode instructions up to and including the ``end`` closing the expression."""
    instructions: list[Instruction] = []
    depth = 0
    while True:
        insn = read_instruction(reader)
        instructions.append(insn)
        if insn.opcode in (OP_BLOCK, OP_LOOP, OP_IF):
            depth += 1
        elif insn.opcode == OP_END:
            if depth == 0:
                return instructions
            depth -= 1


def decode_bytecode(code: bytes) -> list[Instruction]:
    """Decode a complete expression from *code*; trailing bytes are an error."""
    reader = ByteReader(code)
    instructions = read_expression(reader)
    if not reader.at_end:
        raise WasmDecodeError("trailing bytes after end of expression", reader.pos)
    return instructions
