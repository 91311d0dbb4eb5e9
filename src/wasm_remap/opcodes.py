"""Opcode table for the supported WebAssembly instruction set.

Covers the MVP, the sign-extension operators, typed ``select`` and the
``0xFC`` prefixed family (saturating truncation, bulk memory, table ops).
Prefixed opcodes are keyed as ``0xFC00 | sub_opcode``.
"""

from __future__ import annotations

from enum import Enum


class Imm(Enum):
    """Shape of the immediates that follow an opcode."""

    NONE = "none"
    BLOCK_TYPE = "blocktype"
    LABEL = "label"
    BR_TABLE = "br_table"
    FUNC = "func"
    CALL_INDIRECT = "call_indirect"
    LOCAL = "local"
    GLOBAL = "global"
    TABLE = "table"
    REF_TYPE = "reftype"
    MEMARG = "memarg"
    MEMORY = "memory"
    I32 = "i32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"
    SELECT_TYPES = "select_types"
    DATA = "data"
    ELEM = "elem"
    MEMORY_INIT = "memory_init"
    MEMORY_COPY = "memory_copy"
    TABLE_INIT = "table_init"
    TABLE_COPY = "table_copy"


OP_BLOCK = 0x02
OP_LOOP = 0x03
OP_IF = 0x04
OP_END = 0x0B
OP_CALL = 0x10
OP_CALL_INDIRECT = 0x11
OP_I32_CONST = 0x41
OP_I64_CONST = 0x42
PREFIX_FC = 0xFC

OPCODES: dict[int, tuple[str, Imm]] = {
    0x00: ("unreachable", Imm.NONE),
    0x01: ("nop", Imm.NONE),
    0x02: ("block", Imm.BLOCK_TYPE),
    0x03: ("loop", Imm.BLOCK_TYPE),
    0x04: ("if", Imm.BLOCK_TYPE),
    0x05: ("else", Imm.NONE),
    0x0B: ("end", Imm.NONE),
    0x0C: ("br", Imm.LABEL),
    0x0D: ("br_if", Imm.LABEL),
    0x0E: ("br_table", Imm.BR_TABLE),
    0x0F: ("return", Imm.NONE),
    0x10: ("call", Imm.FUNC),
    0x11: ("call_indirect", Imm.CALL_INDIRECT),
    0x1A: ("drop", Imm.NONE),
    0x1B: ("select", Imm.NONE),
    0x1C: ("select", Imm.SELECT_TYPES),
    0x20: ("local.get", Imm.LOCAL),
    0x21: ("local.set", Imm.LOCAL),
    0x22: ("local.tee", Imm.LOCAL),
    0x23: ("global.get", Imm.GLOBAL),
    0x24: ("global.set", Imm.GLOBAL),
    0x25: ("table.get", Imm.TABLE),
    0x26: ("table.set", Imm.TABLE),
    0x3F: ("memory.size", Imm.MEMORY),
    0x40: ("memory.grow", Imm.MEMORY),
    0x41: ("i32.const", Imm.I32),
    0x42: ("i64.const", Imm.I64),
    0x43: ("f32.const", Imm.F32),
    0x44: ("f64.const", Imm.F64),
    0xD0: ("ref.null", Imm.REF_TYPE),
    0xD1: ("ref.is_null", Imm.NONE),
    0xD2: ("ref.func", Imm.FUNC),
}

_LOADS = [
    "i32.load", "i64.load", "f32.load", "f64.load",
    "i32.load8_s", "i32.load8_u", "i32.load16_s", "i32.load16_u",
    "i64.load8_s", "i64.load8_u", "i64.load16_s", "i64.load16_u",
    "i64.load32_s", "i64.load32_u",
]  # fmt: skip
_STORES = [
    "i32.store", "i64.store", "f32.store", "f64.store",
    "i32.store8", "i32.store16", "i64.store8", "i64.store16", "i64.store32",
]  # fmt: skip

_INT_CMP = ["eqz", "eq", "ne", "lt_s", "lt_u", "gt_s", "gt_u", "le_s", "le_u", "ge_s", "ge_u"]
_FLOAT_CMP = ["eq", "ne", "lt", "gt", "le", "ge"]
_INT_ARITH = [
    "clz", "ctz", "popcnt", "add", "sub", "mul", "div_s", "div_u", "rem_s", "rem_u",
    "and", "or", "xor", "shl", "shr_s", "shr_u", "rotl", "rotr",
]  # fmt: skip
_FLOAT_ARITH = [
    "abs", "neg", "ceil", "floor", "trunc", "nearest", "sqrt",
    "add", "sub", "mul", "div", "min", "max", "copysign",
]  # fmt: skip
_CONVERSIONS = [
    "i32.wrap_i64", "i32.trunc_f32_s", "i32.trunc_f32_u", "i32.trunc_f64_s", "i32.trunc_f64_u",
    "i64.extend_i32_s", "i64.extend_i32_u", "i64.trunc_f32_s", "i64.trunc_f32_u",
    "i64.trunc_f64_s", "i64.trunc_f64_u", "f32.convert_i32_s", "f32.convert_i32_u",
    "f32.convert_i64_s", "f32.convert_i64_u", "f32.demote_f64", "f64.convert_i32_s",
    "f64.convert_i32_u", "f64.convert_i64_s", "f64.convert_i64_u", "f64.promote_f32",
    "i32.reinterpret_f32", "i64.reinterpret_f64", "f32.reinterpret_i32", "f64.reinterpret_i64",
    "i32.extend8_s", "i32.extend16_s", "i64.extend8_s", "i64.extend16_s", "i64.extend32_s",
]  # fmt: skip


def _fill(start: int, names: list[str], imm: Imm = Imm.NONE) -> None:
    for i, name in enumerate(names):
        OPCODES[start + i] = (name, imm)


_fill(0x28, _LOADS, Imm.MEMARG)
_fill(0x36, _STORES, Imm.MEMARG)
_fill(0x45, [f"i32.{n}" for n in _INT_CMP])
_fill(0x50, [f"i64.{n}" for n in _INT_CMP])
_fill(0x5B, [f"f32.{n}" for n in _FLOAT_CMP])
_fill(0x61, [f"f64.{n}" for n in _FLOAT_CMP])
_fill(0x67, [f"i32.{n}" for n in _INT_ARITH])
_fill(0x79, [f"i64.{n}" for n in _INT_ARITH])
_fill(0x8B, [f"f32.{n}" for n in _FLOAT_ARITH])
_fill(0x99, [f"f64.{n}" for n in _FLOAT_ARITH])
_fill(0xA7, _CONVERSIONS)

# 0xFC prefix family
_fill(
    0xFC00,
    [
        "i32.trunc_sat_f32_s", "i32.trunc_sat_f32_u", "i32.trunc_sat_f64_s", "i32.trunc_sat_f64_u",
        "i64.trunc_sat_f32_s", "i64.trunc_sat_f32_u", "i64.trunc_sat_f64_s", "i64.trunc_sat_f64_u",
    ],
)  # fmt: skip
OPCODES.update(
    {
        0xFC08: ("memory.init", Imm.MEMORY_INIT),
        0xFC09: ("data.drop", Imm.DATA),
        0xFC0A: ("memory.copy", Imm.MEMORY_COPY),
        0xFC0B: ("memory.fill", Imm.MEMORY),
        0xFC0C: ("table.init", Imm.TABLE_INIT),
        0xFC0D: ("elem.drop", Imm.ELEM),
        0xFC0E: ("table.copy", Imm.TABLE_COPY),
        0xFC0F: ("table.grow", Imm.TABLE),
        0xFC10: ("table.size", Imm.TABLE),
        0xFC11: ("table.fill", Imm.TABLE),
    }
)

STORE_OPCODES: frozenset[int] = frozenset(range(0x36, 0x36 + len(_STORES)))
LOAD_OPCODES: frozenset[int] = frozenset(range(0x28, 0x28 + len(_LOADS)))
INT_CONST_OPCODES: frozenset[int] = frozenset({OP_I32_CONST, OP_I64_CONST})


def mnemonic(opcode: int) -> str:
    """Return the text-format mnemonic for *opcode* (``"<0x..>"`` if unknown)."""
    entry = OPCODES.get(opcode)
    return entry[0] if entry else f"<0x{opcode:x}>"
