"""Cursor over a wasm byte buffer plus LEB128 encoders.

Every read is bounds checked and raises :class:`WasmDecodeError` carrying the
absolute byte offset of the failure, so malformed modules never surface as
``IndexError`` or ``struct.error``.
"""

from __future__ import annotations

import struct
from collections.abc import Callable
from typing import TypeVar

from wasm_remap.errors import WasmDecodeError

T = TypeVar("T")

U32_MAX = 0xFFFFFFFF


class ByteReader:
    """Sequential reader over ``data[pos:end]``."""

    def __init__(self, data: bytes, pos: int = 0, end: int | None = None) -> None:
        self.data = data
        self.pos = pos
        self.end = len(data) if end is None else end
        if not 0 <= self.pos <= self.end <= len(data):
            raise WasmDecodeError("window out of bounds", pos)

    @property
    def at_end(self) -> bool:
        return self.pos >= self.end

    @property
    def remaining(self) -> int:
        return self.end - self.pos

    def sub_reader(self, size: int) -> ByteReader:
        """Return a reader over the next *size* bytes and skip past them."""
        if size > self.remaining:
            raise WasmDecodeError(f"length {size} exceeds remaining {self.remaining} bytes", self.pos)
        sub = ByteReader(self.data, self.pos, self.pos + size)
        self.pos += size
        return sub

    def read_byte(self) -> int:
        if self.pos >= self.end:
            raise WasmDecodeError("unexpected end of data", self.pos)
        b = self.data[self.pos]
        self.pos += 1
        return b

    def read_bytes(self, size: int) -> bytes:
        if size > self.remaining:
            raise WasmDecodeError(f"length {size} exceeds remaining {self.remaining} bytes", self.pos)
        out = bytes(self.data[self.pos : self.pos + size])
        self.pos += size
        return out

    def _read_leb(self, bits: int, signed: bool) -> int:
        start = self.pos
        max_bytes = (bits + 6) // 7
        result = 0
        shift = 0
        for _ in range(max_bytes):
            b = self.read_byte()
            result |= (b & 0x7F) << shift
            shift += 7
            if not b & 0x80:
                if signed and b & 0x40:
                    result -= 1 << shift
                break
        else:
            raise WasmDecodeError(f"LEB128 longer than {max_bytes} bytes", start)

        if signed:
            if not -(1 << (bits - 1)) <= result < (1 << (bits - 1)):
                raise WasmDecodeError(f"signed LEB128 out of range for {bits} bits", start)
        elif result >= 1 << bits:
            raise WasmDecodeError(f"unsigned LEB128 out of range for {bits} bits", start)
        return result

    def read_u32(self) -> int:
        return self._read_leb(32, signed=False)

    def read_s32(self) -> int:
        return self._read_leb(32, signed=True)

    def read_s33(self) -> int:
        return self._read_leb(33, signed=True)

    def read_u64(self) -> int:
        return self._read_leb(64, signed=False)

    def read_s64(self) -> int:
        return self._read_leb(64, signed=True)

    def read_f32_bits(self) -> int:
        (bits,) = struct.unpack("<I", self.read_bytes(4))
        return bits

    def read_f64_bits(self) -> int:
        (bits,) = struct.unpack("<Q", self.read_bytes(8))
        return bits

    def read_name(self) -> str:
        start = self.pos
        raw = self.read_bytes(self.read_u32())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise WasmDecodeError(f"name is not valid UTF-8: {e.reason}", start) from e

    def read_vec(self, read_item: Callable[[], T]) -> list[T]:
        """Read a u32 count followed by that many items."""
        count = self.read_u32()
        # Every item takes at least one byte; reject absurd counts up front.
        if count > self.remaining:
            raise WasmDecodeError(f"vector count {count} exceeds remaining bytes", self.pos)
        return [read_item() for _ in range(count)]


def encode_u32(value: int) -> bytes:
    """Encode *value* as unsigned LEB128 (minimal form)."""
    if not 0 <= value <= U32_MAX:
        raise ValueError(f"value {value} does not fit in u32")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def encode_name(name: str) -> bytes:
    """Encode a length-prefixed UTF-8 name."""
    raw = name.encode("utf-8")
    return encode_u32(len(raw)) + raw
