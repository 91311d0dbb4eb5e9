"""Tests for the bounds-checked byte reader and LEB128 helpers."""

import pytest

from wasm_remap.errors import WasmDecodeError
from wasm_remap.leb128 import U32_MAX, ByteReader, encode_name, encode_u32

# ---------------------------------------------------------------------------
# Unsigned / signed LEB128
# ---------------------------------------------------------------------------


class TestReadLeb:
    def test_u32_multi_byte(self) -> None:
        assert ByteReader(b"\xe5\x8e\x26").read_u32() == 624485

    def test_u32_max(self) -> None:
        assert ByteReader(b"\xff\xff\xff\xff\x0f").read_u32() == U32_MAX

    def test_u32_out_of_range(self) -> None:
        with pytest.raises(WasmDecodeError, match="out of range"):
            ByteReader(b"\xff\xff\xff\xff\x1f").read_u32()

    def test_u32_too_long(self) -> None:
        with pytest.raises(WasmDecodeError, match="longer than 5 bytes"):
            ByteReader(b"\x80\x80\x80\x80\x80\x00").read_u32()

    def test_truncated(self) -> None:
        with pytest.raises(WasmDecodeError, match="unexpected end of data"):
            ByteReader(b"\x80").read_u32()

    def test_s32_negative(self) -> None:
        assert ByteReader(b"\x7f").read_s32() == -1
        assert ByteReader(b"\xc0\xbb\x78").read_s32() == -123456

    def test_s32_positive_with_sign_bit_padding(self) -> None:
        # 64 needs two bytes because bit 6 of the first byte is the sign.
        assert ByteReader(b"\xc0\x00").read_s32() == 64

    def test_s33_empty_block_type(self) -> None:
        assert ByteReader(b"\x40").read_s33() == -64

    def test_s64_min(self) -> None:
        data = b"\x80" * 9 + b"\x7f"
        assert ByteReader(data).read_s64() == -(1 << 63)

    def test_reader_advances(self) -> None:
        reader = ByteReader(b"\x01\xe5\x8e\x26\x02")
        assert reader.read_u32() == 1
        assert reader.read_u32() == 624485
        assert reader.read_u32() == 2
        assert reader.at_end


# ---------------------------------------------------------------------------
# Windows, names and vectors
# ---------------------------------------------------------------------------


class TestByteReader:
    def test_error_carries_offset(self) -> None:
        reader = ByteReader(b"\x01", 1)
        with pytest.raises(WasmDecodeError) as exc_info:
            reader.read_byte()
        assert exc_info.value.offset == 1
        assert "(at byte 0x1)" in str(exc_info.value)

    def test_window_out_of_bounds(self) -> None:
        with pytest.raises(WasmDecodeError):
            ByteReader(b"\x00\x00", 0, 5)

    def test_sub_reader(self) -> None:
        reader = ByteReader(b"\x01\x02\x03\x04")
        sub = reader.sub_reader(2)
        assert sub.read_bytes(2) == b"\x01\x02"
        assert sub.at_end
        assert reader.pos == 2
        assert reader.remaining == 2

    def test_sub_reader_past_end(self) -> None:
        with pytest.raises(WasmDecodeError, match="exceeds remaining"):
            ByteReader(b"\x01\x02").sub_reader(3)

    def test_sub_reader_cannot_escape_window(self) -> None:
        sub = ByteReader(b"\x01\x02\x03").sub_reader(1)
        sub.read_byte()
        with pytest.raises(WasmDecodeError):
            sub.read_byte()

    def test_read_name(self) -> None:
        assert ByteReader(b"\x02\xc3\xa9").read_name() == "é"

    def test_read_name_invalid_utf8(self) -> None:
        with pytest.raises(WasmDecodeError, match="UTF-8"):
            ByteReader(b"\x02\xff\xfe").read_name()

    def test_read_vec(self) -> None:
        reader = ByteReader(b"\x03\x01\x02\x03")
        assert reader.read_vec(reader.read_byte) == [1, 2, 3]

    def test_read_vec_absurd_count(self) -> None:
        reader = ByteReader(b"\x05\x01")
        with pytest.raises(WasmDecodeError, match="vector count"):
            reader.read_vec(reader.read_byte)

    def test_float_bits(self) -> None:
        assert ByteReader(b"\x00\x00\x80\x3f").read_f32_bits() == 0x3F800000
        assert ByteReader(b"\x00" * 6 + b"\xf0\x3f").read_f64_bits() == 0x3FF0000000000000


# ---------------------------------------------------------------------------
# Encoders
# ---------------------------------------------------------------------------


class TestEncode:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, b"\x00"),
            (127, b"\x7f"),
            (128, b"\x80\x01"),
            (624485, b"\xe5\x8e\x26"),
            (U32_MAX, b"\xff\xff\xff\xff\x0f"),
        ],
    )
    def test_encode_u32(self, value: int, expected: bytes) -> None:
        assert encode_u32(value) == expected

    @pytest.mark.parametrize("value", [-1, U32_MAX + 1])
    def test_encode_u32_out_of_range(self, value: int) -> None:
        with pytest.raises(ValueError):
            encode_u32(value)

    def test_encode_name(self) -> None:
        assert encode_name("ab") == b"\x02ab"
        assert encode_name("é") == b"\x02\xc3\xa9"
        assert encode_name("") == b"\x00"
