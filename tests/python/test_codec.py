# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tensor Wire Codec Tests

Validates:
- Fixed-width packing at the declared width, little-endian
- Range checks for integer packing
- BYTES record framing and parsing
- Buffer size validation and unsigned widening on decode
- Structured contents conversion
"""

import pytest
import numpy as np

from tensorwire.core import Datatype, NativeKind, codec
from tensorwire.errors import DatatypeMismatchError, TruncatedStringError
from tensorwire.serving.messages import InferTensorContents


HELLO_WORLD = b"\x05\x00\x00\x00hello\x05\x00\x00\x00world"


class TestPackIntegers:
    """Tests for integer packing."""

    def test_int8_one_byte_per_element(self):
        """Test INT8 packs one byte per element."""
        assert codec.pack_integers([1, -2, 127], Datatype.INT8) == b"\x01\xfe\x7f"

    def test_int16_little_endian(self):
        """Test INT16 packs two little-endian bytes."""
        assert codec.pack_integers([1, -1], Datatype.INT16) == b"\x01\x00\xff\xff"

    def test_int32_little_endian(self):
        """Test INT32 byte order."""
        assert codec.pack_integers([0x01020304], Datatype.INT32) == b"\x04\x03\x02\x01"

    def test_out_of_range(self):
        """Test values that do not fit the declared width are rejected."""
        with pytest.raises(DatatypeMismatchError, match="out of range for INT8"):
            codec.pack_integers([128], Datatype.INT8)
        with pytest.raises(DatatypeMismatchError):
            codec.pack_integers([-1], Datatype.UINT16)

    def test_uint64_full_range(self):
        """Test UINT64 accepts its maximum and the matching int64 pattern."""
        assert codec.pack_integers([2**64 - 1], Datatype.UINT64) == b"\xff" * 8
        assert codec.pack_integers([-1], Datatype.UINT64) == b"\xff" * 8

    def test_rejects_floats(self):
        """Test float arrays are not silently truncated."""
        with pytest.raises(DatatypeMismatchError):
            codec.pack_integers(np.array([1.5]), Datatype.INT32)

    def test_empty(self):
        """Test empty input packs to no bytes."""
        assert codec.pack_integers([], Datatype.INT32) == b""


class TestPackFloats:
    """Tests for float packing."""

    def test_fp32(self):
        """Test FP32 packs IEEE single precision little-endian."""
        assert codec.pack_floats([1.0], Datatype.FP32) == b"\x00\x00\x80\x3f"

    def test_fp64(self):
        """Test FP64 packs IEEE double precision little-endian."""
        assert codec.pack_floats([1.0], Datatype.FP64) == b"\x00" * 6 + b"\xf0\x3f"

    def test_fp16(self):
        """Test FP16 packs 16-bit patterns."""
        assert codec.pack_floats([1.0, -2.0], Datatype.FP16) == b"\x00\x3c\x00\xc0"

    def test_bf16(self):
        """Test BF16 packs the upper half of a float32."""
        assert codec.pack_floats([1.0], Datatype.BF16) == b"\x80\x3f"

    def test_fp32_overflow_rejected(self):
        """Test finite values beyond the FP32 range do not become infinity."""
        with pytest.raises(DatatypeMismatchError, match="out of range for FP32"):
            codec.pack_floats([1.0, 1e300], Datatype.FP32)
        with pytest.raises(DatatypeMismatchError):
            codec.pack_floats([-1e39], Datatype.FP32)

    def test_fp32_infinity_kept(self):
        """Test infinities in the input are packed as infinities."""
        raw = codec.pack_floats([np.inf, -np.inf, 3.0e38], Datatype.FP32)
        values = np.frombuffer(raw, dtype="<f4")
        assert values[0] == np.inf
        assert values[1] == -np.inf
        assert np.isfinite(values[2])

    def test_rejects_strings(self):
        """Test non-numeric values are rejected."""
        with pytest.raises(DatatypeMismatchError):
            codec.pack_floats(np.array(["a"]), Datatype.FP32)


class TestPackBools:
    """Tests for BOOL packing."""

    def test_one_byte_per_element(self):
        """Test BOOL packs 1 or 0 per element."""
        assert codec.pack_bools([True, False, True]) == b"\x01\x00\x01"

    def test_nonzero_is_true(self):
        """Test integer input is normalized to 0/1."""
        assert codec.pack_bools(np.array([0, 5], dtype=np.int32)) == b"\x00\x01"


class TestByteTensor:
    """Tests for BYTES framing."""

    def test_serialize_hello_world(self):
        """Test two strings frame into 18 bytes."""
        raw = codec.serialize_byte_tensor(["hello", "world"])
        assert raw == HELLO_WORLD
        assert len(raw) == 18

    def test_serialize_utf8(self):
        """Test the length prefix counts UTF-8 bytes, not characters."""
        raw = codec.serialize_byte_tensor(["é"])
        assert raw == b"\x02\x00\x00\x00\xc3\xa9"

    def test_serialize_bytes_elements(self):
        """Test bytes elements are framed as is."""
        assert codec.serialize_byte_tensor([b"\x00\xff"]) == b"\x02\x00\x00\x00\x00\xff"

    def test_serialize_empty_string(self):
        """Test an empty string is a bare zero length."""
        assert codec.serialize_byte_tensor([""]) == b"\x00\x00\x00\x00"

    def test_serialize_rejects_numbers(self):
        """Test non-string elements are rejected."""
        with pytest.raises(DatatypeMismatchError):
            codec.serialize_byte_tensor([1])

    def test_deserialize_hello_world(self):
        """Test parsing back two records."""
        assert codec.deserialize_bytes_tensor(HELLO_WORLD).tolist() == ["hello", "world"]

    def test_deserialize_empty_buffer(self):
        """Test an empty buffer holds no strings."""
        assert codec.deserialize_bytes_tensor(b"").tolist() == []

    def test_trailing_padding_ignored(self):
        """Test fewer than four trailing bytes are ignored."""
        raw = b"\x05\x00\x00\x00hello" + b"\x00\x00\x00"
        assert codec.deserialize_bytes_tensor(raw).tolist() == ["hello"]

    def test_truncated_record(self):
        """Test a length beyond the remaining bytes."""
        with pytest.raises(TruncatedStringError) as exc_info:
            codec.deserialize_bytes_tensor(b"\x0a\x00\x00\x00abc")
        assert exc_info.value.declared_length == 10
        assert exc_info.value.available == 3

    def test_negative_length(self):
        """Test a length with the sign bit set."""
        with pytest.raises(TruncatedStringError) as exc_info:
            codec.deserialize_bytes_tensor(b"\xff\xff\xff\xff")
        assert exc_info.value.declared_length == -1

    def test_invalid_utf8(self):
        """Test invalid UTF-8 in a record."""
        with pytest.raises(DatatypeMismatchError, match="not valid UTF-8"):
            codec.deserialize_bytes_tensor(b"\x01\x00\x00\x00\xff")


class TestDeserialize:
    """Tests for raw buffer decoding."""

    def test_int16_rejects_partial_element(self):
        """Test a 3-byte INT16 buffer is rejected."""
        with pytest.raises(DatatypeMismatchError) as exc_info:
            codec.deserialize(b"\x01\x00\x02", Datatype.INT16)
        message = str(exc_info.value)
        assert "INT16" in message
        assert "2 bytes" in message
        assert "3 bytes" in message

    def test_int16_whole_elements(self):
        """Test a 4-byte INT16 buffer yields two elements."""
        values = codec.deserialize(b"\x01\x00\xff\xff", Datatype.INT16)
        assert values.tolist() == [1, -1]
        assert values.dtype == np.int16

    def test_bool(self):
        """Test any non-zero byte is true."""
        assert codec.deserialize(b"\x01\x00\x02", Datatype.BOOL).tolist() == [True, False, True]

    def test_int8(self):
        """Test INT8 bytes are read as signed."""
        assert codec.deserialize(b"\xff\x7f", Datatype.INT8).tolist() == [-1, 127]

    def test_uint8_widening(self):
        """Test UINT8 widens to int16."""
        values = codec.deserialize(b"\xff\x80\x40", Datatype.UINT8)
        assert values.tolist() == [255, 128, 64]
        assert values.dtype == np.int16

    def test_uint16_widening(self):
        """Test UINT16 widens to int32."""
        values = codec.deserialize(b"\xff\xff", Datatype.UINT16)
        assert values.tolist() == [65535]
        assert values.dtype == np.int32

    def test_uint32_widening(self):
        """Test UINT32 widens to int64."""
        values = codec.deserialize(b"\xff\xff\xff\xff", Datatype.UINT32)
        assert values.tolist() == [4294967295]
        assert values.dtype == np.int64

    def test_uint64_keeps_bit_pattern(self):
        """Test UINT64 above the int64 range comes back negative."""
        values = codec.deserialize(b"\xff" * 8, Datatype.UINT64)
        assert values.tolist() == [-1]
        assert values.dtype == np.int64

    def test_fp32(self):
        """Test FP32 decoding."""
        values = codec.deserialize(b"\x00\x00\x80\x3f\x00\x00\x00\xc0", Datatype.FP32)
        assert values.tolist() == [1.0, -2.0]

    def test_fp16(self):
        """Test FP16 decodes to float32."""
        values = codec.deserialize(b"\x00\x3c", Datatype.FP16)
        assert values.dtype == np.float32
        assert values[0] == 1.0

    def test_bf16(self):
        """Test BF16 decodes to float32."""
        assert codec.deserialize(b"\x80\x3f", Datatype.BF16)[0] == 1.0

    def test_fp64_size_check(self):
        """Test FP64 rejects a partial element."""
        with pytest.raises(DatatypeMismatchError):
            codec.deserialize(b"\x00" * 12, Datatype.FP64)

    def test_accepts_bytearray(self):
        """Test any buffer object can be decoded."""
        assert codec.deserialize(bytearray(b"\x02\x00"), Datatype.INT16).tolist() == [2]


class TestSerializeDispatch:
    """Tests for datatype-driven serialization."""

    def test_numpy_bool(self):
        """Test BOOL dispatch."""
        assert codec.serialize(np.array([True, False]), Datatype.BOOL) == b"\x01\x00"

    def test_strings(self):
        """Test BYTES dispatch."""
        assert codec.serialize(np.array(["hello", "world"], dtype=object), Datatype.BYTES) == HELLO_WORLD

    def test_integers(self):
        """Test integer dispatch."""
        assert codec.serialize(np.array([7], dtype=np.uint8), Datatype.UINT8) == b"\x07"


class TestStructuredContents:
    """Tests for structured contents conversion."""

    def test_int_contents(self):
        """Test INT32 reads int_contents."""
        decoded = codec.deserialize_contents(
            InferTensorContents(int_contents=[1, -2]), Datatype.INT32
        )
        assert decoded.kind is NativeKind.INT32
        assert decoded.tolist() == [1, -2]

    def test_uint_contents_widen_to_int64(self):
        """Test small unsigned types read uint_contents as int64."""
        decoded = codec.deserialize_contents(
            InferTensorContents(uint_contents=[4294967295]), Datatype.UINT32
        )
        assert decoded.kind is NativeKind.INT64
        assert decoded.tolist() == [4294967295]

    def test_uint64_contents(self):
        """Test UINT64 contents keep the int64 bit pattern."""
        decoded = codec.deserialize_contents(
            InferTensorContents(uint64_contents=[2**64 - 1]), Datatype.UINT64
        )
        assert decoded.tolist() == [-1]

    def test_fp32_contents(self):
        """Test FP32 reads fp32_contents as float32."""
        decoded = codec.deserialize_contents(
            InferTensorContents(fp32_contents=[0.5]), Datatype.FP32
        )
        assert decoded.kind is NativeKind.FLOAT32
        assert decoded.values.dtype == np.float32

    def test_bytes_contents(self):
        """Test BYTES contents stay as raw bytes."""
        decoded = codec.deserialize_contents(
            InferTensorContents(bytes_contents=[b"ab", b""]), Datatype.BYTES
        )
        assert decoded.kind is NativeKind.BYTES
        assert decoded.tolist() == [b"ab", b""]

    def test_bool_contents(self):
        """Test BOOL reads bool_contents."""
        decoded = codec.deserialize_contents(
            InferTensorContents(bool_contents=[True, False]), Datatype.BOOL
        )
        assert decoded.kind is NativeKind.BOOL

    @pytest.mark.parametrize("datatype", [Datatype.FP16, Datatype.BF16])
    def test_half_precision_has_no_structured_form(self, datatype):
        """Test FP16 and BF16 contents yield nothing."""
        assert codec.deserialize_contents(InferTensorContents(), datatype) is None
