# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Datatype Registry and Core Type Tests

Validates:
- Datatype: wire names, lookup, element widths, native containers
- Shape: numel, wildcards, indexing
- NativeArray: kind tagging and pattern matching
"""

import pytest
import numpy as np

from tensorwire.core import Datatype, Shape, NativeArray, NativeKind, as_shape, dtype_size
from tensorwire.errors import DatatypeMismatchError, InvalidDatatypeError


WIRE_NAMES = [
    "BOOL",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "FP16",
    "FP32",
    "FP64",
    "BF16",
    "BYTES",
]


class TestDatatypeLookup:
    """Tests for wire name lookup."""

    def test_all_members_present(self):
        """Test the registry holds exactly the protocol datatypes."""
        assert [d.wire_name for d in Datatype] == WIRE_NAMES

    @pytest.mark.parametrize("name", WIRE_NAMES)
    def test_from_wire_name_round_trip(self, name):
        """Test lookup is the inverse of wire_name."""
        datatype = Datatype.from_wire_name(name)
        assert datatype.wire_name == name
        assert str(datatype) == name

    def test_lookup_is_case_sensitive(self):
        """Test lowercase names are rejected."""
        with pytest.raises(InvalidDatatypeError, match="Unknown datatype: fp32"):
            Datatype.from_wire_name("fp32")

    def test_unknown_name(self):
        """Test unknown names are rejected."""
        with pytest.raises(InvalidDatatypeError) as exc_info:
            Datatype.from_wire_name("FP8")
        assert exc_info.value.value == "FP8"

    @pytest.mark.parametrize("name", ["", None])
    def test_empty_name(self, name):
        """Test empty and missing names are rejected."""
        with pytest.raises(InvalidDatatypeError, match="cannot be empty"):
            Datatype.from_wire_name(name)

    def test_invalid_datatype_is_mismatch(self):
        """Test InvalidDatatypeError can be caught as DatatypeMismatchError."""
        with pytest.raises(DatatypeMismatchError):
            Datatype.from_wire_name("STRING")


class TestDatatypeWidths:
    """Tests for element widths."""

    @pytest.mark.parametrize(
        "datatype,width",
        [
            (Datatype.BOOL, 1),
            (Datatype.INT8, 1),
            (Datatype.UINT8, 1),
            (Datatype.INT16, 2),
            (Datatype.UINT16, 2),
            (Datatype.FP16, 2),
            (Datatype.BF16, 2),
            (Datatype.INT32, 4),
            (Datatype.UINT32, 4),
            (Datatype.FP32, 4),
            (Datatype.INT64, 8),
            (Datatype.UINT64, 8),
            (Datatype.FP64, 8),
        ],
    )
    def test_fixed_widths(self, datatype, width):
        """Test fixed element widths."""
        assert datatype.element_width == width
        assert dtype_size(datatype) == width

    def test_bytes_is_variable(self):
        """Test BYTES has no fixed width."""
        assert Datatype.BYTES.element_width is None
        assert dtype_size(Datatype.BYTES) == 0

    def test_wire_dtypes_are_little_endian(self):
        """Test multi-byte wire dtypes are little-endian."""
        for datatype in Datatype:
            wire = datatype.wire_dtype
            if wire is None:
                continue
            assert wire.itemsize == datatype.element_width
            assert wire == wire.newbyteorder("<")


class TestNativeContainers:
    """Tests for the widened native containers."""

    def test_unsigned_widening(self):
        """Test unsigned types land in the next signed width."""
        assert Datatype.UINT8.native_dtype == np.int16
        assert Datatype.UINT16.native_dtype == np.int32
        assert Datatype.UINT32.native_dtype == np.int64
        assert Datatype.UINT64.native_dtype == np.int64

    def test_half_precision_widens_to_float32(self):
        """Test FP16 and BF16 decode to float32."""
        assert Datatype.FP16.native_dtype == np.float32
        assert Datatype.BF16.native_dtype == np.float32

    def test_is_unsigned(self):
        """Test unsigned membership."""
        unsigned = {d for d in Datatype if d.is_unsigned}
        assert unsigned == {Datatype.UINT8, Datatype.UINT16, Datatype.UINT32, Datatype.UINT64}


class TestFromNumpy:
    """Tests for numpy dtype conversion."""

    @pytest.mark.parametrize(
        "dtype,expected",
        [
            (np.bool_, Datatype.BOOL),
            (np.int8, Datatype.INT8),
            (np.int32, Datatype.INT32),
            (np.uint16, Datatype.UINT16),
            (np.float16, Datatype.FP16),
            (np.float32, Datatype.FP32),
            (np.float64, Datatype.FP64),
            (object, Datatype.BYTES),
            ("U5", Datatype.BYTES),
        ],
    )
    def test_mapping(self, dtype, expected):
        """Test natural datatype of numpy dtypes."""
        assert Datatype.from_numpy(dtype) is expected

    def test_big_endian_input(self):
        """Test byte order does not affect the mapping."""
        assert Datatype.from_numpy(np.dtype(">i4")) is Datatype.INT32

    def test_unsupported(self):
        """Test complex dtypes have no datatype."""
        with pytest.raises(InvalidDatatypeError):
            Datatype.from_numpy(np.complex64)


class TestShape:
    """Tests for Shape."""

    def test_numel(self):
        """Test element count."""
        assert Shape([2, 3, 4]).numel() == 24

    def test_empty_shape_has_no_elements(self):
        """Test the empty shape holds zero elements."""
        assert Shape().numel() == 0
        assert Shape([]).rank() == 0

    def test_zero_dim(self):
        """Test a zero dimension yields zero elements."""
        assert Shape([4, 0]).numel() == 0

    def test_wildcard(self):
        """Test wildcard dimensions."""
        shape = Shape([-1, 3])
        assert shape.is_dynamic()
        assert shape.numel() == -1

    def test_indexing(self):
        """Test indexing and iteration."""
        shape = Shape([1, 3, 224])
        assert shape[0] == 1
        assert shape[-1] == 224
        assert list(shape) == [1, 3, 224]
        assert len(shape) == 3

    def test_as_shape_copies(self):
        """Test as_shape returns an independent copy."""
        original = Shape([2, 2])
        copy = as_shape(original)
        copy.dims.append(5)
        assert original.dims == [2, 2]
        assert as_shape((4, 5)).dims == [4, 5]


class TestNativeArray:
    """Tests for the tagged decode result."""

    def test_kind_from_dtype(self):
        """Test kind follows the numpy dtype."""
        arr = NativeArray.wrap(Datatype.UINT16, np.array([1, 2], dtype=np.int32))
        assert arr.kind is NativeKind.INT32
        assert arr.datatype is Datatype.UINT16
        assert len(arr) == 2
        assert arr.tolist() == [1, 2]

    def test_object_arrays_default_to_strings(self):
        """Test object arrays are tagged STRING unless told otherwise."""
        values = np.empty(1, dtype=object)
        values[:] = ["a"]
        assert NativeArray.wrap(Datatype.BYTES, values).kind is NativeKind.STRING
        tagged = NativeArray.wrap(Datatype.BYTES, values, kind=NativeKind.BYTES)
        assert tagged.kind is NativeKind.BYTES

    def test_pattern_matching(self):
        """Test callers can match on the kind."""
        arr = NativeArray.wrap(Datatype.FP32, np.array([0.5], dtype=np.float32))

        match arr:
            case NativeArray(kind=NativeKind.FLOAT32, values=values):
                matched = values
            case _:
                matched = None

        assert matched is not None
        assert matched[0] == 0.5
