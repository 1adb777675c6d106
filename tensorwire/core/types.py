# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
TensorWire Core Types

Datatype registry, tensor shapes and the tagged array value produced by
the decoder. The tables in this module are immutable and shared by the
whole process.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional, Sequence

import numpy as np

from ..errors import InvalidDatatypeError


class Datatype(Enum):
    """Tensor element datatypes, valued by their protocol wire name."""

    BOOL = "BOOL"
    UINT8 = "UINT8"
    UINT16 = "UINT16"
    UINT32 = "UINT32"
    UINT64 = "UINT64"
    INT8 = "INT8"
    INT16 = "INT16"
    INT32 = "INT32"
    INT64 = "INT64"
    FP16 = "FP16"
    FP32 = "FP32"
    FP64 = "FP64"
    BF16 = "BF16"
    BYTES = "BYTES"

    @property
    def wire_name(self) -> str:
        """Exact string identifying this datatype on the wire."""
        return self.value

    @property
    def element_width(self) -> Optional[int]:
        """Fixed byte size of one element, or None for BYTES."""
        return _ELEMENT_WIDTHS[self]

    @property
    def wire_dtype(self) -> Optional[np.dtype]:
        """Little-endian numpy dtype of one element as laid out on the wire."""
        return _WIRE_DTYPES.get(self)

    @property
    def native_dtype(self) -> np.dtype:
        """
        Numpy dtype a decoded raw buffer of this datatype lands in.

        Unsigned types widen to the next signed width so the whole unsigned
        range survives: UINT8 -> int16, UINT16 -> int32, UINT32 -> int64.
        UINT64 has no wider container and keeps the int64 bit pattern.
        """
        return _NATIVE_DTYPES[self]

    @property
    def is_unsigned(self) -> bool:
        return self in (Datatype.UINT8, Datatype.UINT16, Datatype.UINT32, Datatype.UINT64)

    @classmethod
    def from_wire_name(cls, value: Optional[str]) -> "Datatype":
        """
        Look up a datatype by wire name.

        The match is exact and case-sensitive.

        Raises:
            InvalidDatatypeError: If value is empty or unknown
        """
        if not value:
            raise InvalidDatatypeError(value)
        try:
            return cls(value)
        except ValueError:
            raise InvalidDatatypeError(value) from None

    @classmethod
    def from_numpy(cls, dtype) -> "Datatype":
        """Convert a numpy dtype to its natural wire datatype."""
        dtype = np.dtype(dtype)
        if dtype.kind in ("O", "U", "S"):
            return cls.BYTES
        mapping = {
            np.dtype("bool"): cls.BOOL,
            np.dtype("int8"): cls.INT8,
            np.dtype("int16"): cls.INT16,
            np.dtype("int32"): cls.INT32,
            np.dtype("int64"): cls.INT64,
            np.dtype("uint8"): cls.UINT8,
            np.dtype("uint16"): cls.UINT16,
            np.dtype("uint32"): cls.UINT32,
            np.dtype("uint64"): cls.UINT64,
            np.dtype("float16"): cls.FP16,
            np.dtype("float32"): cls.FP32,
            np.dtype("float64"): cls.FP64,
        }
        try:
            return mapping[dtype.newbyteorder("=")]
        except KeyError:
            raise InvalidDatatypeError(str(dtype)) from None

    def __str__(self) -> str:
        return self.value


_ELEMENT_WIDTHS = {
    Datatype.BOOL: 1,
    Datatype.UINT8: 1,
    Datatype.UINT16: 2,
    Datatype.UINT32: 4,
    Datatype.UINT64: 8,
    Datatype.INT8: 1,
    Datatype.INT16: 2,
    Datatype.INT32: 4,
    Datatype.INT64: 8,
    Datatype.FP16: 2,
    Datatype.FP32: 4,
    Datatype.FP64: 8,
    Datatype.BF16: 2,
    Datatype.BYTES: None,
}

# FP16 and BF16 travel as raw 16-bit patterns.
_WIRE_DTYPES = {
    Datatype.BOOL: np.dtype("u1"),
    Datatype.UINT8: np.dtype("u1"),
    Datatype.UINT16: np.dtype("<u2"),
    Datatype.UINT32: np.dtype("<u4"),
    Datatype.UINT64: np.dtype("<u8"),
    Datatype.INT8: np.dtype("i1"),
    Datatype.INT16: np.dtype("<i2"),
    Datatype.INT32: np.dtype("<i4"),
    Datatype.INT64: np.dtype("<i8"),
    Datatype.FP16: np.dtype("<u2"),
    Datatype.FP32: np.dtype("<f4"),
    Datatype.FP64: np.dtype("<f8"),
    Datatype.BF16: np.dtype("<u2"),
}

_NATIVE_DTYPES = {
    Datatype.BOOL: np.dtype("bool"),
    Datatype.UINT8: np.dtype("int16"),
    Datatype.UINT16: np.dtype("int32"),
    Datatype.UINT32: np.dtype("int64"),
    Datatype.UINT64: np.dtype("int64"),
    Datatype.INT8: np.dtype("int8"),
    Datatype.INT16: np.dtype("int16"),
    Datatype.INT32: np.dtype("int32"),
    Datatype.INT64: np.dtype("int64"),
    Datatype.FP16: np.dtype("float32"),
    Datatype.FP32: np.dtype("float32"),
    Datatype.FP64: np.dtype("float64"),
    Datatype.BF16: np.dtype("float32"),
    Datatype.BYTES: np.dtype("object"),
}


def dtype_size(datatype: Datatype) -> int:
    """Get the size in bytes of one element, 0 for variable-length BYTES."""
    return datatype.element_width or 0


@dataclass
class Shape:
    """
    Tensor dimensions.

    A negative dimension is a wildcard the model resolves at load time.
    """

    dims: list[int] = field(default_factory=list)

    def __post_init__(self):
        self.dims = [int(d) for d in self.dims]

    def rank(self) -> int:
        """Get number of dimensions."""
        return len(self.dims)

    def numel(self) -> int:
        """
        Get total number of elements.

        An empty shape holds zero elements. Returns -1 when any dimension
        is a wildcard.
        """
        if not self.dims:
            return 0
        result = 1
        for d in self.dims:
            if d < 0:
                return -1
            result *= d
        return result

    def is_dynamic(self) -> bool:
        """Check if shape has wildcard dimensions."""
        return any(d < 0 for d in self.dims)

    def __getitem__(self, idx: int) -> int:
        return self.dims[idx]

    def __iter__(self) -> Iterator[int]:
        return iter(self.dims)

    def __len__(self) -> int:
        return len(self.dims)

    def __repr__(self) -> str:
        return f"Shape({self.dims})"


def as_shape(shape: "Shape | Sequence[int]") -> Shape:
    """Coerce a sequence of dimensions into a Shape."""
    if isinstance(shape, Shape):
        return Shape(list(shape.dims))
    return Shape(list(shape))


class NativeKind(Enum):
    """Native element kind of a decoded array."""

    BOOL = auto()
    INT8 = auto()
    INT16 = auto()
    INT32 = auto()
    INT64 = auto()
    FLOAT32 = auto()
    FLOAT64 = auto()
    STRING = auto()
    BYTES = auto()


_KINDS_BY_DTYPE = {
    np.dtype("bool"): NativeKind.BOOL,
    np.dtype("int8"): NativeKind.INT8,
    np.dtype("int16"): NativeKind.INT16,
    np.dtype("int32"): NativeKind.INT32,
    np.dtype("int64"): NativeKind.INT64,
    np.dtype("float32"): NativeKind.FLOAT32,
    np.dtype("float64"): NativeKind.FLOAT64,
}


@dataclass(frozen=True)
class NativeArray:
    """
    Decoded tensor tagged with its native element kind.

    Callers dispatch on ``kind`` (or ``match`` on the dataclass) instead of
    inspecting the array type:

        match result.extract("logits"):
            case NativeArray(kind=NativeKind.FLOAT32, values=values):
                ...
            case NativeArray(kind=NativeKind.STRING, values=values):
                ...

    Attributes:
        kind: Native element kind of ``values``
        datatype: Wire datatype the values were decoded from
        values: Flat numpy array; object dtype for STRING and BYTES
    """

    kind: NativeKind
    datatype: Datatype
    values: np.ndarray

    @classmethod
    def wrap(
        cls,
        datatype: Datatype,
        values: np.ndarray,
        kind: Optional[NativeKind] = None,
    ) -> "NativeArray":
        """Tag a decoded numpy array, deriving the kind from its dtype by default."""
        if kind is None:
            if values.dtype == np.dtype("object"):
                kind = NativeKind.STRING
            else:
                kind = _KINDS_BY_DTYPE[values.dtype]
        return cls(kind=kind, datatype=datatype, values=values)

    def tolist(self) -> list:
        return self.values.tolist()

    def __len__(self) -> int:
        return len(self.values)
