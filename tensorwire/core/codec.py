# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tensor Wire Codec

Stateless conversions between native arrays and the binary tensor layout
of the inference protocol:

- Fixed-width numeric types are packed little-endian, one element per
  slot, no padding
- BOOL is one byte per element (1 = true, 0 = false)
- BYTES is a concatenation of records, each a 4-byte little-endian
  length followed by that many bytes of UTF-8
- FP16 and BF16 travel as raw 16-bit patterns (see halfprecision)

Every function is all-or-nothing: malformed input raises and nothing is
truncated or clamped.
"""

import logging
from typing import Iterable, Optional

import numpy as np

from ..errors import DatatypeMismatchError, TruncatedStringError
from .halfprecision import (
    bf16_bits_to_float32,
    float32_to_bf16_bits,
    float32_to_fp16_bits,
    fp16_bits_to_float32,
)
from .types import Datatype, NativeArray, NativeKind

logger = logging.getLogger("tensorwire.core.codec")

LENGTH_PREFIX_SIZE = 4

_UINT64_MASK = (1 << 64) - 1


# =============================================================================
# Validation
# =============================================================================


def validate_buffer_size(nbytes: int, datatype: Datatype) -> None:
    """
    Check that a buffer holds a whole number of elements.

    Raises:
        DatatypeMismatchError: If nbytes is not a multiple of the element width
    """
    width = datatype.element_width
    if width is None or nbytes % width == 0:
        return
    raise DatatypeMismatchError(
        message=(
            f"Invalid buffer size for {datatype.wire_name}: expected multiple of "
            f"{width} bytes, but got {nbytes} bytes"
        ),
        actual=datatype.wire_name,
    )


def _integer_bounds(datatype: Datatype) -> tuple[int, int]:
    """Range of values accepted for an integer datatype."""
    info = np.iinfo(datatype.wire_dtype)
    if datatype is Datatype.UINT64:
        # Negative values are accepted as the int64 bit pattern UINT64 decodes to.
        return -(1 << 63), int(info.max)
    return int(info.min), int(info.max)


def _out_of_range(datatype: Datatype, low: int, high: int) -> DatatypeMismatchError:
    lower, upper = _integer_bounds(datatype)
    return DatatypeMismatchError(
        message=(
            f"Value out of range for {datatype.wire_name}: values span "
            f"[{low}, {high}] but {datatype.wire_name} holds [{lower}, {upper}]"
        ),
        actual=datatype.wire_name,
    )


# =============================================================================
# Serialization
# =============================================================================


def pack_integers(values, datatype: Datatype) -> bytes:
    """
    Pack integer values at the width of the declared integer datatype.

    Raises:
        DatatypeMismatchError: If values are not integers or do not fit
    """
    arr = np.asarray(values)
    if arr.size == 0:
        return b""

    if arr.dtype.kind == "O":
        items = arr.ravel().tolist()
        if not all(isinstance(v, (int, np.integer)) for v in items):
            raise DatatypeMismatchError(
                message=f"Non-integer values cannot be packed as {datatype.wire_name}",
                actual=datatype.wire_name,
            )
        low, high = int(min(items)), int(max(items))
        lower, upper = _integer_bounds(datatype)
        if low < lower or high > upper:
            raise _out_of_range(datatype, low, high)
        if datatype is Datatype.UINT64:
            items = [int(v) & _UINT64_MASK for v in items]
        return np.array(items, dtype=datatype.wire_dtype).tobytes()

    if arr.dtype.kind not in ("i", "u", "b"):
        raise DatatypeMismatchError(
            message=(
                f"Values of dtype {arr.dtype} cannot be packed as {datatype.wire_name}"
            ),
            actual=datatype.wire_name,
        )

    arr = arr.ravel()
    low, high = int(arr.min()), int(arr.max())
    lower, upper = _integer_bounds(datatype)
    if low < lower or high > upper:
        raise _out_of_range(datatype, low, high)

    if datatype is Datatype.UINT64 and arr.dtype.kind == "i":
        return arr.astype("<i8").view("<u8").tobytes()
    return arr.astype(datatype.wire_dtype).tobytes()


def pack_floats(values, datatype: Datatype) -> bytes:
    """Pack numeric values as FP32, FP64, FP16 or BF16."""
    arr = np.asarray(values)
    if arr.dtype.kind not in ("f", "i", "u", "b"):
        raise DatatypeMismatchError(
            message=(
                f"Values of dtype {arr.dtype} cannot be packed as {datatype.wire_name}"
            ),
            actual=datatype.wire_name,
        )
    arr = arr.ravel()
    if datatype is Datatype.FP16:
        return float32_to_fp16_bits(arr).astype("<u2").tobytes()
    if datatype is Datatype.BF16:
        return float32_to_bf16_bits(arr).astype("<u2").tobytes()

    with np.errstate(over="ignore"):
        packed = arr.astype(datatype.wire_dtype)
    overflow = np.isfinite(arr) & ~np.isfinite(packed)
    if overflow.any():
        largest = float(np.abs(arr[overflow]).max())
        limit = float(np.finfo(datatype.wire_dtype).max)
        raise DatatypeMismatchError(
            message=(
                f"Value out of range for {datatype.wire_name}: magnitude {largest} "
                f"exceeds the {datatype.wire_name} maximum {limit}"
            ),
            actual=datatype.wire_name,
        )
    return packed.tobytes()


def pack_bools(values) -> bytes:
    """Pack truth values as one byte each."""
    arr = np.asarray(values)
    if arr.size and arr.dtype.kind not in ("b", "i", "u"):
        raise DatatypeMismatchError(
            message=f"Values of dtype {arr.dtype} cannot be packed as BOOL",
            actual=Datatype.BOOL.wire_name,
        )
    return (arr.ravel() != 0).astype("u1").tobytes()


def serialize_byte_tensor(values: Iterable) -> bytes:
    """
    Frame strings as length-prefixed records.

    ``str`` elements are UTF-8 encoded; ``bytes`` elements are framed as is.
    """
    chunks: list[bytes] = []
    for value in values:
        if isinstance(value, str):
            encoded = value.encode("utf-8")
        elif isinstance(value, (bytes, bytearray, np.bytes_)):
            encoded = bytes(value)
        else:
            raise DatatypeMismatchError(
                message=(
                    f"BYTES elements must be str or bytes, got {type(value).__name__}"
                ),
                actual=Datatype.BYTES.wire_name,
            )
        chunks.append(len(encoded).to_bytes(LENGTH_PREFIX_SIZE, byteorder="little"))
        chunks.append(encoded)
    return b"".join(chunks)


def serialize(values, datatype: Datatype) -> bytes:
    """Serialize values according to the declared datatype."""
    if datatype is Datatype.BYTES:
        return serialize_byte_tensor(np.asarray(values, dtype=object).ravel())
    if datatype is Datatype.BOOL:
        return pack_bools(values)
    if datatype in (Datatype.FP16, Datatype.BF16, Datatype.FP32, Datatype.FP64):
        return pack_floats(values, datatype)
    return pack_integers(values, datatype)


# =============================================================================
# Deserialization
# =============================================================================


def deserialize_bytes_tensor(buffer) -> np.ndarray:
    """
    Parse length-prefixed UTF-8 records until the buffer is exhausted.

    Fewer than four trailing bytes are treated as padding and ignored.

    Raises:
        TruncatedStringError: If a length is negative or exceeds the remaining bytes
    """
    view = memoryview(buffer).cast("B")
    strings: list[str] = []
    offset = 0
    total = len(view)

    while offset < total:
        if total - offset < LENGTH_PREFIX_SIZE:
            logger.debug("Ignoring %d trailing bytes after BYTES records", total - offset)
            break
        length = int.from_bytes(
            view[offset : offset + LENGTH_PREFIX_SIZE], byteorder="little", signed=True
        )
        offset += LENGTH_PREFIX_SIZE
        available = total - offset
        if length < 0 or length > available:
            raise TruncatedStringError(length, available)
        try:
            strings.append(bytes(view[offset : offset + length]).decode("utf-8"))
        except UnicodeDecodeError as e:
            raise DatatypeMismatchError(
                message=f"BYTES element {len(strings)} is not valid UTF-8: {e.reason}",
                actual=Datatype.BYTES.wire_name,
            ) from e
        offset += length

    out = np.empty(len(strings), dtype=object)
    out[:] = strings
    return out


def deserialize(buffer, datatype: Datatype) -> np.ndarray:
    """
    Deserialize a raw little-endian buffer into its native container.

    See ``Datatype.native_dtype`` for the container of each datatype.

    Raises:
        DatatypeMismatchError: If the buffer is not a whole number of elements
        TruncatedStringError: For malformed BYTES records
    """
    if datatype is Datatype.BYTES:
        return deserialize_bytes_tensor(buffer)

    if datatype is Datatype.BOOL:
        return np.frombuffer(buffer, dtype="u1") != 0
    if datatype is Datatype.INT8:
        return np.frombuffer(buffer, dtype="i1").copy()
    if datatype is Datatype.UINT8:
        return np.frombuffer(buffer, dtype="u1").astype(np.int16)

    validate_buffer_size(len(memoryview(buffer).cast("B")), datatype)
    raw = np.frombuffer(buffer, dtype=datatype.wire_dtype)

    if datatype is Datatype.FP16:
        return fp16_bits_to_float32(raw)
    if datatype is Datatype.BF16:
        return bf16_bits_to_float32(raw)
    if datatype is Datatype.UINT64:
        # Values above the int64 maximum come back negative.
        return raw.view("<i8").astype(np.int64)
    return raw.astype(datatype.native_dtype)


def deserialize_contents(contents, datatype: Datatype) -> Optional[NativeArray]:
    """
    Convert a structured per-type contents message into a native array.

    Integer groups share a list: INT8/INT16/INT32 read ``int_contents``,
    UINT8/UINT16/UINT32 read ``uint_contents``. FP16 and BF16 have no
    structured representation and yield None.
    """
    if datatype is Datatype.BOOL:
        values = np.asarray(list(contents.bool_contents), dtype=np.bool_)
    elif datatype in (Datatype.INT8, Datatype.INT16, Datatype.INT32):
        values = np.asarray(list(contents.int_contents), dtype=np.int32)
    elif datatype is Datatype.INT64:
        values = np.asarray(list(contents.int64_contents), dtype=np.int64)
    elif datatype in (Datatype.UINT8, Datatype.UINT16, Datatype.UINT32):
        values = np.asarray(list(contents.uint_contents), dtype=np.int64)
    elif datatype is Datatype.UINT64:
        values = np.asarray(list(contents.uint64_contents), dtype=np.uint64).view(np.int64)
    elif datatype is Datatype.FP32:
        values = np.asarray(list(contents.fp32_contents), dtype=np.float32)
    elif datatype is Datatype.FP64:
        values = np.asarray(list(contents.fp64_contents), dtype=np.float64)
    elif datatype is Datatype.BYTES:
        values = np.empty(len(contents.bytes_contents), dtype=object)
        values[:] = [bytes(b) for b in contents.bytes_contents]
        return NativeArray.wrap(datatype, values, kind=NativeKind.BYTES)
    else:
        logger.debug("No structured representation for %s", datatype.wire_name)
        return None
    return NativeArray.wrap(datatype, values)
