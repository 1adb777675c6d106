"""
Inference Input Tensor.

InferInput describes one input tensor of an inference request: its name,
shape and datatype, plus the payload the transport sends for it. Data
setters validate the element count against the shape and the declared
datatype against the native kind of the data, then serialize to the raw
little-endian wire layout.

The payload is a single slot holding either inline bytes or a reference
to a shared memory region. Setting one replaces the other.

Copyright 2025 Wahyu Ardiansyah
Licensed under the Apache License, Version 2.0
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np

from ..core import codec
from ..core.types import Datatype, Shape, as_shape
from ..errors import (
    DataNotFoundError,
    DatatypeMismatchError,
    SharedMemoryError,
    ShapeMismatchError,
    ValidationError,
)
from .messages import InferInputTensor

logger = logging.getLogger("tensorwire.serving.infer_input")


# ============================================================================
# Payload
# ============================================================================


class PayloadSource(Enum):
    """Where the data of an input comes from."""

    NONE = "none"
    INLINE = "inline"
    SHARED_MEMORY = "shared_memory"


@dataclass(frozen=True)
class InlinePayload:
    """Serialized tensor bytes sent with the request."""

    data: bytes


@dataclass(frozen=True)
class SharedMemoryRegion:
    """Reference to a registered shared memory region holding the tensor."""

    name: str
    byte_size: int
    offset: int = 0

    def to_parameters(self) -> dict[str, dict]:
        params = {
            "shared_memory_region": {"string_param": self.name},
            "shared_memory_byte_size": {"int64_param": self.byte_size},
        }
        if self.offset:
            params["shared_memory_offset"] = {"int64_param": self.offset}
        return params


Payload = Union[InlinePayload, SharedMemoryRegion]


# ============================================================================
# InferInput
# ============================================================================


class InferInput:
    """
    Input tensor for an inference request.

    Setters return the instance so calls can be chained:

        inp = InferInput("input_ids", [1, 4], Datatype.INT64)
        inp.set_data_from_longs([101, 2023, 2003, 102])
        request_bytes = inp.raw_content

    Do not mutate an input after handing it to a client.
    """

    def __init__(
        self,
        name: str,
        shape: Union[Shape, Sequence[int]],
        datatype: Union[Datatype, str],
    ):
        """
        Initialize an input tensor.

        Args:
            name: Name of the input, must not be empty
            shape: Dimensions of the input
            datatype: Datatype member or wire name (e.g. "FP32")
        """
        if not name:
            raise ValidationError("Input name cannot be empty", parameter="name")
        if not isinstance(datatype, Datatype):
            datatype = Datatype.from_wire_name(datatype)

        self._name = name
        self._shape = as_shape(shape)
        self._datatype = datatype
        self._payload: Optional[Payload] = None

    # =========================================================================
    # Metadata
    # =========================================================================

    @property
    def name(self) -> str:
        return self._name

    @property
    def datatype(self) -> Datatype:
        return self._datatype

    @property
    def shape(self) -> list[int]:
        return list(self._shape.dims)

    def set_shape(self, shape: Union[Shape, Sequence[int]]) -> "InferInput":
        """Replace the shape, e.g. for models with dynamic input dimensions."""
        self._shape = as_shape(shape)
        return self

    @property
    def payload(self) -> Optional[Payload]:
        return self._payload

    @property
    def payload_source(self) -> PayloadSource:
        if isinstance(self._payload, InlinePayload):
            return PayloadSource.INLINE
        if isinstance(self._payload, SharedMemoryRegion):
            return PayloadSource.SHARED_MEMORY
        return PayloadSource.NONE

    @property
    def raw_content(self) -> Optional[bytes]:
        """Serialized tensor bytes, or None when no inline data is set."""
        if isinstance(self._payload, InlinePayload):
            return self._payload.data
        return None

    def has_raw_content(self) -> bool:
        """Whether inline data is set and not empty."""
        return bool(self.raw_content)

    def get_tensor(self) -> InferInputTensor:
        """Build the tensor metadata message sent alongside the raw bytes."""
        parameters = {}
        if isinstance(self._payload, SharedMemoryRegion):
            parameters = self._payload.to_parameters()
        return InferInputTensor(
            name=self._name,
            datatype=self._datatype.wire_name,
            shape=self.shape,
            parameters=parameters,
        )

    def set_shared_memory(
        self, region_name: str, byte_size: int, offset: int = 0
    ) -> "InferInput":
        """
        Point this input at a registered shared memory region.

        Any inline data is discarded. Region registration itself is the
        transport's business.
        """
        if not region_name:
            raise ValidationError("Region name cannot be empty", parameter="region_name")
        if byte_size < 0 or offset < 0:
            raise ValidationError(
                "Region byte size and offset must be non-negative",
                parameter="byte_size",
                received=f"byte_size={byte_size}, offset={offset}",
            )
        self._payload = SharedMemoryRegion(region_name, byte_size, offset)
        return self

    # =========================================================================
    # Setters
    # =========================================================================

    def set_data_from_bools(self, data) -> "InferInput":
        """Set BOOL data, one byte per element."""
        return self._set(data, (Datatype.BOOL,), codec.pack_bools)

    def set_data_from_ints(self, data) -> "InferInput":
        """
        Set data from a 32-bit integer container.

        The container may back INT8, INT16 or INT32; values are packed at
        the declared width and must fit it.
        """
        return self._set(
            data,
            (Datatype.INT8, Datatype.INT16, Datatype.INT32),
            lambda values: codec.pack_integers(values, self._datatype),
        )

    def set_data_from_longs(self, data) -> "InferInput":
        """Set INT64 data."""
        return self._set(
            data,
            (Datatype.INT64,),
            lambda values: codec.pack_integers(values, Datatype.INT64),
        )

    def set_data_from_unsigned(self, data) -> "InferInput":
        """
        Set unsigned data from a widened integer container.

        Values must fit the declared unsigned width. For UINT64, negative
        values are taken as the int64 bit pattern the decoder produces.
        """
        return self._set(
            data,
            (Datatype.UINT8, Datatype.UINT16, Datatype.UINT32, Datatype.UINT64),
            lambda values: codec.pack_integers(values, self._datatype),
        )

    def set_data_from_floats(self, data) -> "InferInput":
        """Set FP32 data."""
        return self._set(
            data,
            (Datatype.FP32,),
            lambda values: codec.pack_floats(values, Datatype.FP32),
        )

    def set_data_from_doubles(self, data) -> "InferInput":
        """Set FP64 data."""
        return self._set(
            data,
            (Datatype.FP64,),
            lambda values: codec.pack_floats(values, Datatype.FP64),
        )

    def set_data_from_halves(self, data) -> "InferInput":
        """Set FP16 or BF16 data from float values, rounding to nearest even."""
        return self._set(
            data,
            (Datatype.FP16, Datatype.BF16),
            lambda values: codec.pack_floats(values, self._datatype),
        )

    def set_data_from_strings(self, data: Sequence) -> "InferInput":
        """
        Set BYTES data as length-prefixed UTF-8 records.

        Nested sequences are flattened in row-major order, so the element
        count checked against the shape is the number of strings.
        """
        values = np.asarray(data, dtype=object).ravel()
        return self._set(values, (Datatype.BYTES,), codec.serialize_byte_tensor)

    def set_raw_data(self, data: bytes) -> "InferInput":
        """
        Set already-serialized bytes.

        No element count or datatype check is made.
        """
        self._payload = InlinePayload(bytes(data))
        logger.debug("Input '%s': raw payload of %d bytes", self._name, len(data))
        return self

    def set_data_from_numpy(self, array: np.ndarray) -> "InferInput":
        """Dispatch a numpy array to the setter matching its element kind."""
        array = np.asarray(array)
        kind = array.dtype.kind
        if kind == "b":
            return self.set_data_from_bools(array)
        if kind in ("O", "U", "S"):
            return self.set_data_from_strings(array.ravel().tolist())
        if kind == "f":
            if self._datatype in (Datatype.FP16, Datatype.BF16):
                return self.set_data_from_halves(array)
            if self._datatype is Datatype.FP64:
                return self.set_data_from_doubles(array)
            return self.set_data_from_floats(array)
        if kind in ("i", "u"):
            if self._datatype.is_unsigned:
                return self.set_data_from_unsigned(array)
            if self._datatype is Datatype.INT64:
                return self.set_data_from_longs(array)
            return self.set_data_from_ints(array)
        raise DatatypeMismatchError(
            message=f"Unsupported numpy dtype {array.dtype} for input '{self._name}'",
            actual=self._datatype.wire_name,
        )

    def _set(self, data, compatible: tuple[Datatype, ...], pack) -> "InferInput":
        values = np.asarray(data) if not isinstance(data, np.ndarray) else data
        self._validate_data_size(values.size)
        self._validate_datatype(compatible)
        raw = pack(values)
        self._payload = InlinePayload(raw)
        logger.debug(
            "Input '%s': serialized %d elements as %s (%d bytes)",
            self._name,
            values.size,
            self._datatype.wire_name,
            len(raw),
        )
        return self

    def _validate_data_size(self, count: int) -> None:
        expected = self._shape.numel()
        if expected >= 0 and count != expected:
            raise ShapeMismatchError(self.shape, count, expected)

    def _validate_datatype(self, compatible: tuple[Datatype, ...]) -> None:
        if self._datatype not in compatible:
            raise DatatypeMismatchError.for_setter(
                self._datatype.wire_name, [d.wire_name for d in compatible]
            )

    # =========================================================================
    # Getters
    # =========================================================================

    def as_bools(self) -> np.ndarray:
        return self._get((Datatype.BOOL,))

    def as_ints(self) -> np.ndarray:
        """Stored INT8/INT16/INT32 data widened to int32."""
        return self._get((Datatype.INT8, Datatype.INT16, Datatype.INT32)).astype(np.int32)

    def as_longs(self) -> np.ndarray:
        return self._get((Datatype.INT64,))

    def as_unsigned(self) -> np.ndarray:
        """Stored unsigned data in its widened container."""
        return self._get(
            (Datatype.UINT8, Datatype.UINT16, Datatype.UINT32, Datatype.UINT64)
        )

    def as_floats(self) -> np.ndarray:
        return self._get((Datatype.FP32,))

    def as_doubles(self) -> np.ndarray:
        return self._get((Datatype.FP64,))

    def as_halves(self) -> np.ndarray:
        """Stored FP16/BF16 data widened to float32."""
        return self._get((Datatype.FP16, Datatype.BF16))

    def as_strings(self) -> list[str]:
        return self._get((Datatype.BYTES,)).tolist()

    def _get(self, compatible: tuple[Datatype, ...]) -> np.ndarray:
        if isinstance(self._payload, SharedMemoryRegion):
            raise SharedMemoryError(self._name, self._payload.name)
        if not self.has_raw_content():
            raise DataNotFoundError(self._name)
        self._validate_datatype(compatible)
        return codec.deserialize(self.raw_content, self._datatype)

    def __repr__(self) -> str:
        return (
            f"InferInput(name={self._name!r}, shape={self.shape}, "
            f"datatype={self._datatype.wire_name}, "
            f"payload={self.payload_source.value})"
        )
