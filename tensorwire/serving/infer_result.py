"""
Inference Result Decoding.

InferResult wraps a ModelInferResponse from the transport and decodes its
output tensors into native arrays on demand. A raw output buffer is
preferred; the structured per-type contents are the fallback when the
response carries no raw buffer for that output.

Works with the dataclasses in ``tensorwire.serving.messages`` as well as
generated protobuf messages with the same field names.

Copyright 2025 Wahyu Ardiansyah
Licensed under the Apache License, Version 2.0
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from ..core import codec
from ..core.types import Datatype, NativeArray, NativeKind
from ..errors import (
    DatatypeMismatchError,
    InvalidDatatypeError,
    NoDataError,
    OutputNotFoundError,
)

logger = logging.getLogger("tensorwire.serving.infer_result")


def _has_contents(output) -> bool:
    """Whether an output message carries structured contents."""
    has_field = getattr(output, "HasField", None)
    if has_field is not None:
        return has_field("contents")
    return getattr(output, "contents", None) is not None


# ============================================================================
# TensorOutput
# ============================================================================


@dataclass(frozen=True)
class TensorOutput:
    """
    Read-only view over one output tensor of a response.

    Attributes:
        name: Output name
        datatype: Wire name of the datatype as sent by the server
        shape: Declared shape
        raw_content: Raw buffer at this output's position, if any
        contents: Structured per-type contents, if any
        parameters: Output parameters
    """

    name: str
    datatype: str
    shape: list[int] = field(default_factory=list)
    raw_content: Optional[bytes] = None
    contents: Any = None
    parameters: dict = field(default_factory=dict)

    @classmethod
    def from_response(cls, response, index: int) -> "TensorOutput":
        """Build the view of the output at ``index`` in a response."""
        output = response.outputs[index]
        raw_outputs = response.raw_output_contents
        return cls(
            name=output.name,
            datatype=output.datatype,
            shape=list(output.shape),
            raw_content=bytes(raw_outputs[index]) if index < len(raw_outputs) else None,
            contents=output.contents if _has_contents(output) else None,
            parameters=dict(output.parameters),
        )

    def resolve_datatype(self) -> Datatype:
        """
        Resolve the wire datatype.

        Raises:
            DatatypeMismatchError: If the wire name is unknown
        """
        try:
            return Datatype.from_wire_name(self.datatype)
        except InvalidDatatypeError:
            raise DatatypeMismatchError(
                message=f"Unsupported or invalid datatype: {self.datatype}",
                actual=self.datatype,
            ) from None

    def decode(self) -> Optional[NativeArray]:
        """
        Decode this output into a native array.

        Returns None only for datatypes with no structured representation
        (FP16, BF16) when the response carries structured contents.

        Raises:
            DatatypeMismatchError: Unknown datatype or malformed buffer size
            TruncatedStringError: Malformed BYTES records
            NoDataError: Neither a raw buffer nor contents are present
        """
        datatype = self.resolve_datatype()

        if self.raw_content is not None:
            values = codec.deserialize(self.raw_content, datatype)
            logger.debug(
                "Output '%s': decoded %d bytes of %s into %d elements",
                self.name,
                len(self.raw_content),
                datatype.wire_name,
                len(values),
            )
            return NativeArray.wrap(datatype, values)

        if self.contents is not None:
            logger.debug("Output '%s': decoding structured contents", self.name)
            return codec.deserialize_contents(self.contents, datatype)

        raise NoDataError(self.name)


# ============================================================================
# InferResult
# ============================================================================


class InferResult:
    """
    Response of an inference request.

    Example:
        result = InferResult(response)
        logits = result.as_float_array("logits")

        match result.extract("labels"):
            case NativeArray(kind=NativeKind.STRING, values=labels):
                ...
    """

    def __init__(self, response):
        """
        Args:
            response: ModelInferResponse returned by the transport
        """
        self._response = response

    @property
    def response(self):
        """The underlying ModelInferResponse."""
        return self._response

    @property
    def request_id(self) -> str:
        return self._response.id

    @property
    def model_name(self) -> str:
        return self._response.model_name

    @property
    def model_version(self) -> str:
        return self._response.model_version

    @property
    def output_names(self) -> list[str]:
        return [out.name for out in self._response.outputs]

    def _find(self, name: str) -> Optional[int]:
        for index, output in enumerate(self._response.outputs):
            if output.name == name:
                return index
        return None

    def get_output(self, name: str) -> Optional[TensorOutput]:
        """Get the first output named ``name``, or None."""
        index = self._find(name)
        if index is None:
            return None
        return TensorOutput.from_response(self._response, index)

    def extract(self, name: str) -> Optional[NativeArray]:
        """
        Decode the first output named ``name``.

        Raises:
            OutputNotFoundError: If no output has that name
        """
        output = self.get_output(name)
        if output is None:
            raise OutputNotFoundError(name, self.output_names)
        return output.decode()

    def as_numpy(self, name: str) -> Optional[np.ndarray]:
        """
        Decode an output to a numpy array.

        The array is reshaped to the declared shape when the element counts
        agree, and left flat otherwise.
        """
        output = self.get_output(name)
        if output is None:
            raise OutputNotFoundError(name, self.output_names)
        decoded = output.decode()
        if decoded is None:
            return None
        values = decoded.values
        if output.shape and all(d >= 0 for d in output.shape):
            if int(np.prod(output.shape)) == values.size:
                return values.reshape(output.shape)
        return values

    def _typed(self, name: str, kinds: tuple[NativeKind, ...]) -> np.ndarray:
        decoded = self.extract(name)
        if decoded is None or decoded.kind not in kinds:
            found = "nothing" if decoded is None else decoded.kind.name
            raise DatatypeMismatchError(
                message=(
                    f"Output '{name}' decodes to {found}, expected one of "
                    f"[{', '.join(k.name for k in kinds)}]"
                ),
                actual=None if decoded is None else decoded.datatype.wire_name,
            )
        return decoded.values

    def as_float_array(self, name: str) -> np.ndarray:
        """FP32, FP16 or BF16 output as float32."""
        return self._typed(name, (NativeKind.FLOAT32,))

    def as_double_array(self, name: str) -> np.ndarray:
        return self._typed(name, (NativeKind.FLOAT64,))

    def as_int_array(self, name: str) -> np.ndarray:
        """INT32 or UINT16 output as int32."""
        return self._typed(name, (NativeKind.INT32,))

    def as_long_array(self, name: str) -> np.ndarray:
        """INT64, UINT32 or UINT64 output as int64."""
        return self._typed(name, (NativeKind.INT64,))

    def as_string_array(self, name: str) -> list[str]:
        return self._typed(name, (NativeKind.STRING,)).tolist()

    def __repr__(self) -> str:
        return (
            f"InferResult(model_name={self.model_name!r}, "
            f"model_version={self.model_version!r}, outputs={self.output_names})"
        )
