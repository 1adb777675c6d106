# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
TensorWire: Tensor Codec for the KServe v2 / Triton Inference Protocol

Converts native arrays to and from the binary tensor layout used by
inference servers.

Example:
    from tensorwire import Datatype, InferInput, InferResult

    inp = InferInput("text", [2], Datatype.BYTES)
    inp.set_data_from_strings(["hello", "world"])

    result = InferResult(response)
    scores = result.as_float_array("scores")
"""

__version__ = "0.1.0"
__author__ = "Wahyu Ardiansyah"

from .core import Datatype, Shape, NativeKind, NativeArray
from .config import ClientConfig
from .errors import (
    TensorWireError,
    ShapeMismatchError,
    DatatypeMismatchError,
    InvalidDatatypeError,
    DataNotFoundError,
    OutputNotFoundError,
    SharedMemoryError,
    NoDataError,
    TruncatedStringError,
    InferenceError,
    ValidationError,
    ConfigurationError,
)
from .serving import (
    InferInput,
    InferResult,
    TensorOutput,
    InferParametersBuilder,
    TritonClient,
    MockTritonClient,
    build_infer_request,
)

__all__ = [
    "__version__",
    "Datatype",
    "Shape",
    "NativeKind",
    "NativeArray",
    "ClientConfig",
    "TensorWireError",
    "ShapeMismatchError",
    "DatatypeMismatchError",
    "InvalidDatatypeError",
    "DataNotFoundError",
    "OutputNotFoundError",
    "SharedMemoryError",
    "NoDataError",
    "TruncatedStringError",
    "InferenceError",
    "ValidationError",
    "ConfigurationError",
    "InferInput",
    "InferResult",
    "TensorOutput",
    "InferParametersBuilder",
    "TritonClient",
    "MockTritonClient",
    "build_infer_request",
]
