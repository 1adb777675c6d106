"""
TensorWire Serving Module

Client-side pieces of the inference protocol:
- InferInput: input tensor encoder
- InferResult / TensorOutput: response decoder
- Protocol message dataclasses
- Request parameter builder
- Client boundary and in-process mock client

Copyright 2025 Wahyu Ardiansyah
Licensed under the Apache License, Version 2.0
"""

from .infer_input import (
    InferInput,
    InlinePayload,
    PayloadSource,
    SharedMemoryRegion,
)

from .infer_result import (
    InferResult,
    TensorOutput,
)

from .messages import (
    InferTensorContents,
    InferInputTensor,
    InferRequestedOutputTensor,
    ModelInferRequest,
    InferOutputTensor,
    ModelInferResponse,
)

from .parameters import InferParametersBuilder

from .triton_client import (
    TritonClient,
    MockTritonClient,
    build_infer_request,
)

__all__ = [
    "InferInput",
    "InlinePayload",
    "PayloadSource",
    "SharedMemoryRegion",
    "InferResult",
    "TensorOutput",
    "InferTensorContents",
    "InferInputTensor",
    "InferRequestedOutputTensor",
    "ModelInferRequest",
    "InferOutputTensor",
    "ModelInferResponse",
    "InferParametersBuilder",
    "TritonClient",
    "MockTritonClient",
    "build_infer_request",
]
