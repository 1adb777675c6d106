"""
Triton Inference Client Boundary.

Assembles inference requests from InferInput objects and turns responses
into InferResult objects. The transport that actually carries a request
is supplied by subclasses through ``_send``; MockTritonClient runs models
in-process for tests and development.

Copyright 2025 Wahyu Ardiansyah
Licensed under the Apache License, Version 2.0
"""

import time
from typing import Callable, Optional, Sequence, Union

import numpy as np

from ..config import ClientConfig
from ..core import codec
from ..core.types import Datatype
from ..errors import DataNotFoundError, InferenceError
from ..observability import Verbosity, get_logger
from .infer_input import InferInput, PayloadSource
from .infer_result import InferResult
from .messages import (
    InferOutputTensor,
    InferRequestedOutputTensor,
    ModelInferRequest,
    ModelInferResponse,
)
from .parameters import InferParametersBuilder

ModelHandler = Callable[[dict[str, np.ndarray]], dict[str, np.ndarray]]


# ============================================================================
# Request Assembly
# ============================================================================


def build_infer_request(
    model_name: str,
    inputs: Sequence[InferInput],
    outputs: Optional[Sequence[str]] = None,
    model_version: str = "",
    request_id: str = "",
    parameters: Optional[dict[str, dict]] = None,
) -> ModelInferRequest:
    """
    Collect input metadata and raw bytes into a request.

    Inputs backed by a shared memory region contribute metadata only.

    Raises:
        DataNotFoundError: If an input has neither data nor a region reference
    """
    request = ModelInferRequest(
        model_name=model_name,
        model_version=model_version or "",
        id=request_id,
        parameters=dict(parameters or {}),
    )
    for inp in inputs:
        source = inp.payload_source
        if source is PayloadSource.NONE or (
            source is PayloadSource.INLINE and not inp.has_raw_content()
        ):
            raise DataNotFoundError(inp.name)
        request.inputs.append(inp.get_tensor())
        if source is PayloadSource.INLINE:
            request.raw_input_contents.append(inp.raw_content)

    for name in outputs or []:
        request.outputs.append(InferRequestedOutputTensor(name=name))
    return request


# ============================================================================
# Triton Client
# ============================================================================


class TritonClient:
    """
    Client for a KServe v2 / Triton inference server.

    Subclasses implement ``_send`` over their transport (gRPC, HTTP, ...).

    Example:
        client = MyGrpcClient(ClientConfig(url="localhost:8001"))
        inp = InferInput("x", [2], Datatype.FP32).set_data_from_floats([1.0, 2.0])
        result = client.infer("my_model", [inp])
        y = result.as_float_array("y")
    """

    def __init__(self, config: Union[ClientConfig, str]):
        """
        Initialize client.

        Args:
            config: Client configuration or a server URL
        """
        if isinstance(config, str):
            config = ClientConfig(url=config)
        self.config = config
        self._logger = get_logger()
        if config.verbose:
            self._logger.set_verbosity(Verbosity.DEBUG)

    def infer(
        self,
        model_name: str,
        inputs: Sequence[InferInput],
        outputs: Optional[Sequence[str]] = None,
        model_version: str = "",
        request_id: str = "",
        parameters: Optional[dict[str, dict]] = None,
        priority: int = 0,
    ) -> InferResult:
        """
        Perform an inference request.

        Args:
            model_name: Name of the model
            inputs: Input tensors with data set
            outputs: Output names to retrieve (None for all)
            model_version: Specific model version (empty for latest)
            request_id: Optional request ID for tracing
            parameters: Custom parameters from InferParametersBuilder
            priority: Request priority, 0 for the model default

        Returns:
            InferResult wrapping the server response
        """
        start_time = time.perf_counter()

        params = dict(parameters or {})
        if priority:
            params.update(InferParametersBuilder()._add_internal("priority", priority).build())

        request = build_infer_request(
            model_name, inputs, outputs, model_version, request_id, params
        )
        for tensor, raw in zip(request.inputs, request.raw_input_contents):
            self._logger.debug(
                "Input serialized",
                component="client",
                model_name=model_name,
                tensor_name=tensor.name,
                datatype=tensor.datatype,
                nbytes=len(raw),
            )

        response = self._send(request)

        self._logger.debug(
            "Inference complete",
            component="client",
            model_name=model_name,
            duration_ms=(time.perf_counter() - start_time) * 1000,
            outputs=len(response.outputs),
        )
        return InferResult(response)

    def _send(self, request: ModelInferRequest) -> ModelInferResponse:
        """Carry a request to the server and return its response."""
        raise NotImplementedError(
            f"{type(self).__name__} does not provide a transport"
        )


# ============================================================================
# Mock Client for Testing
# ============================================================================


class MockTritonClient(TritonClient):
    """
    In-process client for testing without a server.

    Registered handlers receive decoded inputs as numpy arrays and return
    a dict of output arrays, which are serialized back into raw buffers
    exactly as a server would send them.
    """

    def __init__(self, config: Union[ClientConfig, str] = "localhost:8001"):
        super().__init__(config)
        self._handlers: dict[str, ModelHandler] = {}
        self._versions: dict[str, str] = {}

    def register_model(self, name: str, handler: ModelHandler, version: str = "1"):
        """Register a mock model."""
        self._handlers[name] = handler
        self._versions[name] = version

    def _send(self, request: ModelInferRequest) -> ModelInferResponse:
        handler = self._handlers.get(request.model_name)
        if handler is None:
            raise InferenceError(
                request.model_name, f"Model '{request.model_name}' not found"
            )

        if len(request.raw_input_contents) != len(request.inputs):
            raise InferenceError(
                request.model_name, "Shared memory inputs are not supported"
            )

        arrays = {}
        for tensor, raw in zip(request.inputs, request.raw_input_contents):
            values = codec.deserialize(raw, Datatype.from_wire_name(tensor.datatype))
            if tensor.shape and values.size == int(np.prod(tensor.shape)):
                values = values.reshape(tensor.shape)
            arrays[tensor.name] = values

        try:
            produced = handler(arrays)
        except Exception as e:
            raise InferenceError(request.model_name, str(e)) from e

        requested = [out.name for out in request.outputs]
        response = ModelInferResponse(
            model_name=request.model_name,
            model_version=request.model_version or self._versions[request.model_name],
            id=request.id,
        )
        for name, array in produced.items():
            if requested and name not in requested:
                continue
            array = np.asarray(array)
            datatype = Datatype.from_numpy(array.dtype)
            response.outputs.append(
                InferOutputTensor(
                    name=name, datatype=datatype.wire_name, shape=list(array.shape)
                )
            )
            response.raw_output_contents.append(codec.serialize(array, datatype))
        return response
