"""
Inference Protocol Messages.

Plain dataclasses mirroring the request and response messages of the
KServe v2 gRPC inference protocol. They are what the codec hands to, and
receives from, the transport. Field names follow the protocol so that
generated protobuf messages can be used in their place.

Copyright 2025 Wahyu Ardiansyah
Licensed under the Apache License, Version 2.0
"""

import base64
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class InferTensorContents:
    """Structured per-type representation of tensor values."""

    bool_contents: list[bool] = field(default_factory=list)
    int_contents: list[int] = field(default_factory=list)
    int64_contents: list[int] = field(default_factory=list)
    uint_contents: list[int] = field(default_factory=list)
    uint64_contents: list[int] = field(default_factory=list)
    fp32_contents: list[float] = field(default_factory=list)
    fp64_contents: list[float] = field(default_factory=list)
    bytes_contents: list[bytes] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dict, keeping only populated lists."""
        result = {}
        for name, values in self.__dict__.items():
            if not values:
                continue
            if name == "bytes_contents":
                values = [base64.b64encode(bytes(v)).decode("ascii") for v in values]
            result[name] = list(values)
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "InferTensorContents":
        contents = cls(
            **{k: list(v) for k, v in data.items() if k != "bytes_contents"}
        )
        contents.bytes_contents = [
            base64.b64decode(v) for v in data.get("bytes_contents", [])
        ]
        return contents


@dataclass
class InferInputTensor:
    """Metadata of one input tensor in an inference request."""

    name: str
    datatype: str
    shape: list[int] = field(default_factory=list)
    parameters: dict[str, dict] = field(default_factory=dict)
    contents: Optional[InferTensorContents] = None

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "datatype": self.datatype,
            "shape": list(self.shape),
        }
        if self.parameters:
            result["parameters"] = dict(self.parameters)
        if self.contents is not None:
            result["contents"] = self.contents.to_dict()
        return result


@dataclass
class InferRequestedOutputTensor:
    """An output the client asks the server to return."""

    name: str
    parameters: dict[str, dict] = field(default_factory=dict)

    def to_dict(self) -> dict:
        result = {"name": self.name}
        if self.parameters:
            result["parameters"] = dict(self.parameters)
        return result


@dataclass
class ModelInferRequest:
    """
    Inference request.

    ``raw_input_contents`` holds one serialized buffer per input, in the
    same order as ``inputs``.
    """

    model_name: str
    model_version: str = ""
    id: str = ""
    parameters: dict[str, dict] = field(default_factory=dict)
    inputs: list[InferInputTensor] = field(default_factory=list)
    outputs: list[InferRequestedOutputTensor] = field(default_factory=list)
    raw_input_contents: list[bytes] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict; raw contents are base64."""
        result: dict[str, Any] = {
            "model_name": self.model_name,
            "inputs": [inp.to_dict() for inp in self.inputs],
        }
        if self.model_version:
            result["model_version"] = self.model_version
        if self.id:
            result["id"] = self.id
        if self.parameters:
            result["parameters"] = dict(self.parameters)
        if self.outputs:
            result["outputs"] = [out.to_dict() for out in self.outputs]
        if self.raw_input_contents:
            result["raw_input_contents"] = [
                base64.b64encode(raw).decode("ascii") for raw in self.raw_input_contents
            ]
        return result


@dataclass
class InferOutputTensor:
    """Metadata of one output tensor in an inference response."""

    name: str
    datatype: str
    shape: list[int] = field(default_factory=list)
    parameters: dict[str, dict] = field(default_factory=dict)
    contents: Optional[InferTensorContents] = None


@dataclass
class ModelInferResponse:
    """
    Inference response.

    ``raw_output_contents`` is indexed in parallel with ``outputs``; it may
    be shorter than ``outputs`` or empty when the server answered with
    structured contents.
    """

    model_name: str
    model_version: str = ""
    id: str = ""
    parameters: dict[str, dict] = field(default_factory=dict)
    outputs: list[InferOutputTensor] = field(default_factory=list)
    raw_output_contents: list[bytes] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ModelInferResponse":
        """Parse the dict form produced by a JSON transport (raw contents base64)."""
        outputs = []
        for out in data.get("outputs", []):
            contents = out.get("contents")
            outputs.append(
                InferOutputTensor(
                    name=out.get("name", ""),
                    datatype=out.get("datatype", ""),
                    shape=[int(d) for d in out.get("shape", [])],
                    parameters=dict(out.get("parameters", {})),
                    contents=(
                        InferTensorContents.from_dict(contents)
                        if contents is not None
                        else None
                    ),
                )
            )
        return cls(
            model_name=data.get("model_name", ""),
            model_version=data.get("model_version", ""),
            id=data.get("id", ""),
            parameters=dict(data.get("parameters", {})),
            outputs=outputs,
            raw_output_contents=[
                base64.b64decode(raw) for raw in data.get("raw_output_contents", [])
            ],
        )
