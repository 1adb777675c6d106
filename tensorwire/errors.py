# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
TensorWire Error Hierarchy

Every failure raised by the codec is local, deterministic and terminal:
nothing is retried, truncated or defaulted.

Error Categories:
- TensorWireError: Base class for all TensorWire errors
- ShapeMismatchError: Element count disagrees with the declared shape
- DatatypeMismatchError: Datatype incompatible with the data or buffer
- InvalidDatatypeError: Wire name unknown to the registry
- DataNotFoundError: No payload set on an input
- OutputNotFoundError: No output with the requested name
- SharedMemoryError: Payload lives in a shared memory region
- NoDataError: Output exists but carries neither raw nor structured data
- TruncatedStringError: BYTES record longer than the remaining buffer
- InferenceError: Model handler failure behind a client
- ValidationError: Invalid argument
- ConfigurationError: Invalid client configuration
"""

from typing import Optional, Sequence


class TensorWireError(Exception):
    """
    Base class for all TensorWire errors.

    Attributes:
        message: Human-readable error message
        suggestions: List of suggestions to fix the error
        context: Optional context dictionary for debugging
    """

    def __init__(
        self,
        message: str,
        suggestions: Optional[list[str]] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.context = context or {}

        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with suggestions."""
        lines = [self.message]

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        return "\n".join(lines)


class ShapeMismatchError(TensorWireError):
    """
    Data element count does not match the product of the shape.

    Attributes:
        shape: Declared shape of the tensor
        got_elements: Number of elements provided
        expected_elements: Number of elements the shape requires
    """

    def __init__(self, shape: Sequence[int], got_elements: int, expected_elements: int):
        self.shape = list(shape)
        self.got_elements = got_elements
        self.expected_elements = expected_elements

        super().__init__(
            message=(
                f"Dimension mismatch: The shape {self.shape} expects "
                f"{expected_elements} elements, but you provided a data array "
                f"of size {got_elements}"
            ),
            suggestions=[
                "Call set_shape() with the shape of the data",
                "Flatten or reshape the data before setting it",
            ],
        )


class DatatypeMismatchError(TensorWireError):
    """
    Datatype is not compatible with the attempted operation.

    Raised when:
    - Data of one native kind is set on an input declared with another type
    - A raw buffer is not a whole multiple of the element width
    - A wire name cannot be resolved
    - A value does not fit the declared element width
    """

    def __init__(
        self,
        message: str,
        actual: Optional[str] = None,
        expected: Optional[Sequence[str]] = None,
    ):
        self.actual = actual
        self.expected = list(expected) if expected else []

        context = {}
        if actual:
            context["actual"] = actual
        if expected:
            context["expected"] = ", ".join(self.expected)

        super().__init__(message=message, context=context)

    @classmethod
    def for_setter(cls, actual: str, expected: Sequence[str]) -> "DatatypeMismatchError":
        """Build the error raised when a setter meets an incompatible declared type."""
        return cls(
            message=(
                f"Datatype mismatch: The input tensor is defined as {actual}, "
                f"but you tried to set data of type(s) [{', '.join(expected)}]"
            ),
            actual=actual,
            expected=expected,
        )


class InvalidDatatypeError(DatatypeMismatchError):
    """Wire name is empty or matches no known datatype."""

    def __init__(self, value: Optional[str]):
        self.value = value
        if not value:
            message = "Datatype wire name cannot be empty"
        else:
            message = f"Unknown datatype: {value}"
        super().__init__(message=message, actual=value or None)


class DataNotFoundError(TensorWireError):
    """No payload available for a tensor."""

    def __init__(
        self,
        tensor_name: str,
        message: Optional[str] = None,
        suggestions: Optional[list[str]] = None,
    ):
        self.tensor_name = tensor_name
        super().__init__(
            message=message
            or (
                f"No data or raw content found for input: {tensor_name}. "
                "Did you call set_data()?"
            ),
            suggestions=suggestions,
            context={"tensor": tensor_name},
        )


class OutputNotFoundError(DataNotFoundError):
    """No output entry in the response carries the requested name."""

    def __init__(self, output_name: str, available: Optional[Sequence[str]] = None):
        self.available = list(available) if available else []
        suggestions = []
        if self.available:
            suggestions.append(f"Available outputs: {', '.join(self.available)}")
        super().__init__(
            output_name,
            message=f"Output tensor '{output_name}' was not found in the ModelInferResponse.",
            suggestions=suggestions,
        )


class SharedMemoryError(DataNotFoundError):
    """Inline data was requested from an input backed by a shared memory region."""

    def __init__(self, tensor_name: str, region_name: str):
        self.region_name = region_name
        super().__init__(
            tensor_name,
            message=(
                f"Cannot access raw content of input '{tensor_name}' because it is "
                f"configured to use shared memory region '{region_name}'."
            ),
        )


class NoDataError(TensorWireError):
    """Output entry exists but has neither a raw buffer nor structured contents."""

    def __init__(self, tensor_name: str):
        self.tensor_name = tensor_name
        super().__init__(
            message=f"Tensor '{tensor_name}' found but contains no data.",
            context={"tensor": tensor_name},
        )


class TruncatedStringError(TensorWireError):
    """A BYTES length prefix is negative or exceeds the remaining buffer."""

    def __init__(self, declared_length: int, available: int):
        self.declared_length = declared_length
        self.available = available
        super().__init__(
            message=(
                f"Truncated string data: expected {declared_length} bytes, "
                f"but only {available} available"
            ),
        )


class InferenceError(TensorWireError):
    """A model handler failed while serving a request."""

    def __init__(self, model_name: str, message: str):
        self.model_name = model_name
        super().__init__(
            message=f"Inference failed for model '{model_name}': {message}",
            context={"model_name": model_name},
        )


class ValidationError(TensorWireError):
    """
    Input validation error.

    Raised when:
    - An argument is empty or out of range
    - A reserved request parameter is set by the caller
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        expected: Optional[str] = None,
        received: Optional[str] = None,
    ):
        context = {}
        if parameter:
            context["parameter"] = parameter
        if expected:
            context["expected"] = expected
        if received:
            context["received"] = received

        super().__init__(
            message=f"Validation failed: {message}",
            suggestions=[
                "Check the parameter value and type",
                "Review the API documentation",
            ],
            context=context,
        )


class ConfigurationError(TensorWireError):
    """Invalid client configuration."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
    ):
        context = {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = str(config_value)

        super().__init__(
            message=f"Configuration error: {message}",
            suggestions=["Check configuration parameters"],
            context=context,
        )
