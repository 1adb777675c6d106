"""
Inference Request Parameters.

Builds the custom parameter map sent with an inference request. Each value
is stored under the protocol field matching its Python type.

Copyright 2025 Wahyu Ardiansyah
Licensed under the Apache License, Version 2.0
"""

from typing import Union

from ..errors import ValidationError

# Managed by the client itself, never set through the builder.
RESERVED_KEYS = frozenset(
    {"sequence_id", "sequence_start", "sequence_end", "priority", "binary_data_output"}
)

ParameterValue = Union[str, int, float, bool]


class InferParametersBuilder:
    """
    Fluent builder for request parameters.

    Example:
        params = (
            InferParametersBuilder()
            .add("temperature", 0.7)
            .add("max_tokens", 100)
            .add("use_cache", True)
            .build()
        )
    """

    def __init__(self):
        self._parameters: dict[str, dict] = {}

    def add(self, key: str, value: ParameterValue) -> "InferParametersBuilder":
        """
        Add a parameter.

        Raises:
            ValidationError: If the key is reserved or the value type unsupported
        """
        if key in RESERVED_KEYS:
            raise ValidationError(
                f'Parameter "{key}" is a reserved parameter and cannot be specified.',
                parameter=key,
            )
        self._parameters[key] = to_parameter(key, value)
        return self

    def _add_internal(self, key: str, value: ParameterValue) -> "InferParametersBuilder":
        """Add a parameter without the reserved key check."""
        self._parameters[key] = to_parameter(key, value)
        return self

    def build(self) -> dict[str, dict]:
        """Return a copy of the accumulated parameters."""
        return {key: dict(param) for key, param in self._parameters.items()}


def to_parameter(key: str, value: ParameterValue) -> dict:
    """Wrap a Python value in its protocol parameter field."""
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return {"bool_param": value}
    if isinstance(value, int):
        return {"int64_param": value}
    if isinstance(value, float):
        return {"double_param": value}
    if isinstance(value, str):
        return {"string_param": value}
    raise ValidationError(
        f"Unsupported parameter type {type(value).__name__}",
        parameter=key,
        expected="str, int, float or bool",
        received=type(value).__name__,
    )
