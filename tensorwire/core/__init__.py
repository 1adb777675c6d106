# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
TensorWire Core

Datatype registry, shapes, 16-bit float conversions and the raw tensor
codec.
"""

from .types import Datatype, Shape, NativeKind, NativeArray, as_shape, dtype_size
from . import codec
from . import halfprecision

__all__ = [
    "Datatype",
    "Shape",
    "NativeKind",
    "NativeArray",
    "as_shape",
    "dtype_size",
    "codec",
    "halfprecision",
]
