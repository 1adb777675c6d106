# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
TensorWire Observability Module

Structured logging for the client boundary. Codec modules log through
the standard ``logging`` module under the ``tensorwire`` namespace.
"""

from .logger import (
    Verbosity,
    LogEntry,
    WireLogger,
    get_logger,
    set_verbosity,
)

__all__ = [
    "Verbosity",
    "LogEntry",
    "WireLogger",
    "get_logger",
    "set_verbosity",
]
