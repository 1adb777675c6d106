# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Structured Logger for TensorWire

Emits one line per event, as text or JSON, with tensor-level context
(model, tensor name, datatype, byte count, duration).

Example:
    from tensorwire.observability import WireLogger, Verbosity

    logger = WireLogger.get()
    logger.set_verbosity(Verbosity.DEBUG)
    logger.debug("Input serialized", component="client", tensor_name="x", nbytes=64)
"""

import json
import os
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Callable, Optional, TextIO


class Verbosity(IntEnum):
    """
    Logging verbosity levels.

    Uses IntEnum for numeric comparison (e.g., if verbosity >= INFO).
    """

    SILENT = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4


@dataclass
class LogEntry:
    """
    Structured log entry.

    Attributes:
        level: Log level (ERROR, WARNING, INFO, DEBUG)
        message: Log message
        timestamp: ISO format timestamp
        component: Source component (codec, client)
        model_name: Optional model name
        tensor_name: Optional tensor name
        datatype: Optional wire datatype
        nbytes: Optional payload size in bytes
        duration_ms: Optional duration in milliseconds
        extra: Additional context fields
    """

    level: str
    message: str
    timestamp: str
    component: str = "tensorwire"
    model_name: Optional[str] = None
    tensor_name: Optional[str] = None
    datatype: Optional[str] = None
    nbytes: Optional[int] = None
    duration_ms: Optional[float] = None
    extra: dict = field(default_factory=dict)

    def to_json(self) -> str:
        """Convert to JSON string."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if not data.get("extra"):
            data.pop("extra", None)
        return json.dumps(data, default=str)

    def to_text(self) -> str:
        """Convert to human-readable text format."""
        parts = [f"[{self.level}]", f"[{self.component}]", self.message]
        if self.tensor_name is not None:
            label = self.tensor_name
            if self.datatype is not None:
                label += f":{self.datatype}"
            parts.append(f"<{label}>")
        if self.nbytes is not None:
            parts.append(f"{self.nbytes}B")
        if self.duration_ms is not None:
            parts.append(f"({self.duration_ms:.2f}ms)")
        return " ".join(parts)


_ENTRY_FIELDS = ("model_name", "tensor_name", "datatype", "nbytes", "duration_ms")


class WireLogger:
    """
    Structured logger for TensorWire.

    Singleton; the verbosity defaults to INFO and can be preset with the
    TENSORWIRE_VERBOSITY environment variable (0-4).
    """

    _instance: Optional["WireLogger"] = None

    def __init__(self):
        self._verbosity = Verbosity.INFO
        self._output: TextIO = sys.stderr
        self._json_format = False
        self._handlers: list[Callable[[LogEntry], None]] = []

        env_verbosity = os.environ.get("TENSORWIRE_VERBOSITY")
        if env_verbosity is not None:
            try:
                self._verbosity = Verbosity(int(env_verbosity))
            except ValueError:
                pass

    @classmethod
    def get(cls) -> "WireLogger":
        """Get the singleton logger instance."""
        if cls._instance is None:
            cls._instance = WireLogger()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        cls._instance = None

    def set_verbosity(self, level: int) -> None:
        """
        Set verbosity level.

        Args:
            level: Verbosity level (0-4 or Verbosity enum), clamped into range
        """
        if isinstance(level, Verbosity):
            self._verbosity = level
        else:
            self._verbosity = Verbosity(max(0, min(4, level)))

    def get_verbosity(self) -> Verbosity:
        return self._verbosity

    def set_json_format(self, enabled: bool) -> None:
        self._json_format = enabled

    def set_output(self, output: TextIO) -> None:
        self._output = output

    def add_handler(self, handler: Callable[[LogEntry], None]) -> None:
        """Add a callback invoked with every emitted entry."""
        self._handlers.append(handler)

    def _log(self, level: Verbosity, message: str, context: dict) -> None:
        if self._verbosity < level:
            return
        entry = LogEntry(
            level=level.name,
            message=message,
            timestamp=datetime.now().isoformat(),
            component=context.pop("component", "tensorwire"),
            **{name: context.pop(name, None) for name in _ENTRY_FIELDS},
            extra=context,
        )
        line = entry.to_json() if self._json_format else entry.to_text()
        self._output.write(line + "\n")
        self._output.flush()
        for handler in self._handlers:
            handler(entry)

    def debug(self, message: str, **context) -> None:
        self._log(Verbosity.DEBUG, message, context)

    def info(self, message: str, **context) -> None:
        self._log(Verbosity.INFO, message, context)

    def warning(self, message: str, **context) -> None:
        self._log(Verbosity.WARNING, message, context)

    def error(self, message: str, **context) -> None:
        self._log(Verbosity.ERROR, message, context)


def get_logger() -> WireLogger:
    """Get the global TensorWire logger."""
    return WireLogger.get()


def set_verbosity(level: int) -> None:
    """
    Set global verbosity level.

    Args:
        level: Verbosity level (0=SILENT, 1=ERROR, 2=WARNING, 3=INFO, 4=DEBUG)
    """
    WireLogger.get().set_verbosity(level)
