# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Client Configuration

Connection and behaviour settings handed to a TritonClient. Values can be
given directly or read from the environment:

    TENSORWIRE_URL          Server URL (required when using from_env)
    TENSORWIRE_VERBOSE      "1", "true", "yes" or "on" to enable debug logging
    TENSORWIRE_TIMEOUT_MS   Default timeout in milliseconds
"""

import os
from dataclasses import asdict, dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_TIMEOUT_MS = 60000

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ClientConfig:
    """
    Client configuration.

    ``url`` and ``timeout_ms`` are not used by the client itself. They are
    read by the transport a subclass supplies by overriding
    ``TritonClient._send``, which reaches them through ``self.config``
    (``timeout`` gives the same limit in seconds). The in-process
    ``MockTritonClient`` ignores both.

    Attributes:
        url: Base URL of the server (e.g. "localhost:8001")
        verbose: Enable debug logging of requests and responses
        timeout_ms: Per-request timeout for the transport, must be > 0
    """

    url: str
    verbose: bool = False
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self):
        if not self.url:
            raise ConfigurationError("The server URL is required.", config_key="url")
        if self.timeout_ms <= 0:
            raise ConfigurationError(
                "The timeout must be greater than 0.",
                config_key="timeout_ms",
                config_value=self.timeout_ms,
            )

    @property
    def timeout(self) -> float:
        """Timeout in seconds."""
        return self.timeout_ms / 1000.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """Build a configuration from TENSORWIRE_* environment variables."""
        env = os.environ if environ is None else environ

        timeout_raw = env.get("TENSORWIRE_TIMEOUT_MS")
        timeout_ms = DEFAULT_TIMEOUT_MS
        if timeout_raw is not None:
            try:
                timeout_ms = int(timeout_raw)
            except ValueError:
                raise ConfigurationError(
                    "TENSORWIRE_TIMEOUT_MS must be an integer.",
                    config_key="TENSORWIRE_TIMEOUT_MS",
                    config_value=timeout_raw,
                ) from None

        return cls(
            url=env.get("TENSORWIRE_URL", ""),
            verbose=env.get("TENSORWIRE_VERBOSE", "").strip().lower() in _TRUTHY,
            timeout_ms=timeout_ms,
        )
