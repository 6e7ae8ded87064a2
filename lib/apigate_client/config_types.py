from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT_MS = 10_000


def _default_headers() -> Mapping[str, str]:
    return {"Content-Type": "application/json"}


@dataclass(frozen=True)
class ClientConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    default_headers: Mapping[str, str] = field(default_factory=_default_headers)
    client_version: str | None = None

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        # frozen dataclass: the headers mapping must not be mutable either
        object.__setattr__(self, "default_headers", MappingProxyType(dict(self.default_headers)))

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0
