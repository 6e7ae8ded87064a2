from __future__ import annotations

from typing import Protocol


class CredentialStore(Protocol):
    def get_token(self) -> str | None:
        ...


class MemoryTokenStore:
    """In-process token holder. Starts empty."""

    def __init__(self, token: str | None = None):
        self._token = token

    def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str | None) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class StaticTokenStore:
    def __init__(self, token: str):
        self._token = token

    def get_token(self) -> str | None:
        return self._token
