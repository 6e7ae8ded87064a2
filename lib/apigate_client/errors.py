from __future__ import annotations


class ApigateClientError(Exception):
    """Base client error."""


class HttpError(ApigateClientError):
    """A failed request; ``status`` is None when no response was received."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ServerError(HttpError):
    def __init__(self, status_code: int, message: str, details: str | None = None):
        super().__init__(message, status=status_code)
        self.details = details

    @property
    def status_code(self) -> int:
        return self.status


class AuthError(ServerError):
    """Auth-related API error."""


class NetworkError(HttpError):
    """Transport/network layer error."""

    def __init__(self, message: str):
        super().__init__(message, status=None)


class RequestCancelled(HttpError):
    """Request aborted through a triggered cancel handle."""

    def __init__(self, message: str = "Request cancelled"):
        super().__init__(message, status=None)


class InvalidResponseError(HttpError):
    """A response arrived but could not be used (undecodable body, redirect loop)."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message, status=status_code)
