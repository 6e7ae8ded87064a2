from .cancel import CancelHandle
from .client import Endpoint, HttpClient
from .config_types import ClientConfig
from .credentials import CredentialStore, MemoryTokenStore, StaticTokenStore
from .errors import (
    ApigateClientError,
    AuthError,
    HttpError,
    InvalidResponseError,
    NetworkError,
    RequestCancelled,
    ServerError,
)

__all__ = [
    "HttpClient",
    "Endpoint",
    "ClientConfig",
    "CancelHandle",
    "CredentialStore",
    "MemoryTokenStore",
    "StaticTokenStore",
    "ApigateClientError",
    "HttpError",
    "ServerError",
    "AuthError",
    "NetworkError",
    "InvalidResponseError",
    "RequestCancelled",
]
