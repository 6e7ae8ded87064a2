from __future__ import annotations

from typing import Any, Callable, Generic, Mapping, TypeVar

import httpx

from .cancel import DEFAULT_CANCEL_REASON, CancelHandle, CancelSlot
from .config_types import ClientConfig
from .credentials import CredentialStore, MemoryTokenStore
from .pipeline import RequestContext, compose, default_stages
from .transport import Transport, decode_body

T = TypeVar("T")


class HttpClient:
    """Client for a single backend.

    Every request goes through the same pipeline: bearer auth from the
    credential store, the configured timeout, retries on network errors
    (``retries`` extra attempts, zero unless the caller asks) and linkage to
    an optional :class:`CancelHandle`.

    The client keeps one "current" cancel handle. ``get_cancel_token()``
    replaces it with a fresh handle; ``cancel_request()`` triggers it and
    installs a new one, so requests issued with a superseded handle are left
    alone.
    """

    def __init__(
            self,
            cfg: ClientConfig | None = None,
            *,
            credentials: CredentialStore | None = None,
            transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._cfg = cfg or ClientConfig()
        self._credentials = credentials if credentials is not None else MemoryTokenStore()
        self._t = Transport(self._cfg, transport=transport)
        self._cancel_slot = CancelSlot()
        self._send = compose(default_stages(self._credentials, self._cfg.timeout_s), self._t.send)

    @property
    def config(self) -> ClientConfig:
        return self._cfg

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    async def aclose(self) -> None:
        await self._t.aclose()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # --- requests ---
    async def request(
            self,
            method: str,
            path: str,
            *,
            params: Mapping[str, Any] | None = None,
            json_body: Any = None,
            cancel_handle: CancelHandle | None = None,
            retries: int = 0,
    ) -> Any:
        ctx = RequestContext(
            method=method.upper(),
            path=path,
            params=params,
            json_body=json_body,
            retries_remaining=retries,
            cancel_handle=cancel_handle,
        )
        r = await self._send(ctx)
        return decode_body(r)

    async def get(
            self,
            path: str,
            params: Mapping[str, Any] | None = None,
            *,
            cancel_handle: CancelHandle | None = None,
            retries: int = 0,
    ) -> Any:
        return await self.request("GET", path, params=params, cancel_handle=cancel_handle, retries=retries)

    async def post(
            self,
            path: str,
            body: Any = None,
            *,
            cancel_handle: CancelHandle | None = None,
            retries: int = 0,
    ) -> Any:
        return await self.request("POST", path, json_body=body, cancel_handle=cancel_handle, retries=retries)

    async def put(
            self,
            path: str,
            body: Any = None,
            *,
            cancel_handle: CancelHandle | None = None,
            retries: int = 0,
    ) -> Any:
        return await self.request("PUT", path, json_body=body, cancel_handle=cancel_handle, retries=retries)

    async def delete(
            self,
            path: str,
            *,
            cancel_handle: CancelHandle | None = None,
            retries: int = 0,
    ) -> Any:
        return await self.request("DELETE", path, cancel_handle=cancel_handle, retries=retries)

    def endpoint(self, path: str, decode: Callable[[Any], T]) -> Endpoint[T]:
        return Endpoint(self, path, decode)

    # --- cancellation ---
    @property
    def current_cancel_handle(self) -> CancelHandle | None:
        return self._cancel_slot.current

    def new_cancel_handle(self) -> CancelHandle:
        return self._cancel_slot.new_handle()

    def cancel_current(self, reason: str = DEFAULT_CANCEL_REASON) -> bool:
        return self._cancel_slot.cancel_current(reason)

    get_cancel_token = new_cancel_handle
    cancel_request = cancel_current


class Endpoint(Generic[T]):
    """A path bound to a body decoder, so call sites get typed results."""

    def __init__(self, client: HttpClient, path: str, decode: Callable[[Any], T]):
        self._client = client
        self.path = path
        self._decode = decode

    async def get(self, params: Mapping[str, Any] | None = None, **kwargs: Any) -> T:
        return self._decode(await self._client.get(self.path, params, **kwargs))

    async def post(self, body: Any = None, **kwargs: Any) -> T:
        return self._decode(await self._client.post(self.path, body, **kwargs))

    async def put(self, body: Any = None, **kwargs: Any) -> T:
        return self._decode(await self._client.put(self.path, body, **kwargs))

    async def delete(self, **kwargs: Any) -> T:
        return self._decode(await self._client.delete(self.path, **kwargs))
