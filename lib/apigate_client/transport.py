from __future__ import annotations

import json
from typing import Any

import httpx

from .config_types import ClientConfig
from .errors import AuthError, InvalidResponseError, NetworkError, ServerError
from .pipeline import RequestContext

USER_AGENT = "apigate-client/0.1.0"


def decode_body(r: httpx.Response) -> Any:
    if not r.content:
        return None
    try:
        return r.json()
    except ValueError:
        return r.text


class Transport:
    def __init__(self, cfg: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self._cfg = cfg
        headers = {"User-Agent": USER_AGENT}
        if cfg.client_version:
            headers["X-Client-Version"] = cfg.client_version
        headers.update(cfg.default_headers)

        self._client = httpx.AsyncClient(
            base_url=cfg.base_url.rstrip("/"),
            timeout=cfg.timeout_s,
            headers=headers,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, ctx: RequestContext) -> httpx.Response:
        kwargs: dict[str, Any] = {"headers": dict(ctx.headers)}
        if ctx.params:
            kwargs["params"] = dict(ctx.params)
        if ctx.json_body is not None:
            kwargs["json"] = ctx.json_body
        if ctx.timeout_s is not None:
            kwargs["timeout"] = ctx.timeout_s
        request = self._client.build_request(ctx.method, ctx.path, **kwargs)
        try:
            r = await self._send_following_redirects(ctx, request)
            try:
                await r.aread()
            except httpx.DecodingError as e:
                raise InvalidResponseError(
                    r.status_code, f"{ctx.method} {ctx.path}: could not decode response body ({e})"
                ) from e
            finally:
                await r.aclose()
        except httpx.TransportError as e:
            raise NetworkError(str(e) or e.__class__.__name__) from e

        if r.status_code >= 400:
            self._raise_for_status(ctx, r)
        return r

    async def _send_following_redirects(self, ctx: RequestContext, request: httpx.Request) -> httpx.Response:
        # a redirect loop reports the status of its last hop
        r = await self._client.send(request, stream=True, follow_redirects=False)
        hops = 0
        while r.next_request is not None:
            next_request = r.next_request
            await r.aclose()
            if hops >= self._client.max_redirects:
                raise InvalidResponseError(
                    r.status_code, f"{ctx.method} {ctx.path}: exceeded {hops} redirects"
                )
            hops += 1
            r = await self._client.send(next_request, stream=True, follow_redirects=False)
        return r

    @staticmethod
    def _raise_for_status(ctx: RequestContext, r: httpx.Response) -> None:
        data = decode_body(r)
        msg = f"{ctx.method} {ctx.path} failed with {r.status_code}"
        details = None

        if isinstance(data, dict):
            details = json.dumps(data, ensure_ascii=False)
            server_msg = data.get("detail") or data.get("message")
            if isinstance(server_msg, str) and server_msg:
                msg = server_msg
        elif isinstance(data, str) and data:
            details = data[:1000]

        if r.status_code in (401, 403):
            raise AuthError(r.status_code, msg, details)
        raise ServerError(r.status_code, msg, details)
