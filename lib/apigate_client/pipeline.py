"""Request pipeline.

A request travels through an ordered list of stages before it reaches the
transport. Each stage is an async callable ``stage(ctx, call_next)`` that may
derive a new :class:`RequestContext`, call the rest of the pipeline, and act on
the result or the raised error. Contexts are immutable; stages hand a modified
copy down the chain instead of mutating the one they received.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Mapping, Sequence

import httpx

from .cancel import DEFAULT_CANCEL_REASON, CancelHandle
from .credentials import CredentialStore
from .errors import NetworkError, RequestCancelled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    method: str
    path: str
    params: Mapping[str, Any] | None = None
    json_body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_s: float | None = None
    retries_remaining: int = 0
    cancel_handle: CancelHandle | None = None
    attempt: int = 1

    def __post_init__(self) -> None:
        if self.retries_remaining < 0:
            raise ValueError("retries_remaining must be >= 0")

    def with_header(self, name: str, value: str) -> RequestContext:
        return replace(self, headers={**self.headers, name: value})


Send = Callable[[RequestContext], Awaitable[httpx.Response]]
Stage = Callable[[RequestContext, Send], Awaitable[httpx.Response]]


def compose(stages: Sequence[Stage], send: Send) -> Send:
    """Wrap ``send`` so that ``stages[0]`` runs first."""
    handler = send
    for stage in reversed(stages):
        handler = _bind(stage, handler)
    return handler


def _bind(stage: Stage, call_next: Send) -> Send:
    async def handler(ctx: RequestContext) -> httpx.Response:
        return await stage(ctx, call_next)

    return handler


def inject_auth(store: CredentialStore, *, scheme: str = "Bearer") -> Stage:
    async def stage(ctx: RequestContext, call_next: Send) -> httpx.Response:
        token = store.get_token()
        if token:
            ctx = ctx.with_header("Authorization", f"{scheme} {token}")
        return await call_next(ctx)

    return stage


def enforce_timeout(timeout_s: float) -> Stage:
    async def stage(ctx: RequestContext, call_next: Send) -> httpx.Response:
        if ctx.timeout_s is None:
            ctx = replace(ctx, timeout_s=timeout_s)
        return await call_next(ctx)

    return stage


async def retry_on_network_error(ctx: RequestContext, call_next: Send) -> httpx.Response:
    while True:
        try:
            return await call_next(ctx)
        except NetworkError as e:
            if ctx.retries_remaining <= 0:
                logger.error("Request failed: %s %s: %s", ctx.method, ctx.path, e.message)
                raise
            ctx = replace(ctx, retries_remaining=ctx.retries_remaining - 1, attempt=ctx.attempt + 1)
            logger.warning(
                "Retrying %s %s... %d attempts left.", ctx.method, ctx.path, ctx.retries_remaining
            )


async def link_cancellation(ctx: RequestContext, call_next: Send) -> httpx.Response:
    handle = ctx.cancel_handle
    if handle is None:
        return await call_next(ctx)
    handle.raise_if_cancelled()

    request = asyncio.ensure_future(call_next(ctx))
    waiter = asyncio.ensure_future(handle.wait())
    try:
        done, _ = await asyncio.wait({request, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not request.done():
            request.cancel()

    if request in done:
        return request.result()
    # drain the aborted attempt before reporting
    await asyncio.gather(request, return_exceptions=True)
    raise RequestCancelled(handle.reason or DEFAULT_CANCEL_REASON)


def default_stages(store: CredentialStore, timeout_s: float) -> list[Stage]:
    return [
        inject_auth(store),
        enforce_timeout(timeout_s),
        retry_on_network_error,
        link_cancellation,
    ]
