from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from apigate_client import (
    AuthError,
    ClientConfig,
    HttpClient,
    InvalidResponseError,
    MemoryTokenStore,
    NetworkError,
    RequestCancelled,
    ServerError,
)


class _Recorder:
    def __init__(self, respond):
        self._respond = respond
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return await self._respond(request)


def _make_client(respond, *, token: str | None = None, **cfg_kwargs) -> tuple[HttpClient, _Recorder]:
    recorder = _Recorder(respond)
    client = HttpClient(
        ClientConfig(base_url="http://api.test", **cfg_kwargs),
        credentials=MemoryTokenStore(token),
        transport=httpx.MockTransport(recorder),
    )
    return client, recorder


async def _network_down(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.mark.asyncio
async def test_get_attaches_bearer_token_and_returns_body() -> None:
    async def respond(request):
        return httpx.Response(200, json={"id": 1})

    client, rec = _make_client(respond, token="abc")
    async with client:
        data = await client.get("/items", {"page": 2})

    assert data == {"id": 1}
    assert len(rec.requests) == 1
    req = rec.requests[0]
    assert req.method == "GET"
    assert req.url.path == "/items"
    assert req.url.params["page"] == "2"
    assert req.headers["Authorization"] == "Bearer abc"


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, ""])
async def test_missing_token_omits_authorization_header(token) -> None:
    async def respond(request):
        return httpx.Response(200, json=[])

    client, rec = _make_client(respond, token=token)
    async with client:
        await client.get("/items")

    assert "Authorization" not in rec.requests[0].headers


@pytest.mark.asyncio
async def test_token_is_read_at_request_time() -> None:
    async def respond(request):
        return httpx.Response(200, json={})

    client, rec = _make_client(respond)
    async with client:
        await client.get("/a")
        client.credentials.set_token("late")
        await client.get("/b")

    assert "Authorization" not in rec.requests[0].headers
    assert rec.requests[1].headers["Authorization"] == "Bearer late"


@pytest.mark.asyncio
async def test_default_headers_and_timeout_are_applied() -> None:
    async def respond(request):
        return httpx.Response(200, json={})

    client, rec = _make_client(respond, timeout_ms=2500, default_headers={"X-Team": "core"})
    async with client:
        await client.get("/items")

    req = rec.requests[0]
    assert req.headers["X-Team"] == "core"
    assert req.headers["User-Agent"].startswith("apigate-client/")
    assert req.extensions["timeout"]["read"] == 2.5


@pytest.mark.asyncio
async def test_post_and_put_send_json_body() -> None:
    async def respond(request):
        return httpx.Response(201, json=json.loads(request.content))

    client, rec = _make_client(respond)
    async with client:
        created = await client.post("/items", {"name": "x"})
        updated = await client.put("/items/1", {"name": "y"})

    assert created == {"name": "x"}
    assert updated == {"name": "y"}
    assert [r.method for r in rec.requests] == ["POST", "PUT"]
    assert rec.requests[0].headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_non_json_and_empty_bodies() -> None:
    async def respond(request):
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, text="pong")

    client, _ = _make_client(respond)
    async with client:
        assert await client.get("/ping") == "pong"
        assert await client.delete("/items/5") is None


@pytest.mark.asyncio
async def test_persistent_network_error_uses_whole_retry_budget(caplog) -> None:
    client, rec = _make_client(_network_down)
    caplog.set_level(logging.WARNING, logger="apigate_client")

    async with client:
        with pytest.raises(NetworkError) as exc_info:
            await client.post("/items", {"name": "x"}, retries=2)

    assert len(rec.requests) == 3
    assert exc_info.value.status is None
    assert all(json.loads(r.content) == {"name": "x"} for r in rec.requests)
    assert "Retrying POST /items... 1 attempts left." in caplog.text
    assert "Retrying POST /items... 0 attempts left." in caplog.text


@pytest.mark.asyncio
async def test_no_retry_budget_fails_on_first_network_error() -> None:
    client, rec = _make_client(_network_down)
    async with client:
        with pytest.raises(NetworkError):
            await client.get("/items")

    assert len(rec.requests) == 1


@pytest.mark.asyncio
async def test_retry_recovers_after_transient_network_error() -> None:
    calls = {"n": 0}

    async def respond(request):
        calls["n"] += 1
        if calls["n"] == 1:
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(200, json={"ok": True})

    client, rec = _make_client(respond)
    async with client:
        data = await client.get("/items", retries=3)

    assert data == {"ok": True}
    assert len(rec.requests) == 2


@pytest.mark.asyncio
async def test_server_error_is_never_retried() -> None:
    async def respond(request):
        return httpx.Response(404, json={"detail": "item not found"})

    client, rec = _make_client(respond)
    async with client:
        with pytest.raises(ServerError) as exc_info:
            await client.delete("/items/5", retries=3)

    assert len(rec.requests) == 1
    assert exc_info.value.status == 404
    assert exc_info.value.message == "item not found"
    assert json.loads(exc_info.value.details) == {"detail": "item not found"}


@pytest.mark.asyncio
async def test_server_error_without_json_uses_default_message() -> None:
    async def respond(request):
        return httpx.Response(502, text="bad gateway")

    client, _ = _make_client(respond)
    async with client:
        with pytest.raises(ServerError) as exc_info:
            await client.get("/items")

    assert str(exc_info.value) == "GET /items failed with 502"
    assert exc_info.value.details == "bad gateway"


@pytest.mark.asyncio
async def test_unauthorized_raises_auth_error() -> None:
    async def respond(request):
        return httpx.Response(401, json={"message": "token expired"})

    client, _ = _make_client(respond, token="old")
    async with client:
        with pytest.raises(AuthError) as exc_info:
            await client.get("/me")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "token expired"


@pytest.mark.asyncio
async def test_cancel_request_aborts_in_flight_request() -> None:
    started = asyncio.Event()

    async def respond(request):
        started.set()
        await asyncio.sleep(30)
        return httpx.Response(200, json={})

    client, rec = _make_client(respond)
    async with client:
        handle = client.get_cancel_token()
        task = asyncio.create_task(client.get("/slow", cancel_handle=handle, retries=3))
        await started.wait()
        assert client.cancel_request() is True

        with pytest.raises(RequestCancelled) as exc_info:
            await task

    assert not isinstance(exc_info.value, (NetworkError, ServerError))
    assert exc_info.value.message == "Request cancelled by the user"
    assert len(rec.requests) == 1


@pytest.mark.asyncio
async def test_cancelled_handle_fails_later_requests_without_sending() -> None:
    async def respond(request):
        return httpx.Response(200, json={})

    client, rec = _make_client(respond)
    async with client:
        handle = client.get_cancel_token()
        client.cancel_request()
        with pytest.raises(RequestCancelled):
            await client.post("/items", {"name": "x"}, cancel_handle=handle)

        # the slot was refilled with a fresh handle
        fresh = client.current_cancel_handle
        assert fresh is not None and fresh is not handle
        assert await client.get("/items", cancel_handle=fresh) == {}

    assert len(rec.requests) == 1


@pytest.mark.asyncio
async def test_cancel_request_without_handle_is_noop() -> None:
    async def respond(request):
        return httpx.Response(200, json={"id": 1})

    client, _ = _make_client(respond)
    async with client:
        assert client.cancel_request() is False
        assert client.current_cancel_handle is None
        assert await client.get("/items") == {"id": 1}


@pytest.mark.asyncio
async def test_cancel_only_affects_latest_handle() -> None:
    async def respond(request):
        return httpx.Response(200, json={"ok": True})

    client, _ = _make_client(respond)
    async with client:
        first = client.new_cancel_handle()
        second = client.new_cancel_handle()
        client.cancel_current()

        assert second.cancelled
        assert not first.cancelled
        assert await client.get("/items", cancel_handle=first) == {"ok": True}


@pytest.mark.asyncio
async def test_endpoint_decodes_body() -> None:
    async def respond(request):
        return httpx.Response(200, json={"id": 7, "name": "x"})

    client, rec = _make_client(respond)
    async with client:
        items = client.endpoint("/items/7", lambda body: (body["id"], body["name"]))
        assert await items.get() == (7, "x")
        assert await items.put({"name": "x"}) == (7, "x")

    assert [r.method for r in rec.requests] == ["GET", "PUT"]


@pytest.mark.asyncio
async def test_undecodable_body_is_not_treated_as_network_error() -> None:
    async def respond(request):
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not-gzip")

    client, rec = _make_client(respond)
    async with client:
        with pytest.raises(InvalidResponseError) as exc_info:
            await client.get("/items", retries=2)

    assert len(rec.requests) == 1
    assert exc_info.value.status == 200
    assert not isinstance(exc_info.value, NetworkError)


@pytest.mark.asyncio
async def test_redirect_loop_reports_last_status_without_retry() -> None:
    async def respond(request):
        return httpx.Response(302, headers={"Location": "/loop"})

    client, rec = _make_client(respond)
    async with client:
        with pytest.raises(InvalidResponseError) as exc_info:
            await client.get("/loop", retries=2)

    assert exc_info.value.status == 302
    # one attempt: the initial request plus the default 20 redirect hops
    assert len(rec.requests) == 21


@pytest.mark.asyncio
async def test_redirect_is_followed_to_final_body() -> None:
    async def respond(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "/new"})
        return httpx.Response(200, json={"moved": True})

    client, rec = _make_client(respond)
    async with client:
        assert await client.get("/old") == {"moved": True}

    assert [r.url.path for r in rec.requests] == ["/old", "/new"]
