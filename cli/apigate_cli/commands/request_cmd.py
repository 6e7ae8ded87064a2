from __future__ import annotations

import asyncio
import json
import signal
from typing import Any

import typer

from apigate_client import HttpClient, InvalidResponseError, NetworkError, RequestCancelled, ServerError
from apigate_client.errors_utils import describe_error

from .. import console
from ..config import load_config
from ..http import make_client

EXIT_SERVER_ERROR = 2
EXIT_NETWORK_ERROR = 3
EXIT_CANCELLED = 130

RETRIES_OPTION = typer.Option(0, "--retries", min=0, help="Extra attempts on network errors.")
BASE_URL_OPTION = typer.Option(None, "--base-url", help="Override base URL.")
PROFILE_OPTION = typer.Option(None, "--profile", help="Config profile to use.")
DATA_OPTION = typer.Option(None, "--data", "-d", help="JSON body, or @file to read it from a file.")


def parse_params(raw: list[str] | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for item in raw or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"expected key=value, got {item!r}")
        params[key.strip()] = value
    return params


def parse_body(raw: str | None) -> Any:
    if raw is None:
        return None
    text = raw
    if raw.startswith("@"):
        with open(raw[1:], "r", encoding="utf-8") as f:
            text = f.read()
    try:
        return json.loads(text)
    except ValueError as e:
        raise ValueError(f"invalid JSON body: {e}") from e


async def _send(client: HttpClient, method: str, path: str, **kwargs: Any) -> Any:
    loop = asyncio.get_running_loop()
    handle = client.get_cancel_token()
    try:
        loop.add_signal_handler(signal.SIGINT, client.cancel_request)
        sigint_hooked = True
    except (NotImplementedError, RuntimeError, ValueError):
        # no signal support on this loop or thread; Ctrl-C falls back to KeyboardInterrupt
        sigint_hooked = False
    try:
        return await client.request(method, path, cancel_handle=handle, **kwargs)
    finally:
        if sigint_hooked:
            loop.remove_signal_handler(signal.SIGINT)
        await client.aclose()


def run_request(
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: Any = None,
        retries: int = 0,
        base_url: str | None = None,
        profile: str | None = None,
) -> None:
    cfg = load_config()
    client = make_client(cfg, profile=profile, base_url_override=base_url)
    try:
        data = asyncio.run(_send(client, method, path, params=params, json_body=body, retries=retries))
    except RequestCancelled as e:
        console.err(f"{method} {path} cancelled: {e.message}")
        raise typer.Exit(code=EXIT_CANCELLED)
    except ServerError as e:
        console.err(f"{method} {path} -> {e.status}: {describe_error(e)}")
        raise typer.Exit(code=EXIT_SERVER_ERROR)
    except NetworkError as e:
        console.err(f"{method} {path} failed: {e.message}")
        raise typer.Exit(code=EXIT_NETWORK_ERROR)
    except InvalidResponseError as e:
        console.err(f"{method} {path} -> {e.status}: {e.message}")
        raise typer.Exit(code=EXIT_SERVER_ERROR)
    console.print_body(data)


def _bad_input(msg: str) -> typer.Exit:
    console.err(msg)
    return typer.Exit(code=2)


def get_cmd(
        path: str = typer.Argument(..., help="Path relative to the base URL, e.g. /items."),
        param: list[str] | None = typer.Option(None, "--param", "-p", help="Query parameter key=value (repeatable)."),
        retries: int = RETRIES_OPTION,
        base_url: str | None = BASE_URL_OPTION,
        profile: str | None = PROFILE_OPTION,
):
    """Send a GET request and print the response body."""
    try:
        params = parse_params(param)
    except ValueError as e:
        raise _bad_input(str(e))
    run_request("GET", path, params=params, retries=retries, base_url=base_url, profile=profile)


def post_cmd(
        path: str = typer.Argument(..., help="Path relative to the base URL."),
        data: str | None = DATA_OPTION,
        retries: int = RETRIES_OPTION,
        base_url: str | None = BASE_URL_OPTION,
        profile: str | None = PROFILE_OPTION,
):
    """Send a POST request with a JSON body."""
    try:
        body = parse_body(data)
    except (OSError, ValueError) as e:
        raise _bad_input(str(e))
    run_request("POST", path, body=body, retries=retries, base_url=base_url, profile=profile)


def put_cmd(
        path: str = typer.Argument(..., help="Path relative to the base URL."),
        data: str | None = DATA_OPTION,
        retries: int = RETRIES_OPTION,
        base_url: str | None = BASE_URL_OPTION,
        profile: str | None = PROFILE_OPTION,
):
    """Send a PUT request with a JSON body."""
    try:
        body = parse_body(data)
    except (OSError, ValueError) as e:
        raise _bad_input(str(e))
    run_request("PUT", path, body=body, retries=retries, base_url=base_url, profile=profile)


def delete_cmd(
        path: str = typer.Argument(..., help="Path relative to the base URL."),
        retries: int = RETRIES_OPTION,
        base_url: str | None = BASE_URL_OPTION,
        profile: str | None = PROFILE_OPTION,
):
    """Send a DELETE request."""
    run_request("DELETE", path, retries=retries, base_url=base_url, profile=profile)
