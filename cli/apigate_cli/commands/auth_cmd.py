from __future__ import annotations

import typer

from .. import console
from ..auth_state import resolve_auth_context
from ..config import load_config, save_config

app = typer.Typer(help="Manage the bearer token sent with every request.")


@app.command("set-token")
def set_token(
        token: str | None = typer.Argument(None, help="Bearer token; prompted for when omitted."),
):
    if token is None:
        token = typer.prompt("Token", hide_input=True)
    token = token.strip()
    if not token:
        console.err("Token cannot be empty.")
        raise typer.Exit(code=2)
    cfg = load_config()
    cfg.auth.token = token
    cfg.auth.token_type = "bearer"
    save_path = save_config(cfg)
    console.ok(f"Token saved to {save_path}.")


@app.command("clear-token")
def clear_token():
    cfg = load_config()
    cfg.auth.token = ""
    save_path = save_config(cfg)
    console.ok(f"Token cleared from {save_path}.")


@app.command("status")
def status(
        profile: str | None = typer.Option(None, "--profile", help="Config profile to inspect."),
):
    ctx = resolve_auth_context(profile)
    if ctx.state == "token_present":
        console.ok(f"Bearer token set for {ctx.base_url}.")
    else:
        console.warn(f"No token set; requests to {ctx.base_url} go out unauthenticated.")
