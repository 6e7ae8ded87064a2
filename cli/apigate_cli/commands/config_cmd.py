from __future__ import annotations

import typer

from .. import console
from ..config import config_path, load_config, normalize_base_url, save_config

app = typer.Typer(help="Manage local settings (config.toml in the user config dir).")


@app.command("show")
def show_config():
    cfg = load_config()
    token_state = "(set)" if (cfg.auth.token or "").strip() else "(empty)"
    console.console.print(
        f"base_url={cfg.base_url} timeout_ms={cfg.timeout_ms} token={token_state} token_type={cfg.auth.token_type}",
        markup=False,
    )
    for name, value in sorted(cfg.headers.items()):
        console.console.print(f"header {name}: {value}", markup=False)


@app.command("path")
def show_path():
    console.console.print(config_path(), markup=False)


@app.command("set-base-url")
def set_base_url(
        base_url: str = typer.Argument(..., help="API base URL like http://localhost:3000"),
):
    value = normalize_base_url(base_url, warn=True)
    if not value:
        console.err("Base URL cannot be empty.")
        raise typer.Exit(code=2)
    cfg = load_config()
    cfg.base_url = value
    save_config(cfg)
    console.ok("Config updated.")


@app.command("set-timeout")
def set_timeout(
        timeout_ms: int = typer.Argument(..., min=1, help="Per-request timeout in milliseconds."),
):
    cfg = load_config()
    cfg.timeout_ms = timeout_ms
    save_config(cfg)
    console.ok("Config updated.")


@app.command("set-header")
def set_header(
        name: str = typer.Argument(..., help="Header name."),
        value: str = typer.Argument(..., help="Header value; empty string removes the header."),
):
    cfg = load_config()
    if value:
        cfg.headers[name] = value
    else:
        cfg.headers.pop(name, None)
    save_config(cfg)
    console.ok("Config updated.")
