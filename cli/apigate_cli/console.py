from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape

console = Console()
err_console = Console(stderr=True)


def print_body(data: Any) -> None:
    if data is None:
        return
    if isinstance(data, str):
        console.print(data, markup=False, highlight=False)
        return
    console.print_json(data=data)


def info(msg: str) -> None:
    err_console.print(f"[bold cyan]•[/] {escape(msg)}")


def ok(msg: str) -> None:
    err_console.print(f"[bold green]OK[/] {escape(msg)}")


def warn(msg: str) -> None:
    err_console.print(f"[bold yellow]WARN[/] {escape(msg)}")


def err(msg: str) -> None:
    err_console.print(f"[bold red]ERR[/] {escape(msg)}")
