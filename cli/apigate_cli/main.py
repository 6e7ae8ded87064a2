from __future__ import annotations

import typer

from .commands import auth_cmd, config_cmd, request_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="apigate",
        help="apigate: talk to the configured backend.",
        no_args_is_help=True,
    )

    app.command("get")(request_cmd.get_cmd)
    app.command("post")(request_cmd.post_cmd)
    app.command("put")(request_cmd.put_cmd)
    app.command("delete")(request_cmd.delete_cmd)
    app.add_typer(auth_cmd.app, name="auth")
    app.add_typer(config_cmd.app, name="config")

    @app.callback()
    def _main(
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)

    return app


app = _build_app()
