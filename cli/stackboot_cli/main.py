from __future__ import annotations

import typer

from .commands import bootstrap_cmd, settings_cmd, ssh_key_cmd, verify_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="stackboot",
        help="Provision an Ubuntu host for a containerized stack.",
        no_args_is_help=True,
    )

    app.command("bootstrap")(bootstrap_cmd.bootstrap)
    app.command("ssh-key")(ssh_key_cmd.ssh_key)
    app.command("verify")(verify_cmd.verify)
    app.add_typer(settings_cmd.app, name="settings")

    @app.callback()
    def _main(
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)

    return app


app = _build_app()
