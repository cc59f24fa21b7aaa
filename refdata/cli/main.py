"""Main entry point for the refdata command line interface."""

from __future__ import annotations

import typer

from refdata.core.logging import configure_logging

from .commands import register as register_commands


def create_app() -> typer.Typer:
    """Create a Typer application instance for refdata."""

    app = typer.Typer(add_completion=False, help="Reference data downloader")

    @app.callback()
    def main(
        ctx: typer.Context,
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Logging level. Defaults to the configured level.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        level = (log_level or "INFO").upper()
        ctx.obj["log_level"] = log_level.upper() if log_level else None
        try:
            configure_logging(level)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc

    register_commands(app)
    return app


app = create_app()
