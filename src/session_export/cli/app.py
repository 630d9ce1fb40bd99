"""Typer CLI root application with serve command."""

import typer

from session_export.core.config import get_settings
from session_export.core.logging import setup_logging

app = typer.Typer(name="session-export", help="Tenant gameplay-session export CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "session_export.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from session_export.cli.export_cmd import export_app
    from session_export.cli.token_cmd import token_app
    from session_export.cli.worker_cmd import worker_app

    app.add_typer(export_app, name="export", help="Session export commands")
    app.add_typer(worker_app, name="worker", help="Background worker commands")
    app.add_typer(token_app, name="token", help="Tenant token commands")


_register_subcommands()
