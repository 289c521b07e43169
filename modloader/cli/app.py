"""Main Typer application — imports and registers all CLI commands.

Entry point: ``modloader`` (configured via pyproject.toml console_scripts).
With no subcommand it runs the ensure-loaded flow against the configured
manifest.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer

from modloader.cli.commands._common import configure_logging, run_flow
from modloader.cli.commands.export import export_cmd, export_local_cmd
from modloader.cli.commands.load import load_cmd
from modloader.cli.commands.plan import archives_cmd, plan_cmd
from modloader.config import LoaderConfig


class Transport(str, Enum):
    """Values accepted by ``--transport``."""

    api = "api"
    cli = "cli"


app = typer.Typer(
    name="modloader",
    help="Module Loader: sync allow-listed module images with a local archive cache.",
    invoke_without_command=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="load", help="Load every allow-listed image (default).")(load_cmd)
app.command(name="export", help="Pull and archive every allow-listed image.")(export_cmd)
app.command(name="export-local", help="Archive every locally installed image.")(export_local_cmd)
app.command(name="plan", help="Print fetch commands without running them.")(plan_cmd)
app.command(name="archives", help="List archived images.")(archives_cmd)


@app.callback()
def main_callback(
    ctx: typer.Context,
    manifest_url: str = typer.Option(None, "--manifest-url", help="Allow-list manifest URL."),
    archive_dir: Path = typer.Option(None, "--archive-dir", help="Directory for image archives."),
    transport: Transport = typer.Option(None, "--transport", help="Runtime transport."),
    workers: int = typer.Option(None, "--workers", min=1, help="Modules processed concurrently."),
    log_level: str = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Welcome to the Module Loader."""
    overrides = {
        "manifest_url": manifest_url,
        "archive_dir": archive_dir,
        "runtime_transport": transport.value if transport else None,
        "max_workers": workers,
        "log_level": log_level,
    }
    config = LoaderConfig(**{k: v for k, v in overrides.items() if v is not None})
    configure_logging(config.log_level)
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        run_flow(config, lambda loader: loader.ensure_loaded())


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
