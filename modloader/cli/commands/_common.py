"""Helpers shared by the CLI commands: logging, loader construction, flow runs."""

from __future__ import annotations

import logging
from collections.abc import Callable

import typer
from rich.console import Console
from rich.logging import RichHandler

from modloader.config import LoaderConfig
from modloader.core.errors import ModuleLoaderError
from modloader.core.loader import ModuleLoader
from modloader.models.outcomes import SyncReport
from modloader.monitor.renderer import ReportRenderer

console = Console()


def configure_logging(level: str) -> None:
    """Send log records (the per-module status lines) to stderr via Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def get_config(ctx: typer.Context) -> LoaderConfig:
    """Return the config built by the app callback, or the environment default."""
    if isinstance(ctx.obj, LoaderConfig):
        return ctx.obj
    return LoaderConfig()


def build_loader(config: LoaderConfig) -> ModuleLoader:
    return ModuleLoader(config)


def run_flow(
    config: LoaderConfig,
    flow: Callable[[ModuleLoader], SyncReport],
    *,
    strict: bool = False,
) -> SyncReport:
    """Run one flow and print its report.

    Manifest-level and inventory errors abort with exit code 1.  Per-module
    failures only change the exit code (2) under ``strict``.
    """
    try:
        with build_loader(config) as loader:
            report = flow(loader)
    except ModuleLoaderError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    ReportRenderer(console=console).print_report(report)
    if strict and report.failed:
        raise typer.Exit(code=2)
    return report
