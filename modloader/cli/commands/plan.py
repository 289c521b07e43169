"""``modloader plan`` — print the commands that would fetch each image.

Resolves every module but makes no runtime calls.  With ``--ipfs``, modules
that publish a CID are fetched from IPFS instead of a registry.
"""

from __future__ import annotations

import typer

from modloader.cli.commands import _common
from modloader.cli.commands._common import console, get_config
from modloader.core.archive_cache import ArchiveCache
from modloader.core.errors import ModuleLoaderError
from modloader.monitor.renderer import ReportRenderer
from modloader.runtime import create_image_store


def plan_cmd(
    ctx: typer.Context,
    ipfs: bool = typer.Option(
        False,
        "--ipfs",
        help="Prefer IPFS CIDs over registry pulls.",
    ),
) -> None:
    """Print a fetch command for every allow-listed module."""
    config = get_config(ctx)
    if ipfs:
        config = config.model_copy(update={"use_ipfs": ipfs})

    try:
        with _common.build_loader(config) as loader:
            commands = loader.plan()
    except ModuleLoaderError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    ReportRenderer(console=console).print_plan(commands)


def archives_cmd(ctx: typer.Context) -> None:
    """List the image archives in the archive directory."""
    config = get_config(ctx)
    cache = ArchiveCache(config.archive_dir, create_image_store(config), create=False)
    ReportRenderer(console=console).print_archives(cache.list_entries())
