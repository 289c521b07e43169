"""``modloader export`` — populate the archive cache from the allow-list.

Pulls every module's image from its registry (best-effort) and saves an
archive for it, skipping archives that already exist.
"""

from __future__ import annotations

import typer

from modloader.cli.commands._common import get_config, run_flow


def export_cmd(
    ctx: typer.Context,
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with code 2 if any module failed.",
    ),
) -> None:
    """Ensure an archive exists for every allow-listed image."""
    run_flow(get_config(ctx), lambda loader: loader.ensure_exported(), strict=strict)


def export_local_cmd(
    ctx: typer.Context,
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with code 2 if any image failed.",
    ),
) -> None:
    """Save an archive for every tagged image installed in the local runtime."""
    run_flow(get_config(ctx), lambda loader: loader.export_installed(), strict=strict)
