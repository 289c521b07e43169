"""``modloader load`` — materialize every allow-listed image into the runtime.

For each module: resolve its image, load it from the archive cache, and
self-heal the cache (pull + save) first when the archive is missing.
This is also what a bare ``modloader`` invocation runs.
"""

from __future__ import annotations

import typer

from modloader.cli.commands._common import get_config, run_flow


def load_cmd(
    ctx: typer.Context,
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with code 2 if any module failed.",
    ),
) -> None:
    """Ensure every allow-listed image is loaded into the local runtime."""
    run_flow(get_config(ctx), lambda loader: loader.ensure_loaded(), strict=strict)
