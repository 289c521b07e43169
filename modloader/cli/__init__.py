"""modloader CLI — Typer-based command-line interface.

Provides the ``modloader`` command.  A bare invocation runs the
ensure-loaded flow; subcommands cover exporting, planning and listing
archives.

All output uses Rich for formatted terminal display.
"""
