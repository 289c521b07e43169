"""Rich terminal renderer for sync reports.

Turns a ``SyncReport`` into a color-coded table, one row per module.

Color scheme
------------
- green   : resolved
- yellow  : skipped_no_image_found
- red     : fetch_failed, runtime_failed
- magenta : archive_failed
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from modloader.models.modules import ArchiveEntry
from modloader.models.outcomes import SyncOutcome, SyncReport

_OUTCOME_STYLES: dict[SyncOutcome, str] = {
    SyncOutcome.RESOLVED: "green",
    SyncOutcome.SKIPPED_NO_IMAGE_FOUND: "yellow",
    SyncOutcome.FETCH_FAILED: "bold red",
    SyncOutcome.RUNTIME_FAILED: "bold red",
    SyncOutcome.ARCHIVE_FAILED: "bold magenta",
}


class ReportRenderer:
    """Renders sync reports, fetch plans and archive listings.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render(self, report: SyncReport) -> Panel:
        """Build a Panel with the per-module table and a summary line."""
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Module", min_width=20, overflow="fold")
        table.add_column("Image", min_width=16, overflow="fold")
        table.add_column("Outcome", min_width=12)
        table.add_column("Detail", overflow="fold")

        for i, result in enumerate(report.results):
            style = _OUTCOME_STYLES.get(result.outcome, "")
            table.add_row(
                str(i),
                Text(result.module_id),
                Text(result.reference) if result.reference else "[dim]-[/dim]",
                f"[{style}]{result.outcome.value}[/{style}]",
                Text(result.detail),
            )

        counts = report.counts()
        summary = "  |  ".join(
            [f"[bold]Modules:[/bold] {len(report.results)}"]
            + [
                f"[{_OUTCOME_STYLES[outcome]}]{outcome.value}: {n}[/{_OUTCOME_STYLES[outcome]}]"
                for outcome, n in counts.items()
            ]
        )
        border = "green" if not report.failed else "yellow"
        return Panel(
            Group(table, Text(""), Text.from_markup(summary)),
            title=f"[bold]{report.flow.value}[/bold]",
            border_style=border,
            padding=(1, 2),
        )

    def print_report(self, report: SyncReport) -> None:
        self.console.print(self.render(report))

    def print_plan(self, commands: list[str]) -> None:
        if not commands:
            self.console.print("[dim]Nothing to fetch.[/dim]")
            return
        for command in commands:
            self.console.print(command, markup=False, highlight=False)

    def print_archives(self, entries: list[ArchiveEntry]) -> None:
        if not entries:
            self.console.print("[dim]No archives.[/dim]")
            return
        table = Table(title="Image Archives", header_style="bold cyan")
        table.add_column("Archive", style="cyan", overflow="fold")
        table.add_column("Reference (best guess)", overflow="fold")
        table.add_column("Size", justify="right")
        for entry in entries:
            table.add_row(
                Text(entry.path.name), Text(entry.reference), f"{entry.path.stat().st_size:,}"
            )
        self.console.print(table)
