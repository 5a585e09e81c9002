"""
Result rendering for enrichment runs.

Turns an EnrichmentResult into either a rich table for humans or a JSON
document for machines. The default view lists sponsorable packages only.
"""

import json
import sys
from typing import List, Optional, TextIO

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..models import EnrichedEntry, EnrichmentResult, LookupStatus, OutputFormat


def select_entries(
    result: EnrichmentResult,
    show_all: bool = False,
    unique_repositories: bool = True,
) -> List[EnrichedEntry]:
    """
    Pick the entries to display, sorted by package name.

    Args:
        result: Outcome of an enrichment run
        show_all: Keep every entry, including not-found and failed lookups
        unique_repositories: In the sponsorable view, keep only the first
            package (in dependency order) for each repository

    Returns:
        Entries sorted by package name, then version
    """
    if show_all:
        selected = list(result.entries)
    else:
        selected = []
        seen_repositories = set()
        for entry in result.sponsorable():
            repository = (entry.info.repository or "").lower()
            if unique_repositories and repository:
                if repository in seen_repositories:
                    continue
                seen_repositories.add(repository)
            selected.append(entry)

    return sorted(selected, key=lambda entry: (entry.package.name.lower(), entry.package.version))


def _status_text(entry: EnrichedEntry) -> Text:
    info = entry.info
    if info.status is LookupStatus.FOUND:
        return Text("found", style="green")
    if info.status is LookupStatus.NOT_FOUND:
        return Text("not found", style="dim")
    return Text(f"failed ({info.reason.value})", style="red")


class ResultRenderer:
    """Renders an EnrichmentResult as a rich table or a JSON document."""

    def __init__(
        self,
        console: Optional[Console] = None,
        output_format: OutputFormat = OutputFormat.RICH,
        show_all: bool = False,
        unique_repositories: bool = True,
        stream: Optional[TextIO] = None,
    ):
        self.console = console or Console()
        self.output_format = OutputFormat(output_format)
        self.show_all = show_all
        self.unique_repositories = unique_repositories
        self.stream = stream

    def render(self, result: EnrichmentResult) -> None:
        entries = select_entries(result, self.show_all, self.unique_repositories)
        if self.output_format is OutputFormat.JSON:
            stream = self.stream or sys.stdout
            stream.write(self.to_json(entries) + "\n")
            stream.flush()
        else:
            self.print_table(entries, result)

    @staticmethod
    def to_json(entries: List[EnrichedEntry]) -> str:
        return json.dumps([entry.to_dict() for entry in entries], indent=2)

    def build_table(self, entries: List[EnrichedEntry]) -> Table:
        table = Table(box=box.SIMPLE_HEAD, show_edge=False, pad_edge=False)
        table.add_column("Package", style="yellow", no_wrap=True)
        table.add_column("Sponsors", style="dim", justify="left")
        table.add_column("Link", style="blue underline", overflow="fold")
        if self.show_all:
            table.add_column("Status")

        for entry in entries:
            count = entry.info.sponsor_count
            row = [
                entry.package.name,
                str(count) if count is not None else "-",
                entry.info.url or "-",
            ]
            if self.show_all:
                row.append(_status_text(entry))
            table.add_row(*row)
        return table

    def print_table(self, entries: List[EnrichedEntry], result: EnrichmentResult) -> None:
        if self.show_all:
            self.console.print()
            self.console.print("  [bold cyan]Dependencies[/bold cyan]")
            self.console.print(
                f"  Checked [bold]{len(result.entries)}[/bold] dependencies: "
                f"{len(result.sponsorable())} sponsorable, {result.failures} failed\n"
            )
        else:
            if not entries:
                self.console.print("No sponsorable dependencies found.")
                return
            self.console.print()
            self.console.print("  [bold cyan]💝 Sponsorable Dependencies[/bold cyan]\n")
            self.console.print(f"  Found [bold]{len(entries)}[/bold] projects you can support:\n")

        self.console.print(self.build_table(entries))
        self.console.print()
