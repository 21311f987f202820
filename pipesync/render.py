"""
Rendering functions for pipesync output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich.markup import escape
from rich import box
from typing import List, Optional, Sequence

from .domain import (
    Repository,
    Pipeline,
    SyncStatus,
    DiscrepancyCode,
    FixSummary,
    OperationStatus,
)

console = Console()

DISCREPANCY_ICONS = {
    DiscrepancyCode.NO_PIPELINE: "🚫",
    DiscrepancyCode.VERSION_MISMATCH: "🔄",
    DiscrepancyCode.UNDECLARED_CONFIGURATION: "⚠️",
    DiscrepancyCode.NO_WEBHOOK: "🔗",
    DiscrepancyCode.BRANCH_CONFIGURATION_MISSING: "🌿",
    DiscrepancyCode.TAGS_NOT_ENABLED: "🏷️",
    DiscrepancyCode.SKIP_QUEUED_NOT_ENABLED: "⏭️",
    DiscrepancyCode.FILTER_NOT_SET: "🔍",
    DiscrepancyCode.MATURITY_TAGS_MISMATCH: "📦",
}

STATUS_STYLES = {
    OperationStatus.SUCCESS: ("✓", "green"),
    OperationStatus.DRY_RUN: ("~", "cyan"),
    OperationStatus.SKIPPED: ("-", "yellow"),
    OperationStatus.FAILED: ("✗", "red"),
}


def render_table(headers: List[str], rows: List[List[str]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    for header in headers:
        table.add_column(header)

    for row in rows:
        table.add_row(*[escape(str(val)) for val in row])

    console.print(table)


def render_sync_report(statuses: Sequence[SyncStatus]) -> None:
    """
    Render the sync report: summary counts, then per-repository drift.

    Args:
        statuses: Assessments of this run
    """
    in_sync = [s for s in statuses if s.in_sync]
    out_of_sync = [s for s in statuses if not s.in_sync]

    console.print("\n[bold]📊 Sync Status Summary[/bold]")
    console.print(f"  [green]✅ In sync: {len(in_sync)}[/green]")
    console.print(f"  [red]❌ Out of sync: {len(out_of_sync)}[/red]")
    console.print(f"  📦 Total repositories: {len(statuses)}")

    if in_sync:
        table = Table(title="Repositories in sync", box=box.ROUNDED, header_style="bold magenta")
        table.add_column("Repository", style="cyan")
        table.add_column("Pipeline", style="dim")
        for status in in_sync:
            table.add_row(escape(status.repository.slug), escape(status.pipeline.slug if status.pipeline else ""))
        console.print(table)

    if out_of_sync:
        table = Table(title="Repositories out of sync", box=box.ROUNDED, header_style="bold magenta")
        table.add_column("Repository", style="cyan")
        table.add_column("Pipeline", style="dim")
        table.add_column("Discrepancies", style="yellow")
        for status in out_of_sync:
            lines = [
                f"{DISCREPANCY_ICONS.get(d.code, '❓')} {escape(d.message)}"
                for d in status.discrepancies
            ]
            pipeline = status.pipeline.slug if status.pipeline else "None"
            table.add_row(escape(status.repository.slug), escape(pipeline), "\n".join(lines))
        console.print(table)


def render_fix_summary(summary: FixSummary) -> None:
    """Render the outcome of a remediation sweep."""
    if not summary.details:
        console.print("\n[green]Nothing to fix.[/green]")
        return

    title = "Remediation (dry run)" if summary.dry_run else "Remediation"
    table = Table(title=title, box=box.ROUNDED, header_style="bold magenta")
    table.add_column("Repository", style="cyan")
    table.add_column("Discrepancy")
    table.add_column("Result")

    for detail in summary.details:
        symbol, color = STATUS_STYLES[detail.status]
        text = detail.error if detail.status == OperationStatus.FAILED else (detail.message or detail.action)
        table.add_row(
            escape(detail.repo_name),
            detail.code.value,
            f"[{color}]{symbol}[/{color}] {escape(text or '')}",
        )
    console.print(table)

    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Fixed: {summary.successful}")
    if summary.skipped:
        console.print(f"  [yellow]Skipped: {summary.skipped}[/yellow]")
    if summary.failed:
        console.print(f"  [red]Failed: {summary.failed}[/red]")


def render_repository_list(repos: Sequence[Repository]) -> None:
    """Render repositories with their topics."""
    console.print(f"\n📦 Found {len(repos)} repositories:")
    render_table(
        ["Repository", "Description", "Topics"],
        [[r.slug, r.description or "", ", ".join(r.topics)] for r in repos],
    )


def render_pipeline_list(pipelines: Sequence[Pipeline]) -> None:
    """Render pipelines with their tags."""
    console.print(f"\n🔧 Found {len(pipelines)} pipelines:")
    render_table(
        ["Pipeline", "Slug", "URL", "Tags"],
        [[p.name, p.slug, p.web_url or "", ", ".join(p.tags)] for p in pipelines],
    )
