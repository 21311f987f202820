"""
Handles the 'sync' command: assess, then fix.

Remediation is best-effort: failures are reported in the fix summary but
never change the exit status, and re-running is safe.
"""

import click

from ..cli_utils import handle_errors, add_common_options, resolve_settings, output_result
from ..render import render_sync_report, render_fix_summary, console
from ..services.sync_service import SyncService


@click.command(name='sync')
@add_common_options('bk_key', 'bk_org', 'gh_key', 'gh_orgs', 'dry_run', 'json_output')
@handle_errors
def sync_handler(bk_key, bk_org, gh_key, gh_orgs, dry_run, json_output):
    """Full sync with auto-fixes.

    \b
    Examples:
        pipesync sync --bk-key=$BK_TOKEN --bk-org=divvun \\
            --gh-key=$GH_TOKEN --gh-orgs=divvun,giellalt
        pipesync sync ... --dry-run
        pipesync sync ... --json          # JSONL: repositories, then the fix summary
    """
    settings = resolve_settings(gh_key=gh_key, gh_orgs=gh_orgs, bk_key=bk_key, bk_org=bk_org)
    service = SyncService(settings)

    report = service.collect()

    if json_output:
        summary = service.fix(report, dry_run=dry_run)
        output_result([status.to_dict() for status in report.statuses])
        output_result(summary.to_dict())
        return

    render_sync_report(report.statuses)

    console.print("\n🔧 Applying fixes..." if not dry_run else "\n🔧 Planning fixes...")
    summary = service.fix(report, dry_run=dry_run)
    render_fix_summary(summary)

    # Assessed before the fixes; the next run shows the new state
    render_sync_report(report.statuses)
