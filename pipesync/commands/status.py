"""
Handles the 'status' command: read-only drift report.

Fetches pipelines and repositories once, assesses every repository and
prints the report. With --output, also fetches releases and writes the
status document (maturity and package channels per pipeline).
"""

import logging

import click

from ..cli_utils import handle_errors, add_common_options, resolve_settings, output_result
from ..render import render_sync_report
from ..services.sync_service import SyncService

logger = logging.getLogger(__name__)


@click.command(name='status')
@click.option('--output', type=click.Path(dir_okay=False),
              help='Write the status document (JSON) to this path')
@add_common_options('bk_key', 'bk_org', 'gh_key', 'gh_orgs', 'json_output')
@handle_errors
def status_handler(output, bk_key, bk_org, gh_key, gh_orgs, json_output):
    """Check sync status without making changes.

    \b
    Examples:
        pipesync status --bk-key=$BK_TOKEN --bk-org=divvun \\
            --gh-key=$GH_TOKEN --gh-orgs=divvun,giellalt
        pipesync status ... --output=status.json
        pipesync status ... --json        # JSONL, one repository per line
    """
    settings = resolve_settings(gh_key=gh_key, gh_orgs=gh_orgs, bk_key=bk_key, bk_org=bk_org)
    service = SyncService(settings)

    report = service.collect(fetch_releases=bool(output))
    if json_output:
        output_result([status.to_dict() for status in report.statuses])
    else:
        render_sync_report(report.statuses)

    if output:
        try:
            service.write_status_document(report, output)
        except OSError as e:
            logger.error(f"Failed to write status document to {output}: {e}")
