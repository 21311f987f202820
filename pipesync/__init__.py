"""
pipesync - Keep Buildkite pipelines in sync with GitHub repositories.

Quick Start:
    from pipesync.config import load_config, build_settings
    from pipesync.services import SyncService

    settings = build_settings(load_config(), gh_key=..., gh_orgs="divvun",
                              bk_key=..., bk_org="divvun")
    service = SyncService(settings)

    report = service.collect()
    for status in report.out_of_sync:
        print(status.repository.slug, status.codes)

    summary = service.fix(report, dry_run=True)

Domain Objects:
    Repository - GitHub repository with topics
    Pipeline - Buildkite pipeline with its settings
    SyncStatus - Discrepancies found for one repository
    FixSummary - Outcome of a remediation sweep
"""

__version__ = "0.1.0"

from .domain import (
    Repository,
    Webhook,
    Release,
    Pipeline,
    DiscrepancyCode,
    Discrepancy,
    SyncStatus,
    PackageChannels,
    StatusEntry,
    OperationStatus,
    FixDetail,
    FixSummary,
)
from .services import SyncService, SyncReport, FixEngine, assess_status

__all__ = [
    '__version__',
    'Repository',
    'Webhook',
    'Release',
    'Pipeline',
    'DiscrepancyCode',
    'Discrepancy',
    'SyncStatus',
    'PackageChannels',
    'StatusEntry',
    'OperationStatus',
    'FixDetail',
    'FixSummary',
    'SyncService',
    'SyncReport',
    'FixEngine',
    'assess_status',
]
