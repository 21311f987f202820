"""
Domain layer for pipesync.

Contains pure domain objects with no I/O or side effects:
- Repository, Webhook, Release: repository host snapshots
- Pipeline: CI pipeline snapshot plus the desired-state constants
- SyncStatus, Discrepancy: assessment results
- FixDetail, FixSummary: remediation results

These objects are immutable where possible and provide
serialization methods for JSON output.
"""

from .repository import Repository, Webhook, Release
from .pipeline import Pipeline
from .status import (
    DiscrepancyCode,
    Discrepancy,
    SyncStatus,
    PackageChannels,
    StatusEntry,
)
from .operation import OperationStatus, FixDetail, FixSummary

__all__ = [
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
]
