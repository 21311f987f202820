"""
Service layer for pipesync.

Services contain the reconciliation logic, using the domain objects
and infrastructure clients:
- assess_status: pure drift detection for one repository
- FixEngine: batched, best-effort remediation
- SyncService: the fetch → assess → fix cycle
"""

from .assessor import assess_status, find_pipeline
from .fixer import FixEngine, REMEDIATIONS
from .sync_service import SyncService, SyncReport, build_status_document

__all__ = [
    'assess_status',
    'find_pipeline',
    'FixEngine',
    'REMEDIATIONS',
    'SyncService',
    'SyncReport',
    'build_status_document',
]
