"""
Remediation result domain objects for pipesync.

The fix engine records one FixDetail per (repository, discrepancy) pair
it handles and rolls them up into a FixSummary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

from .status import DiscrepancyCode


class OperationStatus(Enum):
    """Status of an individual remediation."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass
class FixDetail:
    """
    Details of a single remediation on one repository.

    Used to track what happened to each repo during the sweep.
    """
    repo_name: str
    code: DiscrepancyCode
    status: OperationStatus
    action: str  # e.g., "create pipeline", "enable build tags"
    message: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'name': self.repo_name,
            'code': self.code.value,
            'status': self.status.value,
            'action': self.action,
        }
        if self.message:
            result['message'] = self.message
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class FixSummary:
    """
    Summary of a remediation sweep across all repositories.
    """
    total: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    dry_run: bool = False
    details: List[FixDetail] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no failures occurred."""
        return self.failed == 0

    def add_detail(self, detail: FixDetail) -> None:
        """Add a remediation detail and update counts."""
        self.details.append(detail)
        self.total += 1

        if detail.status == OperationStatus.SUCCESS:
            self.successful += 1
        elif detail.status == OperationStatus.SKIPPED:
            self.skipped += 1
        elif detail.status == OperationStatus.FAILED:
            self.failed += 1
            if detail.error:
                self.errors.append(f"{detail.repo_name}: {detail.error}")
        elif detail.status == OperationStatus.DRY_RUN:
            self.successful += 1  # Count dry-run as successful

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'successful': self.successful,
            'skipped': self.skipped,
            'failed': self.failed,
            'dry_run': self.dry_run,
            'details': [d.to_dict() for d in self.details],
            'errors': self.errors,
        }
