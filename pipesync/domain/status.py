"""
Assessment result domain objects for pipesync.

SyncStatus is what the assessor produces for one repository: the matched
pipeline (if any) and the ordered list of discrepancies between desired
and actual configuration.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple

from .repository import Repository
from .pipeline import Pipeline


class DiscrepancyCode(Enum):
    """Closed set of drift kinds. Each one has exactly one remediation."""
    NO_PIPELINE = "no-pipeline"
    VERSION_MISMATCH = "version-mismatch"
    UNDECLARED_CONFIGURATION = "undeclared-configuration"
    NO_WEBHOOK = "no-webhook"
    BRANCH_CONFIGURATION_MISSING = "branch-configuration-missing"
    TAGS_NOT_ENABLED = "tags-not-enabled"
    SKIP_QUEUED_NOT_ENABLED = "skip-queued-not-enabled"
    FILTER_NOT_SET = "filter-not-set"
    MATURITY_TAGS_MISMATCH = "maturity-tags-mismatch"


@dataclass(frozen=True)
class Discrepancy:
    """One detected mismatch, tagged with its code."""
    code: DiscrepancyCode
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'code': self.code.value, 'message': self.message}


@dataclass(frozen=True)
class SyncStatus:
    """Assessment of one repository against the pipeline set."""
    repository: Repository
    pipeline: Optional[Pipeline] = None
    discrepancies: Tuple[Discrepancy, ...] = ()

    @property
    def in_sync(self) -> bool:
        return not self.discrepancies

    @property
    def codes(self) -> List[DiscrepancyCode]:
        return [d.code for d in self.discrepancies]

    def has(self, code: DiscrepancyCode) -> bool:
        return any(d.code == code for d in self.discrepancies)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'repository': self.repository.slug,
            'pipeline': self.pipeline.slug if self.pipeline else None,
            'in_sync': self.in_sync,
            'discrepancies': [d.to_dict() for d in self.discrepancies],
        }


@dataclass
class PackageChannels:
    """Latest version of one package per release channel."""
    stable: Optional[str] = None
    beta: Optional[str] = None
    dev: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        result = {}
        if self.stable is not None:
            result['stable'] = self.stable
        if self.beta is not None:
            result['beta'] = self.beta
        if self.dev is not None:
            result['dev'] = self.dev
        return result


@dataclass
class StatusEntry:
    """One pipeline's entry in the persisted status document."""
    maturity: str
    packages: Dict[str, PackageChannels] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'maturity': self.maturity}
        if self.packages:
            result['packages'] = {
                name: channels.to_dict()
                for name, channels in self.packages.items()
            }
        return result
