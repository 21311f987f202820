"""
Remediation sweep for pipesync.

FixEngine walks the discrepancy codes in declaration order and, for each
code, applies its single remediation to every repository reporting it.
Failures are logged and recorded per item; the sweep always completes.
Re-running is safe: a fixed condition is no longer reported on the next
assessment, so nothing is applied twice.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from ..domain import (
    SyncStatus,
    DiscrepancyCode,
    OperationStatus,
    FixDetail,
    FixSummary,
)
from ..domain.pipeline import (
    MANAGED_TEMPLATE,
    DOCS_BRANCH_EXCLUSION,
    CANONICAL_FILTER,
    MATURITY_TAG_PREFIX,
    maturity_tag,
)
from ..infra import GitHubClient, BuildkiteClient

logger = logging.getLogger(__name__)


def append_branch_exclusion(branch_configuration: Optional[str]) -> str:
    """Add the docs-branch exclusion to an existing branch filter."""
    if branch_configuration and branch_configuration.strip():
        return f"{branch_configuration} {DOCS_BRANCH_EXCLUSION}"
    return DOCS_BRANCH_EXCLUSION


def replace_maturity_tag(tags: Sequence[str], level: str) -> List[str]:
    """Drop every maturity tag, keep the rest, add the one for ``level``."""
    kept = [tag for tag in tags if not tag.startswith(MATURITY_TAG_PREFIX)]
    return kept + [maturity_tag(level)]


@dataclass(frozen=True)
class Remediation:
    """How one discrepancy code is fixed."""
    action: str
    apply: Optional[Callable[['FixEngine', SyncStatus], str]] = None  # None: report only
    needs_pipeline: bool = True


def _create_pipeline(engine: 'FixEngine', status: SyncStatus) -> str:
    pipeline = engine.buildkite.create_pipeline(status.repository)
    return f"Created pipeline: {pipeline.name} ({pipeline.web_url})"


def _rewrite_configuration(engine: 'FixEngine', status: SyncStatus) -> str:
    engine.buildkite.update_pipeline(status.pipeline, configuration=MANAGED_TEMPLATE + "\n")
    return "Rewrote managed configuration with the current template"


def _create_webhook(engine: 'FixEngine', status: SyncStatus) -> str:
    url = status.pipeline.webhook_url
    if not url:
        raise ValueError(f"Pipeline {status.pipeline.slug} has no provider webhook URL")
    webhook = engine.github.create_webhook(status.repository.slug, url)
    return f"Created webhook: {webhook.url}"


def _exclude_docs_branch(engine: 'FixEngine', status: SyncStatus) -> str:
    branches = append_branch_exclusion(status.pipeline.branch_configuration)
    engine.buildkite.update_pipeline(status.pipeline, branch_configuration=branches)
    return f"Updated branch configuration: {branches}"


def _enable_build_tags(engine: 'FixEngine', status: SyncStatus) -> str:
    engine.buildkite.update_pipeline(status.pipeline, provider_settings={'build_tags': True})
    return "Enabled build_tags"


def _set_build_filter(engine: 'FixEngine', status: SyncStatus) -> str:
    engine.buildkite.update_pipeline(
        status.pipeline,
        filter_enabled=True,
        filter_condition=CANONICAL_FILTER,
    )
    return "Set build filter"


def _enable_skip_queued(engine: 'FixEngine', status: SyncStatus) -> str:
    engine.buildkite.update_pipeline(
        status.pipeline,
        skip_queued_branch_builds=True,
        skip_queued_branch_builds_filter=None,
    )
    return "Enabled skip_queued_branch_builds"


def _sync_maturity_tag(engine: 'FixEngine', status: SyncStatus) -> str:
    level = status.repository.maturity_level
    if level is None:
        raise ValueError(f"{status.repository.slug} has no maturity topic")
    tags = replace_maturity_tag(status.pipeline.tags, level)
    engine.buildkite.update_pipeline(status.pipeline, tags=tags)
    return f"Updated maturity tag: {maturity_tag(level)}"


REMEDIATIONS: Dict[DiscrepancyCode, Remediation] = {
    DiscrepancyCode.NO_PIPELINE: Remediation("create pipeline", _create_pipeline, needs_pipeline=False),
    DiscrepancyCode.VERSION_MISMATCH: Remediation("rewrite managed configuration", _rewrite_configuration),
    DiscrepancyCode.UNDECLARED_CONFIGURATION: Remediation("declare configuration as managed or custom"),
    DiscrepancyCode.NO_WEBHOOK: Remediation("create webhook", _create_webhook),
    DiscrepancyCode.BRANCH_CONFIGURATION_MISSING: Remediation("exclude gh-pages branch", _exclude_docs_branch),
    DiscrepancyCode.TAGS_NOT_ENABLED: Remediation("enable build_tags", _enable_build_tags),
    DiscrepancyCode.SKIP_QUEUED_NOT_ENABLED: Remediation("enable skip_queued_branch_builds", _enable_skip_queued),
    DiscrepancyCode.FILTER_NOT_SET: Remediation("set build filter", _set_build_filter),
    DiscrepancyCode.MATURITY_TAGS_MISMATCH: Remediation("sync maturity tag", _sync_maturity_tag),
}

_unhandled = set(DiscrepancyCode) - set(REMEDIATIONS)
if _unhandled:
    raise RuntimeError(
        "No remediation for discrepancy codes: "
        + ", ".join(sorted(code.value for code in _unhandled))
    )


class FixEngine:
    """
    Applies remediations for a batch of assessments.

    Example:
        engine = FixEngine(github, buildkite)
        summary = engine.apply(statuses)
        print(f"{summary.successful} fixed, {summary.failed} failed")
    """

    def __init__(self, github: GitHubClient, buildkite: BuildkiteClient, dry_run: bool = False):
        self.github = github
        self.buildkite = buildkite
        self.dry_run = dry_run

    def apply(self, statuses: Sequence[SyncStatus]) -> FixSummary:
        """
        Run one remediation pass over every reported discrepancy.

        Args:
            statuses: All assessments of this run

        Returns:
            FixSummary with one detail per (repository, code) handled
        """
        summary = FixSummary(dry_run=self.dry_run)

        for code in DiscrepancyCode:
            affected = [status for status in statuses if status.has(code)]
            if not affected:
                continue

            remediation = REMEDIATIONS[code]
            logger.info(f"Fixing {code.value} for {len(affected)} repositories")
            for status in affected:
                summary.add_detail(self._apply_one(code, remediation, status))

        return summary

    def _apply_one(self, code: DiscrepancyCode, remediation: Remediation, status: SyncStatus) -> FixDetail:
        name = status.repository.slug

        def detail(state: OperationStatus, message: Optional[str] = None, error: Optional[str] = None) -> FixDetail:
            return FixDetail(
                repo_name=name,
                code=code,
                status=state,
                action=remediation.action,
                message=message,
                error=error,
            )

        if remediation.needs_pipeline and status.pipeline is None:
            return detail(OperationStatus.SKIPPED, "No pipeline to update")

        if remediation.apply is None:
            logger.warning(f"{name}: {code.value} needs manual attention ({remediation.action})")
            return detail(OperationStatus.SKIPPED, "Needs manual attention")

        if self.dry_run:
            return detail(OperationStatus.DRY_RUN, f"Would {remediation.action}")

        try:
            message = remediation.apply(self, status)
        except Exception as e:
            logger.error(f"Failed to {remediation.action} for {name}: {e}")
            return detail(OperationStatus.FAILED, error=str(e))

        logger.info(f"{name}: {message}")
        return detail(OperationStatus.SUCCESS, message)
