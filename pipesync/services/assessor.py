"""
State assessment for pipesync.

assess_status() compares one repository with the full pipeline set and
lists every way the matched pipeline differs from the desired state. It
is pure: no I/O, no mutation, and it cannot fail on fetched data.
"""

from typing import Callable, Iterable, List, Optional, Sequence

from ..domain import (
    Repository,
    Pipeline,
    Webhook,
    SyncStatus,
    Discrepancy,
    DiscrepancyCode,
)
from ..domain.pipeline import (
    CURRENT_VERSION,
    DOCS_BRANCH_EXCLUSION,
    CANONICAL_FILTER,
    maturity_tag,
)

Rule = Callable[[Repository, Pipeline], Optional[Discrepancy]]


def find_pipeline(repository: Repository, pipelines: Iterable[Pipeline]) -> Optional[Pipeline]:
    """Pipeline whose normalized repository reference is ``repository``."""
    slug = repository.slug.lower()
    for pipeline in pipelines:
        if pipeline.repository_slug == slug:
            return pipeline
    return None


def has_webhook_for_pipeline(webhooks: Iterable[Webhook], pipeline: Pipeline) -> bool:
    """True if an active push webhook targets the pipeline's webhook URL."""
    if not pipeline.webhook_url:
        return False
    return any(
        hook.active and hook.subscribes_to('push') and hook.url == pipeline.webhook_url
        for hook in webhooks
    )


def check_configuration(repository: Repository, pipeline: Pipeline) -> Optional[Discrepancy]:
    if pipeline.is_managed:
        version = pipeline.configuration_version
        if version != CURRENT_VERSION:
            return Discrepancy(
                DiscrepancyCode.VERSION_MISMATCH,
                f"Pipeline configuration version mismatch. Expected {CURRENT_VERSION}, found {version}.",
            )
    elif not pipeline.is_custom:
        return Discrepancy(
            DiscrepancyCode.UNDECLARED_CONFIGURATION,
            "Pipeline configuration is missing declaration of managed or custom.",
        )
    return None


def check_branch_configuration(repository: Repository, pipeline: Pipeline) -> Optional[Discrepancy]:
    branches = pipeline.branch_configuration
    if not branches or DOCS_BRANCH_EXCLUSION not in branches:
        return Discrepancy(
            DiscrepancyCode.BRANCH_CONFIGURATION_MISSING,
            "Pipeline branch configuration is missing or does not exclude gh-pages branch.",
        )
    return None


def check_build_tags(repository: Repository, pipeline: Pipeline) -> Optional[Discrepancy]:
    if not pipeline.build_tags:
        return Discrepancy(
            DiscrepancyCode.TAGS_NOT_ENABLED,
            "Pipeline does not have build_tags enabled.",
        )
    return None


def check_skip_queued(repository: Repository, pipeline: Pipeline) -> Optional[Discrepancy]:
    if not pipeline.skip_queued_branch_builds:
        return Discrepancy(
            DiscrepancyCode.SKIP_QUEUED_NOT_ENABLED,
            "Pipeline does not have skip_queued_branch_builds enabled.",
        )
    return None


def check_build_filter(repository: Repository, pipeline: Pipeline) -> Optional[Discrepancy]:
    if not pipeline.filter_enabled or pipeline.filter_condition != CANONICAL_FILTER:
        return Discrepancy(
            DiscrepancyCode.FILTER_NOT_SET,
            "Pipeline does not have build filter properly configured.",
        )
    return None


def check_maturity_tag(repository: Repository, pipeline: Pipeline) -> Optional[Discrepancy]:
    level = repository.maturity_level
    if level is None:
        return None

    expected = maturity_tag(level)
    current = pipeline.maturity_tags
    if expected not in current:
        found = ", ".join(current) if current else "none"
        return Discrepancy(
            DiscrepancyCode.MATURITY_TAGS_MISMATCH,
            f'Pipeline maturity tag mismatch. Expected "{expected}", found: {found}',
        )
    return None


# Rules evaluated after the webhook check, in report order
PIPELINE_RULES: Sequence[Rule] = (
    check_branch_configuration,
    check_build_tags,
    check_skip_queued,
    check_build_filter,
    check_maturity_tag,
)


def assess_status(
    repository: Repository,
    pipelines: Sequence[Pipeline],
    webhooks: Optional[Sequence[Webhook]] = None,
) -> SyncStatus:
    """
    Assess one repository against every pipeline.

    Args:
        repository: Repository to assess
        pipelines: All pipelines of the CI organization
        webhooks: The repository's webhooks; None skips the webhook check
            (e.g. when they could not be fetched)

    Returns:
        SyncStatus with the matched pipeline and its discrepancies
    """
    pipeline = find_pipeline(repository, pipelines)
    if pipeline is None:
        return SyncStatus(
            repository=repository,
            pipeline=None,
            discrepancies=(Discrepancy(
                DiscrepancyCode.NO_PIPELINE,
                "No corresponding Buildkite pipeline found.",
            ),),
        )

    discrepancies: List[Discrepancy] = []

    found = check_configuration(repository, pipeline)
    if found:
        discrepancies.append(found)

    if webhooks is not None and not has_webhook_for_pipeline(webhooks, pipeline):
        discrepancies.append(Discrepancy(
            DiscrepancyCode.NO_WEBHOOK,
            "No corresponding webhook found for the Buildkite pipeline.",
        ))

    for rule in PIPELINE_RULES:
        found = rule(repository, pipeline)
        if found:
            discrepancies.append(found)

    return SyncStatus(
        repository=repository,
        pipeline=pipeline,
        discrepancies=tuple(discrepancies),
    )
