"""
Sync orchestration for pipesync.

SyncService runs one reconciliation cycle: fetch pipelines and
repositories once, fetch per-repository webhooks (and releases when a
status document is wanted) through a bounded thread pool, assess every
repository, and optionally run the fix engine. Used by the `status` and
`sync` commands.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import SyncSettings
from ..domain import (
    Repository,
    Pipeline,
    SyncStatus,
    PackageChannels,
    StatusEntry,
    FixSummary,
)
from ..infra import GitHubClient, BuildkiteClient, FileStore, FetchError
from ..releases import classify_releases
from .assessor import assess_status
from .fixer import FixEngine

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Result of one assessment pass."""
    statuses: List[SyncStatus] = field(default_factory=list)
    # Repository slug -> package -> channels, only when releases were fetched
    channels: Dict[str, Dict[str, PackageChannels]] = field(default_factory=dict)

    @property
    def in_sync(self) -> List[SyncStatus]:
        return [s for s in self.statuses if s.in_sync]

    @property
    def out_of_sync(self) -> List[SyncStatus]:
        return [s for s in self.statuses if not s.in_sync]


def filter_repositories(repos: Sequence[Repository], patterns: Sequence[str]) -> List[Repository]:
    """Keep repositories whose slug contains any pattern (all if none given)."""
    if not patterns:
        return list(repos)
    return [repo for repo in repos if any(p in repo.slug for p in patterns)]


def build_status_document(report: SyncReport) -> Dict[str, Dict]:
    """
    Status document keyed by pipeline slug.

    Each entry carries the repository's maturity level (falling back to the
    pipeline's maturity tag) and, when releases were fetched, the package
    channel table. Repositories without a pipeline or a maturity level are
    left out.
    """
    document: Dict[str, Dict] = {}

    for status in report.statuses:
        if status.pipeline is None:
            continue

        maturity = status.repository.maturity_level or status.pipeline.maturity_level
        if not maturity:
            continue

        entry = StatusEntry(
            maturity=maturity,
            packages=report.channels.get(status.repository.slug, {}),
        )
        document[status.pipeline.slug] = entry.to_dict()

    return document


class SyncService:
    """
    Service running the fetch → assess → fix cycle.

    Example:
        service = SyncService(settings)
        report = service.collect()
        summary = service.fix(report)
    """

    def __init__(
        self,
        settings: SyncSettings,
        github: Optional[GitHubClient] = None,
        buildkite: Optional[BuildkiteClient] = None,
    ):
        """
        Initialize SyncService.

        Args:
            settings: Validated settings (credentials, organizations, limits)
            github: GitHub client (created from settings if None)
            buildkite: Buildkite client (created from settings if None)
        """
        self.settings = settings

        if github is None and settings.github is not None:
            github = GitHubClient(
                settings.github.token,
                policy=settings.retry,
                timeout=settings.timeout,
            )
        if buildkite is None and settings.buildkite is not None:
            buildkite = BuildkiteClient(
                settings.buildkite.token,
                settings.buildkite.org,
                cluster_id=settings.buildkite.cluster_id,
                policy=settings.retry,
                timeout=settings.timeout,
            )

        self.github = github
        self.buildkite = buildkite

    def list_repositories(self) -> List[Repository]:
        """Repositories of the configured organizations, after filtering."""
        repos = self.github.list_repos(self.settings.github.orgs)
        return filter_repositories(repos, self.settings.github.repo_filters)

    def list_pipelines(self) -> List[Pipeline]:
        return self.buildkite.list_pipelines()

    def collect(self, fetch_releases: bool = False) -> SyncReport:
        """
        Fetch everything once and assess every repository.

        Args:
            fetch_releases: Also fetch releases and classify package channels

        Returns:
            SyncReport with statuses sorted by repository slug
        """
        logger.info("Getting pipelines...")
        pipelines = self.list_pipelines()

        logger.info("Getting repos...")
        repos = self.list_repositories()

        logger.info(f"Assessing sync status of {len(repos)} repositories...")
        report = SyncReport()

        with ThreadPoolExecutor(max_workers=self.settings.concurrency) as executor:
            futures = {
                executor.submit(self._inspect, repo, pipelines, fetch_releases): repo
                for repo in repos
            }
            for future in as_completed(futures):
                status, channels = future.result()
                report.statuses.append(status)
                if channels is not None:
                    report.channels[status.repository.slug] = channels

        report.statuses.sort(key=lambda s: s.repository.slug)
        return report

    def _inspect(
        self,
        repo: Repository,
        pipelines: Sequence[Pipeline],
        fetch_releases: bool,
    ) -> Tuple[SyncStatus, Optional[Dict[str, PackageChannels]]]:
        logger.debug(f"Checking {repo.slug}...")

        webhooks = None
        try:
            webhooks = self.github.list_webhooks(repo.slug)
        except FetchError as e:
            logger.warning(f"Could not fetch webhooks for {repo.slug}: {e}")

        status = assess_status(repo, pipelines, webhooks)

        channels = None
        if fetch_releases:
            try:
                channels = classify_releases(self.github.list_releases(repo.slug))
            except FetchError as e:
                logger.warning(f"Could not fetch releases for {repo.slug}: {e}")

        return status, channels

    def fix(self, report: SyncReport, dry_run: bool = False) -> FixSummary:
        """Run the fix engine once over every assessed repository."""
        engine = FixEngine(self.github, self.buildkite, dry_run=dry_run)
        return engine.apply(report.statuses)

    def write_status_document(self, report: SyncReport, path: Path) -> int:
        """
        Overwrite ``path`` with the status document.

        Returns:
            Number of pipelines written
        """
        document = build_status_document(report)
        FileStore(path).write(document)
        logger.info(f"Wrote status for {len(document)} pipelines to {path}")
        return len(document)
