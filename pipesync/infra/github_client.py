"""
GitHub API client infrastructure for pipesync.

Provides the repository-host side of the sync:
- List repositories for one or more organizations
- List webhooks and releases of a repository
- Create the push webhook a pipeline needs

Every call goes through HttpFetcher, so it is paginated and retried.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from .http import HttpFetcher, RetryPolicy
from ..domain import Repository, Webhook, Release

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

# Page size for list endpoints
PER_PAGE = 100

# Organizations listed at the same time
MAX_ORG_WORKERS = 3


class GitHubClient:
    """
    GitHub REST API client.

    Example:
        client = GitHubClient(token)
        for repo in client.list_repos(["divvun", "giellalt"]):
            print(repo.slug, repo.topics)
    """

    def __init__(
        self,
        token: str,
        policy: Optional[RetryPolicy] = None,
        fetcher: Optional[HttpFetcher] = None,
        timeout: float = 30,
        base_url: str = GITHUB_API_BASE,
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub API token
            policy: Retry policy for every request
            fetcher: Preconfigured fetcher (mainly for tests)
            timeout: Per-request timeout in seconds
            base_url: API root
        """
        self.base_url = base_url.rstrip('/')
        self.fetcher = fetcher or HttpFetcher(
            token,
            auth_scheme='token',
            policy=policy,
            timeout=timeout,
            headers={
                'Accept': 'application/vnd.github.v3+json',
                'X-GitHub-Api-Version': GITHUB_API_VERSION,
            },
        )

    def list_repos_for_org(self, org: str) -> List[Repository]:
        """List every repository of one organization."""
        data = self.fetcher.fetch_all(
            f"{self.base_url}/orgs/{org}/repos",
            params={'per_page': PER_PAGE},
        )
        logger.debug(f"{org}: {len(data)} repositories")
        return [Repository.from_api_response(item) for item in data]

    def list_repos(self, orgs: Iterable[str]) -> List[Repository]:
        """
        List repositories across organizations.

        Organizations are fetched concurrently; the result keeps the
        order of ``orgs``.
        """
        orgs = list(orgs)
        if not orgs:
            return []

        repos: List[Repository] = []
        with ThreadPoolExecutor(max_workers=min(MAX_ORG_WORKERS, len(orgs))) as executor:
            for org_repos in executor.map(self.list_repos_for_org, orgs):
                repos.extend(org_repos)
        return repos

    def list_webhooks(self, slug: str) -> List[Webhook]:
        """
        List webhooks of a repository.

        Args:
            slug: Repository owner/name

        Returns:
            Webhooks, or an empty list if the repository is not visible
        """
        data = self.fetcher.fetch_all(
            f"{self.base_url}/repos/{slug}/hooks",
            params={'per_page': PER_PAGE},
        )
        return [Webhook.from_api_response(item) for item in data]

    def list_releases(self, slug: str) -> List[Release]:
        """
        List releases of a repository, newest first as GitHub returns them.

        Args:
            slug: Repository owner/name

        Returns:
            Releases, or an empty list if the repository is not visible
        """
        data = self.fetcher.fetch_all(
            f"{self.base_url}/repos/{slug}/releases",
            params={'per_page': PER_PAGE},
        )
        return [Release.from_api_response(item) for item in data]

    def create_webhook(self, slug: str, url: str) -> Webhook:
        """
        Create an active push webhook pointed at ``url``.

        Args:
            slug: Repository owner/name
            url: Target URL (a pipeline's provider webhook URL)

        Returns:
            The created webhook
        """
        payload = {
            'name': 'web',
            'active': True,
            'events': ['push'],
            'config': {
                'url': url,
                'content_type': 'json',
                'insecure_ssl': '0',
            },
        }
        data = self.fetcher.send_json('POST', f"{self.base_url}/repos/{slug}/hooks", payload)
        return Webhook.from_api_response(data)
