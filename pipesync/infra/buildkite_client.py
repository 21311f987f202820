"""
Buildkite API client infrastructure for pipesync.

Provides the pipeline side of the sync:
- List every pipeline of an organization
- Create a managed pipeline for a repository
- Patch a pipeline's mutable settings
"""

import logging
from typing import Any, Dict, List, Optional

from .http import HttpFetcher, RetryPolicy
from ..domain import Pipeline, Repository
from ..domain.pipeline import MANAGED_TEMPLATE, DOCS_BRANCH_EXCLUSION

logger = logging.getLogger(__name__)

BUILDKITE_API_BASE = "https://api.buildkite.com/v2"

# Cluster new pipelines are created in
DEFAULT_CLUSTER_ID = "6b73d337-bcdc-432b-9017-0767786acb3f"

PER_PAGE = 100

# Fields update_pipeline() may send
PATCHABLE_FIELDS = frozenset({
    'branch_configuration',
    'configuration',
    'tags',
    'skip_queued_branch_builds',
    'skip_queued_branch_builds_filter',
    'filter_enabled',
    'filter_condition',
    'provider_settings',
})


class BuildkiteClient:
    """
    Buildkite REST API client for one organization.

    Example:
        client = BuildkiteClient(token, "divvun")
        for pipeline in client.list_pipelines():
            print(pipeline.slug, pipeline.repository)
    """

    def __init__(
        self,
        token: str,
        org: str,
        cluster_id: str = DEFAULT_CLUSTER_ID,
        policy: Optional[RetryPolicy] = None,
        fetcher: Optional[HttpFetcher] = None,
        timeout: float = 30,
        base_url: str = BUILDKITE_API_BASE,
    ):
        self.org = org
        self.cluster_id = cluster_id
        self.base_url = base_url.rstrip('/')
        self.fetcher = fetcher or HttpFetcher(
            token,
            auth_scheme='Bearer',
            policy=policy,
            timeout=timeout,
        )

    @property
    def pipelines_url(self) -> str:
        return f"{self.base_url}/organizations/{self.org}/pipelines"

    def list_pipelines(self) -> List[Pipeline]:
        """List every pipeline of the organization."""
        data = self.fetcher.fetch_all(self.pipelines_url, params={'per_page': PER_PAGE})
        logger.debug(f"{self.org}: {len(data)} pipelines")
        return [Pipeline.from_api_response(item) for item in data]

    def create_pipeline(self, repository: Repository, configuration: str = MANAGED_TEMPLATE) -> Pipeline:
        """
        Create a pipeline building ``repository``.

        Args:
            repository: Repository to build
            configuration: Pipeline steps (defaults to the managed template)

        Returns:
            The created pipeline
        """
        payload = {
            'cluster_id': self.cluster_id,
            'name': repository.name,
            'repository': f"git@github.com:{repository.slug}.git",
            'visibility': repository.visibility,
            'configuration': configuration + "\n",
            'branch_configuration': DOCS_BRANCH_EXCLUSION,
        }
        data = self.fetcher.send_json('POST', self.pipelines_url, payload)
        return Pipeline.from_api_response(data)

    def update_pipeline(self, pipeline: Pipeline, **fields: Any) -> Pipeline:
        """
        Patch mutable settings of a pipeline.

        Args:
            pipeline: Pipeline to update
            **fields: Settings to change, e.g. ``branch_configuration="!gh-pages"``
                or ``provider_settings={"build_tags": True}``

        Returns:
            The pipeline as returned by the API
        """
        unknown = set(fields) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch pipeline fields: {', '.join(sorted(unknown))}")

        payload: Dict[str, Any] = dict(fields)
        data = self.fetcher.send_json('PATCH', f"{self.pipelines_url}/{pipeline.slug}", payload)
        return Pipeline.from_api_response(data)
