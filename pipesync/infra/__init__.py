"""
Infrastructure layer for pipesync.

Contains abstractions for external systems:
- HttpFetcher: retried, paginated HTTP access
- GitHubClient: GitHub API access (repositories, webhooks, releases)
- BuildkiteClient: Buildkite API access (pipelines)
- FileStore: JSON file persistence

These provide clean interfaces that can be mocked for testing.
"""

from .http import HttpFetcher, RetryPolicy, FetchError, RateLimitStatus
from .github_client import GitHubClient
from .buildkite_client import BuildkiteClient
from .file_store import FileStore

__all__ = [
    'HttpFetcher',
    'RetryPolicy',
    'FetchError',
    'RateLimitStatus',
    'GitHubClient',
    'BuildkiteClient',
    'FileStore',
]
