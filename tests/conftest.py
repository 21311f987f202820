"""
Shared fixtures for pipesync tests.
"""

from unittest.mock import Mock

import pytest

from pipesync.domain import Repository, Pipeline, Webhook
from pipesync.domain.pipeline import MANAGED_TEMPLATE, CANONICAL_FILTER


@pytest.fixture
def repository():
    """A repository declaring the prod maturity level."""
    return Repository(
        slug="giellalt/lang-sme",
        description="Finite state and Constraint Grammar based analysers for North Sami",
        url="https://github.com/giellalt/lang-sme",
        topics=("finite-state", "maturity-prod"),
    )


@pytest.fixture
def pipeline():
    """A pipeline that satisfies every rule for the repository fixture."""
    return Pipeline(
        slug="lang-sme",
        name="lang-sme",
        web_url="https://buildkite.com/divvun/lang-sme",
        repository="git@github.com:giellalt/lang-sme.git",
        configuration=MANAGED_TEMPLATE + "\n",
        branch_configuration="main !gh-pages",
        tags=("lang", ":package: prod"),
        webhook_url="https://webhook.buildkite.com/deliver/abc123",
        build_tags=True,
        skip_queued_branch_builds=True,
        filter_enabled=True,
        filter_condition=CANONICAL_FILTER,
    )


@pytest.fixture
def webhook(pipeline):
    """An active push webhook pointed at the pipeline fixture."""
    return Webhook(id=1, url=pipeline.webhook_url, active=True, events=("push",))


def make_response(status_code=200, body=None, headers=None, next_url=None, reason="OK"):
    """Mock requests.Response with the attributes HttpFetcher reads."""
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.reason = reason
    response.links = {'next': {'url': next_url}} if next_url else {}
    response.json.return_value = body
    return response


@pytest.fixture
def response_factory():
    return make_response
