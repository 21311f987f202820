"""
Tests for pipesync domain objects.
"""

import pytest

from pipesync.domain import (
    Repository,
    Webhook,
    Release,
    Pipeline,
    DiscrepancyCode,
    Discrepancy,
    SyncStatus,
    PackageChannels,
    StatusEntry,
    OperationStatus,
    FixDetail,
    FixSummary,
)
from pipesync.domain.pipeline import (
    MANAGED_MARKER,
    maturity_tag,
    normalize_repository_reference,
)


class TestRepository:
    """Tests for Repository."""

    def test_from_api_response(self):
        repo = Repository.from_api_response({
            "full_name": "divvun/keyboard-sme",
            "private": True,
            "topics": ["keyboard", "maturity-beta"],
            "default_branch": "master",
            "pushed_at": "2025-01-02T03:04:05Z",
        })

        assert repo.slug == "divvun/keyboard-sme"
        assert repo.owner == "divvun"
        assert repo.name == "keyboard-sme"
        assert repo.visibility == "private"
        assert repo.default_branch == "master"
        assert repo.maturity_level == "beta"

    def test_missing_topics(self):
        repo = Repository.from_api_response({"full_name": "a/b", "topics": None})
        assert repo.topics == ()
        assert repo.maturity_level is None

    def test_compound_maturity_level(self):
        repo = Repository(slug="a/b", topics=("maturity-pre-alpha",))
        assert repo.maturity_level == "pre-alpha"

    def test_to_dict(self):
        repo = Repository(slug="a/b", topics=("x",))
        data = repo.to_dict()
        assert data['slug'] == "a/b"
        assert data['topics'] == ["x"]
        assert data['visibility'] == "public"


class TestWebhook:
    """Tests for Webhook."""

    def test_from_api_response(self):
        hook = Webhook.from_api_response({
            "id": 3,
            "name": "web",
            "active": True,
            "events": ["push", "pull_request"],
            "config": {"url": "https://example.com/hook", "content_type": "json"},
        })
        assert hook.url == "https://example.com/hook"
        assert hook.content_type == "json"
        assert hook.subscribes_to("push")
        assert not hook.subscribes_to("release")

    def test_wildcard_events(self):
        hook = Webhook(id=1, url="https://example.com", events=("*",))
        assert hook.subscribes_to("push")


class TestRelease:
    def test_from_api_response_defaults(self):
        release = Release.from_api_response({"tag_name": "pkg/v1.0.0", "name": None})
        assert release.name == ""
        assert not release.draft
        assert not release.prerelease


class TestRepositoryReference:
    """Tests for normalize_repository_reference()."""

    @pytest.mark.parametrize("reference", [
        "git@github.com:giellalt/lang-sme.git",
        "https://github.com/giellalt/lang-sme.git",
        "https://github.com/giellalt/lang-sme",
        "ssh://git@github.com/giellalt/lang-sme.git",
        "git@github.com:GiellaLT/Lang-SME.git",
    ])
    def test_forms(self, reference):
        assert normalize_repository_reference(reference) == "giellalt/lang-sme"

    def test_empty(self):
        assert normalize_repository_reference("") is None
        assert normalize_repository_reference(None) is None

    def test_no_owner(self):
        assert normalize_repository_reference("https://github.com/") is None


class TestPipeline:
    """Tests for Pipeline."""

    def test_from_api_response(self):
        pipeline = Pipeline.from_api_response({
            "slug": "lang-sme",
            "name": "lang-sme",
            "repository": "git@github.com:giellalt/lang-sme.git",
            "configuration": "# Custom\nsteps: []",
            "tags": [":package: beta", "lang"],
            "provider": {"webhook_url": "https://webhook.example", "settings": {"build_tags": True}},
            "skip_queued_branch_builds": True,
            "filter_enabled": True,
            "filter_condition": "build.branch == 'main'",
        })

        assert pipeline.repository_slug == "giellalt/lang-sme"
        assert pipeline.webhook_url == "https://webhook.example"
        assert pipeline.build_tags is True
        assert pipeline.skip_queued_branch_builds is True
        assert pipeline.maturity_tags == (":package: beta",)
        assert pipeline.maturity_level == "beta"
        assert pipeline.is_custom
        assert not pipeline.is_managed

    def test_missing_provider(self):
        pipeline = Pipeline.from_api_response({"slug": "x", "configuration": None})
        assert pipeline.webhook_url is None
        assert pipeline.build_tags is False
        assert pipeline.configuration == ""

    def test_managed_configuration_version(self, pipeline):
        assert pipeline.is_managed
        assert pipeline.configuration_version == 1

    def test_managed_without_version_line(self):
        pipeline = Pipeline(slug="x", configuration=f"{MANAGED_MARKER}\nsteps: []")
        assert pipeline.is_managed
        assert pipeline.configuration_version is None

    def test_marker_must_lead(self):
        pipeline = Pipeline(slug="x", configuration=f"steps: []\n{MANAGED_MARKER}")
        assert not pipeline.is_managed

    def test_maturity_tag(self):
        assert maturity_tag("prod") == ":package: prod"


class TestSyncStatus:
    """Tests for SyncStatus and the status document entries."""

    def test_in_sync(self, repository):
        assert SyncStatus(repository=repository).in_sync

    def test_codes_and_has(self, repository):
        status = SyncStatus(
            repository=repository,
            discrepancies=(
                Discrepancy(DiscrepancyCode.NO_WEBHOOK, "no hook"),
                Discrepancy(DiscrepancyCode.FILTER_NOT_SET, "no filter"),
            ),
        )
        assert not status.in_sync
        assert status.codes == [DiscrepancyCode.NO_WEBHOOK, DiscrepancyCode.FILTER_NOT_SET]
        assert status.has(DiscrepancyCode.FILTER_NOT_SET)
        assert not status.has(DiscrepancyCode.NO_PIPELINE)

    def test_to_dict(self, repository, pipeline):
        status = SyncStatus(
            repository=repository,
            pipeline=pipeline,
            discrepancies=(Discrepancy(DiscrepancyCode.TAGS_NOT_ENABLED, "off"),),
        )
        data = status.to_dict()
        assert data['pipeline'] == "lang-sme"
        assert data['discrepancies'] == [{'code': 'tags-not-enabled', 'message': 'off'}]

    def test_channels_omit_unset(self):
        assert PackageChannels(stable="1.0.0").to_dict() == {'stable': "1.0.0"}

    def test_entry_without_packages(self):
        assert StatusEntry(maturity="prod").to_dict() == {'maturity': "prod"}

    def test_entry_with_packages(self):
        entry = StatusEntry(maturity="beta", packages={"pkg": PackageChannels(beta="0.2.0")})
        assert entry.to_dict() == {'maturity': "beta", 'packages': {"pkg": {'beta': "0.2.0"}}}


class TestFixSummary:
    """Tests for FixSummary counting."""

    def test_counts(self):
        summary = FixSummary()
        code = DiscrepancyCode.FILTER_NOT_SET
        summary.add_detail(FixDetail("a/b", code, OperationStatus.SUCCESS, "set build filter"))
        summary.add_detail(FixDetail("a/c", code, OperationStatus.SKIPPED, "set build filter"))
        summary.add_detail(FixDetail("a/d", code, OperationStatus.FAILED, "set build filter", error="boom"))
        summary.add_detail(FixDetail("a/e", code, OperationStatus.DRY_RUN, "set build filter"))

        assert summary.total == 4
        assert summary.successful == 2
        assert summary.skipped == 1
        assert summary.failed == 1
        assert summary.errors == ["a/d: boom"]
        assert not summary.success

    def test_to_dict(self):
        summary = FixSummary(dry_run=True)
        summary.add_detail(FixDetail("a/b", DiscrepancyCode.NO_WEBHOOK, OperationStatus.DRY_RUN,
                                     "create webhook", message="Would create webhook"))
        data = summary.to_dict()
        assert data['dry_run'] is True
        assert data['details'][0]['code'] == "no-webhook"
        assert data['details'][0]['status'] == "dry_run"
