"""
Tests for the pipesync command line.

SyncService and load_config are patched, so these tests check argument
handling, exit codes and which service calls each command makes.
"""

import json
from unittest.mock import patch, MagicMock

import pytest
from click.testing import CliRunner

from pipesync.cli import cli
from pipesync.config import get_default_config
from pipesync.domain import Discrepancy, DiscrepancyCode, FixSummary, Repository, SyncStatus
from pipesync.exit_codes import USAGE_ERROR, API_ERROR, CONFIG_ERROR, ConfigError
from pipesync.infra import FetchError
from pipesync.services.sync_service import SyncReport

CREDENTIALS = ['--bk-key', 'bk', '--bk-org', 'divvun', '--gh-key', 'gh', '--gh-orgs', 'giellalt,divvun']


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def service():
    """Patched SyncService instance returned by every command."""
    with patch('pipesync.cli_utils.load_config', return_value=get_default_config()):
        with patch('pipesync.commands.status.SyncService') as status_cls, \
                patch('pipesync.commands.sync.SyncService') as sync_cls, \
                patch('pipesync.commands.lists.SyncService') as lists_cls:
            instance = MagicMock()
            instance.collect.return_value = SyncReport()
            instance.fix.return_value = FixSummary()
            instance.list_repositories.return_value = []
            instance.list_pipelines.return_value = []
            for cls in (status_cls, sync_cls, lists_cls):
                cls.return_value = instance
            yield instance


class TestArguments:
    """Missing credentials exit with a usage error."""

    @pytest.mark.parametrize("command", ['status', 'sync'])
    def test_missing_arguments(self, runner, service, command):
        result = runner.invoke(cli, [command, '--bk-key', 'bk'])

        assert result.exit_code == USAGE_ERROR
        assert "Missing required argument" in result.output
        assert "--bk-org" in result.output
        service.collect.assert_not_called()

    def test_list_repos_only_needs_github(self, runner, service):
        result = runner.invoke(cli, ['list-repos', '--gh-key', 'gh', '--gh-orgs', 'giellalt'])

        assert result.exit_code == 0
        service.list_repositories.assert_called_once_with()

    def test_list_pipelines_only_needs_buildkite(self, runner, service):
        result = runner.invoke(cli, ['list-pipelines', '--bk-key', 'bk', '--bk-org', 'divvun'])

        assert result.exit_code == 0
        service.list_pipelines.assert_called_once_with()

    def test_help(self, runner):
        result = runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        for command in ('status', 'sync', 'list-repos', 'list-pipelines'):
            assert command in result.output


class TestStatusCommand:
    def test_status(self, runner, service):
        result = runner.invoke(cli, ['status'] + CREDENTIALS)

        assert result.exit_code == 0
        service.collect.assert_called_once_with(fetch_releases=False)
        service.write_status_document.assert_not_called()
        assert "Total repositories: 0" in result.output

    def test_status_output(self, runner, service, tmp_path):
        path = str(tmp_path / "status.json")

        result = runner.invoke(cli, ['status', '--output', path] + CREDENTIALS)

        assert result.exit_code == 0
        service.collect.assert_called_once_with(fetch_releases=True)
        service.write_status_document.assert_called_once_with(service.collect.return_value, path)

    def test_unwritable_output_is_logged(self, runner, service, tmp_path):
        service.write_status_document.side_effect = PermissionError(13, 'Permission denied')
        path = str(tmp_path / "status.json")

        with patch('pipesync.commands.status.logger') as logger:
            result = runner.invoke(cli, ['status', '--output', path] + CREDENTIALS)

        assert result.exit_code == 0
        assert "Total repositories: 0" in result.output
        logger.error.assert_called_once()
        assert path in logger.error.call_args.args[0]

    def test_json_output(self, runner, service, repository, pipeline):
        other = Repository(slug="giellalt/lang-fao", url="https://github.com/giellalt/lang-fao")
        service.collect.return_value = SyncReport(statuses=[
            SyncStatus(repository, pipeline),
            SyncStatus(other, discrepancies=(
                Discrepancy(DiscrepancyCode.NO_PIPELINE, "No Buildkite pipeline"),
            )),
        ])

        result = runner.invoke(cli, ['status', '--json'] + CREDENTIALS)

        assert result.exit_code == 0
        lines = [json.loads(line) for line in result.output.splitlines()]
        assert lines[0] == {
            "repository": "giellalt/lang-sme",
            "pipeline": "lang-sme",
            "in_sync": True,
            "discrepancies": [],
        }
        assert lines[1]["in_sync"] is False
        assert lines[1]["discrepancies"] == [{"code": "no-pipeline", "message": "No Buildkite pipeline"}]

    def test_fetch_failure(self, runner, service):
        service.collect.side_effect = FetchError("https://api.buildkite.com/v2/x", "HTTP 503")

        result = runner.invoke(cli, ['status'] + CREDENTIALS)

        assert result.exit_code == API_ERROR
        assert "HTTP 503" in result.output


class TestSyncCommand:
    def test_sync(self, runner, service):
        result = runner.invoke(cli, ['sync'] + CREDENTIALS)

        assert result.exit_code == 0
        service.fix.assert_called_once_with(service.collect.return_value, dry_run=False)
        assert "Nothing to fix" in result.output

    def test_dry_run(self, runner, service):
        result = runner.invoke(cli, ['sync', '--dry-run'] + CREDENTIALS)

        assert result.exit_code == 0
        service.fix.assert_called_once_with(service.collect.return_value, dry_run=True)

    def test_report_printed_again_after_fixes(self, runner, service):
        with patch('pipesync.commands.sync.render_sync_report') as render_report, \
                patch('pipesync.commands.sync.render_fix_summary') as render_summary:
            calls = MagicMock()
            calls.attach_mock(render_report, 'report')
            calls.attach_mock(render_summary, 'summary')

            result = runner.invoke(cli, ['sync'] + CREDENTIALS)

        assert result.exit_code == 0
        assert render_report.call_count == 2
        assert [name for name, _, _ in calls.mock_calls] == ['report', 'summary', 'report']

    def test_json_output(self, runner, service, repository):
        service.collect.return_value = SyncReport(statuses=[SyncStatus(repository)])
        service.fix.return_value = FixSummary(total=1, successful=1)

        result = runner.invoke(cli, ['sync', '--json'] + CREDENTIALS)

        assert result.exit_code == 0
        lines = [json.loads(line) for line in result.output.splitlines()]
        assert len(lines) == 2
        assert lines[0]["repository"] == "giellalt/lang-sme"
        assert lines[1]["total"] == 1
        assert lines[1]["successful"] == 1

    def test_failed_fixes_do_not_change_exit_code(self, runner, service):
        summary = FixSummary(failed=2)
        service.fix.return_value = summary

        result = runner.invoke(cli, ['sync'] + CREDENTIALS)

        assert result.exit_code == 0


class TestListCommands:
    def test_list_repos_json(self, runner, service, repository):
        service.list_repositories.return_value = [repository]

        result = runner.invoke(cli, ['list-repos', '--json', '--gh-key', 'gh', '--gh-orgs', 'giellalt'])

        assert result.exit_code == 0
        lines = [json.loads(line) for line in result.output.splitlines()]
        assert len(lines) == 1
        assert lines[0]["slug"] == "giellalt/lang-sme"
        assert lines[0]["topics"] == ["finite-state", "maturity-prod"]

    def test_list_pipelines_json(self, runner, service, pipeline):
        service.list_pipelines.return_value = [pipeline]

        result = runner.invoke(cli, ['list-pipelines', '--json', '--bk-key', 'bk', '--bk-org', 'divvun'])

        assert result.exit_code == 0
        lines = [json.loads(line) for line in result.output.splitlines()]
        assert [line["slug"] for line in lines] == ["lang-sme"]
        assert lines[0]["repository"] == "git@github.com:giellalt/lang-sme.git"


class TestConfigErrors:
    def test_bad_config_file(self, runner):
        with patch('pipesync.cli_utils.load_config', side_effect=ConfigError("bad config")):
            result = runner.invoke(cli, ['status'] + CREDENTIALS)

        assert result.exit_code == CONFIG_ERROR
        assert "bad config" in result.output
