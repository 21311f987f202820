"""
Handles the 'list-repos' and 'list-pipelines' commands.
"""

import click

from ..cli_utils import handle_errors, add_common_options, resolve_settings, output_result
from ..render import render_repository_list, render_pipeline_list
from ..services.sync_service import SyncService


@click.command(name='list-repos')
@click.option('--all', 'show_all', is_flag=True,
              help='Ignore the configured repository name filters')
@add_common_options('gh_key', 'gh_orgs', 'json_output')
@handle_errors
def list_repos_handler(show_all, gh_key, gh_orgs, json_output):
    """List GitHub repositories of the configured organizations."""
    settings = resolve_settings(gh_key=gh_key, gh_orgs=gh_orgs, require=('github',))
    service = SyncService(settings)

    if show_all:
        repos = service.github.list_repos(settings.github.orgs)
    else:
        repos = service.list_repositories()

    if json_output:
        output_result([repo.to_dict() for repo in repos])
    else:
        render_repository_list(repos)


@click.command(name='list-pipelines')
@add_common_options('bk_key', 'bk_org', 'json_output')
@handle_errors
def list_pipelines_handler(bk_key, bk_org, json_output):
    """List Buildkite pipelines of the organization."""
    settings = resolve_settings(bk_key=bk_key, bk_org=bk_org, require=('buildkite',))
    service = SyncService(settings)
    pipelines = service.list_pipelines()

    if json_output:
        output_result([pipeline.to_dict() for pipeline in pipelines])
    else:
        render_pipeline_list(pipelines)
