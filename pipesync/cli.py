#!/usr/bin/env python3

import click

from pipesync.config import configure_logging
from pipesync.commands.status import status_handler
from pipesync.commands.sync import sync_handler
from pipesync.commands.lists import list_repos_handler, list_pipelines_handler


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option()
def cli(debug):
    """pipesync - Keep Buildkite pipelines in sync with GitHub repositories.

    Detects drift between the repositories of one or more GitHub
    organizations and the pipelines of a Buildkite organization, and
    optionally repairs it.
    """
    if debug:
        configure_logging('DEBUG')


cli.add_command(status_handler)
cli.add_command(sync_handler)
cli.add_command(list_repos_handler)
cli.add_command(list_pipelines_handler)


def main():
    cli()

if __name__ == "__main__":
    main()
