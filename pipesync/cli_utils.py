"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import sys
import click
from functools import wraps
from typing import Any, Iterable, Optional

from .config import load_config, build_settings, configure_logging, logger, SyncSettings
from .exit_codes import INTERRUPTED, APIError, CommandError, exit_code_for
from .infra import FetchError


def handle_errors(func):
    """
    Decorator that provides standard error handling:
    - CommandError exits with its own code, message on stderr
    - FetchError (retries exhausted) becomes APIError
    - Ctrl+C exits with INTERRUPTED
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(exit_code_for(e))
        except FetchError as e:
            error = APIError(str(e))
            click.echo(f"Error: {error}", err=True)
            sys.exit(exit_code_for(error))

    return wrapper


def resolve_settings(
    gh_key: Optional[str] = None,
    gh_orgs: Optional[str] = None,
    bk_key: Optional[str] = None,
    bk_org: Optional[str] = None,
    require: Iterable[str] = ('github', 'buildkite'),
) -> SyncSettings:
    """Load configuration and validate it together with command-line values."""
    config = load_config()
    # --debug already set a level
    if logger.level == logging.NOTSET:
        configure_logging(config.get('logging', {}).get('level', 'INFO'))
    return build_settings(
        config,
        gh_key=gh_key,
        gh_orgs=gh_orgs,
        bk_key=bk_key,
        bk_org=bk_org,
        require=require,
    )


def output_result(result: Any) -> None:
    """
    Print a result as JSONL on stdout.

    Args:
        result: A dict (one line) or a list of dicts (one line each)
    """
    if isinstance(result, (list, tuple)):
        for item in result:
            print(json.dumps(item, ensure_ascii=False), flush=True)
    elif isinstance(result, dict):
        print(json.dumps(result, ensure_ascii=False), flush=True)


# Standard options that many commands share
common_options = {
    'gh_key': click.option('--gh-key', help='GitHub API key'),
    'gh_orgs': click.option('--gh-orgs', help='Comma-separated list of GitHub organizations'),
    'bk_key': click.option('--bk-key', help='Buildkite API key'),
    'bk_org': click.option('--bk-org', help='Buildkite organization name'),
    'dry_run': click.option('--dry-run', is_flag=True,
                            help='Preview fixes without applying them'),
    'json_output': click.option('--json', 'json_output', is_flag=True, help='Output as JSONL'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('gh_key', 'gh_orgs')
        def my_command(gh_key, gh_orgs):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
