#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import logging
import sys

from .exit_codes import ConfigError, MissingArgumentError
from .infra.http import RetryPolicy
from .infra.buildkite_client import DEFAULT_CLUSTER_ID

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("pipesync")

# Bounds on the per-repository fetch pool
MIN_CONCURRENCY = 3
MAX_CONCURRENCY = 5


@dataclass(frozen=True)
class GitHubSettings:
    token: str
    orgs: Tuple[str, ...]
    repo_filters: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BuildkiteSettings:
    token: str
    org: str
    cluster_id: str = DEFAULT_CLUSTER_ID


@dataclass(frozen=True)
class SyncSettings:
    """Validated settings for one invocation."""
    github: Optional[GitHubSettings] = None
    buildkite: Optional[BuildkiteSettings] = None
    concurrency: int = MAX_CONCURRENCY
    retry: RetryPolicy = RetryPolicy()
    timeout: float = 30


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. PIPESYNC_CONFIG environment variable
    2. ~/.pipesync/config.{json,toml,yaml,yml}
    """
    if 'PIPESYNC_CONFIG' in os.environ:
        path = Path(os.environ['PIPESYNC_CONFIG'])
        if path.exists():
            return path

    pipesync_dir = Path.home() / '.pipesync'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = pipesync_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path
    return pipesync_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "github": {
            "token": "",
            "orgs": [],
            # Only repositories whose slug contains one of these are synced
            "repo_filters": ["lang-", "keyboard-"],
        },
        "buildkite": {
            "token": "",
            "org": "",
            "cluster_id": DEFAULT_CLUSTER_ID,
        },
        "sync": {
            "max_concurrent_operations": MAX_CONCURRENCY,
        },
        "http": {
            "timeout_seconds": 30,
            "retry": {
                "max_attempts": 3,
                "initial_delay_seconds": 1.0,
                "multiplier": 2.0,
                "jitter": 0.2,
                "max_delay_seconds": 60,
            },
        },
        "logging": {
            "level": "INFO",
        },
    }


def load_config():
    """Load configuration from file, defaults and environment."""
    config_path = get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                import yaml
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
        except Exception as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)

    return apply_env_overrides(config)


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: PIPESYNC_SECTION_KEY
    For example: PIPESYNC_BUILDKITE_TOKEN=... or PIPESYNC_GITHUB_ORGS=divvun,giellalt
    """
    env_prefix = "PIPESYNC_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "PIPESYNC_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Longest config key matching the next key parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config


def configure_logging(level: Union[str, int]) -> None:
    """Set the pipesync log level ("DEBUG", "INFO", ...)."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ConfigError(f"Unknown log level: {level}")
        level = resolved
    logger.setLevel(level)


def _split_list(value: Any) -> Tuple[str, ...]:
    """Accept a list or a comma-separated string (or scalar, from env overrides)."""
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        items: Iterable[Any] = value
    else:
        items = str(value).split(',')
    return tuple(str(item).strip() for item in items if str(item).strip())


def build_settings(
    config: Dict[str, Any],
    gh_key: Optional[str] = None,
    gh_orgs: Optional[str] = None,
    bk_key: Optional[str] = None,
    bk_org: Optional[str] = None,
    require: Iterable[str] = ('github', 'buildkite'),
) -> SyncSettings:
    """
    Validate configuration plus command-line values into SyncSettings.

    Command-line values win over the config file and environment.

    Args:
        config: Result of load_config()
        gh_key, gh_orgs, bk_key, bk_org: Command-line overrides
        require: Services whose credentials must be present

    Raises:
        MissingArgumentError: naming every missing required option
        ConfigError: for values of the wrong type
    """
    require = set(require)
    github_cfg = config.get('github', {})
    buildkite_cfg = config.get('buildkite', {})
    missing = []

    github = None
    token = gh_key or github_cfg.get('token')
    orgs = _split_list(gh_orgs if gh_orgs else github_cfg.get('orgs'))
    if 'github' in require:
        if not token:
            missing.append('--gh-key')
        if not orgs:
            missing.append('--gh-orgs')
    if token and orgs:
        github = GitHubSettings(
            token=str(token),
            orgs=orgs,
            repo_filters=_split_list(github_cfg.get('repo_filters')),
        )

    buildkite = None
    token = bk_key or buildkite_cfg.get('token')
    org = bk_org or buildkite_cfg.get('org')
    if 'buildkite' in require:
        if not token:
            missing.append('--bk-key')
        if not org:
            missing.append('--bk-org')
    if token and org:
        buildkite = BuildkiteSettings(
            token=str(token),
            org=str(org),
            cluster_id=str(buildkite_cfg.get('cluster_id') or DEFAULT_CLUSTER_ID),
        )

    if missing:
        raise MissingArgumentError(missing)

    http_cfg = config.get('http', {})
    retry_cfg = http_cfg.get('retry', {})
    try:
        concurrency = int(config.get('sync', {}).get('max_concurrent_operations', MAX_CONCURRENCY))
        retry = RetryPolicy(
            max_attempts=int(retry_cfg.get('max_attempts', 3)),
            initial_delay=float(retry_cfg.get('initial_delay_seconds', 1.0)),
            multiplier=float(retry_cfg.get('multiplier', 2.0)),
            jitter=float(retry_cfg.get('jitter', 0.2)),
            max_delay=float(retry_cfg.get('max_delay_seconds', 60)),
        )
        timeout = float(http_cfg.get('timeout_seconds', 30))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    if retry.max_attempts < 1:
        raise ConfigError("http.retry.max_attempts must be at least 1")

    return SyncSettings(
        github=github,
        buildkite=buildkite,
        concurrency=max(MIN_CONCURRENCY, min(MAX_CONCURRENCY, concurrency)),
        retry=retry,
        timeout=timeout,
    )
