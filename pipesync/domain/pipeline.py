"""
Pipeline domain object for pipesync.

A Pipeline is an immutable snapshot of a Buildkite pipeline. This module
also holds the desired-state constants the assessor compares against and
the fix engine writes back.
"""

import re
from dataclasses import dataclass
from typing import Optional, Dict, Any, Tuple

# Managed configuration template and its version counter
CURRENT_VERSION = 1
MANAGED_MARKER = "# Managed by Divvun Actions"
CUSTOM_MARKER = "# Custom"

MANAGED_TEMPLATE = f"""
{MANAGED_MARKER} -- DO NOT EDIT
# version: {CURRENT_VERSION}
steps:
  - command: divvun-actions ci
    plugins:
    - ssh://git@github.com/divvun/divvun-actions.git#main: ~
""".strip()

# Branch excluded from builds (documentation publishing)
DOCS_BRANCH_EXCLUSION = "!gh-pages"

# Build filter every pipeline should carry
CANONICAL_FILTER = 'build.branch != "gh-pages" && build.tag !~ /dev-latest$/'

# Pipeline tag prefix mirroring a repository's maturity topic
MATURITY_TAG_PREFIX = ":package: "

_VERSION_LINE = re.compile(r'^#\s*version:\s*(\d+)\s*$', re.MULTILINE)


def maturity_tag(level: str) -> str:
    """Pipeline tag for a maturity level, e.g. ``:package: beta``."""
    return f"{MATURITY_TAG_PREFIX}{level}"


def normalize_repository_reference(reference: Optional[str]) -> Optional[str]:
    """
    Reduce a pipeline's repository reference to a lowercase owner/name slug.

    Handles:
        git@github.com:owner/repo.git → owner/repo
        https://github.com/owner/repo.git → owner/repo
        ssh://git@github.com/owner/repo → owner/repo
    """
    if not reference:
        return None

    ref = reference.strip()
    if ref.endswith('.git'):
        ref = ref[:-len('.git')]
    ref = ref.rstrip('/')

    if '://' in ref:
        path = ref.split('://', 1)[1]
        path = path.split('/', 1)[1] if '/' in path else ''
    elif ':' in ref:
        path = ref.split(':', 1)[1]
    else:
        path = ref

    parts = [p for p in path.split('/') if p]
    if len(parts) < 2:
        return None
    return f"{parts[-2]}/{parts[-1]}".lower()


@dataclass(frozen=True)
class Pipeline:
    """A Buildkite pipeline as seen by the sync engine."""
    slug: str
    name: str = ""
    id: Optional[str] = None
    web_url: Optional[str] = None
    repository: str = ""
    configuration: str = ""
    branch_configuration: Optional[str] = None
    tags: Tuple[str, ...] = ()
    webhook_url: Optional[str] = None
    build_tags: bool = False
    skip_queued_branch_builds: bool = False
    skip_queued_branch_builds_filter: Optional[str] = None
    filter_enabled: bool = False
    filter_condition: Optional[str] = None
    default_branch: Optional[str] = None
    visibility: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    archived_at: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Pipeline':
        """Create from a Buildkite API pipeline object."""
        provider = data.get('provider') or {}
        settings = provider.get('settings') or {}

        return cls(
            slug=data.get('slug', ''),
            name=data.get('name', ''),
            id=data.get('id'),
            web_url=data.get('web_url'),
            repository=data.get('repository') or '',
            configuration=data.get('configuration') or '',
            branch_configuration=data.get('branch_configuration'),
            tags=tuple(data.get('tags') or ()),
            webhook_url=provider.get('webhook_url'),
            build_tags=settings.get('build_tags') is True,
            skip_queued_branch_builds=data.get('skip_queued_branch_builds') is True,
            skip_queued_branch_builds_filter=data.get('skip_queued_branch_builds_filter'),
            filter_enabled=data.get('filter_enabled') is True,
            filter_condition=data.get('filter_condition'),
            default_branch=data.get('default_branch'),
            visibility=data.get('visibility'),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
            archived_at=data.get('archived_at'),
        )

    @property
    def repository_slug(self) -> Optional[str]:
        return normalize_repository_reference(self.repository)

    @property
    def maturity_tags(self) -> Tuple[str, ...]:
        return tuple(t for t in self.tags if t.startswith(MATURITY_TAG_PREFIX))

    @property
    def maturity_level(self) -> Optional[str]:
        """Level from the first ``:package: <level>`` tag, if any."""
        for tag in self.maturity_tags:
            level = tag[len(MATURITY_TAG_PREFIX):].strip()
            if level:
                return level
        return None

    @property
    def is_managed(self) -> bool:
        return self.configuration.lstrip().startswith(MANAGED_MARKER)

    @property
    def is_custom(self) -> bool:
        return CUSTOM_MARKER in self.configuration

    @property
    def configuration_version(self) -> Optional[int]:
        """Version counter from the ``# version: N`` line of the configuration."""
        match = _VERSION_LINE.search(self.configuration)
        return int(match.group(1)) if match else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'slug': self.slug,
            'name': self.name,
            'web_url': self.web_url,
            'repository': self.repository,
            'tags': list(self.tags),
            'branch_configuration': self.branch_configuration,
            'webhook_url': self.webhook_url,
            'build_tags': self.build_tags,
            'skip_queued_branch_builds': self.skip_queued_branch_builds,
            'filter_enabled': self.filter_enabled,
            'filter_condition': self.filter_condition,
        }
