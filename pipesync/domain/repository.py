"""
Repository host domain objects for pipesync.

Repository, Webhook and Release are immutable snapshots built from GitHub
API responses. They are recreated on every run and never mutated.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, Tuple

# Topic prefix declaring a repository's maturity, e.g. "maturity-beta"
MATURITY_TOPIC_PREFIX = "maturity-"


@dataclass(frozen=True)
class Repository:
    """A GitHub repository as seen by the sync engine."""
    slug: str  # owner/name
    description: Optional[str] = None
    url: Optional[str] = None
    topics: Tuple[str, ...] = ()
    is_private: bool = False
    is_archived: bool = False
    default_branch: str = "main"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    pushed_at: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Repository':
        """Create from a GitHub API repository object."""
        return cls(
            slug=data.get('full_name', ''),
            description=data.get('description'),
            url=data.get('html_url'),
            topics=tuple(data.get('topics') or ()),
            is_private=bool(data.get('private', False)),
            is_archived=bool(data.get('archived', False)),
            default_branch=data.get('default_branch') or 'main',
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
            pushed_at=data.get('pushed_at'),
        )

    @property
    def owner(self) -> str:
        return self.slug.split('/', 1)[0]

    @property
    def name(self) -> str:
        return self.slug.split('/', 1)[-1]

    @property
    def visibility(self) -> str:
        return "private" if self.is_private else "public"

    @property
    def maturity_level(self) -> Optional[str]:
        """Level from the first ``maturity-<level>`` topic, if any."""
        for topic in self.topics:
            if topic.startswith(MATURITY_TOPIC_PREFIX):
                level = topic[len(MATURITY_TOPIC_PREFIX):]
                if level:
                    return level
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'slug': self.slug,
            'description': self.description,
            'url': self.url,
            'topics': list(self.topics),
            'visibility': self.visibility,
            'archived': self.is_archived,
            'default_branch': self.default_branch,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'pushed_at': self.pushed_at,
        }


@dataclass(frozen=True)
class Webhook:
    """A repository webhook."""
    id: Optional[int]
    url: Optional[str]
    active: bool = True
    events: Tuple[str, ...] = ()
    name: str = "web"
    content_type: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Webhook':
        config = data.get('config') or {}
        return cls(
            id=data.get('id'),
            url=config.get('url'),
            active=bool(data.get('active', False)),
            events=tuple(data.get('events') or ()),
            name=data.get('name', 'web'),
            content_type=config.get('content_type'),
        )

    def subscribes_to(self, event: str) -> bool:
        """True if the hook fires for ``event`` (``*`` subscribes to all)."""
        return event in self.events or '*' in self.events


@dataclass(frozen=True)
class Release:
    """A published (or draft) release of a repository."""
    tag_name: str
    name: str = ""
    draft: bool = False
    prerelease: bool = False
    published_at: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Release':
        return cls(
            tag_name=data.get('tag_name') or '',
            name=data.get('name') or '',
            draft=bool(data.get('draft', False)),
            prerelease=bool(data.get('prerelease', False)),
            published_at=data.get('published_at'),
            created_at=data.get('created_at'),
        )
