"""
Release channel classification for pipesync.

Turns a repository's release history into the latest version per package
and channel (stable, beta, dev). Release tags look like
``<package>/v<version>``; rolling dev releases carry the ``dev-latest``
token in their tag and the real version in their display name.

Assignment is first-wins per channel, so releases must be given newest
first (the order GitHub lists them in).
"""

import re
from typing import Dict, Iterable, Optional, Tuple

from .domain import Release, PackageChannels

# Token in the tag of a rolling development release
ROLLING_RELEASE_TOKEN = "dev-latest"

_PACKAGE_VERSION = re.compile(r'^(.+)/v(.+)$')

# MAJOR.MINOR.PATCH[-prerelease][+build], as in the semver.org grammar
_SEMVER = re.compile(
    r'^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)'
    r'(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)'
    r'(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?'
    r'(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$'
)


def parse_package_version(text: str) -> Optional[Tuple[str, str]]:
    """
    Split ``<package>/v<version>`` into its parts.

    Examples:
        >>> parse_package_version("grammar-sme/v1.2.0")
        ('grammar-sme', '1.2.0')
        >>> parse_package_version("v1.2.0") is None
        True
    """
    match = _PACKAGE_VERSION.match(text or '')
    if not match:
        return None
    return match.group(1), match.group(2)


def semver_major(version: str) -> Optional[int]:
    """
    Major component of a semantic version, or None if ``version`` is not one.

    Examples:
        >>> semver_major("1.0.0-x.7.z.92")
        1
        >>> semver_major("1.0") is None
        True
    """
    match = _SEMVER.match(version or '')
    if not match:
        return None
    return int(match.group(1))


def is_stable_version(version: str) -> bool:
    """True if ``version`` is a semantic version with major 1 or more."""
    major = semver_major(version)
    return major is not None and major >= 1


def classify_releases(releases: Iterable[Release]) -> Dict[str, PackageChannels]:
    """
    Build the package → channels table from releases ordered newest first.

    Per release:
    - a rolling dev release sets ``dev`` from its display name
    - a prerelease sets ``beta``
    - a published release sets ``stable`` for 1.x and later, and
      ``beta`` for 0.x or versions that do not parse

    A channel that is already set is never overwritten.

    Args:
        releases: Releases of one repository, newest first

    Returns:
        Mapping of package name to its channels
    """
    packages: Dict[str, PackageChannels] = {}

    for release in releases:
        if ROLLING_RELEASE_TOKEN in release.tag_name:
            parsed = parse_package_version(release.name)
            if parsed:
                package, version = parsed
                channels = packages.setdefault(package, PackageChannels())
                if channels.dev is None:
                    channels.dev = version
            continue

        parsed = parse_package_version(release.tag_name)
        if not parsed:
            continue

        package, version = parsed
        channels = packages.setdefault(package, PackageChannels())

        if release.prerelease:
            if channels.beta is None:
                channels.beta = version
        elif not release.draft:
            if is_stable_version(version):
                if channels.stable is None:
                    channels.stable = version
            elif channels.beta is None:
                channels.beta = version

    return packages
