"""
Structured `major.minor.patch` versions.

Marketplace version strings are only compared when an extension publishes both
a platform-specific and a platform-agnostic build for the same platform key.
"""

import re
from dataclasses import dataclass

from offline_vsix.exceptions import VersionError

_COMPONENT_RX = re.compile(r"[0-9]+")


@dataclass(frozen=True, order=True)
class Version:
    """A release version ordered by (major, minor, patch)."""

    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, version: str) -> "Version":
        """
        Parse a version string of exactly three dot-separated non-negative integers.

        Parameters:
            version (str): Version string such as "1.2.3".

        Returns:
            Version: The parsed version.

        Raises:
            VersionError: If the string has a different number of components, or
                any component is not made of decimal digits only.
        """
        if not isinstance(version, str):
            raise VersionError(
                "Version must be a string", field="version", value=repr(version)
            )

        parts = version.split(".")
        if len(parts) != 3 or not all(_COMPONENT_RX.fullmatch(part) for part in parts):
            raise VersionError(
                f"Invalid version format: {version!r}",
                field="version",
                value=version,
                details="expected 'major.minor.patch'",
            )

        major, minor, patch = (int(part) for part in parts)
        return cls(major, minor, patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(version: str) -> Version:
    """Shorthand for Version.parse()."""
    return Version.parse(version)


def compare_versions(left: str, right: str) -> int:
    """
    Compare two version strings.

    Returns:
        int: -1 if `left` is older than `right`, 0 if equal, 1 if newer.

    Raises:
        VersionError: If either string is malformed.
    """
    left_version = Version.parse(left)
    right_version = Version.parse(right)
    if left_version < right_version:
        return -1
    if left_version > right_version:
        return 1
    return 0
