"""
Version extraction and comparison for tool banners.

Tools print their version in free-form text ("git version 2.43.0",
'openjdk version "21.0.2" 2024-01-16', "Docker version 25.0.3, build 4debf41").
The first version-looking token wins, which is normally the tool's own banner.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from packaging.version import InvalidVersion, Version


# Optional "v" tag ("v2.1"), then 1-3 dot-separated numeric groups
VERSION_RE = re.compile(r"([vV])?(\d+)(?:\.(\d+))?(?:\.(\d+))?")
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
NON_DIGIT_RE = re.compile(r"\D+")


@dataclass(frozen=True)
class VersionInfo:
    """
    Version parsed out of tool output.

    Attributes:
        raw: Matched substring, including a leading "v" tag
        major: Major component (always present)
        minor: Minor component, 0 when absent
        patch: Patch component, 0 when absent
        groups: Number of numeric groups that were actually present (1-3)
    """
    raw: str
    major: int
    minor: int = 0
    patch: int = 0
    groups: int = 1

    @property
    def text(self) -> str:
        """Dotted version using only the groups that appeared in the output."""
        parts = (self.major, self.minor, self.patch)[: self.groups]
        return ".".join(str(p) for p in parts)

    def as_version(self) -> Version:
        """Convert to a packaging Version for ordering comparisons."""
        return Version(f"{self.major}.{self.minor}.{self.patch}")

    def __str__(self) -> str:
        return self.text


def strip_ansi(text: str) -> str:
    """Remove ANSI colour/style escapes (mvn prints bold banners)."""
    return ANSI_ESCAPE_RE.sub("", text)


def extract_version(text: str | None) -> VersionInfo | None:
    """Extract the first version number appearing in text.

    Args:
        text: Free-form command output

    Returns:
        VersionInfo for the first match, or None if no digits appear
    """
    if not text:
        return None

    m = VERSION_RE.search(strip_ansi(text))
    if not m:
        return None

    _tag, major, minor, patch = m.groups()
    groups = 1 + (minor is not None) + (patch is not None)
    return VersionInfo(
        raw=m.group(0),
        major=int(major),
        minor=int(minor) if minor is not None else 0,
        patch=int(patch) if patch is not None else 0,
        groups=groups,
    )


def major_of(version: str | None) -> int:
    """Major component of a version string, 0 if it cannot be determined.

    Everything before the first dot is kept (the whole string when there is
    no dot), non-digits are dropped, and the rest is parsed. Never raises.
    """
    if not version or not version.strip():
        return 0

    head = version.split(".", 1)[0]
    digits = NON_DIGIT_RE.sub("", head)
    if not digits:
        return 0
    try:
        return int(digits)
    except ValueError:
        return 0


def parse_minimum(minimum: str) -> Version:
    """Parse a configured minimum such as "2.30" or "v3.9.0".

    Raises:
        ValueError: If the string is not a valid version
    """
    try:
        return Version(str(minimum).strip().lstrip("vV"))
    except InvalidVersion:
        raise ValueError(f"Invalid minimum version: {minimum!r}") from None


def satisfies_minimum(info: VersionInfo | None, minimum: str) -> bool:
    """Check info >= minimum using packaging's version ordering.

    Args:
        info: Parsed version (None never satisfies a minimum)
        minimum: Minimum version string such as "2.30" or "v3.9.0"

    Returns:
        True if the detected version is at least the minimum
    """
    required = parse_minimum(minimum)
    if info is None:
        return False
    return info.as_version() >= required
