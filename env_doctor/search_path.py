"""
Search-path augmentation for spawned children.

IDEs and CI agents often start with a trimmed PATH, so well-known install
directories are prepended for each child process. The parent's own
environment is never touched: every call returns a new value.
"""

from __future__ import annotations

import os
from typing import Mapping, Sequence

from .common import is_macos, is_windows, path_separator


# Installation root of the build tool; the first non-empty variable wins
MAVEN_HOME_VARS: tuple[str, ...] = ("MAVEN_HOME", "M2_HOME")

WINDOWS_EXTRA_DIRS: tuple[str, ...] = (
    r"C:\Program Files\Docker\Docker\resources\bin",
    r"C:\Program Files\Git\bin",
)
MACOS_EXTRA_DIRS: tuple[str, ...] = (
    "/usr/local/bin",
    "/opt/homebrew/bin",
    "/Applications/Docker.app/Contents/Resources/bin",
    "/usr/bin",
)
POSIX_EXTRA_DIRS: tuple[str, ...] = (
    "/usr/local/bin",
    "/usr/bin",
)


def resolve_install_root(
    names: Sequence[str],
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Return the first non-blank value among the given environment variables.

    Args:
        names: Variable names in priority order (e.g. MAVEN_HOME, M2_HOME)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        The variable's value, or None if all are unset or blank
    """
    environ = os.environ if environ is None else environ
    for name in names:
        value = environ.get(name)
        if value and value.strip():
            return value
    return None


def extra_directories(
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> list[str]:
    """Well-known tool directories for the platform, in prepend order."""
    maven_root = resolve_install_root(MAVEN_HOME_VARS, environ)

    if is_windows(platform):
        extras = [WINDOWS_EXTRA_DIRS[0]]
        if maven_root:
            extras.append(maven_root.rstrip("\\/") + "\\bin")
        extras.append(WINDOWS_EXTRA_DIRS[1])
        return extras

    extras = list(MACOS_EXTRA_DIRS if is_macos(platform) else POSIX_EXTRA_DIRS)
    if maven_root:
        extras.append(maven_root.rstrip("/") + "/bin")
    return extras


def augmented_search_path(
    base_path: str,
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Prepend well-known directories to a PATH value.

    Entries already present (compared case-insensitively on whole segments)
    are skipped. Existing entries keep their order and nothing is removed,
    so applying the function to its own output returns it unchanged.

    Args:
        base_path: Original PATH value (may be empty)
        platform: sys.platform-style value (defaults to the running platform)
        environ: Mapping used for installation-root lookups

    Returns:
        New PATH value
    """
    sep = path_separator(platform)
    existing = base_path.split(sep) if base_path else []
    seen = {segment.lower() for segment in existing}

    prefix: list[str] = []
    for extra in extra_directories(platform, environ):
        if not extra or not extra.strip():
            continue
        key = extra.lower()
        if key in seen:
            continue
        seen.add(key)
        prefix.append(extra)

    if not prefix:
        return base_path
    return sep.join(prefix + existing)


def child_environment(
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> dict[str, str]:
    """Environment snapshot for a single child process.

    Args:
        environ: Parent environment (defaults to os.environ); not modified
        platform: sys.platform-style value

    Returns:
        Copy of the environment that differs only in its augmented PATH
    """
    environ = os.environ if environ is None else environ
    env = dict(environ)
    env["PATH"] = augmented_search_path(env.get("PATH", ""), platform, environ)
    return env
