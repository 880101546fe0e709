"""
Supplementary diagnostics printed alongside the checks.

Nothing here affects the verdict; it helps explain it (where an executable
resolves from, which install root is configured, where Maven settings live).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Sequence

from .common import is_windows
from .detection import Runner
from .runner import CommandResult, run_command
from .search_path import MAVEN_HOME_VARS, resolve_install_root

LOCATE_TIMEOUT = 5.0


def locate_executable(
    name: str,
    runner: Runner | None = None,
    platform: str | None = None,
    verbose: bool = False,
) -> CommandResult:
    """Ask the platform's lookup command where an executable resolves from.

    Uses ``where`` (via cmd) on Windows and ``which`` elsewhere.

    Args:
        name: Executable name
        runner: Callable (argv, timeout) -> CommandResult
        platform: sys.platform-style value
        verbose: Trace the lookup

    Returns:
        CommandResult of the lookup; exit code 0 means the name was found
    """
    if is_windows(platform):
        argv: tuple[str, ...] = ("cmd", "/c", "where", name)
    else:
        argv = ("which", name)

    if runner is None:
        return run_command(argv, LOCATE_TIMEOUT, verbose=verbose, platform=platform)
    return runner(argv, LOCATE_TIMEOUT)


def find_maven_settings(
    environ: Mapping[str, str] | None = None,
    home: str | Path | None = None,
) -> Path | None:
    """Find the Maven settings.xml in effect.

    The user file (~/.m2/settings.xml) wins over <maven root>/conf/settings.xml.
    """
    home_dir = Path(home) if home is not None else Path.home()
    user_settings = home_dir / ".m2" / "settings.xml"
    if user_settings.is_file():
        return user_settings

    root = resolve_install_root(MAVEN_HOME_VARS, environ)
    if root:
        global_settings = Path(root.strip()) / "conf" / "settings.xml"
        if global_settings.is_file():
            return global_settings
    return None


def install_root_summary(
    names: Sequence[str],
    environ: Mapping[str, str] | None = None,
) -> str:
    """Describe the first set installation-root variable, e.g. "MAVEN_HOME=/opt/maven"."""
    environ = os.environ if environ is None else environ
    for name in names:
        value = environ.get(name)
        if value and value.strip():
            return f"{name}={value}"
    return "(none)"
