"""
Host environment snapshot shown at the top of a report.
"""

from __future__ import annotations

import getpass
import platform as platform_mod
from dataclasses import dataclass
from pathlib import Path

from .common import is_ci_environment


@dataclass(frozen=True)
class HostInfo:
    """
    Static facts about the machine running the checks.

    Attributes:
        os_name: Operating system name (platform.system())
        os_version: Operating system release
        arch: Machine architecture
        user: Login name, or "unknown"
        home: Home directory
        cwd: Working directory
        ci: Whether CI indicators are present
    """
    os_name: str
    os_version: str
    arch: str
    user: str
    home: str
    cwd: str
    ci: bool = False

    def rows(self) -> list[tuple[str, str]]:
        return [
            ("OS", self.os_name),
            ("OS Version", self.os_version),
            ("Arch", self.arch),
            ("User", self.user),
            ("Home", self.home),
            ("Work Dir", self.cwd),
            ("CI", "yes" if self.ci else "no"),
        ]


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (OSError, KeyError, ImportError):
        return "unknown"


def detect_host() -> HostInfo:
    """Collect the host snapshot."""
    return HostInfo(
        os_name=platform_mod.system() or "unknown",
        os_version=platform_mod.release() or "unknown",
        arch=platform_mod.machine() or "unknown",
        user=_current_user(),
        home=str(Path.home()),
        cwd=str(Path.cwd()),
        ci=is_ci_environment(),
    )
