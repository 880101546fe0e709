"""
Common utilities shared across env_doctor modules.
"""

from __future__ import annotations

import os
import sys


# Exit codes a shell reports when it cannot resolve the command it was asked to run
POSIX_NOT_FOUND_EXIT = 127
WINDOWS_NOT_FOUND_EXIT = 9009


def current_platform() -> str:
    """Return sys.platform, the value detection and path helpers key on."""
    return sys.platform


def is_windows(platform: str | None = None) -> bool:
    """
    Check whether the given (or current) platform is Windows.

    Args:
        platform: sys.platform-style value; defaults to the running interpreter's

    Returns:
        True for win32/cygwin style platforms
    """
    platform = platform or current_platform()
    return platform.startswith("win") or platform == "cygwin"


def is_macos(platform: str | None = None) -> bool:
    """Check whether the given (or current) platform is macOS."""
    return (platform or current_platform()) == "darwin"


def path_separator(platform: str | None = None) -> str:
    """PATH separator for the given platform."""
    return ";" if is_windows(platform) else ":"


def is_ci_environment() -> bool:
    """
    Check if running in a CI/CD environment.

    Returns:
        True if CI indicators are present, False otherwise.
    """
    ci_indicators = [
        "CI",
        "CONTINUOUS_INTEGRATION",
        "GITHUB_ACTIONS",
        "GITLAB_CI",
        "CIRCLECI",
        "TRAVIS",
        "JENKINS_HOME",
        "BUILDKITE",
        "DRONE",
        "SEMAPHORE",
        "APPVEYOR",
        "CODEBUILD_BUILD_ID",
        "TF_BUILD",  # Azure Pipelines
    ]
    return any(os.environ.get(var) for var in ci_indicators)


def env_flag(name: str, default: str = "0") -> bool:
    """Read a 0/1 style environment toggle."""
    return os.environ.get(name, default).strip() == "1"


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log a trace line at DEBUG through the env_doctor logger.

    Nothing is emitted unless verbose is set or ENV_DOCTOR_DEBUG=1.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or env_flag("ENV_DOCTOR_DEBUG"):
        from .logging_config import get_logger
        get_logger().debug(msg)
