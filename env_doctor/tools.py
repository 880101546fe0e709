"""
Tool registry: the toolchains a project workstation is expected to have.

Per-platform executable names and fallbacks are expressed as strategy lists,
so detection itself never special-cases a tool.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from .common import is_windows
from .detection import InvocationStrategy, ToolSpec
from .search_path import MAVEN_HOME_VARS

if TYPE_CHECKING:
    from .config import Config


JAVA_HOME_VARS: tuple[str, ...] = ("JAVA_HOME",)

# Minimum major versions
MIN_JAVA_MAJOR = 21
MIN_GIT_MAJOR = 2
MIN_DOCKER_MAJOR = 25

# Per-attempt timeouts in seconds
QUICK_TIMEOUT = 5.0
TOOL_TIMEOUT = 8.0
DAEMON_TIMEOUT = 10.0


def _exe(name: str, platform: str | None) -> str:
    return f"{name}.exe" if is_windows(platform) else name


def java_spec(platform: str | None = None) -> ToolSpec:
    return ToolSpec(
        name="java",
        display_name="Java",
        strategies=(
            InvocationStrategy((_exe("java", platform), "-version"), timeout=TOOL_TIMEOUT),
            InvocationStrategy(
                (_exe("java", platform), "-version"),
                timeout=TOOL_TIMEOUT,
                install_root_vars=JAVA_HOME_VARS,
            ),
        ),
        min_major=MIN_JAVA_MAJOR,
    )


def git_spec(platform: str | None = None) -> ToolSpec:
    return ToolSpec(
        name="git",
        display_name="Git",
        strategies=(
            InvocationStrategy((_exe("git", platform), "--version"), timeout=QUICK_TIMEOUT),
        ),
        min_major=MIN_GIT_MAJOR,
    )


def maven_spec(platform: str | None = None) -> ToolSpec:
    """Maven ships as a script (mvn.cmd on Windows), hence the shell strategies."""
    if is_windows(platform):
        strategies = (
            InvocationStrategy(("mvn", "-v"), shell=True, timeout=TOOL_TIMEOUT),
            InvocationStrategy(("mvn.cmd", "-v"), shell=True, timeout=TOOL_TIMEOUT),
            InvocationStrategy(
                ("mvn.cmd", "-v"), shell=True, timeout=TOOL_TIMEOUT,
                install_root_vars=MAVEN_HOME_VARS,
            ),
            InvocationStrategy(
                ("mvn.bat", "-v"), shell=True, timeout=TOOL_TIMEOUT,
                install_root_vars=MAVEN_HOME_VARS,
            ),
        )
    else:
        strategies = (
            InvocationStrategy(("mvn", "-v"), timeout=TOOL_TIMEOUT),
            InvocationStrategy(
                ("mvn", "-v"), timeout=TOOL_TIMEOUT,
                install_root_vars=MAVEN_HOME_VARS,
            ),
        )
    return ToolSpec(name="maven", display_name="Maven", strategies=strategies)


def docker_spec(platform: str | None = None) -> ToolSpec:
    return ToolSpec(
        name="docker",
        display_name="Docker",
        strategies=(
            InvocationStrategy((_exe("docker", platform), "--version"), timeout=TOOL_TIMEOUT),
        ),
        min_major=MIN_DOCKER_MAJOR,
    )


def docker_daemon_spec(platform: str | None = None) -> ToolSpec:
    """The engine CLI can be installed while its daemon is stopped."""
    return ToolSpec(
        name="docker-daemon",
        display_name="Docker daemon",
        strategies=(
            InvocationStrategy((_exe("docker", platform), "info"), timeout=DAEMON_TIMEOUT),
        ),
        require_success=True,
    )


def compose_spec(platform: str | None = None) -> ToolSpec:
    return ToolSpec(
        name="compose",
        display_name="Compose",
        strategies=(
            InvocationStrategy(
                (_exe("docker", platform), "compose", "version"),
                timeout=TOOL_TIMEOUT,
                label="v2 (docker compose)",
            ),
            InvocationStrategy(
                (_exe("docker-compose", platform), "--version"),
                timeout=TOOL_TIMEOUT,
                label="v1 (docker-compose)",
            ),
        ),
        mandatory=False,
    )


def default_registry(platform: str | None = None) -> list[ToolSpec]:
    """All tool checks, in report order."""
    return [
        java_spec(platform),
        git_spec(platform),
        maven_spec(platform),
        docker_spec(platform),
        docker_daemon_spec(platform),
        compose_spec(platform),
    ]


def primary_executable(spec: ToolSpec) -> str:
    """Executable name a user would look up with which/where."""
    for strategy in spec.strategies:
        if not strategy.is_install_root:
            return strategy.argv[0]
    return spec.strategies[0].argv[0]


def get_tool(registry: list[ToolSpec], name: str) -> ToolSpec | None:
    for spec in registry:
        if spec.name.lower() == name.lower():
            return spec
    return None


def apply_config(registry: list[ToolSpec], config: Config) -> list[ToolSpec]:
    """Return a new registry with config policy overrides applied.

    Args:
        registry: Base registry
        config: Loaded configuration

    Returns:
        New list of ToolSpec; the input is not modified
    """
    updated: list[ToolSpec] = []
    for spec in registry:
        tool_config = config.get_tool_config(spec.name)
        strategies = spec.strategies
        timeout = tool_config.timeout_seconds or config.timeout_seconds
        if timeout:
            strategies = tuple(dataclasses.replace(s, timeout=float(timeout)) for s in strategies)

        changes: dict[str, object] = {"strategies": strategies}
        if tool_config.min_major is not None:
            changes["min_major"] = tool_config.min_major
        if tool_config.min_version is not None:
            changes["min_version"] = tool_config.min_version
        if tool_config.mandatory is not None:
            changes["mandatory"] = tool_config.mandatory
        updated.append(dataclasses.replace(spec, **changes))
    return updated
