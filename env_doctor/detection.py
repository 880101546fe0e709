"""
Tool detection through ordered invocation strategies.

A tool is described declaratively (ToolSpec) as a list of ways to invoke it.
Strategies run in order and the first one whose executable is present wins;
the rest are never started.
"""

from __future__ import annotations

import logging
import os
import shlex
import stat
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from .common import is_windows, vlog
from .runner import (
    DEFAULT_TIMEOUT_SECONDS,
    REASON_NOT_FOUND,
    SPAWN_FAILURE_EXIT,
    CommandResult,
    run_command,
)
from .search_path import resolve_install_root
from .versioning import VersionInfo, extract_version, major_of, parse_minimum, satisfies_minimum

logger = logging.getLogger(__name__)

# runner(argv, timeout) -> CommandResult
Runner = Callable[[Sequence[str], float], CommandResult]


@dataclass(frozen=True)
class InvocationStrategy:
    """
    One concrete way of invoking a tool.

    Attributes:
        argv: Command template; for install-root strategies argv[0] is the
            executable's file name under <root>/bin
        shell: Run through the platform shell (cmd /c, /bin/sh -c); needed
            when the tool is a script or batch launcher
        timeout: Per-attempt timeout in seconds
        install_root_vars: Environment variables naming an installation root;
            non-empty marks an absolute-path fallback strategy
        label: Short name shown in diagnostics
    """
    argv: tuple[str, ...]
    shell: bool = False
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    install_root_vars: tuple[str, ...] = ()
    label: str = ""

    def __post_init__(self):
        if not self.argv:
            raise ValueError("InvocationStrategy.argv must not be empty")
        if self.timeout <= 0:
            raise ValueError(f"Invalid timeout: {self.timeout}. Must be positive")

    @property
    def is_install_root(self) -> bool:
        return bool(self.install_root_vars)

    def describe(self) -> str:
        if self.label:
            return self.label
        if self.is_install_root:
            return f"{'/'.join(self.install_root_vars)}/bin/{' '.join(self.argv)}"
        prefix = "shell: " if self.shell else ""
        return prefix + " ".join(self.argv)


@dataclass(frozen=True)
class ToolSpec:
    """
    Declarative description of a tool check.

    Attributes:
        name: Registry key (e.g. "git")
        strategies: Invocation strategies in the order they are tried
        min_major: Minimum major version, None for no version policy
        min_version: Minimum full version (e.g. "2.30"), compared with packaging
        mandatory: Whether the tool's policy counts toward the overall verdict
        require_success: Policy additionally requires exit code 0
        display_name: Human-friendly name for reports
    """
    name: str
    strategies: tuple[InvocationStrategy, ...]
    min_major: int | None = None
    min_version: str | None = None
    mandatory: bool = True
    require_success: bool = False
    display_name: str = ""

    def __post_init__(self):
        if not self.strategies:
            raise ValueError(f"Tool '{self.name}' has no invocation strategies")
        if self.min_major is not None and self.min_major < 0:
            raise ValueError(f"Tool '{self.name}': min_major must be >= 0")
        if self.min_version is not None:
            parse_minimum(self.min_version)

    @property
    def title(self) -> str:
        return self.display_name or self.name


@dataclass(frozen=True)
class DetectionOutcome:
    """
    Result of checking one tool.

    Attributes:
        tool: Tool name
        result: First present CommandResult, or the last failing one
        version: Version parsed from the winning output; None when not present
        policy_passed: Present and all configured version/exit policies met
        mandatory: Copied from the ToolSpec
        strategy: Description of the winning (or last tried) strategy
        attempts: Number of strategies that were actually invoked
    """
    tool: str
    result: CommandResult
    version: VersionInfo | None
    policy_passed: bool
    mandatory: bool = True
    strategy: str = ""
    attempts: int = 0
    spec: ToolSpec | None = field(default=None, compare=False, repr=False)

    @property
    def present(self) -> bool:
        return self.result.present

    @property
    def major(self) -> int:
        return major_of(self.version.text if self.version else "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "present": self.present,
            "version": self.version.text if self.version else "",
            "major": self.major,
            "policy_passed": self.policy_passed,
            "mandatory": self.mandatory,
            "strategy": self.strategy,
            "attempts": self.attempts,
            "result": self.result.to_dict(),
        }


def shell_wrap(argv: Sequence[str], platform: str | None = None) -> tuple[str, ...]:
    """Wrap argv in the platform's command shell."""
    if is_windows(platform):
        return ("cmd", "/c", *argv)
    return ("/bin/sh", "-c", shlex.join(argv))


def install_root_executable(
    strategy: InvocationStrategy,
    environ: Mapping[str, str] | None = None,
) -> Path | None:
    """Locate <root>/bin/<argv[0]> for an install-root strategy.

    Returns:
        Path to an existing regular file, or None
    """
    root = resolve_install_root(strategy.install_root_vars, environ)
    if not root:
        return None
    candidate = Path(root.strip()) / "bin" / strategy.argv[0]
    if candidate.is_file():
        return candidate
    return None


def ensure_executable(path: Path, platform: str | None = None) -> None:
    """Add execute bits on platforms that need them (idempotent)."""
    if is_windows(platform):
        return
    try:
        mode = path.stat().st_mode
        wanted = mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
        if wanted != mode:
            os.chmod(path, wanted)
    except OSError as e:
        logger.warning("Could not mark %s executable: %s", path, e)


def resolve_argv(
    strategy: InvocationStrategy,
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[str, ...] | None:
    """Turn a strategy into the concrete argv to execute.

    Args:
        strategy: Strategy to resolve
        platform: sys.platform-style value
        environ: Mapping for installation-root lookups

    Returns:
        argv tuple, or None when an install-root strategy has no usable executable
    """
    argv = list(strategy.argv)
    if strategy.is_install_root:
        exe = install_root_executable(strategy, environ)
        if exe is None:
            return None
        ensure_executable(exe, platform)
        argv[0] = str(exe)

    if strategy.shell:
        return shell_wrap(argv, platform)
    return tuple(argv)


def evaluate_policy(spec: ToolSpec, result: CommandResult, version: VersionInfo | None) -> bool:
    """Apply a tool's presence, exit-code and version policy."""
    if not result.present:
        return False
    if spec.require_success and result.exit_code != 0:
        return False
    if spec.min_major is not None:
        if major_of(version.text if version else "") < spec.min_major:
            return False
    if spec.min_version and not satisfies_minimum(version, spec.min_version):
        return False
    return True


def _missing_install_root(strategy: InvocationStrategy) -> CommandResult:
    names = "/".join(strategy.install_root_vars)
    return CommandResult(
        present=False,
        exit_code=SPAWN_FAILURE_EXIT,
        stderr=f"{strategy.argv[0]} not found under {names}/bin",
        command_line=strategy.argv,
        failure_reason=REASON_NOT_FOUND,
    )


def detect_tool(
    spec: ToolSpec,
    runner: Runner | None = None,
    verbose: bool = False,
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> DetectionOutcome:
    """Detect a tool by trying its strategies in declared order.

    Args:
        spec: Tool description
        runner: Callable (argv, timeout) -> CommandResult; defaults to run_command
        verbose: Enable verbose tracing
        platform: sys.platform-style value
        environ: Environment mapping for PATH augmentation and install roots

    Returns:
        DetectionOutcome for the first present strategy, or the last failure
    """
    if runner is None:
        runner = partial(run_command, verbose=verbose, environ=environ, platform=platform)

    result: CommandResult | None = None
    used = ""
    attempts = 0

    for strategy in spec.strategies:
        used = strategy.describe()
        argv = resolve_argv(strategy, platform, environ)
        if argv is None:
            vlog(f"[{spec.name}] skipping {used}: no executable under install root", verbose)
            result = _missing_install_root(strategy)
            continue

        attempts += 1
        vlog(f"[{spec.name}] trying {used}", verbose)
        result = runner(argv, strategy.timeout)
        if result.present:
            break

    assert result is not None  # ToolSpec guarantees at least one strategy

    version = extract_version(result.combined_output) if result.present else None
    outcome = DetectionOutcome(
        tool=spec.name,
        result=result,
        version=version,
        policy_passed=evaluate_policy(spec, result, version),
        mandatory=spec.mandatory,
        strategy=used,
        attempts=attempts,
        spec=spec,
    )
    vlog(
        f"[{spec.name}] present={outcome.present} version={version or '-'} "
        f"policy={'ok' if outcome.policy_passed else 'failed'} via {used}",
        verbose,
    )
    return outcome
