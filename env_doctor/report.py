"""
Aggregation of tool checks into an overall verdict.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from .detection import DetectionOutcome, Runner, ToolSpec, detect_tool
from .hints import collect_hints
from .runner import REASON_IO_ERROR, CommandResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1


@dataclass(frozen=True)
class DoctorReport:
    """
    Results of one full run.

    Attributes:
        outcomes: One outcome per registered tool, in registry order
        passed: All mandatory policies satisfied
        hints: Remediation lines for failing tools
    """
    outcomes: tuple[DetectionOutcome, ...]
    passed: bool
    hints: tuple[str, ...] = ()

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.passed else EXIT_FAILED

    def get(self, tool: str) -> DetectionOutcome | None:
        for outcome in self.outcomes:
            if outcome.tool == tool:
                return outcome
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "exit_code": self.exit_code,
            "tools": [o.to_dict() for o in self.outcomes],
            "hints": list(self.hints),
        }


def _failed_outcome(spec: ToolSpec, exc: BaseException) -> DetectionOutcome:
    """Outcome for a tool whose detection raised instead of returning."""
    return DetectionOutcome(
        tool=spec.name,
        result=CommandResult(
            present=False,
            exit_code=-2,
            stderr=f"{type(exc).__name__}: {exc}",
            command_line=spec.strategies[0].argv,
            failure_reason=REASON_IO_ERROR,
        ),
        version=None,
        policy_passed=False,
        mandatory=spec.mandatory,
        strategy=spec.strategies[0].describe(),
        attempts=0,
        spec=spec,
    )


def run_all(
    registry: Sequence[ToolSpec],
    runner: Runner | None = None,
    verbose: bool = False,
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> list[DetectionOutcome]:
    """Check every tool in registry order, one at a time.

    A fault inside one tool's detection becomes a failed outcome for that
    tool; the remaining tools are still checked.

    Args:
        registry: Tools to check
        runner: Optional runner override (argv, timeout) -> CommandResult
        verbose: Enable verbose tracing
        platform: sys.platform-style value
        environ: Environment mapping for PATH augmentation and install roots

    Returns:
        One DetectionOutcome per ToolSpec
    """
    outcomes: list[DetectionOutcome] = []
    for spec in registry:
        try:
            outcome = detect_tool(spec, runner=runner, verbose=verbose, platform=platform, environ=environ)
        except Exception as e:
            logger.error("Detection of %s failed unexpectedly: %s", spec.name, e)
            outcome = _failed_outcome(spec, e)
        outcomes.append(outcome)
    return outcomes


def overall_passed(outcomes: Iterable[DetectionOutcome]) -> bool:
    """True when every mandatory outcome passed its policy."""
    return all(o.policy_passed for o in outcomes if o.mandatory)


def exit_status(outcomes: Iterable[DetectionOutcome]) -> int:
    """Process exit status for a set of outcomes."""
    return EXIT_OK if overall_passed(outcomes) else EXIT_FAILED


def build_report(
    registry: Sequence[ToolSpec],
    runner: Runner | None = None,
    verbose: bool = False,
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> DoctorReport:
    """Run all checks and assemble verdict and hints."""
    outcomes = run_all(registry, runner=runner, verbose=verbose, platform=platform, environ=environ)
    return DoctorReport(
        outcomes=tuple(outcomes),
        passed=overall_passed(outcomes),
        hints=tuple(collect_hints(outcomes)),
    )
