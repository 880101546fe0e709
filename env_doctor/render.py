"""
Output rendering and formatting.

Everything is written to stdout so a CI log shows the report and the
command traces in order.
"""

from __future__ import annotations

import os
import re
from typing import Iterable, Mapping

from wcwidth import wcswidth

from .common import path_separator
from .detection import DetectionOutcome
from .environment import HostInfo
from .report import DoctorReport
from .runner import CommandResult


# Environment options
USE_EMOJI = os.environ.get("ENV_DOCTOR_EMOJI", "1") == "1"
USE_COLOR = os.environ.get("ENV_DOCTOR_COLOR", "1") == "1"

# ANSI color codes
GREEN = "\033[32m"
RED = "\033[31m"
BOLD = "\033[1m"
RESET = "\033[0m"

RULE = "=" * 50
CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")


def colorize(text: str, color: str) -> str:
    """Apply color to text unless colors are disabled."""
    if not USE_COLOR or not text:
        return text
    return f"{color}{text}{RESET}"


def display_width(text: str) -> int:
    """Terminal cell width, ignoring ANSI escapes."""
    plain = CSI_RE.sub("", text)
    width = wcswidth(plain)
    return width if width >= 0 else len(plain)


def pad(text: str, width: int) -> str:
    """Left-align text to a display width."""
    return text + " " * max(0, width - display_width(text))


def status_icon(outcome: DetectionOutcome) -> str:
    """Icon for an outcome; optional tools that fail get a warning."""
    if USE_EMOJI:
        if outcome.policy_passed:
            return "✅"
        return "❌" if outcome.mandatory else "⚠️"
    if outcome.policy_passed:
        return "✓"
    return "x" if outcome.mandatory else "!"


def ok_label(passed: bool) -> str:
    if passed:
        return colorize("[OK]", GREEN)
    return colorize("[NOT OK]", RED)


def value_or_unknown(value: str | None) -> str:
    return value if value and value.strip() else "(unknown)"


def print_banner(title: str = "Env Doctor - Environment Check") -> None:
    print(RULE)
    print(title)
    print(RULE)


def print_host(host: HostInfo) -> None:
    rows = host.rows()
    width = max(display_width(label) for label, _ in rows)
    for label, value in rows:
        print(f"{pad(label, width)} : {value}")
    print()


def print_path_entries(path_value: str | None, platform: str | None = None) -> None:
    """List the parent process's PATH entries, one per line."""
    print("PATH entries (this process):")
    if path_value is None:
        print("(PATH is not set)")
        print()
        return
    for i, entry in enumerate(path_value.split(path_separator(platform)), start=1):
        print(f"  {i:2d}) {entry}")
    print()


def print_location(name: str, result: CommandResult) -> None:
    """Show where an executable resolves from, per which/where."""
    if result.exit_code == 0 and result.stdout.strip():
        for line in result.stdout.strip().splitlines():
            print(f"  {name}: {line.strip()}")
    else:
        print(f"  {name}: not found on PATH")


def summary_line(outcome: DetectionOutcome) -> str:
    """One summary line for an outcome (without the leading tag)."""
    spec = outcome.spec
    version = outcome.version.text if outcome.version else ""
    parts = [f"present={outcome.present}"]

    if spec is not None and spec.require_success:
        parts = [f"running={outcome.result.succeeded}"]
    else:
        detail = f"version={value_or_unknown(version)}"
        if spec is not None and (spec.min_major is not None or spec.min_version):
            detail += f" (major={outcome.major})"
        parts.append(detail)

    line = ", ".join(parts)
    if spec is not None and len(spec.strategies) > 1 and outcome.present:
        line += f", via {outcome.strategy}"

    line += f"  {ok_label(outcome.policy_passed)}"
    if spec is not None:
        if spec.min_version:
            line += f" (>= {spec.min_version})"
        elif spec.min_major is not None:
            line += f" (>= {spec.min_major})"
    if not outcome.mandatory:
        line += " (optional)"
    return line


def print_summary(
    report: DoctorReport,
    details: Mapping[str, Iterable[str]] | None = None,
) -> None:
    """Print the aligned summary block.

    Args:
        report: Completed report
        details: Extra indented lines per tool name (e.g. Maven settings)
    """
    details = details or {}
    tags = {
        o.tool: f"{status_icon(o)} [{o.spec.title if o.spec else o.tool}]"
        for o in report.outcomes
    }
    width = max((display_width(t) for t in tags.values()), default=0) + 1

    print()
    print("----------------- SUMMARY -----------------")
    for outcome in report.outcomes:
        print(f"{pad(tags[outcome.tool], width)}{summary_line(outcome)}")
        for extra in details.get(outcome.tool, ()):
            print(f"{' ' * width}{extra}")
    print("-------------------------------------------")


def print_hints(hints: Iterable[str]) -> None:
    lines = list(hints)
    print()
    print("Hints:")
    if not lines:
        print("- none, all checks passed.")
    for line in lines:
        print(line)
    print()


def print_verdict(report: DoctorReport) -> None:
    if report.passed:
        print(colorize("Environment ready.", GREEN))
    else:
        failed = [o.tool for o in report.outcomes if o.mandatory and not o.policy_passed]
        print(colorize(f"Environment NOT ready: {', '.join(failed)}", BOLD + RED))
