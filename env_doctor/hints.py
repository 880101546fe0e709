"""
Remediation hints for failed tool checks.
"""

from __future__ import annotations

from typing import Iterable

from .detection import DetectionOutcome
from .runner import REASON_TIMEOUT


# Shown when a tool's executable could not be found or started
MISSING_HINTS: dict[str, tuple[str, ...]] = {
    "java": (
        "- Java not detected: install a JDK and put its bin directory on PATH, or set JAVA_HOME.",
    ),
    "git": (
        "- Git not detected: make sure it is installed and its bin directory is on PATH.",
    ),
    "maven": (
        "- Maven command not detected:",
        "  * Windows: make sure %MAVEN_HOME%\\bin is on PATH, or use mvn.cmd.",
        "  * You can also set only M2_HOME to the Maven root and append its bin to PATH.",
    ),
    "docker": (
        "- This process cannot find the 'docker' executable:",
        "  * Common Windows path: C:\\Program Files\\Docker\\Docker\\resources\\bin",
        "  * Add it to PATH in the IDE run configuration, or restart the IDE to inherit the system PATH.",
    ),
    # The docker hint already covers a missing CLI
    "docker-daemon": (),
    "compose": (
        "- Compose not detected: install the Docker Compose v2 plugin ('docker compose') or docker-compose.",
    ),
}

# Shown when the tool runs but a require_success check exits non-zero
FAILING_HINTS: dict[str, tuple[str, ...]] = {
    "docker-daemon": (
        "- 'docker' exists but the daemon is not ready: start Docker Desktop (or the docker service).",
    ),
}


def hints_for(outcome: DetectionOutcome) -> list[str]:
    """Hint lines for one outcome (empty when its policy passed).

    Args:
        outcome: Detection outcome

    Returns:
        List of hint lines, ready to print
    """
    if outcome.policy_passed:
        return []

    spec = outcome.spec
    title = spec.title if spec else outcome.tool
    result = outcome.result

    if result.failure_reason == REASON_TIMEOUT:
        return [
            f"- {title}: '{result.command}' did not finish in time; "
            "the tool may be hanging or waiting on a slow service."
        ]

    if not outcome.present:
        default = (f"- {title} not detected: install it and make sure its bin directory is on PATH.",)
        return list(MISSING_HINTS.get(outcome.tool, default))

    if spec is not None and spec.require_success and result.exit_code != 0:
        default = (f"- {title}: '{result.command}' exited with code {result.exit_code}.",)
        return list(FAILING_HINTS.get(outcome.tool, default))

    found = outcome.version.text if outcome.version else "unknown"
    minimum = ""
    if spec is not None:
        minimum = spec.min_version or (str(spec.min_major) if spec.min_major is not None else "")
    if minimum:
        return [f"- {title} version too low ({found}); upgrade to {minimum}+."]
    return [f"- {title} check failed ({found})."]


def collect_hints(outcomes: Iterable[DetectionOutcome]) -> list[str]:
    """Hint lines for all failing outcomes, in registry order."""
    lines: list[str] = []
    for outcome in outcomes:
        lines.extend(hints_for(outcome))
    return lines
