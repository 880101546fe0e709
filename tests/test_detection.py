"""
Tests for strategy-based tool detection (env_doctor/detection.py).

Most tests inject a fake runner so the detection algorithm is exercised
without depending on which real tools are installed.
"""

import os
import stat
import sys

import pytest

from env_doctor.detection import (
    DetectionOutcome,
    InvocationStrategy,
    ToolSpec,
    detect_tool,
    ensure_executable,
    evaluate_policy,
    install_root_executable,
    resolve_argv,
    shell_wrap,
)
from env_doctor.runner import CommandResult, REASON_NOT_FOUND


class FakeRunner:
    """Runner double that replays canned results and records invocations."""

    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    def __call__(self, argv, timeout):
        self.calls.append((tuple(argv), timeout))
        return self.results[len(self.calls) - 1]


def ok(stdout="", exit_code=0, stderr=""):
    return CommandResult(present=True, exit_code=exit_code, stdout=stdout, stderr=stderr)


def missing(reason=REASON_NOT_FOUND):
    return CommandResult(present=False, exit_code=127, stderr="not found", failure_reason=reason)


class TestInvocationStrategy:
    """Tests for InvocationStrategy dataclass."""

    def test_empty_argv_rejected(self):
        with pytest.raises(ValueError):
            InvocationStrategy(())

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValueError):
            InvocationStrategy(("git",), timeout=0)

    def test_describe(self):
        assert InvocationStrategy(("git", "--version")).describe() == "git --version"
        assert InvocationStrategy(("mvn", "-v"), shell=True).describe() == "shell: mvn -v"
        assert InvocationStrategy(("x",), label="v2").describe() == "v2"
        fallback = InvocationStrategy(("mvn", "-v"), install_root_vars=("MAVEN_HOME", "M2_HOME"))
        assert fallback.is_install_root
        assert fallback.describe() == "MAVEN_HOME/M2_HOME/bin/mvn -v"


class TestToolSpec:
    """Tests for ToolSpec dataclass."""

    def test_requires_strategies(self):
        with pytest.raises(ValueError):
            ToolSpec(name="git", strategies=())

    def test_negative_min_major_rejected(self):
        with pytest.raises(ValueError):
            ToolSpec(name="git", strategies=(InvocationStrategy(("git",)),), min_major=-1)

    def test_invalid_min_version_rejected(self):
        """Test a bad minimum fails at construction, before any tool is run."""
        with pytest.raises(ValueError, match="Invalid minimum version"):
            ToolSpec(name="git", strategies=(InvocationStrategy(("git",)),), min_version="abc")

    def test_title(self):
        spec = ToolSpec(name="git", strategies=(InvocationStrategy(("git",)),))
        assert spec.title == "git"
        assert ToolSpec(name="git", strategies=spec.strategies, display_name="Git").title == "Git"


class TestShellWrap:
    """Tests for shell_wrap."""

    def test_windows_uses_cmd(self):
        assert shell_wrap(["mvn", "-v"], "win32") == ("cmd", "/c", "mvn", "-v")

    def test_posix_uses_sh(self):
        assert shell_wrap(["mvn", "-v"], "linux") == ("/bin/sh", "-c", "mvn -v")

    def test_posix_quotes_arguments(self):
        argv = shell_wrap(["/opt/my maven/bin/mvn", "-v"], "linux")
        assert argv[2] == "'/opt/my maven/bin/mvn' -v"


class TestResolveArgv:
    """Tests for resolve_argv and the install-root fallback."""

    def test_direct(self):
        assert resolve_argv(InvocationStrategy(("git", "--version")), "linux", {}) == ("git", "--version")

    def test_shell(self):
        strategy = InvocationStrategy(("mvn.cmd", "-v"), shell=True)
        assert resolve_argv(strategy, "win32", {}) == ("cmd", "/c", "mvn.cmd", "-v")

    def test_install_root_unset(self):
        """Test a fallback without its variable resolves to None."""
        strategy = InvocationStrategy(("mvn", "-v"), install_root_vars=("MAVEN_HOME", "M2_HOME"))
        assert resolve_argv(strategy, "linux", {}) is None

    def test_install_root_missing_file(self, tmp_path):
        strategy = InvocationStrategy(("mvn", "-v"), install_root_vars=("MAVEN_HOME",))
        assert resolve_argv(strategy, "linux", {"MAVEN_HOME": str(tmp_path)}) is None

    def test_install_root_directory_is_not_file(self, tmp_path):
        """Test a directory named like the executable is rejected."""
        (tmp_path / "bin" / "mvn").mkdir(parents=True)
        strategy = InvocationStrategy(("mvn", "-v"), install_root_vars=("MAVEN_HOME",))
        assert resolve_argv(strategy, "linux", {"MAVEN_HOME": str(tmp_path)}) is None

    def test_install_root_second_variable(self, tmp_path):
        """Test the second recognized variable is used when the first is blank."""
        exe = tmp_path / "bin" / "mvn"
        exe.parent.mkdir()
        exe.write_text("#!/bin/sh\necho 'Apache Maven 3.9.6'\n")
        strategy = InvocationStrategy(("mvn", "-v"), install_root_vars=("MAVEN_HOME", "M2_HOME"))
        argv = resolve_argv(strategy, "linux", {"MAVEN_HOME": "", "M2_HOME": str(tmp_path)})
        assert argv == (str(exe), "-v")

    def test_install_root_windows_shell(self, tmp_path):
        """Test a Windows batch launcher is run through cmd /c."""
        exe = tmp_path / "bin" / "mvn.cmd"
        exe.parent.mkdir()
        exe.write_text("@echo off\n")
        strategy = InvocationStrategy(("mvn.cmd", "-v"), shell=True, install_root_vars=("MAVEN_HOME",))
        argv = resolve_argv(strategy, "win32", {"MAVEN_HOME": str(tmp_path)})
        assert argv == ("cmd", "/c", str(exe), "-v")

    def test_install_root_executable_lookup(self, tmp_path):
        exe = tmp_path / "bin" / "java"
        exe.parent.mkdir()
        exe.write_text("")
        strategy = InvocationStrategy(("java", "-version"), install_root_vars=("JAVA_HOME",))
        assert install_root_executable(strategy, {"JAVA_HOME": str(tmp_path)}) == exe


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
class TestEnsureExecutable:
    """Tests for ensure_executable."""

    def test_sets_execute_bits(self, tmp_path):
        exe = tmp_path / "mvn"
        exe.write_text("#!/bin/sh\n")
        exe.chmod(0o644)
        ensure_executable(exe, "linux")
        mode = exe.stat().st_mode
        assert mode & stat.S_IXUSR
        assert mode & stat.S_IXGRP
        assert mode & stat.S_IXOTH

    def test_idempotent(self, tmp_path):
        exe = tmp_path / "mvn"
        exe.write_text("#!/bin/sh\n")
        exe.chmod(0o755)
        ensure_executable(exe, "linux")
        ensure_executable(exe, "linux")
        assert stat.S_IMODE(exe.stat().st_mode) == 0o755

    def test_windows_noop(self, tmp_path):
        exe = tmp_path / "mvn.cmd"
        exe.write_text("")
        exe.chmod(0o644)
        ensure_executable(exe, "win32")
        assert stat.S_IMODE(exe.stat().st_mode) == 0o644


class TestEvaluatePolicy:
    """Tests for evaluate_policy."""

    def _spec(self, **kwargs):
        return ToolSpec(name="t", strategies=(InvocationStrategy(("t",)),), **kwargs)

    def test_absent_fails(self):
        assert evaluate_policy(self._spec(), missing(), None) is False

    def test_present_without_policy_passes(self):
        assert evaluate_policy(self._spec(), ok("whatever"), None) is True

    def test_present_nonzero_exit_passes_without_require_success(self):
        assert evaluate_policy(self._spec(), ok(exit_code=1), None) is True

    def test_require_success(self):
        assert evaluate_policy(self._spec(require_success=True), ok(exit_code=1), None) is False
        assert evaluate_policy(self._spec(require_success=True), ok(exit_code=0), None) is True


class TestDetectTool:
    """Tests for detect_tool."""

    def test_first_success_short_circuits(self):
        """Test the second strategy is never invoked after a success."""
        spec = ToolSpec(
            name="tool",
            strategies=(
                InvocationStrategy(("tool", "--version")),
                InvocationStrategy(("tool-alt", "--version")),
            ),
        )
        runner = FakeRunner([ok("tool 1.0"), ok("tool-alt 2.0")])
        outcome = detect_tool(spec, runner=runner, platform="linux", environ={})
        assert len(runner.calls) == 1
        assert runner.calls[0][0] == ("tool", "--version")
        assert outcome.attempts == 1
        assert outcome.version.text == "1.0"
        assert outcome.strategy == "tool --version"

    def test_falls_through_to_next_strategy(self):
        """Test strategies are tried in declared order until one is present."""
        spec = ToolSpec(
            name="compose",
            strategies=(
                InvocationStrategy(("docker", "compose", "version"), label="v2"),
                InvocationStrategy(("docker-compose", "--version"), label="v1"),
            ),
        )
        runner = FakeRunner([missing(), ok("docker-compose version 1.29.2, build 5becea4c")])
        outcome = detect_tool(spec, runner=runner, platform="linux", environ={})
        assert [c[0][0] for c in runner.calls] == ["docker", "docker-compose"]
        assert outcome.present
        assert outcome.strategy == "v1"
        assert outcome.version.text == "1.29.2"
        assert outcome.attempts == 2

    def test_all_fail_keeps_last_result(self):
        """Test the last failing result is carried for diagnostics."""
        first = CommandResult(present=False, exit_code=127, command_line=("a",), failure_reason="not-found")
        last = CommandResult(present=False, exit_code=9009, command_line=("cmd", "/c", "b"), failure_reason="shell-lookup")
        spec = ToolSpec(name="x", strategies=(InvocationStrategy(("a",)), InvocationStrategy(("b",), shell=True)))
        outcome = detect_tool(spec, runner=FakeRunner([first, last]), platform="win32", environ={})
        assert outcome.result is last
        assert outcome.present is False
        assert outcome.version is None
        assert outcome.policy_passed is False

    def test_strategy_timeout_passed_to_runner(self):
        spec = ToolSpec(name="x", strategies=(InvocationStrategy(("x",), timeout=3.5),))
        runner = FakeRunner([ok("x 1")])
        detect_tool(spec, runner=runner, platform="linux", environ={})
        assert runner.calls[0][1] == 3.5

    def test_not_present_never_has_version(self):
        """Test output of a not-present result is not parsed for a version."""
        result = CommandResult(present=False, exit_code=127, stderr="sh: 1: mvn 3.9: not found")
        spec = ToolSpec(name="mvn", strategies=(InvocationStrategy(("mvn",)),))
        outcome = detect_tool(spec, runner=FakeRunner([result]), platform="linux", environ={})
        assert outcome.version is None

    def test_version_from_stderr(self):
        """Test versions printed on stderr (java -version) are found."""
        spec = ToolSpec(name="java", strategies=(InvocationStrategy(("java", "-version")),), min_major=21)
        runner = FakeRunner([ok(stderr='openjdk version "21.0.2" 2024-01-16')])
        outcome = detect_tool(spec, runner=runner, platform="linux", environ={})
        assert outcome.major == 21
        assert outcome.policy_passed is True

    def test_min_major_too_low(self):
        spec = ToolSpec(name="docker", strategies=(InvocationStrategy(("docker", "--version")),), min_major=25)
        runner = FakeRunner([ok("Docker version 24.0.7, build afdd53b")])
        outcome = detect_tool(spec, runner=runner, platform="linux", environ={})
        assert outcome.present is True
        assert outcome.policy_passed is False

    def test_min_major_without_version(self):
        """Test an unparseable banner counts as major 0."""
        spec = ToolSpec(name="git", strategies=(InvocationStrategy(("git",)),), min_major=2)
        outcome = detect_tool(spec, runner=FakeRunner([ok("no digits")]), platform="linux", environ={})
        assert outcome.major == 0
        assert outcome.policy_passed is False

    def test_min_version(self):
        spec = ToolSpec(name="git", strategies=(InvocationStrategy(("git",)),), min_version="2.30")
        passed = detect_tool(spec, runner=FakeRunner([ok("git version 2.43.0")]), platform="linux", environ={})
        failed = detect_tool(spec, runner=FakeRunner([ok("git version 2.25.1")]), platform="linux", environ={})
        assert passed.policy_passed is True
        assert failed.policy_passed is False

    def test_install_root_fallback_skipped_without_variable(self):
        """Test a fallback with no install root is not spawned."""
        spec = ToolSpec(
            name="maven",
            strategies=(
                InvocationStrategy(("mvn", "-v")),
                InvocationStrategy(("mvn", "-v"), install_root_vars=("MAVEN_HOME", "M2_HOME")),
            ),
        )
        runner = FakeRunner([missing()])
        outcome = detect_tool(spec, runner=runner, platform="linux", environ={})
        assert len(runner.calls) == 1
        assert outcome.attempts == 1
        assert outcome.present is False
        assert "MAVEN_HOME/M2_HOME" in outcome.result.stderr
        assert outcome.result.failure_reason == REASON_NOT_FOUND

    def test_install_root_fallback_used_last(self, tmp_path):
        """Test the absolute-path strategy runs after the PATH strategy fails."""
        exe = tmp_path / "bin" / "mvn"
        exe.parent.mkdir()
        exe.write_text("#!/bin/sh\n")
        spec = ToolSpec(
            name="maven",
            strategies=(
                InvocationStrategy(("mvn", "-v")),
                InvocationStrategy(("mvn", "-v"), install_root_vars=("MAVEN_HOME", "M2_HOME")),
            ),
        )
        runner = FakeRunner([missing(), ok("Apache Maven 3.9.6")])
        outcome = detect_tool(spec, runner=runner, platform="linux", environ={"M2_HOME": str(tmp_path)})
        assert runner.calls[1][0] == (str(exe), "-v")
        assert outcome.present
        assert outcome.version.text == "3.9.6"

    def test_outcome_to_dict(self):
        spec = ToolSpec(name="git", strategies=(InvocationStrategy(("git",)),), min_major=2)
        outcome = detect_tool(spec, runner=FakeRunner([ok("git version 2.43.0")]), platform="linux", environ={})
        data = outcome.to_dict()
        assert data["tool"] == "git"
        assert data["version"] == "2.43.0"
        assert data["major"] == 2
        assert data["result"]["exit_code"] == 0

    def test_outcome_immutable(self):
        outcome = DetectionOutcome(tool="x", result=ok(), version=None, policy_passed=True)
        with pytest.raises(AttributeError):
            outcome.policy_passed = False


class TestDetectToolRealProcess:
    """Detection against real processes."""

    def test_python_interpreter(self):
        """Test detecting the running interpreter by absolute path."""
        spec = ToolSpec(
            name="python",
            strategies=(InvocationStrategy((sys.executable, "--version"), timeout=30),),
            min_major=3,
        )
        outcome = detect_tool(spec)
        assert outcome.present
        assert outcome.version.major == sys.version_info.major
        assert outcome.policy_passed

    def test_missing_binary(self):
        spec = ToolSpec(name="ghost", strategies=(InvocationStrategy(("nonexistent-binary-xyz",), timeout=5),))
        outcome = detect_tool(spec)
        assert outcome.present is False
        assert outcome.policy_passed is False

    @pytest.mark.skipif(os.name == "nt", reason="POSIX shell semantics")
    def test_shell_lookup_failure_falls_through(self):
        """Test a shell reporting 127 moves on to the next strategy."""
        spec = ToolSpec(
            name="tool",
            strategies=(
                InvocationStrategy(("nonexistent-binary-xyz", "--version"), shell=True, timeout=10),
                InvocationStrategy((sys.executable, "-c", "print('tool v4.5.6')"), timeout=30),
            ),
        )
        outcome = detect_tool(spec)
        assert outcome.attempts == 2
        assert outcome.version.text == "4.5.6"
