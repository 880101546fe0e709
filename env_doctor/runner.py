"""
Subprocess execution with timeout enforcement and concurrent output capture.

Each call spawns one child, drains stdout and stderr on two reader threads
while waiting for exit, and always returns a CommandResult. A missing tool is
an ordinary result here, not an exception.
"""

from __future__ import annotations

import locale
import logging
import os
import shutil
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import IO, Any, Mapping, Sequence

from .common import (
    POSIX_NOT_FOUND_EXIT,
    WINDOWS_NOT_FOUND_EXIT,
    is_windows,
    vlog,
)
from .search_path import child_environment

logger = logging.getLogger(__name__)


# Constants
DEFAULT_TIMEOUT_SECONDS = float(os.environ.get("ENV_DOCTOR_TIMEOUT_SECONDS", "8"))
READER_GRACE_SECONDS = 0.2
KILL_GRACE_SECONDS = 2.0
READ_CHUNK_SIZE = 64 * 1024
OUTPUT_ENCODING = locale.getpreferredencoding(False) or "utf-8"

NOT_FOUND_EXIT_CODES = frozenset({POSIX_NOT_FOUND_EXIT, WINDOWS_NOT_FOUND_EXIT})
SPAWN_FAILURE_EXIT = POSIX_NOT_FOUND_EXIT
TIMEOUT_EXIT = -1

# failure_reason values
REASON_TIMEOUT = "timeout"
REASON_IO_ERROR = "io-error"
REASON_NOT_FOUND = "not-found"
REASON_SHELL_LOOKUP = "shell-lookup"


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of one invocation attempt.

    Attributes:
        present: The executable started and did not report "command not found"
        exit_code: Process exit code (127 on spawn failure, -1 on timeout)
        stdout: Captured standard output (empty on timeout)
        stderr: Captured standard error, or the spawn error text
        command_line: Exact argv that was executed
        failure_reason: None, or one of timeout/io-error/not-found/shell-lookup
        duration_seconds: Wall-clock time spent on the attempt
    """
    present: bool
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    command_line: tuple[str, ...] = ()
    failure_reason: str | None = None
    duration_seconds: float = 0.0

    @property
    def command(self) -> str:
        return " ".join(self.command_line)

    @property
    def combined_output(self) -> str:
        return (self.stdout + "\n" + self.stderr).strip()

    @property
    def succeeded(self) -> bool:
        return self.present and self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "present": self.present,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "command": self.command,
            "failure_reason": self.failure_reason,
            "duration_seconds": round(self.duration_seconds, 3),
        }


class _StreamReader(threading.Thread):
    """Drains one pipe into a private buffer until EOF."""

    def __init__(self, stream: IO[bytes], name: str):
        super().__init__(name=f"env-doctor-{name}", daemon=True)
        self._stream = stream
        self._chunks: list[bytes] = []

    def run(self) -> None:
        try:
            while True:
                chunk = self._stream.read1(READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._chunks.append(chunk)
        except (OSError, ValueError):
            # Pipe closed underneath us; keep what was read
            pass
        finally:
            try:
                self._stream.close()
            except OSError:
                pass

    def text(self) -> str:
        data = b"".join(list(self._chunks))
        return data.decode(OUTPUT_ENCODING, errors="replace").replace("\r\n", "\n")


def is_present_exit_code(exit_code: int) -> bool:
    """False for the exit codes shells use to say "command not found".

    127 (POSIX sh) and 9009 (Windows cmd) are treated as lookup failures on
    every platform, even though a real tool could exit with them.
    """
    return exit_code not in NOT_FOUND_EXIT_CODES


def _spawn_argv(argv: Sequence[str], env: Mapping[str, str], platform: str | None) -> list[str]:
    """Resolve bare executable names against the child's PATH on Windows.

    CreateProcess searches the parent's PATH, so the augmented value would
    otherwise be ignored there. POSIX exec already uses the child's PATH.
    """
    args = list(argv)
    if is_windows(platform) and not os.path.dirname(args[0]):
        found = shutil.which(args[0], path=env.get("PATH"))
        if found:
            args[0] = found
    return args


def _terminate(proc: subprocess.Popen, platform: str | None) -> None:
    """Kill the child and everything it spawned, then reap it."""
    try:
        if is_windows(platform):
            subprocess.run(
                ["taskkill", "/F", "/T", "/PID", str(proc.pid)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                timeout=KILL_GRACE_SECONDS,
                check=False,
            )
        else:
            os.killpg(proc.pid, signal.SIGKILL)
    except (OSError, subprocess.SubprocessError):
        pass

    if proc.poll() is None:
        try:
            proc.kill()
        except OSError:
            pass

    try:
        proc.wait(timeout=KILL_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        logger.warning("Process %s still running after kill", proc.pid)


def run_command(
    argv: Sequence[str],
    timeout: float | None = None,
    verbose: bool = False,
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> CommandResult:
    """Run a command with a wall-clock timeout and capture its output.

    Args:
        argv: Command and arguments
        timeout: Seconds to wait for exit (default: DEFAULT_TIMEOUT_SECONDS)
        verbose: Trace the command and its output to the diagnostic log
        environ: Parent environment to derive the child's from (default os.environ)
        platform: sys.platform-style value (defaults to the running platform)

    Returns:
        CommandResult; never raises for missing tools, timeouts or spawn errors
    """
    if not argv:
        raise ValueError("Cannot run an empty command")

    command_line = tuple(str(a) for a in argv)
    timeout = DEFAULT_TIMEOUT_SECONDS if timeout is None else timeout
    env = child_environment(environ, platform)
    env["TERM"] = "dumb"  # Disable ANSI/color output from subprocesses
    started = time.monotonic()

    vlog(f">> {' '.join(command_line)}", verbose)

    popen_kwargs: dict[str, Any] = {}
    if not is_windows(platform):
        # Own process group, so a timeout can kill shell-spawned grandchildren too
        popen_kwargs["start_new_session"] = True

    try:
        proc = subprocess.Popen(
            _spawn_argv(command_line, env, platform),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,  # Isolate stdin
            env=env,
            **popen_kwargs,
        )
    except FileNotFoundError as e:
        vlog(f"!! not found: {e}", verbose)
        return CommandResult(
            present=False,
            exit_code=SPAWN_FAILURE_EXIT,
            stderr=str(e),
            command_line=command_line,
            failure_reason=REASON_NOT_FOUND,
            duration_seconds=time.monotonic() - started,
        )
    except OSError as e:
        vlog(f"!! could not start (PATH/permission): {e}", verbose)
        return CommandResult(
            present=False,
            exit_code=SPAWN_FAILURE_EXIT,
            stderr=str(e),
            command_line=command_line,
            failure_reason=REASON_IO_ERROR,
            duration_seconds=time.monotonic() - started,
        )

    out_reader = _StreamReader(proc.stdout, "stdout")
    err_reader = _StreamReader(proc.stderr, "stderr")
    try:
        out_reader.start()
        err_reader.start()
    except BaseException:
        _terminate(proc, platform)
        raise

    try:
        exit_code = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        _terminate(proc, platform)
        vlog(f"!! TIMEOUT after {timeout:g}s", verbose)
        return CommandResult(
            present=False,
            exit_code=TIMEOUT_EXIT,
            command_line=command_line,
            failure_reason=REASON_TIMEOUT,
            duration_seconds=time.monotonic() - started,
        )

    # A grandchild holding the pipe open must not block us past the grace period
    deadline = time.monotonic() + READER_GRACE_SECONDS
    for reader in (out_reader, err_reader):
        reader.join(max(0.0, deadline - time.monotonic()))

    stdout = out_reader.text()
    stderr = err_reader.text()

    if verbose:
        if stdout.strip():
            vlog(f"-- stdout --\n{stdout.strip()}", verbose)
        if stderr.strip():
            vlog(f"-- stderr --\n{stderr.strip()}", verbose)
        vlog(f"-- exit -- {exit_code}", verbose)

    present = is_present_exit_code(exit_code)
    return CommandResult(
        present=present,
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
        command_line=command_line,
        failure_reason=None if present else REASON_SHELL_LOOKUP,
        duration_seconds=time.monotonic() - started,
    )
