"""
Env Doctor - developer toolchain diagnostics.

Core Modules:
- Execution: subprocess runner with timeouts and concurrent output capture
- Detection: ordered invocation strategies per tool, version extraction
- Search path: per-child PATH augmentation with well-known install dirs
- Reporting: policy aggregation, hints, rendering
"""

__version__ = "1.0.0"
__author__ = "Env Doctor Contributors"

VERSION = __version__

# Execution
from .runner import CommandResult, run_command, is_present_exit_code
from .search_path import (
    MAVEN_HOME_VARS,
    augmented_search_path,
    child_environment,
    resolve_install_root,
)
from .versioning import VersionInfo, extract_version, major_of, satisfies_minimum

# Detection
from .detection import (
    InvocationStrategy,
    ToolSpec,
    DetectionOutcome,
    detect_tool,
    resolve_argv,
    shell_wrap,
)
from .tools import default_registry, apply_config, get_tool

# Reporting
from .report import DoctorReport, run_all, overall_passed, exit_status, build_report
from .hints import hints_for, collect_hints

# Foundation
from .config import Config, ToolConfig, load_config, load_config_file, validate_config
from .environment import HostInfo, detect_host
from .logging_config import setup_logging, get_logger

__all__ = [
    # Version
    "__version__",
    "VERSION",
    # Execution
    "CommandResult",
    "run_command",
    "is_present_exit_code",
    "MAVEN_HOME_VARS",
    "augmented_search_path",
    "child_environment",
    "resolve_install_root",
    "VersionInfo",
    "extract_version",
    "major_of",
    "satisfies_minimum",
    # Detection
    "InvocationStrategy",
    "ToolSpec",
    "DetectionOutcome",
    "detect_tool",
    "resolve_argv",
    "shell_wrap",
    "default_registry",
    "apply_config",
    "get_tool",
    # Reporting
    "DoctorReport",
    "run_all",
    "overall_passed",
    "exit_status",
    "build_report",
    "hints_for",
    "collect_hints",
    # Foundation
    "Config",
    "ToolConfig",
    "load_config",
    "load_config_file",
    "validate_config",
    "HostInfo",
    "detect_host",
    "setup_logging",
    "get_logger",
]
