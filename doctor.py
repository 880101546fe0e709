#!/usr/bin/env python3
"""
Env Doctor - verify that required toolchains are installed and recent enough.

Checks Java, Git, Maven, Docker (CLI and daemon) and Compose, prints a
summary with hints, and exits 0 only when every mandatory check passed.

Usage:
    doctor.py             # Run all checks

Environment:
    ENV_DOCTOR_VERBOSE=0      # Hide per-command traces (default: 1)
    ENV_DOCTOR_SHOW_ENV=0     # Skip host, PATH and location sections
    ENV_DOCTOR_CONFIG=path    # Explicit YAML config file
    ENV_DOCTOR_LOG_FILE=path  # Also write the log to a file
    ENV_DOCTOR_DEBUG=1        # Trace config loading and every command, whatever the config says
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

# Add current directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from env_doctor import __version__
from env_doctor.common import env_flag
from env_doctor.config import Config, load_config, validate_config
from env_doctor.diagnostics import find_maven_settings, install_root_summary, locate_executable
from env_doctor.environment import detect_host
from env_doctor.logging_config import setup_logging
from env_doctor.render import (
    print_banner,
    print_hints,
    print_host,
    print_location,
    print_path_entries,
    print_summary,
    print_verdict,
)
from env_doctor.report import build_report
from env_doctor.search_path import MAVEN_HOME_VARS
from env_doctor.tools import apply_config, default_registry, primary_executable

# Configuration from environment
VERBOSE = env_flag("ENV_DOCTOR_VERBOSE", "1")
SHOW_ENV = env_flag("ENV_DOCTOR_SHOW_ENV", "1")
LOG_FILE = os.environ.get("ENV_DOCTOR_LOG_FILE") or None

logger = logging.getLogger("env_doctor")


def build_parser() -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        prog="env-doctor",
        description="Check that the project toolchain is installed and meets version policies.",
    )


def maven_details() -> list[str]:
    settings = find_maven_settings()
    return [
        f"env={install_root_summary(MAVEN_HOME_VARS)}",
        f"settings.xml={settings if settings else '(not found)'}",
    ]


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.parse_args(argv)

    config_error = None
    try:
        config = load_config()
    except ValueError as e:
        config_error = str(e)
        config = Config()

    verbose = config.verbose if config.verbose is not None else VERBOSE
    setup_logging(log_file=LOG_FILE, verbose=verbose)

    if config_error:
        logger.warning("%s; using defaults", config_error)

    registry = apply_config(default_registry(), config)
    for warning in validate_config(config, [spec.name for spec in registry]):
        logger.warning(warning)

    print_banner()

    if SHOW_ENV:
        print_host(detect_host())
        print_path_entries(os.environ.get("PATH"))
        print("Executable locations:")
        seen: set[str] = set()
        for spec in registry:
            exe = primary_executable(spec)
            if exe in seen:
                continue
            seen.add(exe)
            print_location(exe, locate_executable(exe, verbose=verbose))
        print()

    report = build_report(registry, verbose=verbose)

    print_summary(report, {"maven": maven_details()})
    print_hints(report.hints)
    print_verdict(report)
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
