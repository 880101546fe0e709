"""
Configuration file parsing and management.

YAML configuration files are merged from multiple sources
(explicit path → project → user → defaults).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

import yaml

from .common import vlog
from .versioning import parse_minimum


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".env-doctor.yml",                                       # Project root (highest priority)
    ".env-doctor.yaml",                                      # Alternative extension
    os.path.expanduser("~/.config/env-doctor/config.yml"),   # User global
    os.path.expanduser("~/.config/env-doctor/config.yaml"),
]

MIN_TIMEOUT_SECONDS = 1
MAX_TIMEOUT_SECONDS = 120


def _validate_timeout(value: float | None, where: str) -> None:
    if value is None:
        return
    if value < MIN_TIMEOUT_SECONDS or value > MAX_TIMEOUT_SECONDS:
        raise ValueError(
            f"Invalid timeout_seconds{where}: {value}. "
            f"Must be between {MIN_TIMEOUT_SECONDS} and {MAX_TIMEOUT_SECONDS}"
        )


@dataclass(frozen=True)
class ToolConfig:
    """
    Policy overrides for a specific tool.

    Attributes:
        min_major: Minimum major version (None keeps the registry default)
        min_version: Minimum full version such as "2.30"
        mandatory: Whether the tool counts toward the overall verdict
        timeout_seconds: Per-attempt timeout for every strategy of the tool
    """
    min_major: int | None = None
    min_version: str | None = None
    mandatory: bool | None = None
    timeout_seconds: float | None = None

    def __post_init__(self):
        if self.min_major is not None and self.min_major < 0:
            raise ValueError(f"Invalid min_major: {self.min_major}. Must be >= 0")
        if self.min_version is not None:
            parse_minimum(self.min_version)
        _validate_timeout(self.timeout_seconds, "")

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ToolConfig:
        """Create ToolConfig from dictionary."""
        min_version = data.get("min_version")
        return ToolConfig(
            min_major=data.get("min_major"),
            min_version=str(min_version) if min_version is not None else None,
            mandatory=data.get("mandatory"),
            timeout_seconds=data.get("timeout_seconds"),
        )


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for env-doctor.

    Attributes:
        version: Config schema version
        verbose: Trace every command and its output (None keeps the env default)
        timeout_seconds: Per-attempt timeout applied to all tools
        tools: Per-tool policy overrides
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    verbose: bool | None = None
    timeout_seconds: float | None = None
    tools: dict[str, ToolConfig] = field(default_factory=dict)
    source: str = ""

    def __post_init__(self):
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")
        _validate_timeout(self.timeout_seconds, "")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        tools_data = data.get("tools") or {}
        if not isinstance(tools_data, dict):
            raise ValueError("'tools' must be a mapping of tool name to settings")
        tools = {}
        for tool_name, tool_config in tools_data.items():
            if tool_config is None:
                tool_config = {}
            if not isinstance(tool_config, dict):
                raise ValueError(f"Tool '{tool_name}' settings must be a mapping")
            tools[tool_name] = ToolConfig.from_dict(tool_config)

        return Config(
            version=data.get("version", 1),
            verbose=data.get("verbose"),
            timeout_seconds=data.get("timeout_seconds"),
            tools=tools,
            source=source,
        )

    def get_tool_config(self, tool_name: str) -> ToolConfig:
        """
        Get configuration for a specific tool.

        Returns:
            ToolConfig for the tool, or default ToolConfig if not configured
        """
        return self.tools.get(tool_name, ToolConfig())

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        merged_tools = dict(other.tools)
        for name, tool_config in self.tools.items():
            base = other.tools.get(name, ToolConfig())
            merged_tools[name] = ToolConfig(
                min_major=tool_config.min_major if tool_config.min_major is not None else base.min_major,
                min_version=tool_config.min_version if tool_config.min_version is not None else base.min_version,
                mandatory=tool_config.mandatory if tool_config.mandatory is not None else base.mandatory,
                timeout_seconds=tool_config.timeout_seconds if tool_config.timeout_seconds is not None else base.timeout_seconds,
            )

        return Config(
            version=self.version,
            verbose=self.verbose if self.verbose is not None else other.verbose,
            timeout_seconds=self.timeout_seconds if self.timeout_seconds is not None else other.timeout_seconds,
            tools=merged_tools,
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load a YAML configuration file.

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    data = _load_yaml(file_path)
    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        vlog(f"Loaded config successfully: {file_path}", verbose)
        return config
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (if provided, or ENV_DOCTOR_CONFIG)
    2. Project .env-doctor.yml
    3. User ~/.config/env-doctor/config.yml
    4. Default configuration

    Args:
        custom_path: Optional path to custom configuration file
        verbose: Enable verbose logging

    Returns:
        Merged Config object (never None, returns defaults if no config found)

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    custom_path = custom_path or os.environ.get("ENV_DOCTOR_CONFIG") or None
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    # First config has highest priority
    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged


def validate_config(config: Config, known_tools: list[str]) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Args:
        config: Config object to validate
        known_tools: Names present in the tool registry

    Returns:
        List of validation warning messages (empty if valid)
    """
    warnings = []
    known = {name.lower() for name in known_tools}

    for tool_name, tool_config in config.tools.items():
        if tool_name.lower() not in known:
            warnings.append(f"Unknown tool in config: '{tool_name}'")
        if tool_config.min_version is not None and tool_config.min_major is not None:
            warnings.append(
                f"Tool '{tool_name}': both min_major and min_version set; both must pass"
            )

    return warnings
