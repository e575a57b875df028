from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml


class ConfigError(Exception):
    """Raised when the configuration file is missing or malformed."""


def load_yaml_config(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file into a dictionary."""
    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return data


def get_section(config: Dict[str, Any], section: str) -> Dict[str, Any]:
    """Return a configuration section, ensuring it is a mapping."""
    value = config.get(section, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Section '{section}' must be a mapping.")
    return value


@dataclass
class StorageConfig:
    folder: str = "frontier"
    queue_name: str = "pending_urls"

    def __post_init__(self):
        if not self.folder:
            raise ValueError("storage.folder cannot be empty")
        if not self.queue_name:
            raise ValueError("storage.queue_name cannot be empty")


@dataclass
class LogsConfig:
    # Empty log_file disables file logging
    log_file: str = "logs/frontier.log"
    log_level: str = "INFO"

    def __post_init__(self):
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ValueError(f"logs.log_level is not a logging level: {self.log_level}")


@dataclass
class CrawlLimitsConfig:
    max_depth: int = -1
    batch_size: int = 50

    def __post_init__(self):
        if self.max_depth < -1:
            raise ValueError("limits.max_depth must be >= -1 (-1 = unlimited)")
        if self.batch_size < 1:
            raise ValueError("limits.batch_size must be >= 1")

    def allows_depth(self, depth: int) -> bool:
        """Check a link depth against max_depth before it is enqueued."""
        return self.max_depth == -1 or depth <= self.max_depth


@dataclass
class FrontierConfig:
    workspace: str
    resumable: bool = False
    storage: StorageConfig = field(default_factory=StorageConfig)
    logs: LogsConfig = field(default_factory=LogsConfig)
    limits: CrawlLimitsConfig = field(default_factory=CrawlLimitsConfig)

    def __post_init__(self):
        if not self.workspace:
            raise ValueError("workspace cannot be empty")
        if not isinstance(self.resumable, bool):
            raise ValueError("resumable must be true or false")

    def get_workspace_path(self) -> Path:
        return Path(self.workspace).expanduser().resolve()

    def get_storage_path(self) -> Path:
        return self.get_workspace_path() / self.storage.folder

    def get_log_path(self) -> Path | None:
        if not self.logs.log_file:
            return None
        return self.get_workspace_path() / self.logs.log_file

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FrontierConfig":
        try:
            return cls(
                workspace=data.get("workspace", ""),
                resumable=data.get("resumable", False),
                storage=StorageConfig(**get_section(data, "storage")),
                logs=LogsConfig(**get_section(data, "logs")),
                limits=CrawlLimitsConfig(**get_section(data, "limits")),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc

    @classmethod
    def from_yaml(cls, config_path: str) -> "FrontierConfig":
        return cls.from_dict(load_yaml_config(config_path))
