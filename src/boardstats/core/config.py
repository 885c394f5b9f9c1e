"""
Configuration Management for boardstats

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Environment variables (BOARDSTATS_*)
2. Configuration file
3. Default values
"""

import json
import logging
import logging.handlers
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from boardstats.core.constants import (
    DEFAULT_MEMORY_CAPACITY,
    DEFAULT_REFRESH_MAX_AGE_HOURS,
)
from boardstats.core.models import DEFAULT_SKILL_RATING

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class AnalyticsConfig:
    """Configuration for the analytics engine."""

    # Snapshots older than this (whole hours) are reported as stale
    refresh_max_age_hours: int = DEFAULT_REFRESH_MAX_AGE_HOURS

    # Reported in CoreStats and trends until a rating system exists
    default_skill_rating: float = DEFAULT_SKILL_RATING

    # "full_scan" keeps historical current_streak numbers,
    # "recent" counts the run ending at the newest contest
    streak_mode: str = "full_scan"


@dataclass
class CacheConfig:
    """Configuration for the in-memory snapshot manager."""

    memory_capacity: int = DEFAULT_MEMORY_CAPACITY


@dataclass
class ExportConfig:
    """Configuration for data export."""

    default_format: str = "json"
    json_indent: int = 2
    csv_delimiter: str = ","


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5


@dataclass
class BoardStatsConfig:
    """Main configuration container."""

    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


SECTIONS = ("analytics", "cache", "export", "logging")


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    paths = []

    # Current directory
    paths.append(Path.cwd() / "boardstats.yaml")
    paths.append(Path.cwd() / "boardstats.toml")
    paths.append(Path.cwd() / "boardstats.json")

    # User config directory
    home = Path.home()
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))
    paths.append(Path(xdg_config) / "boardstats" / "config.yaml")
    paths.append(Path(xdg_config) / "boardstats" / "config.toml")

    return paths


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file."""
    import yaml

    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    import tomllib

    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(path) as f:
        return json.load(f)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return load_yaml_config(path)
    elif suffix == ".toml":
        return load_toml_config(path)
    elif suffix == ".json":
        return load_json_config(path)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    env_mappings = {
        "BOARDSTATS_LOG_LEVEL": ("logging", "level"),
        "BOARDSTATS_LOG_FILE": ("logging", "file"),
        "BOARDSTATS_REFRESH_MAX_AGE_HOURS": ("analytics", "refresh_max_age_hours"),
        "BOARDSTATS_SKILL_RATING": ("analytics", "default_skill_rating"),
        "BOARDSTATS_STREAK_MODE": ("analytics", "streak_mode"),
        "BOARDSTATS_MEMORY_CAPACITY": ("cache", "memory_capacity"),
        "BOARDSTATS_EXPORT_FORMAT": ("export", "default_format"),
    }

    for env_var, (section, key) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            if section not in config:
                config[section] = {}

            # Type conversion
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            elif value.isdigit():
                value = int(value)
            else:
                try:
                    value = float(value)
                except ValueError:
                    pass

            config[section][key] = value

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> BoardStatsConfig:
    """Convert a dictionary to BoardStatsConfig. Unknown keys are ignored."""
    config = BoardStatsConfig()

    for section in SECTIONS:
        target = getattr(config, section)
        for key, value in (data.get(section) or {}).items():
            if hasattr(target, key):
                setattr(target, key, value)
            else:
                logger.debug(f"Ignoring unknown config key: {section}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> BoardStatsConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged BoardStatsConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        env_config = load_env_config()
        config_data = merge_configs(config_data, env_config)

    return dict_to_config(config_data)


# ============================================================================
# Logging Setup
# ============================================================================


def setup_logging(config: LoggingConfig) -> None:
    """Configure the root logger from a LoggingConfig."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(config.level).upper(), logging.INFO))

    formatter = logging.Formatter(config.format)
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        root.addHandler(stream)

    if config.file:
        file_handler = logging.handlers.RotatingFileHandler(
            config.file,
            maxBytes=config.file_max_bytes,
            backupCount=config.file_backup_count,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: BoardStatsConfig | None = None


def get_config() -> BoardStatsConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: BoardStatsConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _global_config
    _global_config = None
