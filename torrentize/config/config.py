"""Configuration management for torrentize.

Settings are loaded hierarchically: defaults → TOML config file →
environment → CLI options. The command-line layer applies the last step;
this module covers the first three.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import toml
from pydantic import ValidationError as PydanticValidationError

from torrentize.models import Config
from torrentize.utils.exceptions import ConfigurationError

CONFIG_FILE_NAME = "torrentize.toml"

# Mapping of environment variables to config paths
ENV_MAPPINGS: dict[str, str] = {
    "TORRENTIZE_PIECE_SIZE_KB": "create.piece_size_kb",
    "TORRENTIZE_PRIVATE": "create.private",
    "TORRENTIZE_ORDERING": "create.ordering",
    "TORRENTIZE_IGNORE": "create.ignore_patterns",
    "TORRENTIZE_TRACKERS": "create.trackers",
    "TORRENTIZE_QUIET": "create.quiet",
    "TORRENTIZE_LOG_LEVEL": "observability.log_level",
    "TORRENTIZE_LOG_FILE": "observability.log_file",
    "TORRENTIZE_STRUCTURED_LOGGING": "observability.structured_logging",
}

_LIST_PATHS = frozenset({"create.ignore_patterns", "create.trackers"})
_BOOL_PATHS = frozenset(
    {"create.private", "create.quiet", "observability.structured_logging"}
)

# Global configuration instance
_config_manager: ConfigManager | None = None


def _parse_env_value(raw: str, path: str) -> bool | int | str | list[str]:
    if path in _LIST_PATHS:
        return [item.strip() for item in raw.split(",") if item.strip()]

    low = raw.strip().lower()
    if path in _BOOL_PATHS:
        if low in {"true", "1", "yes", "on"}:
            return True
        if low in {"false", "0", "no", "off"}:
            return False
        msg = f"Invalid boolean value {raw!r} for {path}"
        raise ConfigurationError(msg)
    if path == "observability.log_level":
        return raw.strip().upper()
    try:
        return int(raw)
    except ValueError:
        return raw


def _set_nested(d: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    cur = d
    for p in parts[:-1]:
        cur = cur.setdefault(p, {})
    cur[parts[-1]] = value


class ConfigManager:
    """Loads and validates configuration."""

    def __init__(self, config_file: str | Path | None = None):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file. If None, searches for
                torrentize.toml in the standard locations

        """
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config()

    def _find_config_file(
        self,
        config_file: str | Path | None,
    ) -> Path | None:
        """Find configuration file in standard locations."""
        if config_file:
            return Path(config_file)

        search_paths = [
            Path.cwd() / CONFIG_FILE_NAME,
            Path.home() / ".config" / "torrentize" / CONFIG_FILE_NAME,
            Path.home() / f".{CONFIG_FILE_NAME}",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return None

    def _load_config(self) -> Config:
        """Load configuration from file and environment."""
        config_data: dict[str, Any] = {}

        if self.config_file and self.config_file.exists():
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    config_data.update(toml.load(f))
            except (OSError, toml.TomlDecodeError) as e:
                logging.getLogger(__name__).warning(
                    "Failed to load config file %s: %s", self.config_file, e
                )

        env_config = self._get_env_config()
        config_data = self._merge_config(config_data, env_config)

        try:
            return Config(**config_data)
        except PydanticValidationError as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e

    def _get_env_config(self) -> dict[str, Any]:
        """Get configuration from environment variables."""
        env_config: dict[str, Any] = {}
        for env_name, cfg_path in ENV_MAPPINGS.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            _set_nested(env_config, cfg_path, _parse_env_value(raw, cfg_path))
        return env_config

    def _merge_config(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    def export(self) -> str:
        """Export the current configuration as TOML."""
        return toml.dumps(self.config.model_dump(mode="json", exclude_none=True))


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager.config


def init_config(config_file: str | Path | None = None) -> ConfigManager:
    """Initialize the global configuration manager."""
    global _config_manager
    _config_manager = ConfigManager(config_file)
    return _config_manager


def reset_config() -> None:
    """Forget the global configuration manager."""
    global _config_manager
    _config_manager = None
