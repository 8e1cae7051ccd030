"""
Configuration management system for the Deal Notifier.
"""

import json
import os
from typing import Any, Dict, Optional

import yaml

from ..exceptions import ConfigurationError
from ..models.config import NotifierSettings

SETTINGS_SECTIONS = ("system", "source", "storage")

DEFAULT_CONFIG_PATHS = [
    "config/config.yaml",
    "config/config.yml",
    "config/config.json",
    "config.yaml",
    "config.yml",
    "config.json",
]


def expand_env_vars(obj: Any) -> Any:
    """Recursively expand ${VAR_NAME} values from the environment."""
    if isinstance(obj, dict):
        return {key: expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            var_name = obj[2:-1]
            env_value = os.getenv(var_name)
            if env_value is None:
                raise ConfigurationError(f"Environment variable '{var_name}' not found")
            return env_value
        return obj
    else:
        return obj


def load_config_file(config_path: str, expand_env: bool = True) -> Dict[str, Any]:
    """
    Read a YAML or JSON configuration file.

    Args:
        config_path: Path to the file
        expand_env: Expand ${VAR_NAME} values across the whole file

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigurationError: If the file cannot be parsed.
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.endswith(".json"):
                raw_config = json.load(f)
            else:
                raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in configuration file: {e}") from e

    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration file must contain a mapping")

    return expand_env_vars(raw_config) if expand_env else raw_config


class ConfigurationManager:
    """Manages loading and validation of system settings."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, uses default paths.
        """
        self.config_path = config_path or self._find_config_file()

    def _find_config_file(self) -> str:
        """Find the configuration file in standard locations."""
        for path in DEFAULT_CONFIG_PATHS:
            if os.path.exists(path):
                return path

        if os.path.exists("config/config.example.yaml"):
            raise ConfigurationError(
                "No configuration file found. Please copy 'config/config.example.yaml' "
                "to 'config/config.yaml' and customize it for your needs."
            )

        raise ConfigurationError(
            "No configuration file found. Please create a configuration file "
            "at one of these locations: " + ", ".join(DEFAULT_CONFIG_PATHS)
        )

    def load_settings(self) -> NotifierSettings:
        """
        Load system settings from file.

        Returns:
            NotifierSettings with validated values.

        Raises:
            ConfigurationError: If settings are invalid or the file cannot be read.
            FileNotFoundError: If configuration file doesn't exist.
        """
        raw_config = load_config_file(self.config_path, expand_env=False)

        # Channel sections are expanded per entry by the configuration store
        settings_config = {
            name: expand_env_vars(raw_config.get(name))
            for name in SETTINGS_SECTIONS
        }
        settings = self._parse_settings(settings_config)

        try:
            settings.validate()
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        return settings

    def _parse_settings(self, raw_config: Dict[str, Any]) -> NotifierSettings:
        """Parse raw configuration dictionary into NotifierSettings."""
        defaults = NotifierSettings()

        system_data = raw_config.get("system") or {}
        source_data = raw_config.get("source") or {}
        storage_data = raw_config.get("storage") or {}

        for name, section in (
            ("system", system_data),
            ("source", source_data),
            ("storage", storage_data),
        ):
            if not isinstance(section, dict):
                raise ConfigurationError(f"'{name}' section must be a mapping")

        try:
            return NotifierSettings(
                polling_interval=int(
                    system_data.get("polling_interval", defaults.polling_interval)
                ),
                max_concurrent_channels=int(
                    system_data.get(
                        "max_concurrent_channels", defaults.max_concurrent_channels
                    )
                ),
                cache_ttl=int(system_data.get("cache_ttl", defaults.cache_ttl)),
                request_timeout=float(
                    system_data.get("request_timeout", defaults.request_timeout)
                ),
                run_timeout=float(system_data.get("run_timeout", defaults.run_timeout)),
                chunk_size=int(system_data.get("chunk_size", defaults.chunk_size)),
                message_delay=float(
                    system_data.get("message_delay", defaults.message_delay)
                ),
                log_level=str(system_data.get("log_level", defaults.log_level)),
                log_dir=str(system_data.get("log_dir", defaults.log_dir)),
                source_base_url=str(
                    source_data.get("base_url", defaults.source_base_url)
                ),
                dedup_state_file=str(
                    storage_data.get("dedup_state_file", defaults.dedup_state_file)
                ),
                retention_days=storage_data.get("retention_days"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Error parsing configuration: {e}") from e
