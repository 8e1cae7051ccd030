"""
YAML-backed store of channels and search term configurations.

The file holds `channels` and `search_terms` sections next to the system
settings read by ConfigurationManager. Environment variables are expanded
per entry, so an entry referencing an unset variable is skipped on its own.
"""

from typing import Any, Dict, List, Tuple

from ..exceptions import ConfigurationError
from ..models.config import Channel, SearchTermConfig
from ..utils.logging import get_logger
from .config_manager import expand_env_vars, load_config_file


class YamlConfigurationStore:
    """Reads tenant channels and search term subscriptions from a config file."""

    def __init__(self, config_path: str):
        """
        Initialize the configuration store.

        Args:
            config_path: Path to the YAML or JSON configuration file
        """
        self.config_path = config_path
        self.logger = get_logger("config.provider", {"store": config_path})

    def _read_config(self) -> Dict[str, Any]:
        return load_config_file(self.config_path, expand_env=False)

    def _section(self, raw_config: Dict[str, Any], name: str) -> List[Any]:
        section = raw_config.get(name) or []
        if not isinstance(section, list):
            raise ConfigurationError(f"'{name}' section must be a list")
        return section

    def load_snapshot(self) -> Tuple[List[Channel], List[SearchTermConfig]]:
        """
        Read channels and search term configurations from one file read.

        Returns:
            Tuple of (channels, search term configurations)
        """
        raw_config = self._read_config()
        return (
            self._parse_channels(self._section(raw_config, "channels")),
            self._parse_search_terms(self._section(raw_config, "search_terms")),
        )

    def list_channels(self) -> List[Channel]:
        """
        List all valid channels.

        Entries that fail validation are skipped with a warning.
        """
        return self._parse_channels(self._section(self._read_config(), "channels"))

    def list_search_term_configs(self) -> List[SearchTermConfig]:
        """
        List all valid search term configurations, enabled or not.

        Entries that fail validation are skipped with a warning.
        """
        return self._parse_search_terms(
            self._section(self._read_config(), "search_terms")
        )

    def _parse_channels(self, entries: List[Any]) -> List[Channel]:
        channels = []
        for index, raw_entry in enumerate(entries):
            try:
                entry = expand_env_vars(raw_entry)
                channel = Channel(
                    channel_id=str(entry["channel_id"]),
                    name=str(entry.get("name") or entry["channel_id"]),
                    webhook_url=str(entry["webhook_url"]),
                    user_id=str(entry.get("user_id", "")),
                )
                channel.validate()
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                self.logger.warning(
                    "Skipping invalid channel entry",
                    extra={"index": index, "error": str(e)},
                )
                continue
            channels.append(channel)

        return channels

    def _parse_search_terms(self, entries: List[Any]) -> List[SearchTermConfig]:
        configs = []
        for index, raw_entry in enumerate(entries):
            try:
                entry = expand_env_vars(raw_entry)
                config = SearchTermConfig(
                    channel_id=str(entry["channel_id"]),
                    search_term=str(entry["search_term"]).strip(),
                    user_id=str(entry.get("user_id", "")),
                    enabled=entry.get("enabled", True),
                    include_keywords=list(entry.get("include_keywords") or []),
                    exclude_keywords=list(entry.get("exclude_keywords") or []),
                    case_sensitive=entry.get("case_sensitive", False),
                )
                config.validate()
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                self.logger.warning(
                    "Skipping invalid search term entry",
                    extra={"index": index, "error": str(e)},
                )
                continue
            configs.append(config)

        return configs
