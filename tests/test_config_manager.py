"""
Unit tests for configuration management system.
"""

import json
import os
from unittest.mock import patch

import pytest

from deal_notifier.exceptions import ConfigurationError
from deal_notifier.models.config import NotifierSettings
from deal_notifier.services.config_manager import (
    ConfigurationManager,
    expand_env_vars,
    load_config_file,
)
from deal_notifier.services.config_store import YamlConfigurationStore

VALID_CONFIG = """
system:
  polling_interval: 120
  max_concurrent_channels: 4
  cache_ttl: 60
  run_timeout: 30
  chunk_size: 5
  message_delay: 0.5
source:
  base_url: https://deals.example.com
storage:
  dedup_state_file: state/seen.json
  retention_days: 90
channels:
  - channel_id: gaming
    user_id: "42"
    name: Gaming deals
    webhook_url: https://discord.com/api/webhooks/1/gaming
search_terms:
  - channel_id: gaming
    search_term: steam deck
    exclude_keywords: [refurbished]
"""


class TestEnvironmentExpansion:
    """Test ${VAR} expansion."""

    def test_expands_nested_values(self):
        with patch.dict(os.environ, {"HOOK": "https://example.com/hook"}):
            data = {"channels": [{"webhook_url": "${HOOK}", "name": "x"}], "n": 3}

            assert expand_env_vars(data) == {
                "channels": [{"webhook_url": "https://example.com/hook", "name": "x"}],
                "n": 3,
            }

    def test_missing_variable_raises(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError, match="MISSING_HOOK"):
                expand_env_vars("${MISSING_HOOK}")

    def test_partial_reference_left_alone(self):
        assert expand_env_vars("prefix ${HOOK}") == "prefix ${HOOK}"


class TestLoadConfigFile:
    """Test raw configuration file loading."""

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_config_file(str(temp_dir / "nope.yaml"))

    def test_invalid_yaml(self, config_file):
        path = config_file("system: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config_file(path)

    def test_json_file(self, temp_dir):
        path = temp_dir / "config.json"
        path.write_text(json.dumps({"system": {"polling_interval": 30}}))

        assert load_config_file(str(path)) == {"system": {"polling_interval": 30}}

    def test_empty_file(self, config_file):
        assert load_config_file(config_file("")) == {}

    def test_non_mapping_rejected(self, config_file):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config_file(config_file("- just\n- a list\n"))


class TestConfigurationManager:
    """Test ConfigurationManager functionality."""

    def test_load_settings(self, config_file):
        manager = ConfigurationManager(config_file(VALID_CONFIG))

        settings = manager.load_settings()

        assert isinstance(settings, NotifierSettings)
        assert settings.polling_interval == 120
        assert settings.max_concurrent_channels == 4
        assert settings.cache_ttl == 60
        assert settings.run_timeout == 30.0
        assert settings.chunk_size == 5
        assert settings.message_delay == 0.5
        assert settings.source_base_url == "https://deals.example.com"
        assert settings.dedup_state_file == "state/seen.json"
        assert settings.retention_days == 90

    def test_defaults_for_missing_sections(self, config_file):
        settings = ConfigurationManager(config_file("channels: []\n")).load_settings()

        assert settings == NotifierSettings()

    def test_invalid_setting_raises_configuration_error(self, config_file):
        manager = ConfigurationManager(config_file("system:\n  polling_interval: 5\n"))

        with pytest.raises(ConfigurationError, match="at least 10"):
            manager.load_settings()

    def test_unparseable_setting(self, config_file):
        manager = ConfigurationManager(
            config_file("system:\n  polling_interval: soon\n")
        )

        with pytest.raises(ConfigurationError, match="Error parsing"):
            manager.load_settings()

    def test_section_must_be_mapping(self, config_file):
        manager = ConfigurationManager(config_file("system: [1, 2]\n"))

        with pytest.raises(ConfigurationError, match="'system' section"):
            manager.load_settings()

    def test_unset_channel_variable_does_not_block_settings(self, config_file):
        path = config_file(
            "system:\n"
            "  polling_interval: 30\n"
            "channels:\n"
            "  - channel_id: c\n"
            "    webhook_url: ${UNSET_CHANNEL_HOOK}\n"
        )

        with patch.dict(os.environ, {}, clear=True):
            settings = ConfigurationManager(path).load_settings()

        assert settings.polling_interval == 30

    def test_unset_settings_variable_raises(self, config_file):
        path = config_file("source:\n  base_url: ${UNSET_BASE_URL}\n")

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError, match="UNSET_BASE_URL"):
                ConfigurationManager(path).load_settings()

    def test_no_config_file_found(self, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)

        with pytest.raises(ConfigurationError, match="No configuration file found"):
            ConfigurationManager()

class TestYamlConfigurationStore:
    """Test the channel and search term store."""

    def test_lists_channels_and_configs(self, config_file):
        store = YamlConfigurationStore(config_file(VALID_CONFIG))

        channels = store.list_channels()
        configs = store.list_search_term_configs()

        assert [channel.channel_id for channel in channels] == ["gaming"]
        assert channels[0].user_id == "42"
        assert configs[0].search_term == "steam deck"
        assert configs[0].exclude_keywords == ["refurbished"]
        assert configs[0].enabled is True

    def test_webhook_from_environment(self, config_file):
        path = config_file(
            "channels:\n"
            "  - channel_id: c\n"
            "    webhook_url: ${TEST_WEBHOOK}\n"
        )

        with patch.dict(os.environ, {"TEST_WEBHOOK": "https://example.com/hook"}):
            channels = YamlConfigurationStore(path).list_channels()

        assert channels[0].webhook_url == "https://example.com/hook"
        assert channels[0].name == "c"

    def test_invalid_entries_skipped(self, config_file):
        path = config_file(
            "channels:\n"
            "  - channel_id: ok\n"
            "    webhook_url: https://example.com/ok\n"
            "  - channel_id: bad\n"
            "    webhook_url: not-a-url\n"
            "  - name: missing id\n"
            "search_terms:\n"
            "  - channel_id: ok\n"
            "    search_term: ''\n"
            "  - channel_id: ok\n"
            "    search_term: ps5\n"
            "    enabled: 'yes'\n"
            "  - channel_id: ok\n"
            "    search_term: ps5\n"
            "    enabled: false\n"
        )
        store = YamlConfigurationStore(path)

        assert [channel.channel_id for channel in store.list_channels()] == ["ok"]

        configs = store.list_search_term_configs()
        assert len(configs) == 1
        assert configs[0].enabled is False

    def test_section_must_be_list(self, config_file):
        store = YamlConfigurationStore(config_file("channels: {gaming: 1}\n"))

        with pytest.raises(ConfigurationError, match="must be a list"):
            store.list_channels()

    def test_missing_sections_are_empty(self, config_file):
        store = YamlConfigurationStore(config_file("system: {}\n"))

        assert store.list_channels() == []
        assert store.list_search_term_configs() == []

    def test_unset_variable_skips_only_that_entry(self, config_file):
        path = config_file(
            "channels:\n"
            "  - channel_id: good\n"
            "    webhook_url: ${GOOD_HOOK}\n"
            "  - channel_id: bad\n"
            "    webhook_url: ${MISSING_HOOK}\n"
            "search_terms:\n"
            "  - channel_id: good\n"
            "    search_term: ${MISSING_TERM}\n"
            "  - channel_id: good\n"
            "    search_term: ps5\n"
        )

        with patch.dict(os.environ, {"GOOD_HOOK": "https://example.com/good"}, clear=True):
            channels, configs = YamlConfigurationStore(path).load_snapshot()

        assert [channel.channel_id for channel in channels] == ["good"]
        assert [config.search_term for config in configs] == ["ps5"]
