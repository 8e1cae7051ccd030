"""
Service layer for the Deal Notifier system.

This module contains the services backing the pipeline: settings loading,
the channel/search term configuration store and its cached provider, and
the persisted dedup store.
"""

from .config_manager import ConfigurationManager
from .config_provider import CacheEntry, ConfigurationProvider
from .config_store import YamlConfigurationStore
from .dedup_store import JsonDedupStore

__all__ = [
    "ConfigurationManager",
    "ConfigurationProvider",
    "CacheEntry",
    "YamlConfigurationStore",
    "JsonDedupStore",
]
