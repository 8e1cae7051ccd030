"""
Cached, channel-grouped access to search term configurations.

The provider owns a single cache entry with a fixed time-to-live. Refreshes
are single-flight: concurrent callers that find the entry expired wait on
one store read instead of issuing their own. If the store cannot be read the
previous snapshot is served and the provider is marked degraded.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..interfaces import IConfigurationStore
from ..models.config import Channel, ChannelWithConfigs, SearchTermConfig
from ..utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    get_degradation_manager,
    get_error_tracker,
)
from ..utils.logging import get_logger

DEFAULT_CACHE_TTL = 300


@dataclass
class CacheEntry:
    """A configuration snapshot and when it was read (monotonic seconds)."""

    value: List[ChannelWithConfigs]
    fetched_at: float


def group_by_channel(
    channels: List[Channel],
    configs: List[SearchTermConfig],
    logger=None,
) -> List[ChannelWithConfigs]:
    """
    Group enabled configurations under their channel.

    Configurations for unknown channels are dropped. When a (channel, search
    term) pair appears twice the first one wins. Channels without enabled
    configurations are omitted.
    """
    channels_by_id: Dict[str, Channel] = {}
    for channel in channels:
        channels_by_id.setdefault(channel.channel_id, channel)

    grouped: Dict[str, List[SearchTermConfig]] = {}
    seen: set = set()

    for config in configs:
        if not config.enabled:
            continue

        if config.channel_id not in channels_by_id:
            if logger:
                logger.warning(
                    "Dropping search term for unknown channel",
                    extra={
                        "channel_id": config.channel_id,
                        "search_term": config.search_term,
                    },
                )
            continue

        if config.key in seen:
            if logger:
                logger.warning(
                    "Duplicate search term configuration ignored",
                    extra={
                        "channel_id": config.channel_id,
                        "search_term": config.search_term,
                    },
                )
            continue

        seen.add(config.key)
        grouped.setdefault(config.channel_id, []).append(config)

    return [
        ChannelWithConfigs(channel=channels_by_id[channel_id], configs=channel_configs)
        for channel_id, channel_configs in grouped.items()
    ]


class ConfigurationProvider:
    """Serves channel-grouped configuration from a TTL cache."""

    COMPONENT = "config.provider"

    def __init__(
        self,
        store: IConfigurationStore,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize configuration provider.

        Args:
            store: Backing configuration store
            ttl: Seconds a snapshot stays fresh
            clock: Monotonic time source
        """
        self.store = store
        self.ttl = ttl
        self.clock = clock
        self.logger = get_logger(self.COMPONENT)

        self._cache: Optional[CacheEntry] = None
        self._refresh_lock = asyncio.Lock()
        self._refresh_count = 0

    def _is_fresh(self, entry: Optional[CacheEntry]) -> bool:
        return entry is not None and (self.clock() - entry.fetched_at) < self.ttl

    def _read_store(self) -> Tuple[List[Channel], List[SearchTermConfig]]:
        return self.store.load_snapshot()

    async def load_grouped_by_channel(self) -> List[ChannelWithConfigs]:
        """
        Load enabled configurations grouped by channel.

        Returns:
            The cached snapshot while fresh; otherwise a new snapshot, the
            previous one if the store read fails, or an empty list if there
            is no previous one.
        """
        entry = self._cache
        if self._is_fresh(entry):
            return entry.value

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            entry = self._cache
            if self._is_fresh(entry):
                return entry.value

            return await self._refresh(entry)

    async def _refresh(self, previous: Optional[CacheEntry]) -> List[ChannelWithConfigs]:
        loop = asyncio.get_running_loop()
        self._refresh_count += 1

        try:
            channels, configs = await loop.run_in_executor(None, self._read_store)
        except Exception as e:
            get_error_tracker().record_error(
                component=self.COMPONENT,
                category=ErrorCategory.CONFIGURATION,
                severity=ErrorSeverity.HIGH if previous is None else ErrorSeverity.MEDIUM,
                message=f"Configuration store read failed: {e}",
                exception=e,
            )

            if previous is not None:
                get_degradation_manager().degrade_component(
                    self.COMPONENT,
                    reason=str(e),
                    fallback_behavior="serving stale configuration snapshot",
                )
                return previous.value

            self.logger.error(
                "Configuration unavailable and nothing cached; no channels to process",
                extra={"error": str(e)},
            )
            return []

        value = group_by_channel(channels, configs, self.logger)
        self._cache = CacheEntry(value=value, fetched_at=self.clock())

        degradation = get_degradation_manager()
        if degradation.is_degraded(self.COMPONENT):
            degradation.restore_component(self.COMPONENT)

        self.logger.info(
            "Configuration refreshed",
            extra={
                "channels": len(value),
                "search_terms": sum(len(group.configs) for group in value),
            },
        )
        return value

    def reset(self) -> None:
        """Discard the cached snapshot."""
        self._cache = None

    def get_cache_info(self) -> Dict[str, object]:
        entry = self._cache
        return {
            "cached": entry is not None,
            "fresh": self._is_fresh(entry),
            "age_seconds": (self.clock() - entry.fetched_at) if entry else None,
            "refresh_count": self._refresh_count,
        }
