"""
Configuration models for the system.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse


@dataclass(frozen=True)
class Channel:
    """A named delivery target owned by a tenant."""

    channel_id: str
    name: str
    webhook_url: str
    user_id: str = ""

    def validate(self) -> bool:
        """Validate channel data."""
        if not self.channel_id or not self.channel_id.strip():
            raise ValueError("Channel ID cannot be empty")

        if not self.name or not self.name.strip():
            raise ValueError("Channel name cannot be empty")

        if not self.webhook_url or not self.webhook_url.strip():
            raise ValueError("Channel webhook URL cannot be empty")

        parsed_url = urlparse(self.webhook_url)
        if parsed_url.scheme not in ["http", "https"] or not parsed_url.netloc:
            raise ValueError(f"Invalid webhook URL format: {self.webhook_url}")

        return True


@dataclass(frozen=True)
class SearchTermConfig:
    """A tenant's subscription to a search term, scoped to a channel."""

    channel_id: str
    search_term: str
    user_id: str = ""
    enabled: bool = True
    include_keywords: List[str] = field(default_factory=list)
    exclude_keywords: List[str] = field(default_factory=list)
    case_sensitive: bool = False

    @property
    def key(self):
        return (self.channel_id, self.search_term)

    def validate(self) -> bool:
        """Validate search term configuration."""
        if not self.channel_id or not self.channel_id.strip():
            raise ValueError("Search term config must reference a channel")

        if not self.search_term or not self.search_term.strip():
            raise ValueError("Search term cannot be empty")

        if not isinstance(self.enabled, bool):
            raise ValueError("enabled must be a boolean")

        if not isinstance(self.case_sensitive, bool):
            raise ValueError("case_sensitive must be a boolean")

        for name, keywords in (
            ("Include keywords", self.include_keywords),
            ("Exclude keywords", self.exclude_keywords),
        ):
            if not isinstance(keywords, list):
                raise ValueError(f"{name} must be a list")
            for keyword in keywords:
                if not isinstance(keyword, str):
                    raise ValueError(f"{name} must contain only strings")

        return True


@dataclass
class ChannelWithConfigs:
    """A channel together with its enabled search term configurations."""

    channel: Channel
    configs: List[SearchTermConfig]


@dataclass
class NotifierSettings:
    """System settings for the scheduled pipeline."""

    polling_interval: int = 60
    max_concurrent_channels: int = 10
    cache_ttl: int = 300
    request_timeout: float = 10.0
    run_timeout: float = 50.0
    chunk_size: int = 10
    message_delay: float = 1.0
    source_base_url: str = "https://www.hotukdeals.com"
    dedup_state_file: str = "data/seen_deals.json"
    retention_days: Optional[int] = None
    log_level: str = "INFO"
    log_dir: str = "logs"

    def validate(self) -> bool:
        """Validate system settings."""
        if not isinstance(self.polling_interval, int) or self.polling_interval <= 0:
            raise ValueError("Polling interval must be a positive integer")

        if self.polling_interval < 10:
            raise ValueError("Polling interval must be at least 10 seconds")

        if (
            not isinstance(self.max_concurrent_channels, int)
            or self.max_concurrent_channels <= 0
        ):
            raise ValueError("Max concurrent channels must be a positive integer")

        if self.max_concurrent_channels > 50:
            raise ValueError("Max concurrent channels cannot exceed 50")

        if not isinstance(self.cache_ttl, int) or self.cache_ttl < 0:
            raise ValueError("Cache TTL must be a non-negative integer")

        if self.request_timeout <= 0:
            raise ValueError("Request timeout must be positive")

        if self.run_timeout <= 0:
            raise ValueError("Run timeout must be positive")

        if not isinstance(self.chunk_size, int) or not (1 <= self.chunk_size <= 10):
            raise ValueError("Chunk size must be between 1 and 10")

        if self.message_delay < 0:
            raise ValueError("Message delay cannot be negative")

        parsed_url = urlparse(self.source_base_url)
        if parsed_url.scheme not in ["http", "https"] or not parsed_url.netloc:
            raise ValueError(f"Invalid source base URL: {self.source_base_url}")

        if not self.dedup_state_file or not self.dedup_state_file.strip():
            raise ValueError("Dedup state file path cannot be empty")

        if self.retention_days is not None:
            if not isinstance(self.retention_days, int) or self.retention_days < 30:
                raise ValueError("Retention must be at least 30 days when set")

        if self.log_level.upper() not in [
            "DEBUG",
            "INFO",
            "WARNING",
            "ERROR",
            "CRITICAL",
        ]:
            raise ValueError(f"Invalid log level: {self.log_level}")

        return True
