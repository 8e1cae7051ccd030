"""
Protocol interfaces for the Deal Notifier system.

This module defines the protocol interfaces that establish system
boundaries and enable dependency injection throughout the application.
"""

from typing import List, Optional, Protocol, Tuple

from .models.config import Channel, ChannelWithConfigs, SearchTermConfig
from .models.deal import AcceptedDeal, Deal, SeenDealRecord
from .models.delivery import DeliveryResult
from .models.filter import FilterResult


class IDealParser(Protocol):
    """Protocol for fetching and parsing source search pages."""

    def fetch_deals(self, search_term: str) -> List[Deal]:
        """Fetch the deals currently listed for a search term."""
        ...


class IKeywordFilter(Protocol):
    """Protocol for keyword-based deal filtering."""

    def evaluate(self, deal: Deal, config: SearchTermConfig) -> FilterResult:
        """Evaluate a deal against a search term's keyword lists."""
        ...

    def accepts(self, deal: Deal, config: SearchTermConfig) -> bool:
        """Check whether a deal passes a search term's keyword lists."""
        ...


class IDedupStore(Protocol):
    """Protocol for the persisted record of already-notified deals."""

    def exists(self, deal_id: str) -> bool:
        """Check whether a deal id has already been notified."""
        ...

    def record(self, deal: Deal, search_term: str) -> None:
        """Record a deal as notified."""
        ...

    def get(self, deal_id: str) -> Optional[SeenDealRecord]:
        """Get the seen record for a deal id."""
        ...


class IConfigurationStore(Protocol):
    """Protocol for reading channels and search term configurations."""

    def list_channels(self) -> List[Channel]:
        """List all channels."""
        ...

    def list_search_term_configs(self) -> List[SearchTermConfig]:
        """List all search term configurations."""
        ...

    def load_snapshot(self) -> Tuple[List[Channel], List[SearchTermConfig]]:
        """Read channels and search term configurations together."""
        ...


class IConfigurationProvider(Protocol):
    """Protocol for cached access to channel-grouped configuration."""

    async def load_grouped_by_channel(self) -> List[ChannelWithConfigs]:
        """Load enabled configurations grouped by their channel."""
        ...

    def reset(self) -> None:
        """Discard any cached configuration."""
        ...


class IMessageDispatcher(Protocol):
    """Protocol for webhook message dispatching."""

    def deliver(self, webhook_url: str, deals: List[AcceptedDeal]) -> DeliveryResult:
        """Deliver accepted deals to a webhook."""
        ...

    def send_test_notification(self, webhook_url: str) -> DeliveryResult:
        """Send a fixed test message to a webhook."""
        ...
