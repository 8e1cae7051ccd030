"""
Run report models for the scheduled pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .delivery import DeliveryResult


@dataclass
class ChannelReport:
    """Outcome of processing one channel in a run."""

    channel_id: str
    channel_name: str
    search_terms_processed: int = 0
    search_terms_failed: int = 0
    candidates: int = 0
    duplicates: int = 0
    filtered: int = 0
    accepted: int = 0
    delivery: Optional[DeliveryResult] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        if self.error is not None:
            return False
        return self.delivery is None or self.delivery.success


@dataclass
class RunReport:
    """Aggregated outcome of one orchestrator run."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    channels: List[ChannelReport] = field(default_factory=list)
    timed_out: bool = False

    @property
    def total_accepted(self) -> int:
        return sum(channel.accepted for channel in self.channels)

    @property
    def failed_channels(self) -> List[ChannelReport]:
        return [channel for channel in self.channels if not channel.succeeded]

    def summary(self) -> Dict[str, Any]:
        duration = None
        if self.finished_at is not None:
            duration = (self.finished_at - self.started_at).total_seconds()
        return {
            "channels": len(self.channels),
            "failed_channels": [c.channel_id for c in self.failed_channels],
            "accepted_deals": self.total_accepted,
            "timed_out": self.timed_out,
            "duration_seconds": duration,
        }
