"""
Deal data models for the Deal Notifier system.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import urlparse

HOT_SCORE_THRESHOLD = 100
WARM_SCORE_THRESHOLD = 50


def current_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class Temperature(Enum):
    """Popularity classification derived from a deal's score."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"

    @classmethod
    def from_score(cls, score: Optional[float]) -> Optional["Temperature"]:
        """Map a numeric popularity score to a temperature, None if unknown."""
        if score is None:
            return None
        if score >= HOT_SCORE_THRESHOLD:
            return cls.HOT
        if score >= WARM_SCORE_THRESHOLD:
            return cls.WARM
        return cls.COLD


@dataclass(frozen=True)
class Deal:
    """A listing observed on the source search page."""

    deal_id: str
    title: str
    link: str
    price: Optional[str] = None
    original_price: Optional[str] = None
    merchant: Optional[str] = None
    merchant_url: Optional[str] = None
    score: Optional[float] = None
    temperature: Optional[Temperature] = None
    comment_count: Optional[int] = None
    savings: Optional[str] = None
    savings_percentage: Optional[int] = None
    timestamp: int = field(default_factory=current_millis)

    def effective_temperature(self) -> Optional[Temperature]:
        """Explicit temperature tag, or the one implied by the score."""
        if self.temperature is not None:
            return self.temperature
        return Temperature.from_score(self.score)

    def validate(self) -> bool:
        """Validate the deal data."""
        if not self.deal_id or not self.deal_id.strip():
            raise ValueError("Deal ID cannot be empty")

        if not self.title or not self.title.strip():
            raise ValueError("Deal title cannot be empty")

        if not self.link or not self.link.strip():
            raise ValueError("Deal link cannot be empty")

        parsed_url = urlparse(self.link)
        if not parsed_url.scheme or not parsed_url.netloc:
            raise ValueError(f"Invalid URL format: {self.link}")

        if self.comment_count is not None and self.comment_count < 0:
            raise ValueError("Comment count cannot be negative")

        if self.savings_percentage is not None:
            if not (0 <= self.savings_percentage <= 100):
                raise ValueError("Savings percentage must be between 0 and 100")

        if self.timestamp <= 0:
            raise ValueError("Timestamp must be positive epoch milliseconds")

        return True


@dataclass(frozen=True)
class AcceptedDeal:
    """A deal that passed dedup and filtering, tagged with its search term."""

    deal: Deal
    search_term: str


@dataclass
class SeenDealRecord:
    """Marks a deal id as already notified."""

    deal_id: str
    search_term: str
    title: str
    link: str
    price: Optional[str] = None
    merchant: Optional[str] = None
    timestamp: int = field(default_factory=current_millis)
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @classmethod
    def from_deal(cls, deal: Deal, search_term: str) -> "SeenDealRecord":
        """Build a seen record, copying the deal's display fields for audit."""
        return cls(
            deal_id=deal.deal_id,
            search_term=search_term,
            title=deal.title,
            link=deal.link,
            price=deal.price,
            merchant=deal.merchant,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deal_id": self.deal_id,
            "search_term": self.search_term,
            "title": self.title,
            "link": self.link,
            "price": self.price,
            "merchant": self.merchant,
            "timestamp": self.timestamp,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SeenDealRecord":
        return cls(
            deal_id=str(data["deal_id"]),
            search_term=data.get("search_term", ""),
            title=data.get("title", ""),
            link=data.get("link", ""),
            price=data.get("price"),
            merchant=data.get("merchant"),
            timestamp=int(data.get("timestamp") or current_millis()),
            created_at=data.get("created_at")
            or datetime.now(timezone.utc).isoformat(),
        )
