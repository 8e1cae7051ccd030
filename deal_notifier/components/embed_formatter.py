"""
Embed formatting component for the Deal Notifier system.

This module renders accepted deals into Discord-compatible embeds and
splits them into webhook messages that respect the endpoint's limits.
"""

import random
from datetime import datetime, timezone
from typing import List, Optional

from ..models.deal import AcceptedDeal, Deal, Temperature
from ..models.webhook import (
    MAX_CONTENT_LENGTH,
    MAX_EMBEDS_PER_MESSAGE,
    MAX_FIELD_VALUE_LENGTH,
    MAX_TITLE_LENGTH,
    Embed,
    EmbedField,
    WebhookMessage,
)

# Cosmetic only; the color carries no meaning
EMBED_COLORS = [
    0x5865F2,  # Blurple
    0x57F287,  # Green
    0xFEE75C,  # Yellow
    0xEB459E,  # Fuchsia
    0xED4245,  # Red
    0xF47B67,  # Salmon
    0x3498DB,  # Blue
    0xE67E22,  # Orange
    0x9B59B6,  # Purple
    0x1ABC9C,  # Teal
]

TEST_NOTIFICATION_TITLE = "Test Notification"
TEST_NOTIFICATION_DESCRIPTION = (
    "This channel is connected. New deals matching your search terms "
    "will be posted here."
)
TEST_NOTIFICATION_COLOR = 0x57F287


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class EmbedFormatter:
    """Formats accepted deals into webhook messages."""

    def __init__(
        self,
        chunk_size: int = MAX_EMBEDS_PER_MESSAGE,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize embed formatter.

        Args:
            chunk_size: Embeds per message, at most 10
            rng: Random source for embed colors
        """
        if not 1 <= chunk_size <= MAX_EMBEDS_PER_MESSAGE:
            raise ValueError(
                f"chunk_size must be between 1 and {MAX_EMBEDS_PER_MESSAGE}"
            )
        self.chunk_size = chunk_size
        self.rng = rng or random.Random()

    def format_price(self, deal: Deal) -> Optional[str]:
        """Bold current price, plus struck-through original and savings."""
        if not deal.price:
            return None

        value = f"**{deal.price}**"
        if deal.original_price and deal.savings:
            value += f"\n~~{deal.original_price}~~ (Save {deal.savings}"
            if deal.savings_percentage is not None:
                value += f" - {deal.savings_percentage}% off"
            value += ")"
        return value

    def format_merchant(self, deal: Deal) -> Optional[str]:
        if not deal.merchant:
            return None
        if deal.merchant_url:
            return f"[{deal.merchant}]({deal.merchant_url})"
        return deal.merchant

    def format_activity(self, deal: Deal) -> Optional[str]:
        """Temperature score and comment count, when the source reported them."""
        parts = []
        temperature = deal.effective_temperature()
        if deal.score is not None:
            label = f" ({temperature.value})" if temperature else ""
            parts.append(f"{deal.score:.0f}°{label}")
        elif temperature is not None:
            parts.append(temperature.value)

        if deal.comment_count is not None:
            noun = "comment" if deal.comment_count == 1 else "comments"
            parts.append(f"{deal.comment_count} {noun}")

        return " | ".join(parts) or None

    def format_embed(self, accepted: AcceptedDeal) -> Embed:
        """Build the embed for one accepted deal."""
        deal = accepted.deal
        fields: List[EmbedField] = []

        price = self.format_price(deal)
        if price:
            fields.append(EmbedField(name="💰 Price", value=price))

        merchant = self.format_merchant(deal)
        if merchant:
            fields.append(
                EmbedField(
                    name="🏪 Merchant",
                    value=_truncate(merchant, MAX_FIELD_VALUE_LENGTH),
                )
            )

        activity = self.format_activity(deal)
        if activity:
            fields.append(EmbedField(name="🌡️ Activity", value=activity))

        return Embed(
            title=_truncate(deal.title, MAX_TITLE_LENGTH),
            url=deal.link,
            color=self.rng.choice(EMBED_COLORS),
            fields=fields,
            footer=f"Search term: {accepted.search_term}",
            timestamp=datetime.fromtimestamp(
                deal.timestamp / 1000, tz=timezone.utc
            ).isoformat(),
        )

    def format_summary(self, deals: List[AcceptedDeal]) -> str:
        """
        Summary line carried by the first message of a delivery.

        Hot and warm counts use the deal's temperature tag, or the score
        thresholds when no tag is present; deals with neither are not counted.
        """
        search_terms = list(dict.fromkeys(accepted.search_term for accepted in deals))
        temperatures = [accepted.deal.effective_temperature() for accepted in deals]
        hot = temperatures.count(Temperature.HOT)
        warm = temperatures.count(Temperature.WARM)

        noun = "deal" if len(deals) == 1 else "deals"
        summary = (
            f"🆕 **{len(deals)} new {noun}** for: {', '.join(search_terms)}"
            f" | 🔥 {hot} hot | ♨️ {warm} warm"
        )
        return _truncate(summary, MAX_CONTENT_LENGTH)

    def build_messages(self, deals: List[AcceptedDeal]) -> List[WebhookMessage]:
        """
        Split deals into webhook messages of at most chunk_size embeds.

        Only the first message carries the summary content.
        """
        if not deals:
            return []

        messages = []
        for start in range(0, len(deals), self.chunk_size):
            chunk = deals[start : start + self.chunk_size]
            message = WebhookMessage(
                content=self.format_summary(deals) if start == 0 else None,
                embeds=[self.format_embed(accepted) for accepted in chunk],
            )
            message.validate()
            messages.append(message)

        return messages

    def build_test_message(self) -> WebhookMessage:
        """Fixed single-embed message used to verify a webhook."""
        return WebhookMessage(
            embeds=[
                Embed(
                    title=TEST_NOTIFICATION_TITLE,
                    description=TEST_NOTIFICATION_DESCRIPTION,
                    color=TEST_NOTIFICATION_COLOR,
                )
            ]
        )
