"""
Webhook payload models (Discord-compatible embeds).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MAX_EMBEDS_PER_MESSAGE = 10
MAX_CONTENT_LENGTH = 2000
MAX_TITLE_LENGTH = 256
MAX_FIELD_VALUE_LENGTH = 1024


@dataclass
class EmbedField:
    """A name/value field inside an embed."""

    name: str
    value: str
    inline: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value, "inline": self.inline}


@dataclass
class Embed:
    """A rich message card."""

    title: str
    url: Optional[str] = None
    description: Optional[str] = None
    color: Optional[int] = None
    fields: List[EmbedField] = field(default_factory=list)
    footer: Optional[str] = None
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"title": self.title}
        if self.url:
            data["url"] = self.url
        if self.description:
            data["description"] = self.description
        if self.color is not None:
            data["color"] = self.color
        if self.fields:
            data["fields"] = [f.to_dict() for f in self.fields]
        if self.footer:
            data["footer"] = {"text": self.footer}
        if self.timestamp:
            data["timestamp"] = self.timestamp
        return data


@dataclass
class WebhookMessage:
    """One outbound webhook POST body."""

    content: Optional[str] = None
    embeds: List[Embed] = field(default_factory=list)

    def validate(self) -> bool:
        """Validate message against the endpoint's limits."""
        if not self.content and not self.embeds:
            raise ValueError("message must have content or embeds")

        if self.content is not None and len(self.content) > MAX_CONTENT_LENGTH:
            raise ValueError(
                f"content too long (max {MAX_CONTENT_LENGTH} characters)"
            )

        if len(self.embeds) > MAX_EMBEDS_PER_MESSAGE:
            raise ValueError(f"too many embeds (max {MAX_EMBEDS_PER_MESSAGE})")

        for embed in self.embeds:
            if len(embed.title) > MAX_TITLE_LENGTH:
                raise ValueError(
                    f"embed title too long (max {MAX_TITLE_LENGTH} characters)"
                )

        return True

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.content:
            data["content"] = self.content
        if self.embeds:
            data["embeds"] = [embed.to_dict() for embed in self.embeds]
        return data
