"""
Core components for the Deal Notifier system.

This module contains the components that handle search page parsing,
keyword filtering, embed formatting and webhook dispatching.
"""

from .deal_parser import DealParser, PayloadResult, PayloadStatus, PriceExtractor
from .embed_formatter import EmbedFormatter
from .keyword_filter import KeywordFilter
from .message_dispatcher import WebhookDispatcher

__all__ = [
    "DealParser",
    "PayloadResult",
    "PayloadStatus",
    "PriceExtractor",
    "KeywordFilter",
    "EmbedFormatter",
    "WebhookDispatcher",
]
