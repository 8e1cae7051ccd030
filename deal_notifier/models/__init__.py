"""
Data models for the Deal Notifier system.

This module contains all data classes and type definitions used throughout
the application for representing deals, configuration, and run state.
"""

from .config import Channel, ChannelWithConfigs, NotifierSettings, SearchTermConfig
from .deal import AcceptedDeal, Deal, SeenDealRecord, Temperature
from .delivery import DeliveryResult
from .filter import FilterReason, FilterResult
from .run import ChannelReport, RunReport
from .webhook import Embed, EmbedField, WebhookMessage

__all__ = [
    "Deal",
    "AcceptedDeal",
    "SeenDealRecord",
    "Temperature",
    "Channel",
    "SearchTermConfig",
    "ChannelWithConfigs",
    "NotifierSettings",
    "FilterResult",
    "FilterReason",
    "DeliveryResult",
    "Embed",
    "EmbedField",
    "WebhookMessage",
    "ChannelReport",
    "RunReport",
]
