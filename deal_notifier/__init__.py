"""
Deal Notifier

A scheduled ingestion-and-notification engine that watches deal search
pages for new postings matching user-defined search terms, filters and
deduplicates them, and delivers batched rich notifications to per-channel
chat webhooks.
"""

__version__ = "0.1.0"
__author__ = "Deal Notifier Team"
