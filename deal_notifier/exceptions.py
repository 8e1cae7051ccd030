"""
Exception types for the Deal Notifier system.
"""

from typing import Optional


class DealNotifierError(Exception):
    """Base class for all Deal Notifier errors."""


class FetchError(DealNotifierError):
    """Raised when a search page cannot be fetched."""

    def __init__(
        self,
        message: str,
        search_term: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.search_term = search_term
        self.status_code = status_code


class MetadataParseError(DealNotifierError):
    """Raised when a listing's embedded metadata payload is malformed."""


class ConfigurationError(DealNotifierError, ValueError):
    """Raised when configuration data is missing or invalid."""


class StoreError(DealNotifierError):
    """Raised when the dedup store cannot be read or written."""
