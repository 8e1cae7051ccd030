"""
Filter result models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FilterReason(Enum):
    """Why a deal was accepted or suppressed by the keyword filter."""

    ACCEPTED = "accepted"
    EXCLUDED_KEYWORD = "excluded_keyword"
    MISSING_INCLUDE_KEYWORD = "missing_include_keyword"


@dataclass(frozen=True)
class FilterResult:
    """Result of applying a search term's keyword filter to a deal."""

    passes: bool
    reason: FilterReason
    keyword: Optional[str] = None

    def validate(self) -> bool:
        """Validate filter result data."""
        if not isinstance(self.passes, bool):
            raise ValueError("passes must be a boolean")

        if not isinstance(self.reason, FilterReason):
            raise ValueError("reason must be a FilterReason enum")

        if self.passes != (self.reason is FilterReason.ACCEPTED):
            raise ValueError("passes must agree with reason")

        return True
