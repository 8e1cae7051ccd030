"""Keyword filter for include/exclude matching of deals against search terms."""

import logging
from typing import List, Optional

from ..models.config import SearchTermConfig
from ..models.deal import Deal
from ..models.filter import FilterReason, FilterResult

logger = logging.getLogger(__name__)


class KeywordFilter:
    """Applies a search term configuration's keyword lists to a deal."""

    def build_haystack(self, deal: Deal, case_sensitive: bool = False) -> str:
        """Text the keywords are matched against: title plus merchant."""
        haystack = f"{deal.title} {deal.merchant or ''}"
        return haystack if case_sensitive else haystack.lower()

    def _normalize(self, keywords: List[str], case_sensitive: bool) -> List[str]:
        normalized = []
        for keyword in keywords:
            keyword = keyword.strip()
            if not keyword:
                continue
            normalized.append(keyword if case_sensitive else keyword.lower())
        return normalized

    def evaluate(self, deal: Deal, config: SearchTermConfig) -> FilterResult:
        """
        Evaluate a deal against the configuration's keyword lists.

        Exclusion wins over inclusion; every include keyword must be present.
        Empty lists impose no constraint.

        Args:
            deal: Candidate deal
            config: Search term configuration owning the keyword lists

        Returns:
            FilterResult describing the decision
        """
        haystack = self.build_haystack(deal, config.case_sensitive)

        for keyword in self._normalize(config.exclude_keywords, config.case_sensitive):
            if keyword in haystack:
                logger.debug(
                    f"Deal {deal.deal_id} excluded by keyword '{keyword}' "
                    f"for search term '{config.search_term}'"
                )
                return FilterResult(
                    passes=False,
                    reason=FilterReason.EXCLUDED_KEYWORD,
                    keyword=keyword,
                )

        missing = self._first_missing(
            haystack, self._normalize(config.include_keywords, config.case_sensitive)
        )
        if missing is not None:
            logger.debug(
                f"Deal {deal.deal_id} missing required keyword '{missing}' "
                f"for search term '{config.search_term}'"
            )
            return FilterResult(
                passes=False,
                reason=FilterReason.MISSING_INCLUDE_KEYWORD,
                keyword=missing,
            )

        return FilterResult(passes=True, reason=FilterReason.ACCEPTED)

    def accepts(self, deal: Deal, config: SearchTermConfig) -> bool:
        """Whether the deal passes the configuration's keyword lists."""
        return self.evaluate(deal, config).passes

    @staticmethod
    def _first_missing(haystack: str, keywords: List[str]) -> Optional[str]:
        for keyword in keywords:
            if keyword not in haystack:
                return keyword
        return None
