"""
Search page fetching and parsing components for the Deal Notifier system.

This module fetches a source search-results page for a search term and
converts each listing into a Deal, reading rich metadata from the JSON
payload embedded in the listing markup and falling back to text heuristics
when that payload is missing or malformed.
"""

import html
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urljoin

import requests
from bs4 import BeautifulSoup
from bs4.element import Tag
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import FetchError, MetadataParseError
from ..models.deal import Deal, Temperature, current_millis

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.hotukdeals.com"

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36"
    ),
}


class PayloadStatus(Enum):
    """Outcome of reading a listing's embedded metadata payload."""

    OK = "ok"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class PayloadResult:
    """Either the decoded thread data or the reason it is unavailable."""

    status: PayloadStatus
    data: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, data: Dict[str, Any]) -> "PayloadResult":
        return cls(status=PayloadStatus.OK, data=data)

    @classmethod
    def fallback(cls, reason: str) -> "PayloadResult":
        return cls(status=PayloadStatus.FALLBACK, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status is PayloadStatus.OK


class PriceExtractor:
    """Extracts price and savings information from listing text."""

    # Checked in order, first match wins
    PRICE_PATTERNS = [
        r"(?:from|save|off|was)\s*[£$€][\d,]+(?:\.\d{2})?",
        r"[£$€][\d,]+(?:\.\d{2})?\s*(?:off|discount)",
        r"[£$€][\d,]+(?:\.\d{2})?",
        r"\b\d+(?:\.\d{2})?\s*(?:£|GBP|pounds?)(?=\W|$)",
    ]

    AMOUNT_PATTERN = r"\d[\d,]*(?:\.\d+)?"
    CURRENCY_PATTERN = r"[£$€]"

    def __init__(self, currency_symbol: str = "£"):
        """Initialize price extractor."""
        self.currency_symbol = currency_symbol
        self.price_regexes = [
            re.compile(pattern, re.IGNORECASE) for pattern in self.PRICE_PATTERNS
        ]
        self.amount_regex = re.compile(self.AMOUNT_PATTERN)
        self.currency_regex = re.compile(self.CURRENCY_PATTERN)

    def extract_price(self, text: str) -> Optional[str]:
        """
        Recover a price string from free text such as a listing title.

        Args:
            text: Text to search

        Returns:
            The matched price text, or None
        """
        if not text:
            return None

        clean_text = re.sub(r"\s+", " ", text).strip()
        for regex in self.price_regexes:
            match = regex.search(clean_text)
            if match:
                return match.group(0).strip()

        return None

    def format_price(self, value: Any) -> Optional[str]:
        """Render a payload price as a currency-prefixed string."""
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            if self.currency_regex.match(value):
                return value
            try:
                value = float(value.replace(",", ""))
            except ValueError:
                return value

        amount = float(value)
        if amount <= 0:
            return None
        if amount.is_integer():
            return f"{self.currency_symbol}{int(amount)}"
        return f"{self.currency_symbol}{amount:.2f}"

    def parse_amount(self, price: Optional[str]) -> Optional[float]:
        """Numeric amount from a price string like '£1,299.99'."""
        if not price:
            return None

        match = self.amount_regex.search(price)
        if not match:
            return None

        try:
            return float(match.group(0).replace(",", ""))
        except ValueError:
            return None

    def compute_savings(
        self, price: Optional[str], original_price: Optional[str]
    ) -> Tuple[Optional[str], Optional[int]]:
        """
        Compute savings amount and percentage.

        Only produced when both prices are known and the original price
        exceeds the current price.

        Returns:
            Tuple of (savings, savings_percentage)
        """
        current = self.parse_amount(price)
        original = self.parse_amount(original_price)

        if current is None or original is None or original <= 0:
            return None, None

        if original <= current:
            return None, None

        difference = original - current
        symbol_match = self.currency_regex.search(price or "")
        symbol = symbol_match.group(0) if symbol_match else self.currency_symbol

        return f"{symbol}{difference:.2f}", round(difference / original * 100)


class MetadataExtractor:
    """Reads the JSON payload embedded in a listing's data attribute."""

    # Newer markup first
    ATTRIBUTE_NAMES = ("data-vue3", "data-vue2")

    def extract(self, element: Tag) -> PayloadResult:
        """
        Read the listing's embedded thread data.

        Args:
            element: Listing container element

        Returns:
            PayloadResult with the thread dictionary, or a fallback reason
        """
        selector = ", ".join(f"[{name}]" for name in self.ATTRIBUTE_NAMES)
        holder = element if self._has_payload(element) else element.select_one(selector)
        if holder is None:
            return PayloadResult.fallback("no embedded payload")

        raw_payload = next(
            holder.get(name) for name in self.ATTRIBUTE_NAMES if holder.has_attr(name)
        )

        try:
            return PayloadResult.ok(self.decode(raw_payload))
        except MetadataParseError as e:
            return PayloadResult.fallback(str(e))

    def decode(self, raw_payload: Any) -> Dict[str, Any]:
        """
        Decode an attribute value into the thread dictionary.

        Raises:
            MetadataParseError: If the value is not the expected JSON shape
        """
        if isinstance(raw_payload, list):
            raw_payload = " ".join(raw_payload)

        if not raw_payload:
            raise MetadataParseError("empty payload")

        try:
            payload = json.loads(raw_payload)
        except TypeError as e:
            raise MetadataParseError(f"invalid payload JSON: {e}") from e
        except json.JSONDecodeError:
            # Attribute text that was never entity-decoded
            try:
                payload = json.loads(html.unescape(raw_payload))
            except json.JSONDecodeError as e:
                raise MetadataParseError(f"invalid payload JSON: {e}") from e

        props = payload.get("props") if isinstance(payload, dict) else None
        thread = props.get("thread") if isinstance(props, dict) else None
        if not isinstance(thread, dict):
            raise MetadataParseError("payload has no thread data")

        return thread

    def _has_payload(self, element: Tag) -> bool:
        return any(element.has_attr(name) for name in self.ATTRIBUTE_NAMES)


class SearchPageParser:
    """Converts a search-results HTML document into Deal objects."""

    CONTAINER_SELECTOR = "article.thread"
    LINK_SELECTOR = "a.thread-link"
    PRICE_SELECTOR = ".thread-price, .price, [class*='price']"
    MERCHANT_SELECTOR = ".thread-merchant, .merchant, [class*='merchant']"
    THREAD_ID_PREFIX = "thread_"

    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        """
        Initialize search page parser.

        Args:
            base_url: Source origin used to absolutize relative links
        """
        self.base_url = base_url.rstrip("/")
        self.price_extractor = PriceExtractor()
        self.metadata_extractor = MetadataExtractor()

    def parse(self, page_html: str) -> List[Deal]:
        """
        Parse every listing on the page.

        Listings without a title or a usable link are skipped; metadata problems only
        degrade the affected listing's optional fields.
        """
        soup = BeautifulSoup(page_html, "html.parser")
        observed_at = current_millis()
        deals: List[Deal] = []

        for element in soup.select(self.CONTAINER_SELECTOR):
            link_element = element.select_one(self.LINK_SELECTOR)
            if link_element is None:
                continue

            href = (link_element.get("href") or "").strip()
            title = link_element.get_text(strip=True)
            if not href or not title:
                continue

            link = self._absolute_url(href)
            deal_id = self._extract_deal_id(element) or link

            try:
                fields = self._extract_fields(element, title)
            except Exception as e:
                logger.warning(f"Metadata extraction failed for deal {deal_id}: {e}")
                fields = {}

            deal = Deal(
                deal_id=deal_id,
                title=title,
                link=link,
                timestamp=observed_at,
                **fields,
            )
            try:
                deal.validate()
            except ValueError as e:
                logger.warning(f"Skipping invalid listing {deal_id}: {e}")
                continue

            deals.append(deal)

        return deals

    def _extract_deal_id(self, element: Tag) -> Optional[str]:
        """Stable thread id from the container's id attribute."""
        element_id = (element.get("id") or "").strip()
        if element_id.startswith(self.THREAD_ID_PREFIX):
            element_id = element_id[len(self.THREAD_ID_PREFIX) :]
        return element_id or None

    def _extract_fields(self, element: Tag, title: str) -> Dict[str, Any]:
        """Optional deal fields from the payload, or from text heuristics."""
        result = self.metadata_extractor.extract(element)

        fields: Dict[str, Any] = {}
        if result.is_ok:
            fields = self._fields_from_thread(result.data or {})
        else:
            logger.debug(f"Using text fallback for '{title}': {result.reason}")

        if not fields.get("price"):
            fields["price"] = self._fallback_price(element, title)

        if not fields.get("merchant"):
            fields["merchant"] = self._fallback_merchant(element)

        return fields

    def _fields_from_thread(self, thread: Dict[str, Any]) -> Dict[str, Any]:
        """Map payload thread data onto Deal fields."""
        price = self.price_extractor.format_price(thread.get("price"))
        original_price = self.price_extractor.format_price(
            thread.get("nextBestPrice")
        )
        savings, savings_percentage = self.price_extractor.compute_savings(
            price, original_price
        )

        merchant = None
        merchant_url = None
        merchant_data = thread.get("merchant")
        if isinstance(merchant_data, dict):
            merchant = (merchant_data.get("merchantName") or "").strip() or None
            raw_url = merchant_data.get("url") or merchant_data.get("merchantUrl")
            url_name = merchant_data.get("merchantUrlName")
            if raw_url:
                merchant_url = self._absolute_url(str(raw_url))
            elif url_name:
                merchant_url = f"{self.base_url}/{str(url_name).strip('/')}"

        score = None
        raw_score = thread.get("temperature")
        if raw_score is not None and not isinstance(raw_score, bool):
            try:
                score = float(raw_score)
            except (TypeError, ValueError):
                logger.debug(f"Ignoring non-numeric temperature: {raw_score!r}")

        comment_count = None
        raw_comments = thread.get("commentCount")
        if raw_comments is not None:
            try:
                comment_count = max(0, int(raw_comments))
            except (TypeError, ValueError):
                logger.debug(f"Ignoring non-numeric comment count: {raw_comments!r}")

        return {
            "price": price,
            "original_price": original_price,
            "merchant": merchant,
            "merchant_url": merchant_url,
            "score": score,
            "temperature": Temperature.from_score(score),
            "comment_count": comment_count,
            "savings": savings,
            "savings_percentage": savings_percentage,
        }

    def _fallback_price(self, element: Tag, title: str) -> Optional[str]:
        price_element = element.select_one(self.PRICE_SELECTOR)
        if price_element is not None:
            price_text = price_element.get_text(" ", strip=True)
            if price_text:
                return price_text
        return self.price_extractor.extract_price(title)

    def _fallback_merchant(self, element: Tag) -> Optional[str]:
        merchant_element = element.select_one(self.MERCHANT_SELECTOR)
        if merchant_element is not None:
            return merchant_element.get_text(" ", strip=True) or None
        return None

    def _absolute_url(self, href: str) -> str:
        if href.startswith("http://") or href.startswith("https://"):
            return href
        return urljoin(self.base_url + "/", href)


class DealParser:
    """Fetches search pages and parses them into deals."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        max_retries: int = 1,
    ):
        """
        Initialize deal parser.

        Args:
            base_url: Source origin, e.g. https://www.hotukdeals.com
            timeout: Request timeout in seconds
            max_retries: Retry attempts for transient server errors
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.page_parser = SearchPageParser(self.base_url)
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with browser headers and retries."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update(BROWSER_HEADERS)
        return session

    def build_search_url(self, search_term: str) -> str:
        return f"{self.base_url}/search?q={quote(search_term, safe='')}"

    def fetch_page(self, search_term: str) -> str:
        """
        Fetch the raw search page HTML.

        Raises:
            FetchError: On timeout, connection failure or non-2xx status
        """
        url = self.build_search_url(search_term)
        logger.debug(f"Fetching search page: {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise FetchError(
                f"Timeout fetching search page for '{search_term}'",
                search_term=search_term,
            ) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(
                f"Failed to fetch search page for '{search_term}': {e}",
                search_term=search_term,
            ) from e

        if not 200 <= response.status_code < 300:
            raise FetchError(
                f"Failed to fetch search page for '{search_term}', "
                f"status: {response.status_code}",
                search_term=search_term,
                status_code=response.status_code,
            )

        return response.text

    def fetch_deals(self, search_term: str) -> List[Deal]:
        """
        Fetch and parse deals for a search term.

        An empty list means the page had no listings; that is not an error.

        Raises:
            FetchError: If the page itself could not be fetched
        """
        page_html = self.fetch_page(search_term)
        deals = self.page_parser.parse(page_html)

        if not deals:
            logger.info(f"No deals found for search term '{search_term}'")
        else:
            logger.info(f"Parsed {len(deals)} deals for search term '{search_term}'")

        return deals

    def close(self) -> None:
        self.session.close()
