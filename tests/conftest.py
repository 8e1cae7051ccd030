"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Deal Notifier test suite.
"""

import html
import json
from datetime import datetime
from pathlib import Path
import tempfile
from unittest.mock import Mock

import pytest

from deal_notifier.models.config import (
    Channel,
    ChannelWithConfigs,
    NotifierSettings,
    SearchTermConfig,
)
from deal_notifier.models.deal import AcceptedDeal, Deal, Temperature
from deal_notifier.models.delivery import DeliveryResult
from deal_notifier.utils import error_handling
from deal_notifier.utils.logging import setup_logging

TIMESTAMP_MILLIS = 1704110400000  # 2024-01-01T12:00:00Z


@pytest.fixture(scope="session", autouse=True)
def configure_test_logging(tmp_path_factory):
    """Send test logs to a temporary directory instead of ./logs."""
    log_dir = tmp_path_factory.mktemp("logs")
    setup_logging(str(log_dir), "DEBUG")
    yield log_dir


@pytest.fixture(autouse=True)
def reset_error_state(monkeypatch):
    """Give every test a fresh error tracker and degradation manager."""
    monkeypatch.setattr(error_handling, "_error_tracker", None)
    monkeypatch.setattr(error_handling, "_degradation_manager", None)


# Test data fixtures
@pytest.fixture
def sample_deal():
    """Create a sample Deal for testing."""
    return Deal(
        deal_id="4321987",
        title="Steam Deck OLED 512GB",
        link="https://www.hotukdeals.com/deals/steam-deck-oled-4321987",
        price="£40",
        original_price="£50",
        merchant="Steam",
        merchant_url="https://www.hotukdeals.com/vouchers/steam",
        score=152.0,
        temperature=Temperature.HOT,
        comment_count=12,
        savings="£10.00",
        savings_percentage=20,
        timestamp=TIMESTAMP_MILLIS,
    )


@pytest.fixture
def make_deal():
    """Factory for deals with sensible defaults."""

    def _make_deal(deal_id="1", title="Gaming Laptop New", **kwargs):
        kwargs.setdefault("link", f"https://www.hotukdeals.com/deals/{deal_id}")
        kwargs.setdefault("timestamp", TIMESTAMP_MILLIS)
        return Deal(deal_id=deal_id, title=title, **kwargs)

    return _make_deal


@pytest.fixture
def make_accepted(make_deal):
    """Factory for accepted deals."""

    def _make_accepted(count, search_term="steam deck", **kwargs):
        return [
            AcceptedDeal(
                deal=make_deal(deal_id=str(index), title=f"Deal {index}", **kwargs),
                search_term=search_term,
            )
            for index in range(count)
        ]

    return _make_accepted


@pytest.fixture
def sample_channel():
    """Create a sample Channel for testing."""
    return Channel(
        channel_id="gaming",
        name="Gaming deals",
        webhook_url="https://discord.com/api/webhooks/1/gaming",
        user_id="user-1",
    )


@pytest.fixture
def sample_search_config():
    """Create a sample SearchTermConfig for testing."""
    return SearchTermConfig(
        channel_id="gaming",
        search_term="steam deck",
        user_id="user-1",
        exclude_keywords=["refurbished"],
    )


@pytest.fixture
def sample_group(sample_channel, sample_search_config):
    return ChannelWithConfigs(channel=sample_channel, configs=[sample_search_config])


@pytest.fixture
def sample_settings(temp_dir):
    """Create NotifierSettings suitable for fast tests."""
    return NotifierSettings(
        polling_interval=10,
        max_concurrent_channels=5,
        cache_ttl=300,
        request_timeout=1.0,
        run_timeout=5.0,
        chunk_size=10,
        message_delay=0.0,
        dedup_state_file=str(temp_dir / "seen_deals.json"),
        log_dir=str(temp_dir / "logs"),
    )


@pytest.fixture
def successful_delivery():
    return DeliveryResult(
        success=True,
        delivery_time=datetime(2024, 1, 1, 12, 5, 0),
        error_message=None,
        chunks_sent=1,
    )


@pytest.fixture
def mock_dispatcher(successful_delivery):
    """Create a mock webhook dispatcher for testing."""
    dispatcher = Mock()
    dispatcher.deliver.return_value = successful_delivery
    return dispatcher


# Search page fixtures
def build_payload_attribute(thread):
    """Entity-encode a thread payload the way the source page embeds it."""
    payload = {"name": "ThreadMainListItemNormalizer", "props": {"thread": thread}}
    return html.escape(json.dumps(payload), quote=True)


@pytest.fixture
def payload_attribute():
    """Helper that entity-encodes a thread payload."""
    return build_payload_attribute


@pytest.fixture
def search_page_html():
    """Search results page with payload, fallback and broken listings."""
    rich_payload = build_payload_attribute(
        {
            "threadId": "4321987",
            "title": "Steam Deck OLED 512GB",
            "price": 40,
            "nextBestPrice": 50,
            "temperature": 152.37,
            "commentCount": 12,
            "merchant": {"merchantName": "Steam", "merchantUrlName": "steam"},
        }
    )
    legacy_payload = build_payload_attribute(
        {"price": 19.99, "temperature": 64, "merchant": {"merchantName": "Argos"}}
    )
    return f"""
    <html><body>
      <article class="thread thread--deal" id="thread_4321987">
        <div data-vue3="{rich_payload}"></div>
        <a class="thread-link" href="/deals/steam-deck-oled-4321987">Steam Deck OLED 512GB</a>
      </article>
      <article class="thread" id="thread_555">
        <a class="thread-link" href="https://www.hotukdeals.com/deals/ps5-555">
          PS5 Slim Console - save £20 today
        </a>
        <span class="thread-merchant">Currys</span>
      </article>
      <article class="thread" id="thread_777">
        <span data-vue2="{legacy_payload}"></span>
        <a class="thread-link" href="/deals/controller-777">DualSense Controller</a>
      </article>
      <article class="thread" id="thread_888">
        <div data-vue3="{{not json"></div>
        <a class="thread-link" href="/deals/headset-888">Headset £24.99 at Amazon</a>
      </article>
      <article class="thread" id="thread_999">
        <span>Listing without a link</span>
      </article>
    </body></html>
    """


# Temporary directory fixtures
@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_file(temp_dir):
    """Write a configuration file with settings, channels and search terms."""

    def _write(content):
        path = temp_dir / "config.yaml"
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to tests not marked integration or slow."""
    for item in items:
        if not any(
            marker.name in ["integration", "slow"] for marker in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)
