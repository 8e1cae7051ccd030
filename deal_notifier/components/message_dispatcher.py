"""
Message dispatching components for the Deal Notifier system.

This module delivers batches of accepted deals to a channel's webhook as
sequential chunked messages. Delivery is best-effort: failed chunks are
logged and skipped, never retried.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from ..interfaces import IMessageDispatcher
from ..models.deal import AcceptedDeal
from ..models.delivery import DeliveryResult
from ..models.webhook import WebhookMessage
from .embed_formatter import EmbedFormatter

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGE_LENGTH = 500


class WebhookDispatcher(IMessageDispatcher):
    """Discord-compatible webhook dispatcher."""

    def __init__(
        self,
        formatter: Optional[EmbedFormatter] = None,
        message_delay: float = 1.0,
        timeout: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize webhook dispatcher.

        Args:
            formatter: Embed formatter used to build messages
            message_delay: Seconds to wait between chunks sent to one webhook
            timeout: Request timeout in seconds
            sleep: Delay function, replaceable in tests
        """
        self.formatter = formatter or EmbedFormatter()
        self.message_delay = message_delay
        self.timeout = timeout
        self.sleep = sleep
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session without automatic retries."""
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({"Content-Type": "application/json"})
        return session

    def _post(self, webhook_url: str, payload: Dict[str, Any]) -> None:
        """POST one message; raises on transport failure or non-2xx status."""
        response = self.session.post(webhook_url, json=payload, timeout=self.timeout)
        if not 200 <= response.status_code < 300:
            raise requests.exceptions.HTTPError(
                f"Webhook returned status {response.status_code}: "
                f"{response.text[:200]}",
                response=response,
            )

    def deliver(self, webhook_url: str, deals: List[AcceptedDeal]) -> DeliveryResult:
        """
        Deliver accepted deals to a webhook.

        Chunks are sent sequentially with a fixed delay between them. A
        failed chunk is logged and later chunks are still attempted.

        Args:
            webhook_url: Target webhook URL
            deals: Accepted deals, in notification order

        Returns:
            DeliveryResult: success only if every chunk was delivered
        """
        start_time = datetime.now()

        try:
            messages = self.formatter.build_messages(deals)
        except Exception as e:
            logger.error(f"Failed to build webhook messages: {e}")
            return self._result(False, 0, 0, f"Failed to build messages: {e}")

        if not messages:
            return self._result(True, 0, 0, None)

        chunks_sent = 0
        errors: List[str] = []

        for index, message in enumerate(messages):
            if index > 0 and self.message_delay > 0:
                self.sleep(self.message_delay)

            try:
                self._post(webhook_url, message.to_dict())
                chunks_sent += 1
                logger.debug(
                    f"Sent chunk {index + 1}/{len(messages)} "
                    f"with {len(message.embeds)} embeds"
                )
            except Exception as e:
                errors.append(f"chunk {index + 1}: {e}")
                logger.error(
                    f"Failed to send chunk {index + 1}/{len(messages)}: {e}"
                )

        elapsed = (datetime.now() - start_time).total_seconds()
        if errors:
            logger.warning(
                f"Delivered {chunks_sent}/{len(messages)} chunks "
                f"({len(deals)} deals) in {elapsed:.2f}s"
            )
            error_message = (
                f"{len(errors)} of {len(messages)} chunks failed: " + "; ".join(errors)
            )
            return self._result(False, chunks_sent, len(errors), error_message)

        logger.info(
            f"Delivered {len(deals)} deals in {len(messages)} chunks "
            f"in {elapsed:.2f}s"
        )
        return self._result(True, chunks_sent, 0, None)

    def send_message(self, webhook_url: str, message: WebhookMessage) -> DeliveryResult:
        """Send a single prepared message."""
        try:
            message.validate()
            self._post(webhook_url, message.to_dict())
        except Exception as e:
            logger.error(f"Failed to send webhook message: {e}")
            return self._result(False, 0, 1, str(e))

        return self._result(True, 1, 0, None)

    def send_test_notification(self, webhook_url: str) -> DeliveryResult:
        """Send the fixed test notification to a webhook."""
        result = self.send_message(webhook_url, self.formatter.build_test_message())
        if result.success:
            logger.info("Test notification sent")
        return result

    def _result(
        self,
        success: bool,
        chunks_sent: int,
        chunks_failed: int,
        error_message: Optional[str],
    ) -> DeliveryResult:
        if error_message and len(error_message) > MAX_ERROR_MESSAGE_LENGTH:
            error_message = error_message[: MAX_ERROR_MESSAGE_LENGTH - 3] + "..."

        result = DeliveryResult(
            success=success,
            delivery_time=datetime.now(),
            error_message=error_message,
            chunks_sent=chunks_sent,
            chunks_failed=chunks_failed,
        )
        result.validate()
        return result

    def close(self) -> None:
        self.session.close()
